"""
News API schemas and storage row shapes.
"""

from __future__ import annotations

from datetime import datetime, timezone

from pydantic import TypeAdapter, field_validator

from core.schemas import CamelModel


class News(CamelModel):
    news_id: int
    title: str
    big_image: str | None = None
    small_image: str | None = None
    short_desc: str | None = None
    news_content: str | None = None
    posting_date: datetime | None = None
    copywrite_text: str | None = None
    author_id: int | None = None
    tag_names: str | None = None
    created_date: datetime | None = None
    created_by: str | None = None
    modified_date: datetime | None = None
    modified_by: str | None = None
    is_active: bool = True


class TopNews(CamelModel):
    news_id: int
    title: str
    big_image: str | None = None
    short_desc: str | None = None
    news_content: str | None = None
    posting_date: datetime | None = None
    copywrite_text: str | None = None
    tag_names: str | None = None


class Tag(CamelModel):
    tag_id: int
    tag_name: str


class TagSuggestion(CamelModel):
    tag_name: str


class ActiveNewsPage(CamelModel):
    items: list[News]
    total_count: int


class NewsRequest(CamelModel):
    title: str = ""
    short_desc: str = ""
    news_content: str = ""
    posting_date: datetime | None = None
    copy_write_text: str | None = None
    tag_name: str | None = None
    author_id: int | None = None
    created_by: str | None = None

    @field_validator("posting_date")
    @classmethod
    def assume_utc(cls, value: datetime | None) -> datetime | None:
        # Stored dates are always timezone-aware.
        if value is not None and value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def tag_list(self) -> list[str]:
        return [t.strip() for t in (self.tag_name or "").split(",") if t.strip()]


class AddNewsResponse(CamelModel):
    news_id: int
    message: str
    big_image_path: str | None = None
    small_image_path: str | None = None


NEWS_ROWS = TypeAdapter(list[News])
TOP_NEWS_ROWS = TypeAdapter(list[TopNews])
TAG_ROWS = TypeAdapter(list[Tag])
TAG_SUGGESTION_ROWS = TypeAdapter(list[TagSuggestion])
