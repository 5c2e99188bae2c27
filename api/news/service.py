"""
News business logic.

Scope:
- active news listing (paged), top news for the slider
- tags, news by tag, tag suggestions
- creating news with its big/small images
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import UploadFile

from core.envelope import ApiResult, StatusCode, success, with_status
from core.errors import StorageError, ValidationError
from core.pagination import validate_page
from core.uploads import ImageStore, has_content

from .repository import NewsRepository
from .schemas import ActiveNewsPage, AddNewsResponse, NewsRequest

logger = logging.getLogger(__name__)


class NewsService:
    def __init__(self, repository: NewsRepository, images: ImageStore) -> None:
        self._repo = repository
        self._images = images

    async def active_news(self, page_index: int, page_size: int) -> ApiResult[Any]:
        validate_page(page_index, page_size)
        items, total_count = await self._repo.fetch_active_news_page(page_index, page_size)
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No active news available.")
        return success(
            ActiveNewsPage(items=items, total_count=total_count),
            "Active news fetched successfully.",
        )

    async def top_news(self, take: int, skip: int) -> ApiResult[Any]:
        if take < 1 or skip < 0:
            raise ValidationError("Take must be greater than zero and skip must not be negative.")
        items = await self._repo.fetch_top_news(take, skip)
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No top news available")
        return success(items, "Top news fetched successfully")

    async def tags(self) -> ApiResult[Any]:
        items = await self._repo.fetch_tags()
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No tags available")
        return success(items, "Tags fetched successfully")

    async def news_by_tag(self, tag_name: str | None) -> ApiResult[Any]:
        tag_name = (tag_name or "").strip()
        if not tag_name:
            raise ValidationError("Tag name is required.")
        items = await self._repo.fetch_news_by_tag(tag_name)
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No news found for the given tag.")
        return success(items, "News fetched successfully.")

    async def tag_suggestions(self, query: str | None) -> ApiResult[Any]:
        query = (query or "").strip()
        if not query:
            raise ValidationError("Query must be at least 1 character long.")
        items = await self._repo.fetch_tag_suggestions(query)
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No tag suggestions found.")
        return success(items, "Tag suggestions fetched successfully.")

    async def add_news(
        self,
        request: NewsRequest,
        *,
        big_image: UploadFile | None = None,
        small_image: UploadFile | None = None,
    ) -> ApiResult[Any]:
        """
        Read the images, create the news row, then store images under its id and attach the paths.

        Not safe to retry blindly: a retry after an ambiguous failure can
        create a second news row.
        """
        if not request.title.strip():
            raise ValidationError("Title is required")
        if not request.short_desc.strip():
            raise ValidationError("Short Description is required")
        big = await self._images.read_image(big_image) if has_content(big_image) else None
        small = await self._images.read_image(small_image) if has_content(small_image) else None

        news_id = await self._repo.add_news(request, None, None)
        if news_id <= 0:
            raise StorageError("Failed to add news")

        big_path = self._images.save_news_image(news_id, big) if big else None
        small_path = self._images.save_news_image(news_id, small) if small else None
        if big_path or small_path:
            await self._repo.attach_news_images(news_id, big_path, small_path)

        logger.info("news_added news_id=%s tags=%s", news_id, ",".join(request.tag_list()))
        return success(
            AddNewsResponse(
                news_id=news_id,
                message="News created successfully",
                big_image_path=big_path,
                small_image_path=small_path,
            ),
            "News added successfully",
        )
