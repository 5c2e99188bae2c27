from __future__ import annotations

import asyncio
from datetime import datetime, timedelta, timezone
from io import BytesIO
from pathlib import Path

import pytest
from fastapi import UploadFile

from core.envelope import StatusCode
from core.errors import ValidationError
from core.memory import MemoryState
from core.uploads import ImageStore
from news.repository import InMemoryNewsRepository, escape_like
from news.schemas import NewsRequest
from news.service import NewsService
from tests.portal_fixtures import BASE_TIME, PNG_BYTES, FixedClock


def _build(tmp_path: Path) -> tuple[NewsService, MemoryState]:
    state = MemoryState(clock=FixedClock())
    service = NewsService(InMemoryNewsRepository(state), ImageStore(tmp_path, max_bytes=1024))
    return service, state


def _add(service: NewsService, title: str, tags: str, days: int) -> int:
    request = NewsRequest(
        title=title,
        short_desc=f"{title} in short",
        tag_name=tags,
        posting_date=BASE_TIME + timedelta(days=days),
    )
    return asyncio.run(service.add_news(request)).data.news_id


def test_active_news_empty_is_no_data_found(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)

    result = asyncio.run(service.active_news(1, 10))

    assert result.code is StatusCode.NO_DATA_FOUND
    assert result.data is None


def test_active_news_pages_newest_first_with_total(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)
    for day in range(5):
        _add(service, f"Story {day}", "world", day)

    result = asyncio.run(service.active_news(2, 2))

    assert result.data.total_count == 5
    assert [n.title for n in result.data.items] == ["Story 2", "Story 1"]


def test_active_news_rejects_bad_page(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)

    with pytest.raises(ValidationError):
        asyncio.run(service.active_news(0, 10))


def test_tags_are_reused_across_news(tmp_path: Path) -> None:
    service, state = _build(tmp_path)
    _add(service, "One", "Sports, Politics", 0)
    _add(service, "Two", "Sports", 1)

    tags = asyncio.run(service.tags()).data
    by_tag = asyncio.run(service.news_by_tag("sports")).data

    assert [t.tag_name for t in tags] == ["Politics", "Sports"]
    assert [n.title for n in by_tag] == ["Two", "One"]
    assert by_tag[1].tag_names == "Politics,Sports"


def test_news_by_tag_and_suggestions_require_input(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)

    with pytest.raises(ValidationError):
        asyncio.run(service.news_by_tag("  "))
    with pytest.raises(ValidationError):
        asyncio.run(service.tag_suggestions(None))


def test_tag_suggestions_match_prefix(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)
    _add(service, "One", "Science,Sports,Politics", 0)

    result = asyncio.run(service.tag_suggestions("s"))

    assert [s.tag_name for s in result.data] == ["Science", "Sports"]


def test_add_news_stores_images_under_news_id(tmp_path: Path) -> None:
    service, state = _build(tmp_path)
    big = UploadFile(file=BytesIO(PNG_BYTES), filename="big.png", size=len(PNG_BYTES))

    result = asyncio.run(service.add_news(NewsRequest(title="T", short_desc="S"), big_image=big))

    assert result.data.big_image_path.startswith(f"~/NewsImages/{result.data.news_id}/")
    assert result.data.small_image_path is None
    assert state.news[0]["big_image"] == result.data.big_image_path


def test_add_news_rejects_bad_image_before_insert(tmp_path: Path) -> None:
    service, state = _build(tmp_path)
    bad = UploadFile(file=BytesIO(b"GIF89a"), filename="anim.gif", size=6)

    with pytest.raises(ValidationError):
        asyncio.run(service.add_news(NewsRequest(title="T", short_desc="S"), big_image=bad))

    assert state.news == []


def test_add_news_requires_title_and_short_description(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)

    with pytest.raises(ValidationError):
        asyncio.run(service.add_news(NewsRequest(title="", short_desc="S")))
    with pytest.raises(ValidationError):
        asyncio.run(service.add_news(NewsRequest(title="T", short_desc=" ")))


def test_escape_like_escapes_wildcards() -> None:
    assert escape_like("50%_off\\") == "50\\%\\_off\\\\"


def test_naive_posting_date_is_read_as_utc(tmp_path: Path) -> None:
    service, _ = _build(tmp_path)
    asyncio.run(service.add_news(NewsRequest(title="Undated", short_desc="short")))
    asyncio.run(
        service.add_news(NewsRequest(title="Dated", short_desc="short", posting_date=datetime(2024, 5, 1, 10, 0)))
    )

    result = asyncio.run(service.active_news(1, 10))

    dated = next(n for n in result.data.items if n.title == "Dated")
    assert dated.posting_date == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)
    assert result.data.total_count == 2
