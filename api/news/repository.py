"""
News persistence: the storage port plus its PostgreSQL and in-memory adapters.
"""

from __future__ import annotations

from typing import Protocol

from core.db import Database
from core.memory import MemoryState

from .schemas import (
    NEWS_ROWS,
    TAG_ROWS,
    TAG_SUGGESTION_ROWS,
    TOP_NEWS_ROWS,
    News,
    NewsRequest,
    Tag,
    TagSuggestion,
    TopNews,
)

TAG_SUGGESTION_LIMIT = 10


class NewsRepository(Protocol):
    async def fetch_active_news_page(self, page_index: int, page_size: int) -> tuple[list[News], int]: ...

    async def fetch_top_news(self, take: int, skip: int) -> list[TopNews]: ...

    async def fetch_tags(self) -> list[Tag]: ...

    async def fetch_news_by_tag(self, tag_name: str) -> list[News]: ...

    async def fetch_tag_suggestions(self, prefix: str) -> list[TagSuggestion]: ...

    async def add_news(
        self,
        request: NewsRequest,
        big_image_path: str | None,
        small_image_path: str | None,
    ) -> int: ...

    async def attach_news_images(self, news_id: int, big_image_path: str | None, small_image_path: str | None) -> None: ...


def escape_like(value: str) -> str:
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


_NEWS_COLUMNS = """
    n.news_id, n.title, n.big_image, n.small_image, n.short_desc, n.news_content,
    n.posting_date, n.copywrite_text, n.author_id, n.created_date, n.created_by,
    n.modified_date, n.modified_by, n.is_active,
    (
      SELECT string_agg(t.tag_name, ',' ORDER BY t.tag_name)
      FROM news_tags nt
      JOIN tags t ON t.tag_id = nt.tag_id
      WHERE nt.news_id = n.news_id
    ) AS tag_names
"""


class PostgresNewsRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def fetch_active_news_page(self, page_index: int, page_size: int) -> tuple[list[News], int]:
        total = await self._db.fetch_val("SELECT count(*) FROM news WHERE is_active = true")
        rows = await self._db.fetch_all(
            f"""
            SELECT {_NEWS_COLUMNS}
            FROM news n
            WHERE n.is_active = true
            ORDER BY n.posting_date DESC NULLS LAST, n.news_id DESC
            LIMIT $1 OFFSET $2
            """,
            page_size,
            (page_index - 1) * page_size,
        )
        return NEWS_ROWS.validate_python(rows), int(total or 0)

    async def fetch_top_news(self, take: int, skip: int) -> list[TopNews]:
        rows = await self._db.fetch_all(
            f"""
            SELECT {_NEWS_COLUMNS}
            FROM news n
            WHERE n.is_active = true
            ORDER BY n.posting_date DESC NULLS LAST, n.news_id DESC
            LIMIT $1 OFFSET $2
            """,
            take,
            skip,
        )
        return TOP_NEWS_ROWS.validate_python(rows)

    async def fetch_tags(self) -> list[Tag]:
        rows = await self._db.fetch_all(
            """
            SELECT tag_id, tag_name
            FROM tags
            ORDER BY tag_name ASC
            """
        )
        return TAG_ROWS.validate_python(rows)

    async def fetch_news_by_tag(self, tag_name: str) -> list[News]:
        rows = await self._db.fetch_all(
            f"""
            SELECT {_NEWS_COLUMNS}
            FROM news n
            WHERE n.is_active = true
              AND EXISTS (
                SELECT 1
                FROM news_tags nt
                JOIN tags t ON t.tag_id = nt.tag_id
                WHERE nt.news_id = n.news_id
                  AND lower(t.tag_name) = lower($1)
              )
            ORDER BY n.posting_date DESC NULLS LAST, n.news_id DESC
            """,
            tag_name.strip(),
        )
        return NEWS_ROWS.validate_python(rows)

    async def fetch_tag_suggestions(self, prefix: str) -> list[TagSuggestion]:
        rows = await self._db.fetch_all(
            """
            SELECT tag_name
            FROM tags
            WHERE tag_name ILIKE ($1 || '%') ESCAPE '\\'
            ORDER BY tag_name ASC
            LIMIT $2
            """,
            escape_like(prefix.strip()),
            TAG_SUGGESTION_LIMIT,
        )
        return TAG_SUGGESTION_ROWS.validate_python(rows)

    async def add_news(
        self,
        request: NewsRequest,
        big_image_path: str | None,
        small_image_path: str | None,
    ) -> int:
        news_id = await self._db.fetch_val(
            """
            WITH inserted AS (
                INSERT INTO news (
                    title, big_image, small_image, short_desc, news_content,
                    posting_date, copywrite_text, author_id, created_by
                )
                VALUES ($1, $2, $3, $4, $5, coalesce($6, now()), $7, $8, $9)
                RETURNING news_id
            ),
            tag_input AS (
                SELECT DISTINCT trim(x) AS tag_name
                FROM unnest($10::text[]) AS x
                WHERE trim(x) <> ''
            ),
            upserted AS (
                INSERT INTO tags (tag_name)
                SELECT tag_name FROM tag_input
                ON CONFLICT (tag_name) DO UPDATE SET tag_name = EXCLUDED.tag_name
                RETURNING tag_id
            ),
            linked AS (
                INSERT INTO news_tags (news_id, tag_id)
                SELECT i.news_id, u.tag_id
                FROM inserted i
                CROSS JOIN upserted u
            )
            SELECT news_id FROM inserted
            """,
            request.title,
            big_image_path,
            small_image_path,
            request.short_desc,
            request.news_content,
            request.posting_date,
            request.copy_write_text,
            request.author_id,
            request.created_by,
            request.tag_list(),
        )
        return int(news_id or 0)

    async def attach_news_images(self, news_id: int, big_image_path: str | None, small_image_path: str | None) -> None:
        await self._db.execute(
            """
            UPDATE news
            SET big_image = $2,
                small_image = $3,
                modified_date = now()
            WHERE news_id = $1
            """,
            news_id,
            big_image_path,
            small_image_path,
        )


class InMemoryNewsRepository:
    def __init__(self, state: MemoryState) -> None:
        self._state = state

    def _tag_names(self, row: dict) -> list[str]:
        by_id = {t["tag_id"]: t["tag_name"] for t in self._state.tags}
        return sorted(by_id[tid] for tid in row.get("tag_ids", []) if tid in by_id)

    def _with_tags(self, row: dict) -> dict:
        names = self._tag_names(row)
        return {**row, "tag_names": ",".join(names) if names else None}

    def _active_sorted(self) -> list[dict]:
        active = [r for r in self._state.news if r.get("is_active", True)]
        return sorted(
            active,
            key=lambda r: (r.get("posting_date") is not None, r.get("posting_date") or 0, r["news_id"]),
            reverse=True,
        )

    async def fetch_active_news_page(self, page_index: int, page_size: int) -> tuple[list[News], int]:
        active = self._active_sorted()
        offset = (page_index - 1) * page_size
        page = [self._with_tags(r) for r in active[offset : offset + page_size]]
        return NEWS_ROWS.validate_python(page), len(active)

    async def fetch_top_news(self, take: int, skip: int) -> list[TopNews]:
        page = [self._with_tags(r) for r in self._active_sorted()[skip : skip + take]]
        return TOP_NEWS_ROWS.validate_python(page)

    async def fetch_tags(self) -> list[Tag]:
        return TAG_ROWS.validate_python(sorted(self._state.tags, key=lambda t: t["tag_name"]))

    async def fetch_news_by_tag(self, tag_name: str) -> list[News]:
        wanted = tag_name.strip().lower()
        rows = [
            self._with_tags(r)
            for r in self._active_sorted()
            if wanted in {n.lower() for n in self._tag_names(r)}
        ]
        return NEWS_ROWS.validate_python(rows)

    async def fetch_tag_suggestions(self, prefix: str) -> list[TagSuggestion]:
        wanted = prefix.strip().lower()
        names = sorted(t["tag_name"] for t in self._state.tags if t["tag_name"].lower().startswith(wanted))
        return TAG_SUGGESTION_ROWS.validate_python([{"tag_name": n} for n in names[:TAG_SUGGESTION_LIMIT]])

    async def add_news(
        self,
        request: NewsRequest,
        big_image_path: str | None,
        small_image_path: str | None,
    ) -> int:
        tag_ids: list[int] = []
        for name in dict.fromkeys(request.tag_list()):
            existing = next((t for t in self._state.tags if t["tag_name"] == name), None)
            if existing is None:
                existing = {"tag_id": self._state.next_id("tags", "tag_id"), "tag_name": name}
                self._state.tags.append(existing)
            tag_ids.append(existing["tag_id"])

        now = self._state.now()
        news_id = self._state.next_id("news", "news_id")
        self._state.news.append(
            {
                "news_id": news_id,
                "title": request.title,
                "big_image": big_image_path,
                "small_image": small_image_path,
                "short_desc": request.short_desc,
                "news_content": request.news_content,
                "posting_date": request.posting_date or now,
                "copywrite_text": request.copy_write_text,
                "author_id": request.author_id,
                "created_date": now,
                "created_by": request.created_by,
                "is_active": True,
                "tag_ids": tag_ids,
            }
        )
        return news_id

    async def attach_news_images(self, news_id: int, big_image_path: str | None, small_image_path: str | None) -> None:
        for row in self._state.news:
            if row["news_id"] == news_id:
                row.update(
                    big_image=big_image_path,
                    small_image=small_image_path,
                    modified_date=self._state.now(),
                )
