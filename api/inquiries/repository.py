"""
Inquiry persistence: the storage port plus its PostgreSQL and in-memory adapters.
"""

from __future__ import annotations

from typing import Any, Protocol

from core.db import Database, affected_rows
from core.memory import MemoryState
from core.pagination import PageQuery, PageResult, SortDirection

from .schemas import (
    ACTION_STATUS,
    CODE_LOOKUP_ROWS,
    COUNTRY_ROWS,
    INQUIRY_FILTERS,
    INQUIRY_ROWS,
    CodeLookup,
    Country,
    Inquiry,
    InquiryAction,
    InquiryStatus,
    NewInquiry,
)


class InquiryRepository(Protocol):
    async def fetch_inquiries(self, query: PageQuery) -> PageResult[Inquiry]: ...

    async def update_inquiry_status(self, inquiry_id: int, action: InquiryAction) -> bool: ...

    async def add_inquiry(self, inquiry: NewInquiry) -> int: ...

    async def fetch_countries(self) -> list[Country]: ...

    async def fetch_gender_options(self) -> list[CodeLookup]: ...


def _where_clause(query: PageQuery) -> tuple[str, list[Any]]:
    """
    Build the WHERE clause for the supplied filters only.

    Column names come from INQUIRY_FILTERS, never from the request.
    """
    clauses = ["is_deleted = false"]
    args: list[Any] = []
    for column in INQUIRY_FILTERS:
        value = query.filters.get(column)
        if value is None:
            continue
        args.append(value)
        clauses.append(f"lower({column}) = lower(${len(args)})")
    return " AND ".join(clauses), args


class PostgresInquiryRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def fetch_inquiries(self, query: PageQuery) -> PageResult[Inquiry]:
        where, args = _where_clause(query)
        total = await self._db.fetch_val(f"SELECT count(*) FROM inquiries WHERE {where}", *args)

        direction = query.sort_direction.value
        limit_pos, offset_pos = len(args) + 1, len(args) + 2
        rows = await self._db.fetch_all(
            f"""
            SELECT id, first_name, last_name, gender, country, status
            FROM inquiries
            WHERE {where}
            ORDER BY created_date {direction}, id {direction}
            LIMIT ${limit_pos} OFFSET ${offset_pos}
            """,
            *args,
            query.page_size,
            query.offset,
        )
        return PageResult(items=INQUIRY_ROWS.validate_python(rows), total_count=int(total or 0))

    async def update_inquiry_status(self, inquiry_id: int, action: InquiryAction) -> bool:
        if action is InquiryAction.DELETE:
            tag = await self._db.execute(
                """
                UPDATE inquiries
                SET is_deleted = true,
                    modified_date = now()
                WHERE id = $1
                  AND is_deleted = false
                """,
                inquiry_id,
            )
        else:
            tag = await self._db.execute(
                """
                UPDATE inquiries
                SET status = $2,
                    modified_date = now()
                WHERE id = $1
                  AND is_deleted = false
                """,
                inquiry_id,
                ACTION_STATUS[action].value,
            )
        return affected_rows(tag) > 0

    async def add_inquiry(self, inquiry: NewInquiry) -> int:
        inquiry_id = await self._db.fetch_val(
            """
            INSERT INTO inquiries (
                first_name, last_name, email, phone_number, company, state,
                gender, country, city, comments, status, created_by
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, $9, $10, $11, $1)
            RETURNING id
            """,
            inquiry.first_name,
            inquiry.last_name,
            inquiry.email,
            inquiry.phone_number,
            inquiry.company,
            inquiry.state,
            inquiry.gender,
            inquiry.country,
            inquiry.city,
            inquiry.comments,
            InquiryStatus.PENDING.value,
        )
        return int(inquiry_id)

    async def fetch_countries(self) -> list[Country]:
        rows = await self._db.fetch_all("SELECT id, name FROM countries ORDER BY name ASC")
        return COUNTRY_ROWS.validate_python(rows)

    async def fetch_gender_options(self) -> list[CodeLookup]:
        rows = await self._db.fetch_all(
            """
            SELECT code_id, code_name
            FROM code_lookup
            WHERE category = 'gender'
            ORDER BY code_id ASC
            """
        )
        return CODE_LOOKUP_ROWS.validate_python(rows)


class InMemoryInquiryRepository:
    def __init__(self, state: MemoryState) -> None:
        self._state = state

    def _matches(self, row: dict[str, Any], query: PageQuery) -> bool:
        if row.get("is_deleted"):
            return False
        for column in INQUIRY_FILTERS:
            wanted = query.filters.get(column)
            if wanted is not None and str(row.get(column) or "").lower() != wanted.lower():
                return False
        return True

    async def fetch_inquiries(self, query: PageQuery) -> PageResult[Inquiry]:
        matching = sorted(
            (r for r in self._state.inquiries if self._matches(r, query)),
            key=lambda r: r["id"],
            reverse=query.sort_direction is SortDirection.DESC,
        )
        page = matching[query.offset : query.offset + query.page_size]
        return PageResult(items=INQUIRY_ROWS.validate_python(page), total_count=len(matching))

    async def update_inquiry_status(self, inquiry_id: int, action: InquiryAction) -> bool:
        row = next(
            (r for r in self._state.inquiries if r["id"] == inquiry_id and not r.get("is_deleted")),
            None,
        )
        if row is None:
            return False
        if action is InquiryAction.DELETE:
            row["is_deleted"] = True
        else:
            row["status"] = ACTION_STATUS[action].value
        row["modified_date"] = self._state.now()
        return True

    async def add_inquiry(self, inquiry: NewInquiry) -> int:
        inquiry_id = self._state.next_id("inquiries")
        self._state.inquiries.append(
            {
                **inquiry.model_dump(),
                "id": inquiry_id,
                "status": InquiryStatus.PENDING.value,
                "is_deleted": False,
                "created_by": inquiry.first_name,
                "created_date": self._state.now(),
            }
        )
        return inquiry_id

    async def fetch_countries(self) -> list[Country]:
        return COUNTRY_ROWS.validate_python(sorted(self._state.countries, key=lambda c: c["name"]))

    async def fetch_gender_options(self) -> list[CodeLookup]:
        return CODE_LOOKUP_ROWS.validate_python(sorted(self._state.gender_options, key=lambda c: c["code_id"]))
