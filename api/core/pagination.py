"""
Shared pagination, filter and sort rules for list endpoints.

Absent filters are dropped from the query instead of being sent as empty
strings: storage treats a missing filter as "match everything".
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar

from .errors import ValidationError

T = TypeVar("T")


class SortDirection(str, Enum):
    ASC = "ASC"
    DESC = "DESC"


@dataclass(frozen=True)
class PageQuery:
    page_number: int
    page_size: int
    filters: Mapping[str, str] = field(default_factory=dict)
    sort_direction: SortDirection = SortDirection.ASC

    @property
    def offset(self) -> int:
        return (self.page_number - 1) * self.page_size


@dataclass(frozen=True)
class PageResult(Generic[T]):
    items: list[T]
    total_count: int


def validate_page(page_number: int, page_size: int) -> None:
    if page_number < 1 or page_size < 1:
        raise ValidationError("Page number and page size must be greater than zero.")


def parse_sort_direction(raw: str | None) -> SortDirection:
    try:
        return SortDirection(raw)
    except ValueError:
        raise ValidationError("Sort direction must be either 'ASC' or 'DESC'.") from None


def build_page_query(
    *,
    page_number: int,
    page_size: int,
    filters: Mapping[str, str | None] | None = None,
    sort_direction: str | None = SortDirection.ASC.value,
) -> PageQuery:
    """
    Validate raw listing input and return a `PageQuery`.

    Raises `ValidationError` for a page below 1 or an unknown sort direction.
    Filters that are `None` or blank are left out.
    """
    validate_page(page_number, page_size)
    direction = parse_sort_direction(sort_direction)
    supplied = {
        key: value.strip()
        for key, value in (filters or {}).items()
        if value is not None and value.strip()
    }
    return PageQuery(
        page_number=page_number,
        page_size=page_size,
        filters=supplied,
        sort_direction=direction,
    )


def compute_total_pages(*, total_count: int, page_size: int) -> int:
    if total_count <= 0:
        return 0
    return ((total_count - 1) // page_size) + 1
