from __future__ import annotations

import pytest

from core.errors import ValidationError
from core.pagination import SortDirection, build_page_query, compute_total_pages


@pytest.mark.parametrize(("page_number", "page_size"), [(0, 10), (1, 0), (-1, 5), (3, -2)])
def test_build_page_query_rejects_non_positive_page(page_number: int, page_size: int) -> None:
    with pytest.raises(ValidationError) as exc:
        build_page_query(page_number=page_number, page_size=page_size)

    assert "greater than zero" in exc.value.message


@pytest.mark.parametrize("direction", ["asc", "UP", "", None, "DESCENDING"])
def test_build_page_query_rejects_unknown_sort_direction(direction: str | None) -> None:
    with pytest.raises(ValidationError):
        build_page_query(page_number=1, page_size=10, sort_direction=direction)


def test_build_page_query_drops_absent_and_blank_filters() -> None:
    query = build_page_query(
        page_number=2,
        page_size=5,
        filters={"gender": None, "country": "  ", "status": " approved "},
        sort_direction="DESC",
    )

    assert dict(query.filters) == {"status": "approved"}
    assert query.sort_direction is SortDirection.DESC
    assert query.offset == 5


@pytest.mark.parametrize(
    ("total", "size", "pages"),
    [(0, 10, 0), (1, 10, 1), (10, 5, 2), (11, 5, 3)],
)
def test_compute_total_pages(total: int, size: int, pages: int) -> None:
    assert compute_total_pages(total_count=total, page_size=size) == pages
