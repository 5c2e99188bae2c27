"""
Inquiry business logic: filtered/paged listing, status changes, intake, lookups.
"""

from __future__ import annotations

import logging
from typing import Any

from core.envelope import ApiResult, StatusCode, success, with_status
from core.errors import NotFoundError
from core.pagination import build_page_query, compute_total_pages

from .repository import InquiryRepository
from .schemas import InquiryPage, NewInquiry, parse_action

logger = logging.getLogger(__name__)


class InquiryService:
    def __init__(self, repository: InquiryRepository) -> None:
        self._repo = repository

    async def paginated_inquiries(
        self,
        *,
        page_number: int,
        page_size: int,
        gender: str | None = None,
        country: str | None = None,
        status: str | None = None,
        sort_direction: str | None = "ASC",
    ) -> ApiResult[Any]:
        query = build_page_query(
            page_number=page_number,
            page_size=page_size,
            filters={"gender": gender, "country": country, "status": status},
            sort_direction=sort_direction,
        )
        page = await self._repo.fetch_inquiries(query)
        if not page.items:
            return with_status(StatusCode.NO_DATA_FOUND, "No inquiries found.")
        return success(
            InquiryPage(
                data=page.items,
                total_count=page.total_count,
                page_number=query.page_number,
                page_size=query.page_size,
                total_pages=compute_total_pages(total_count=page.total_count, page_size=query.page_size),
            ),
            "Inquiries fetched successfully.",
        )

    async def update_status(self, inquiry_id: int, action: str | None) -> ApiResult[Any]:
        parsed = parse_action(action)
        updated = await self._repo.update_inquiry_status(inquiry_id, parsed)
        if not updated:
            raise NotFoundError("Inquiry not found.")
        logger.info("inquiry_status_updated inquiry_id=%s action=%s", inquiry_id, parsed.value)
        return with_status(StatusCode.SUCCESS, "Action performed successfully.")

    async def create(self, inquiry: NewInquiry) -> ApiResult[Any]:
        inquiry_id = await self._repo.add_inquiry(inquiry)
        logger.info("inquiry_created inquiry_id=%s", inquiry_id)
        return with_status(StatusCode.SUCCESS, "Inquiry created successfully.")

    async def countries(self) -> ApiResult[Any]:
        items = await self._repo.fetch_countries()
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No countries found.")
        return success(items, "Country list fetched successfully.")

    async def gender_options(self) -> ApiResult[Any]:
        items = await self._repo.fetch_gender_options()
        if not items:
            return with_status(StatusCode.NO_DATA_FOUND, "No gender options found.")
        return success(items, "Gender options retrieved successfully.")
