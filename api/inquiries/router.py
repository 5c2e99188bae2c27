"""
Inquiry API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse

from core.envelope import respond

from .schemas import NewInquiry, UpdateInquiryRequest
from .service import InquiryService

router = APIRouter()


def get_inquiry_service(request: Request) -> InquiryService:
    return request.app.state.inquiry_service


@router.get("/GetPaginatedInquiries")
async def get_paginated_inquiries(
    page_number: int = Query(1, alias="pageNumber"),
    page_size: int = Query(10, alias="pageSize"),
    gender: str | None = Query(None),
    country: str | None = Query(None),
    status: str | None = Query(None),
    sort_direction: str = Query("ASC", alias="sortDirection"),
    service: InquiryService = Depends(get_inquiry_service),
) -> JSONResponse:
    result = await service.paginated_inquiries(
        page_number=page_number,
        page_size=page_size,
        gender=gender,
        country=country,
        status=status,
        sort_direction=sort_direction,
    )
    return respond(result)


@router.post("/UpdateInquiryStatus")
async def update_inquiry_status(
    request: UpdateInquiryRequest,
    service: InquiryService = Depends(get_inquiry_service),
) -> JSONResponse:
    return respond(await service.update_status(request.inquiry_id, request.action))


@router.post("/InsertInquiry")
async def insert_inquiry(
    inquiry: NewInquiry,
    service: InquiryService = Depends(get_inquiry_service),
) -> JSONResponse:
    return respond(await service.create(inquiry))


@router.get("/GetCountryList")
async def get_country_list(service: InquiryService = Depends(get_inquiry_service)) -> JSONResponse:
    return respond(await service.countries())


@router.get("/GetGenderOptions")
async def get_gender_options(service: InquiryService = Depends(get_inquiry_service)) -> JSONResponse:
    return respond(await service.gender_options())
