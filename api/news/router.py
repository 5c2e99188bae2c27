"""
News API endpoints.
"""

from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from core.envelope import respond

from .schemas import NewsRequest
from .service import NewsService

router = APIRouter()


def get_news_service(request: Request) -> NewsService:
    return request.app.state.news_service


@router.get("/GetActiveNews")
async def get_active_news(
    page_index: int = Query(1, alias="pageIndex"),
    page_size: int = Query(10, alias="pageSize"),
    service: NewsService = Depends(get_news_service),
) -> JSONResponse:
    return respond(await service.active_news(page_index, page_size))


@router.get("/GetTopNews")
async def get_top_news(
    take: int = Query(5),
    skip: int = Query(0),
    service: NewsService = Depends(get_news_service),
) -> JSONResponse:
    return respond(await service.top_news(take, skip))


@router.get("/Categories")
async def get_tags(service: NewsService = Depends(get_news_service)) -> JSONResponse:
    return respond(await service.tags())


@router.get("/News-by-Categories")
async def get_news_by_tag(
    tag_name: str | None = Query(None, alias="tagName"),
    service: NewsService = Depends(get_news_service),
) -> JSONResponse:
    return respond(await service.news_by_tag(tag_name))


@router.get("/suggestions")
async def get_tag_suggestions(
    query: str | None = Query(None),
    service: NewsService = Depends(get_news_service),
) -> JSONResponse:
    return respond(await service.tag_suggestions(query))


@router.post("/add-news")
async def add_news(
    title: str = Form(""),
    short_desc: str = Form("", alias="shortDesc"),
    news_content: str = Form("", alias="newsContent"),
    posting_date: datetime | None = Form(None, alias="postingDate"),
    copy_write_text: str | None = Form(None, alias="copyWriteText"),
    tag_name: str | None = Form(None, alias="tagName"),
    author_id: int | None = Form(None, alias="authorID"),
    created_by: str | None = Form(None, alias="createdBy"),
    big_image: UploadFile | None = File(None, alias="bigImage"),
    small_image: UploadFile | None = File(None, alias="smallImage"),
    service: NewsService = Depends(get_news_service),
) -> JSONResponse:
    request = NewsRequest(
        title=title,
        short_desc=short_desc,
        news_content=news_content,
        posting_date=posting_date,
        copy_write_text=copy_write_text,
        tag_name=tag_name,
        author_id=author_id,
        created_by=created_by,
    )
    result = await service.add_news(request, big_image=big_image, small_image=small_image)
    return respond(result)
