"""
User API endpoints.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, File, Form, Query, Request, UploadFile
from fastapi.responses import JSONResponse

from core.envelope import respond

from .schemas import UpdateIsAdminRequest, UpdateUser, UserRegistration
from .service import UserService

router = APIRouter()


def get_user_service(request: Request) -> UserService:
    return request.app.state.user_service


@router.get("/GetUserDetails")
async def get_user_details(
    user_name: str | None = Query(None, alias="userName"),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    return respond(await service.user_details(user_name))


@router.post("/register")
async def register(
    name: str = Form(""),
    user_name: str = Form("", alias="userName"),
    email: str = Form(""),
    password: str = Form(""),
    department_id: int | None = Form(None, alias="departmentID"),
    phone_number: str | None = Form(None, alias="phoneNumber"),
    profile_picture: UploadFile | None = File(None, alias="profilePicture"),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    user = UserRegistration(
        name=name,
        user_name=user_name,
        email=email,
        password=password,
        department_id=department_id,
        phone_number=phone_number,
    )
    return respond(await service.register(user, profile_picture))


@router.post("/UpdateUserDetails")
async def update_user_details(
    user_id: int = Form(0, alias="userID"),
    user_name: str = Form("", alias="userName"),
    name: str | None = Form(None),
    email_id: str | None = Form(None, alias="emailID"),
    phone_number: str | None = Form(None, alias="phoneNumber"),
    password: str | None = Form(None),
    profile_picture: UploadFile | None = File(None, alias="profilePicture"),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    user = UpdateUser(
        user_id=user_id,
        user_name=user_name,
        name=name,
        email_id=email_id,
        phone_number=phone_number,
        password=password,
    )
    return respond(await service.update_details(user, profile_picture))


@router.get("/recent-users")
async def get_recent_users(service: UserService = Depends(get_user_service)) -> JSONResponse:
    return respond(await service.recent_users())


@router.get("/GetPaginatedUsers")
async def get_paginated_users(
    page_number: int = Query(1, alias="pageNumber"),
    page_size: int = Query(10, alias="pageSize"),
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    return respond(await service.users_page(page_number, page_size))


@router.put("/{user_id}/isAdmin")
async def update_is_admin(
    user_id: int,
    payload: UpdateIsAdminRequest | None = None,
    service: UserService = Depends(get_user_service),
) -> JSONResponse:
    return respond(await service.set_admin(user_id, payload.is_admin if payload else None))
