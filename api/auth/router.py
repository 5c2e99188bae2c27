"""
Auth API endpoints: login and password reset by one-time code.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from core.envelope import respond

from .schemas import GenerateOtpRequest, LoginRequest, ResetPasswordRequest, ValidateOtpRequest
from .service import AuthService

router = APIRouter()


def get_auth_service(request: Request) -> AuthService:
    return request.app.state.auth_service


@router.post("/login")
async def login(payload: LoginRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    return respond(await service.login(payload.user_name, payload.password))


@router.post("/generateOTP")
async def generate_otp(payload: GenerateOtpRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    return respond(await service.generate_otp(payload.email))


@router.post("/validateOTP")
async def validate_otp(payload: ValidateOtpRequest, service: AuthService = Depends(get_auth_service)) -> JSONResponse:
    return respond(await service.validate_otp(payload.email, payload.otp))


@router.post("/resetPassword")
async def reset_password(
    payload: ResetPasswordRequest,
    service: AuthService = Depends(get_auth_service),
) -> JSONResponse:
    return respond(await service.reset_password(payload.email, payload.new_password, payload.reset_token))
