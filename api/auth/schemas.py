"""
Auth API schemas (request/response models) and credential row shapes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import TypeAdapter

from core.schemas import CamelModel


class LoginRequest(CamelModel):
    user_name: str | None = None
    password: str | None = None


class LoginResponse(CamelModel):
    is_authenticated: bool
    token: str
    role: int
    user_name: str


class GenerateOtpRequest(CamelModel):
    email: str | None = None


class GenerateOtpResponse(CamelModel):
    # None when the deployment does not echo codes back to the caller.
    otp: str | None = None
    message: str


class ValidateOtpRequest(CamelModel):
    email: str | None = None
    otp: str | None = None


class ValidateOtpResponse(CamelModel):
    reset_token: str


class ResetPasswordRequest(CamelModel):
    email: str | None = None
    new_password: str | None = None
    reset_token: str | None = None


class Credential(CamelModel):
    user_id: int
    user_name: str
    role: int = 0
    is_active: bool = True


class ResetOutcome(str, Enum):
    RESET = "reset"
    FAILED = "failed"


CREDENTIAL_ROW = TypeAdapter(Credential)
