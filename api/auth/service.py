"""
Auth business logic: login and the password-reset flow.

Reset flow per email: NoActiveCode -> CodeIssued -> Consumed | Expired.
`generate_otp` issues a code, `validate_otp` consumes it and hands back a
short-lived reset token, and `reset_password` only accepts that token.
Failures on login and code validation are deliberately undifferentiated.
"""

from __future__ import annotations

import logging
from typing import Any

from core.config import Settings
from core.envelope import ApiResult, StatusCode, success, with_status
from core.errors import AuthError, ValidationError

from . import security
from .repository import CredentialRepository
from .schemas import GenerateOtpResponse, LoginResponse, ResetOutcome, ValidateOtpResponse

logger = logging.getLogger(__name__)

INVALID_LOGIN = "Invalid username or password."
INVALID_CODE = "Invalid or expired code."
INVALID_RESET_TOKEN = "Invalid or expired reset token."


class AuthService:
    def __init__(self, repository: CredentialRepository, settings: Settings) -> None:
        self._repo = repository
        self._settings = settings

    async def login(self, user_name: str | None, password: str | None) -> ApiResult[Any]:
        user_name = (user_name or "").strip()
        if not user_name or not password:
            raise ValidationError("Invalid request. Username or password is missing.")

        credential = await self._repo.validate_credential(user_name, password)
        if credential is None or not credential.is_active:
            logger.info("login_failed user_name=%s", user_name)
            raise AuthError(INVALID_LOGIN)

        token = security.build_session_token(
            self._settings,
            user_name=credential.user_name,
            role=credential.role,
        )
        logger.info("login_succeeded user_name=%s role=%s", credential.user_name, credential.role)
        return success(
            LoginResponse(
                is_authenticated=True,
                token=token,
                role=credential.role,
                user_name=credential.user_name,
            ),
            "Login successful.",
        )

    async def generate_otp(self, email: str | None) -> ApiResult[Any]:
        """
        Issue a new code for `email`, replacing any code issued before.

        Delivery is left to the caller. Retrying after an ambiguous failure
        issues yet another code.
        """
        email = security.normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")
        if not security.is_valid_email(email):
            raise ValidationError("Email address is not valid.")

        code = security.generate_otp_code(self._settings.otp_length)
        await self._repo.issue_otp(
            email,
            security.hash_otp_code(email, code),
            self._settings.otp_expiry_minutes,
        )
        logger.info("otp_issued email=%s expiry_minutes=%s", email, self._settings.otp_expiry_minutes)
        return success(
            GenerateOtpResponse(
                otp=code if self._settings.otp_in_response else None,
                message="OTP sent successfully to your email!",
            ),
            "OTP generated successfully.",
        )

    async def validate_otp(self, email: str | None, otp: str | None) -> ApiResult[Any]:
        email = security.normalize_email(email)
        otp = (otp or "").strip()
        if not email or not otp:
            raise ValidationError("Email and OTP are required.")

        consumed = await self._repo.consume_otp(
            email,
            security.hash_otp_code(email, otp),
            max_attempts=self._settings.otp_max_attempts,
        )
        if not consumed:
            logger.info("otp_rejected email=%s", email)
            raise AuthError(INVALID_CODE)

        logger.info("otp_consumed email=%s", email)
        reset_token = security.build_reset_token(self._settings, email=email)
        return success(ValidateOtpResponse(reset_token=reset_token), "OTP validated successfully.")

    async def reset_password(
        self,
        email: str | None,
        new_password: str | None,
        reset_token: str | None,
    ) -> ApiResult[Any]:
        email = security.normalize_email(email)
        if not email or not new_password:
            raise ValidationError("Email and New Password are required.")

        try:
            security.verify_reset_token(self._settings, reset_token or "", email=email)
        except security.AuthSecurityError as exc:
            logger.info("reset_token_rejected email=%s reason=%s", email, exc)
            raise AuthError(INVALID_RESET_TOKEN) from exc

        outcome = await self._repo.reset_password(email, security.hash_password(new_password))
        if outcome is ResetOutcome.FAILED:
            logger.warning("password_reset_failed email=%s", email)
            return with_status(StatusCode.GENERIC_ERROR, "Password reset failed.")

        logger.info("password_reset email=%s", email)
        return with_status(StatusCode.SUCCESS, "Password reset successfully")

    def verify_session(self, token: str) -> dict[str, Any]:
        """
        Decode a session token issued by `login`; raises `AuthError` if it is not valid.
        """
        try:
            return security.decode_session_token(self._settings, token)
        except security.AuthSecurityError as exc:
            raise AuthError("Invalid session token.") from exc
