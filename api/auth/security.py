"""
Auth security helpers.

- bcrypt password hashing
- one-time code generation and digests
- signed session and password-reset tokens (PyJWT)
"""

from __future__ import annotations

import hashlib
import re
import secrets
import time
from typing import Any

import bcrypt
import jwt

from core.config import Settings
from core.errors import ValidationError

SESSION_TOKEN_TYPE = "access"
RESET_TOKEN_TYPE = "password_reset"

# bcrypt only looks at the first 72 bytes of a password.
MAX_PASSWORD_BYTES = 72

_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class AuthSecurityError(RuntimeError):
    pass


def now_epoch_s() -> int:
    return int(time.time())


def normalize_email(email: str | None) -> str:
    return (email or "").strip().lower()


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def hash_password(plain_password: str) -> str:
    password = (plain_password or "").encode("utf-8")
    if not password:
        raise ValidationError("Password is required.")
    if len(password) > MAX_PASSWORD_BYTES:
        raise ValidationError(f"Password must be at most {MAX_PASSWORD_BYTES} bytes.")
    return bcrypt.hashpw(password, bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, password_hash: str) -> bool:
    password = (plain_password or "").encode("utf-8")
    hashed = (password_hash or "").encode("utf-8")
    if not password or not hashed:
        return False
    try:
        return bcrypt.checkpw(password, hashed)
    except ValueError:
        return False


_DUMMY_HASH = bcrypt.hashpw(b"not-a-real-password", bcrypt.gensalt()).decode("utf-8")


def burn_password_check(plain_password: str) -> None:
    """
    Spend the same bcrypt work as a real check, for unknown user names.
    """
    verify_password(plain_password or "x", _DUMMY_HASH)


def generate_otp_code(length: int = 6) -> str:
    return "".join(secrets.choice("0123456789") for _ in range(length))


def hash_otp_code(email: str, code: str) -> str:
    raw = f"{normalize_email(email)}:{(code or '').strip()}".encode("utf-8")
    return hashlib.sha256(raw).hexdigest()


def _encode(settings: Settings, payload: dict[str, Any]) -> str:
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def _decode(settings: Settings, token: str, *, expected_type: str) -> dict[str, Any]:
    raw = (token or "").strip()
    if not raw:
        raise AuthSecurityError("Token is empty.")

    try:
        payload = jwt.decode(
            raw,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            audience=settings.jwt_audience,
            issuer=settings.jwt_issuer,
        )
    except jwt.InvalidTokenError as exc:
        raise AuthSecurityError("Invalid token.") from exc

    if str(payload.get("type") or "") != expected_type:
        raise AuthSecurityError(f"Token is not a {expected_type} token.")
    return payload


def build_session_token(settings: Settings, *, user_name: str, role: int, issued_at: int | None = None) -> str:
    issued_at = now_epoch_s() if issued_at is None else issued_at
    payload = {
        "sub": user_name,
        "role": role,
        "type": SESSION_TOKEN_TYPE,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + settings.session_token_ttl_minutes * 60,
    }
    return _encode(settings, payload)


def decode_session_token(settings: Settings, token: str) -> dict[str, Any]:
    return _decode(settings, token, expected_type=SESSION_TOKEN_TYPE)


def build_reset_token(settings: Settings, *, email: str, issued_at: int | None = None) -> str:
    issued_at = now_epoch_s() if issued_at is None else issued_at
    payload = {
        "sub": normalize_email(email),
        "type": RESET_TOKEN_TYPE,
        "iss": settings.jwt_issuer,
        "aud": settings.jwt_audience,
        "iat": issued_at,
        "exp": issued_at + settings.reset_token_ttl_minutes * 60,
    }
    return _encode(settings, payload)


def verify_reset_token(settings: Settings, token: str, *, email: str) -> None:
    payload = _decode(settings, token, expected_type=RESET_TOKEN_TYPE)
    if payload.get("sub") != normalize_email(email):
        raise AuthSecurityError("Reset token was issued for a different email.")
