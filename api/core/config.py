"""
Runtime settings.

Settings are read from the environment once at startup (`load_settings`) and
passed to the components that need them. Nothing below `main.py` reads
`os.environ` directly.
"""

from __future__ import annotations

import os
from typing import Literal
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

from pydantic import BaseModel, ConfigDict, Field, field_validator

DEFAULT_JWT_SECRET = "dev-change-this-secret"


class Settings(BaseModel):
    model_config = ConfigDict(frozen=True)

    storage_backend: Literal["postgres", "memory"] = "postgres"
    database_url: str = ""
    db_pool_min_size: int = 1
    db_pool_max_size: int = 5
    db_command_timeout: int = 30

    jwt_secret: str = DEFAULT_JWT_SECRET
    jwt_algorithm: str = "HS256"
    jwt_issuer: str = "news-portal-api"
    jwt_audience: str = "news-portal"
    session_token_ttl_minutes: int = 120
    reset_token_ttl_minutes: int = 10

    otp_expiry_minutes: int = 15
    otp_length: int = Field(default=6, ge=6, le=12)
    otp_max_attempts: int = 5
    otp_in_response: bool = True

    upload_root: str = "./uploads"
    max_upload_bytes: int = 5 * 1024 * 1024

    allowed_origins: list[str] = Field(default_factory=list)
    expose_error_details: bool = True
    log_level: str = "INFO"

    @field_validator(
        "db_pool_min_size",
        "db_pool_max_size",
        "db_command_timeout",
        "session_token_ttl_minutes",
        "reset_token_ttl_minutes",
        "otp_max_attempts",
        "max_upload_bytes",
    )
    @classmethod
    def validate_positive(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("Value must be greater than 0.")
        return value

    @field_validator("otp_expiry_minutes")
    @classmethod
    def validate_non_negative(cls, value: int) -> int:
        if value < 0:
            raise ValueError("otp_expiry_minutes must be >= 0.")
        return value


def _env_str(name: str, default: str) -> str:
    return os.environ.get(name, "").strip() or default


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name, "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.environ.get(name, "").strip().lower()
    if not raw:
        return default
    if raw in {"1", "true", "yes", "y", "on"}:
        return True
    if raw in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _env_list(name: str) -> list[str]:
    raw = os.environ.get(name, "")
    return [item.strip() for item in raw.split(",") if item.strip()]


def sanitize_database_url(url: str) -> str:
    # asyncpg rejects libpq's `sslmode` query parameter.
    parts = urlsplit(url)
    if not parts.query:
        return url

    params = [(k, v) for (k, v) in parse_qsl(parts.query, keep_blank_values=True) if k != "sslmode"]
    query = urlencode(params)
    return urlunsplit((parts.scheme, parts.netloc, parts.path, query, parts.fragment))


def load_settings() -> Settings:
    backend = _env_str("STORAGE_BACKEND", "postgres").lower()
    database_url = sanitize_database_url(os.environ.get("DATABASE_URL", "").strip())
    if backend == "postgres" and not database_url:
        raise RuntimeError("DATABASE_URL is not set.")

    return Settings(
        storage_backend=backend,
        database_url=database_url,
        db_pool_min_size=_env_int("DB_POOL_MIN_SIZE", 1),
        db_pool_max_size=_env_int("DB_POOL_MAX_SIZE", 5),
        db_command_timeout=_env_int("DB_COMMAND_TIMEOUT", 30),
        jwt_secret=_env_str("JWT_SECRET", DEFAULT_JWT_SECRET),
        jwt_algorithm=_env_str("JWT_ALG", "HS256"),
        jwt_issuer=_env_str("JWT_ISSUER", "news-portal-api"),
        jwt_audience=_env_str("JWT_AUDIENCE", "news-portal"),
        session_token_ttl_minutes=_env_int("SESSION_TOKEN_TTL_MIN", 120),
        reset_token_ttl_minutes=_env_int("RESET_TOKEN_TTL_MIN", 10),
        otp_expiry_minutes=_env_int("OTP_EXPIRY_MIN", 15),
        otp_length=_env_int("OTP_LENGTH", 6),
        otp_max_attempts=_env_int("OTP_MAX_ATTEMPTS", 5),
        otp_in_response=_env_bool("OTP_IN_RESPONSE", True),
        upload_root=_env_str("UPLOAD_ROOT", "./uploads"),
        max_upload_bytes=_env_int("MAX_UPLOAD_BYTES", 5 * 1024 * 1024),
        allowed_origins=_env_list("ALLOWED_ORIGINS"),
        expose_error_details=_env_bool("EXPOSE_ERROR_DETAILS", True),
        log_level=_env_str("LOG_LEVEL", "INFO"),
    )
