"""
Error taxonomy and the exception handlers that turn errors into envelopes.
"""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException

from .config import Settings
from .envelope import StatusCode, respond, with_status

logger = logging.getLogger(__name__)


class PortalError(Exception):
    status = StatusCode.GENERIC_ERROR

    def __init__(self, message: str) -> None:
        self.message = message
        super().__init__(message)


class ValidationError(PortalError):
    status = StatusCode.BAD_REQUEST


class NotFoundError(PortalError):
    status = StatusCode.NOT_FOUND


class AuthError(PortalError):
    status = StatusCode.UNAUTHORIZED


class ConflictError(PortalError):
    # The envelope has no conflict code; duplicates surface as a bad request.
    status = StatusCode.BAD_REQUEST


class InvalidActionError(PortalError):
    status = StatusCode.BAD_REQUEST


class StorageError(PortalError):
    status = StatusCode.GENERIC_ERROR


class TransientStorageError(StorageError):
    pass


_HTTP_TO_STATUS = {
    400: StatusCode.BAD_REQUEST,
    401: StatusCode.UNAUTHORIZED,
    403: StatusCode.UNAUTHORIZED,
    404: StatusCode.NOT_FOUND,
    405: StatusCode.BAD_REQUEST,
    413: StatusCode.BAD_REQUEST,
    422: StatusCode.BAD_REQUEST,
}


def _validation_reason(exc: RequestValidationError) -> str:
    parts: list[str] = []
    for err in exc.errors():
        loc = ".".join(str(p) for p in err.get("loc", ()) if p not in ("body", "query", "path", "form"))
        msg = str(err.get("msg") or "invalid value")
        parts.append(f"{loc}: {msg}" if loc else msg)
    return "; ".join(parts) or "Invalid request."


def register_error_handlers(app: FastAPI, settings: Settings) -> None:
    @app.exception_handler(StorageError)
    async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
        logger.exception("storage_failed path=%s error=%s", request.url.path, exc.message, exc_info=exc)
        message = f"Storage operation failed: {exc.message}" if settings.expose_error_details else (
            "A storage error occurred."
        )
        return respond(with_status(exc.status, message))

    @app.exception_handler(PortalError)
    async def portal_error_handler(_: Request, exc: PortalError) -> JSONResponse:
        return respond(with_status(exc.status, exc.message))

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(_: Request, exc: RequestValidationError) -> JSONResponse:
        return respond(with_status(StatusCode.BAD_REQUEST, _validation_reason(exc)))

    @app.exception_handler(HTTPException)
    async def http_exception_handler(_: Request, exc: HTTPException) -> JSONResponse:
        status = _HTTP_TO_STATUS.get(exc.status_code, StatusCode.GENERIC_ERROR)
        return respond(with_status(status, str(exc.detail)))

    @app.exception_handler(Exception)
    async def unhandled_exception_handler(request: Request, exc: Exception) -> JSONResponse:
        logger.exception("request_failed path=%s", request.url.path, exc_info=exc)
        message = f"Internal server error: {exc}" if settings.expose_error_details else (
            "The server encountered an unexpected error."
        )
        return respond(with_status(StatusCode.GENERIC_ERROR, message))
