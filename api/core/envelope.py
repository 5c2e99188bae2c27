"""
Uniform response envelope.

Every endpoint answers with `{code, label, message, data}`. `label` is always
derived from `code`. Results are built through `success()` or `with_status()`,
and the latter never carries a payload.
"""

from __future__ import annotations

from enum import IntEnum
from typing import Any, Generic, TypeVar

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse
from pydantic import BaseModel, ConfigDict, computed_field

T = TypeVar("T")

DEFAULT_SUCCESS_MESSAGE = "Operation completed successfully"


class StatusCode(IntEnum):
    SUCCESS = 100
    NO_DATA_FOUND = 108
    GENERIC_ERROR = 105
    UNAUTHORIZED = 401
    BAD_REQUEST = 400
    NOT_FOUND = 404

    @property
    def label(self) -> str:
        return _LABELS[self]


_LABELS = {
    StatusCode.SUCCESS: "Success",
    StatusCode.NO_DATA_FOUND: "NoDataFound",
    StatusCode.GENERIC_ERROR: "GenericError",
    StatusCode.UNAUTHORIZED: "Unauthorized",
    StatusCode.BAD_REQUEST: "BadRequest",
    StatusCode.NOT_FOUND: "NotFound",
}

_HTTP_STATUS = {
    StatusCode.SUCCESS: 200,
    StatusCode.NO_DATA_FOUND: 200,
    StatusCode.GENERIC_ERROR: 500,
    StatusCode.UNAUTHORIZED: 401,
    StatusCode.BAD_REQUEST: 400,
    StatusCode.NOT_FOUND: 404,
}


class ApiResult(BaseModel, Generic[T]):
    model_config = ConfigDict(frozen=True)

    code: StatusCode
    message: str | None = None
    data: T | None = None

    @computed_field
    @property
    def label(self) -> str:
        return self.code.label


def success(data: T, message: str = DEFAULT_SUCCESS_MESSAGE) -> ApiResult[T]:
    return ApiResult[Any](code=StatusCode.SUCCESS, message=message, data=data)


def with_status(code: StatusCode, message: str | None) -> ApiResult[Any]:
    return ApiResult[Any](code=code, message=message, data=None)


def http_status(code: StatusCode) -> int:
    return _HTTP_STATUS[code]


def respond(result: ApiResult[Any]) -> JSONResponse:
    """
    Render an envelope with the HTTP status that mirrors its code.

    Payload models are dumped by alias so nested keys come out camelCase.
    """
    content = {
        "code": int(result.code),
        "label": result.label,
        "message": result.message,
        "data": jsonable_encoder(result.data, by_alias=True),
    }
    return JSONResponse(status_code=http_status(result.code), content=content)
