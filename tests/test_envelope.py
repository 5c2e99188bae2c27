from __future__ import annotations

import json

import pytest

from core.envelope import ApiResult, StatusCode, http_status, respond, success, with_status
from core.schemas import CamelModel


class _Payload(CamelModel):
    total_count: int


def test_success_forces_success_code_and_default_message() -> None:
    result = success([1, 2])

    assert result.code is StatusCode.SUCCESS
    assert result.label == "Success"
    assert result.message == "Operation completed successfully"
    assert result.data == [1, 2]


def test_success_with_empty_list_is_still_success() -> None:
    result = success([], "nothing here")

    assert result.code is StatusCode.SUCCESS
    assert result.data == []


@pytest.mark.parametrize("code", list(StatusCode))
def test_with_status_never_carries_data(code: StatusCode) -> None:
    result = with_status(code, "msg")

    assert result.data is None
    assert result.code is code
    assert result.label == code.label


def test_labels_are_canonical_names() -> None:
    assert {c.label for c in StatusCode} == {
        "Success",
        "NoDataFound",
        "GenericError",
        "Unauthorized",
        "BadRequest",
        "NotFound",
    }
    assert int(StatusCode.NO_DATA_FOUND) == 108
    assert int(StatusCode.GENERIC_ERROR) == 105


@pytest.mark.parametrize(
    ("code", "expected"),
    [
        (StatusCode.SUCCESS, 200),
        (StatusCode.NO_DATA_FOUND, 200),
        (StatusCode.BAD_REQUEST, 400),
        (StatusCode.UNAUTHORIZED, 401),
        (StatusCode.NOT_FOUND, 404),
        (StatusCode.GENERIC_ERROR, 500),
    ],
)
def test_http_status_mirrors_code_family(code: StatusCode, expected: int) -> None:
    assert http_status(code) == expected


def test_respond_renders_camel_case_payload() -> None:
    response = respond(success(_Payload(total_count=3), "ok"))
    body = json.loads(response.body)

    assert response.status_code == 200
    assert body == {"code": 100, "label": "Success", "message": "ok", "data": {"totalCount": 3}}


def test_label_always_follows_code() -> None:
    result = ApiResult(code=StatusCode.SUCCESS, label="Oops", message="ok")

    assert result.label == "Success"
    assert result.model_dump()["label"] == "Success"
