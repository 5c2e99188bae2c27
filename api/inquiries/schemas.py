"""
Inquiry API schemas and storage row shapes.
"""

from __future__ import annotations

from enum import Enum

from pydantic import AliasChoices, Field, TypeAdapter

from core.errors import InvalidActionError, ValidationError
from core.schemas import CamelModel

# Filter keys accepted by the inquiry listing, mapped to storage columns.
INQUIRY_FILTERS = ("gender", "country", "status")


class InquiryAction(str, Enum):
    APPROVE = "approve"
    UNAPPROVE = "unapprove"
    DELETE = "delete"


class InquiryStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    UNAPPROVED = "unapproved"


ACTION_STATUS = {
    InquiryAction.APPROVE: InquiryStatus.APPROVED,
    InquiryAction.UNAPPROVE: InquiryStatus.UNAPPROVED,
}


def parse_action(raw: str | None) -> InquiryAction:
    token = (raw or "").strip().lower()
    if not token:
        raise ValidationError("Invalid request. Action is required.")
    try:
        return InquiryAction(token)
    except ValueError:
        allowed = ", ".join(a.value for a in InquiryAction)
        raise InvalidActionError(f"Unknown action '{raw}'. Allowed: {allowed}.") from None


class Inquiry(CamelModel):
    id: int
    first_name: str | None = None
    last_name: str | None = None
    gender: str | None = None
    country: str | None = None
    status: str | None = None


class NewInquiry(CamelModel):
    first_name: str | None = None
    last_name: str | None = None
    email: str | None = None
    phone_number: str | None = None
    company: str | None = None
    state: str | None = None
    gender: str | None = None
    country: str | None = None
    city: str | None = None
    comments: str | None = None


class UpdateInquiryRequest(CamelModel):
    inquiry_id: int = Field(
        default=0,
        validation_alias=AliasChoices("inquiryID", "inquiryId", "inquiry_id"),
        serialization_alias="inquiryID",
    )
    action: str | None = None


class InquiryPage(CamelModel):
    data: list[Inquiry]
    total_count: int
    page_number: int
    page_size: int
    total_pages: int


class Country(CamelModel):
    id: int
    name: str


class CodeLookup(CamelModel):
    code_id: int
    code_name: str


INQUIRY_ROWS = TypeAdapter(list[Inquiry])
COUNTRY_ROWS = TypeAdapter(list[Country])
CODE_LOOKUP_ROWS = TypeAdapter(list[CodeLookup])
