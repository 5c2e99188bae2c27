"""
User API schemas and storage row shapes.

Password hashes never leave the repository layer: none of the row models
below carry one.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum

from pydantic import TypeAdapter

from core.schemas import CamelModel


class UserDetails(CamelModel):
    user_id: int
    role: int = 0
    name: str | None = None
    user_name: str
    email_id: str | None = None
    phone_number: str | None = None
    profile_picture: str | None = None
    is_admin: bool = False
    created_date: datetime | None = None


class UserListItem(CamelModel):
    user_id: int
    profile_picture: str | None = None
    name: str | None = None
    email_id: str | None = None
    is_admin: bool = False
    created_date: datetime | None = None
    role: int = 0


class RecentUser(CamelModel):
    user_id: int
    name: str | None = None
    profile_picture: str | None = None
    created_date: datetime | None = None
    total_users: int


class UserRegistration(CamelModel):
    name: str = ""
    user_name: str = ""
    email: str = ""
    password: str = ""
    department_id: int | None = None
    phone_number: str | None = None


class UpdateUser(CamelModel):
    user_id: int = 0
    user_name: str = ""
    name: str | None = None
    email_id: str | None = None
    phone_number: str | None = None
    # Blank keeps the stored password.
    password: str | None = None


class RegisterResponse(CamelModel):
    message: str
    profile_picture_path: str


class UpdateIsAdminRequest(CamelModel):
    is_admin: bool | None = None


class AdminFlagOutcome(str, Enum):
    UPDATED = "updated"
    NOT_FOUND = "not_found"


USER_DETAILS_ROW = TypeAdapter(UserDetails)
USER_LIST_ROWS = TypeAdapter(list[UserListItem])
RECENT_USER_ROWS = TypeAdapter(list[RecentUser])
