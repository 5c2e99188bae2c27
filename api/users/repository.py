"""
User persistence: the storage port plus its PostgreSQL and in-memory adapters.

User name and email uniqueness is enforced by storage (unique indexes in
PostgreSQL, an explicit check in memory) and surfaces as `ConflictError`.
"""

from __future__ import annotations

from typing import Any, Protocol

from core.db import Database, affected_rows
from core.errors import ConflictError
from core.memory import MemoryState

from .schemas import (
    RECENT_USER_ROWS,
    USER_DETAILS_ROW,
    USER_LIST_ROWS,
    AdminFlagOutcome,
    RecentUser,
    UpdateUser,
    UserDetails,
    UserListItem,
    UserRegistration,
)

DEFAULT_ROLE = 2

_DETAIL_COLUMNS = """
    user_id, role, name, user_name, email_id, phone_number,
    profile_picture, is_admin, created_date
"""


class UserRepository(Protocol):
    async def fetch_user_details(self, user_name: str) -> UserDetails | None: ...

    async def fetch_user_by_id(self, user_id: int) -> UserDetails | None: ...

    async def update_user_details(
        self,
        user: UpdateUser,
        new_profile_picture_path: str | None,
        *,
        password_hash: str | None = None,
    ) -> bool: ...

    async def register_user(
        self,
        user: UserRegistration,
        profile_picture_path: str,
        *,
        password_hash: str,
    ) -> bool: ...

    async def fetch_recent_users(self, limit: int = 5) -> list[RecentUser]: ...

    async def list_users_page(self, page_number: int, page_size: int) -> list[UserListItem]: ...

    async def set_admin_flag(self, user_id: int, is_admin: bool) -> AdminFlagOutcome: ...


class PostgresUserRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def fetch_user_details(self, user_name: str) -> UserDetails | None:
        row = await self._db.fetch_one(
            f"SELECT {_DETAIL_COLUMNS} FROM users WHERE lower(user_name) = lower($1)",
            user_name,
        )
        return USER_DETAILS_ROW.validate_python(row) if row is not None else None

    async def fetch_user_by_id(self, user_id: int) -> UserDetails | None:
        row = await self._db.fetch_one(f"SELECT {_DETAIL_COLUMNS} FROM users WHERE user_id = $1", user_id)
        return USER_DETAILS_ROW.validate_python(row) if row is not None else None

    async def update_user_details(
        self,
        user: UpdateUser,
        new_profile_picture_path: str | None,
        *,
        password_hash: str | None = None,
    ) -> bool:
        tag = await self._db.execute(
            """
            UPDATE users
            SET user_name = COALESCE(NULLIF($2, ''), user_name),
                name = COALESCE($3, name),
                email_id = COALESCE($4, email_id),
                phone_number = COALESCE($5, phone_number),
                password_hash = COALESCE($6, password_hash),
                profile_picture = COALESCE($7, profile_picture),
                modified_date = now()
            WHERE user_id = $1
            """,
            user.user_id,
            user.user_name,
            user.name,
            user.email_id,
            user.phone_number,
            password_hash,
            new_profile_picture_path,
        )
        return affected_rows(tag) > 0

    async def register_user(
        self,
        user: UserRegistration,
        profile_picture_path: str,
        *,
        password_hash: str,
    ) -> bool:
        user_id = await self._db.fetch_val(
            """
            INSERT INTO users (
                name, user_name, email_id, password_hash, department_id,
                phone_number, profile_picture, role, is_admin, is_active
            )
            VALUES ($1, $2, $3, $4, $5, $6, $7, $8, false, true)
            RETURNING user_id
            """,
            user.name,
            user.user_name,
            user.email,
            password_hash,
            user.department_id,
            user.phone_number,
            profile_picture_path,
            DEFAULT_ROLE,
        )
        return user_id is not None

    async def fetch_recent_users(self, limit: int = 5) -> list[RecentUser]:
        rows = await self._db.fetch_all(
            """
            SELECT user_id, name, profile_picture, created_date,
                   (SELECT count(*) FROM users)::int AS total_users
            FROM users
            ORDER BY created_date DESC, user_id DESC
            LIMIT $1
            """,
            limit,
        )
        return RECENT_USER_ROWS.validate_python(rows)

    async def list_users_page(self, page_number: int, page_size: int) -> list[UserListItem]:
        rows = await self._db.fetch_all(
            """
            SELECT user_id, profile_picture, name, email_id, is_admin, created_date, role
            FROM users
            ORDER BY user_id ASC
            LIMIT $1 OFFSET $2
            """,
            page_size,
            (page_number - 1) * page_size,
        )
        return USER_LIST_ROWS.validate_python(rows)

    async def set_admin_flag(self, user_id: int, is_admin: bool) -> AdminFlagOutcome:
        tag = await self._db.execute(
            """
            UPDATE users
            SET is_admin = $2,
                modified_date = now()
            WHERE user_id = $1
            """,
            user_id,
            is_admin,
        )
        return AdminFlagOutcome.UPDATED if affected_rows(tag) > 0 else AdminFlagOutcome.NOT_FOUND


class InMemoryUserRepository:
    def __init__(self, state: MemoryState) -> None:
        self._state = state

    def _by_id(self, user_id: int) -> dict[str, Any] | None:
        return next((u for u in self._state.users if u["user_id"] == user_id), None)

    def _ensure_unique(self, user_name: str | None, email: str | None, *, exclude_id: int | None = None) -> None:
        for row in self._state.users:
            if row["user_id"] == exclude_id:
                continue
            if user_name and str(row["user_name"]).lower() == user_name.lower():
                raise ConflictError("Record already exists.")
            if email and str(row.get("email_id") or "").lower() == email.lower():
                raise ConflictError("Record already exists.")

    async def fetch_user_details(self, user_name: str) -> UserDetails | None:
        row = next((u for u in self._state.users if str(u["user_name"]).lower() == user_name.lower()), None)
        return USER_DETAILS_ROW.validate_python(row) if row is not None else None

    async def fetch_user_by_id(self, user_id: int) -> UserDetails | None:
        row = self._by_id(user_id)
        return USER_DETAILS_ROW.validate_python(row) if row is not None else None

    async def update_user_details(
        self,
        user: UpdateUser,
        new_profile_picture_path: str | None,
        *,
        password_hash: str | None = None,
    ) -> bool:
        row = self._by_id(user.user_id)
        if row is None:
            return False
        self._ensure_unique(user.user_name or None, user.email_id, exclude_id=user.user_id)
        changes = {
            "user_name": user.user_name or None,
            "name": user.name,
            "email_id": user.email_id,
            "phone_number": user.phone_number,
            "password_hash": password_hash,
            "profile_picture": new_profile_picture_path,
        }
        row.update({k: v for k, v in changes.items() if v is not None})
        row["modified_date"] = self._state.now()
        return True

    async def register_user(
        self,
        user: UserRegistration,
        profile_picture_path: str,
        *,
        password_hash: str,
    ) -> bool:
        self._ensure_unique(user.user_name, user.email)
        self._state.users.append(
            {
                "user_id": self._state.next_id("users", key="user_id"),
                "name": user.name,
                "user_name": user.user_name,
                "email_id": user.email,
                "password_hash": password_hash,
                "department_id": user.department_id,
                "phone_number": user.phone_number,
                "profile_picture": profile_picture_path,
                "role": DEFAULT_ROLE,
                "is_admin": False,
                "is_active": True,
                "created_date": self._state.now(),
            }
        )
        return True

    async def fetch_recent_users(self, limit: int = 5) -> list[RecentUser]:
        total = len(self._state.users)
        newest = sorted(self._state.users, key=lambda u: (u["created_date"], u["user_id"]), reverse=True)
        return RECENT_USER_ROWS.validate_python([{**u, "total_users": total} for u in newest[:limit]])

    async def list_users_page(self, page_number: int, page_size: int) -> list[UserListItem]:
        ordered = sorted(self._state.users, key=lambda u: u["user_id"])
        start = (page_number - 1) * page_size
        return USER_LIST_ROWS.validate_python(ordered[start : start + page_size])

    async def set_admin_flag(self, user_id: int, is_admin: bool) -> AdminFlagOutcome:
        row = self._by_id(user_id)
        if row is None:
            return AdminFlagOutcome.NOT_FOUND
        row["is_admin"] = is_admin
        row["modified_date"] = self._state.now()
        return AdminFlagOutcome.UPDATED
