"""
Credential and one-time-code persistence: the storage port plus its
PostgreSQL and in-memory adapters.

Each OTP operation is one atomic step in storage. An email has at most one
row in `password_reset_otps`; issuing a code overwrites it, so the previous
code stops working at the same moment the new one starts.
"""

from __future__ import annotations

from datetime import timedelta
from typing import Any, Protocol

from core.db import Database, affected_rows
from core.memory import MemoryState

from . import security
from .schemas import CREDENTIAL_ROW, Credential, ResetOutcome


class CredentialRepository(Protocol):
    async def validate_credential(self, user_name: str, password: str) -> Credential | None: ...

    async def issue_otp(self, email: str, code_hash: str, expiry_minutes: int) -> None: ...

    async def consume_otp(self, email: str, code_hash: str, *, max_attempts: int) -> bool: ...

    async def reset_password(self, email: str, password_hash: str) -> ResetOutcome: ...


def _check_credential(row: dict[str, Any] | None, password: str) -> Credential | None:
    if row is None:
        security.burn_password_check(password)
        return None
    if not security.verify_password(password, str(row.get("password_hash") or "")):
        return None
    return CREDENTIAL_ROW.validate_python(row)


class PostgresCredentialRepository:
    def __init__(self, db: Database) -> None:
        self._db = db

    async def validate_credential(self, user_name: str, password: str) -> Credential | None:
        row = await self._db.fetch_one(
            """
            SELECT user_id, user_name, password_hash, role, is_active
            FROM users
            WHERE lower(user_name) = lower($1)
            """,
            user_name,
        )
        return _check_credential(row, password)

    async def issue_otp(self, email: str, code_hash: str, expiry_minutes: int) -> None:
        await self._db.execute(
            """
            INSERT INTO password_reset_otps (email, code_hash, expires_at, is_active, failed_attempts, created_at)
            VALUES ($1, $2, now() + make_interval(mins => $3), true, 0, now())
            ON CONFLICT (email) DO UPDATE
            SET code_hash = EXCLUDED.code_hash,
                expires_at = EXCLUDED.expires_at,
                is_active = true,
                failed_attempts = 0,
                created_at = EXCLUDED.created_at,
                consumed_at = NULL
            """,
            email,
            code_hash,
            expiry_minutes,
        )

    async def consume_otp(self, email: str, code_hash: str, *, max_attempts: int) -> bool:
        row = await self._db.fetch_one(
            """
            UPDATE password_reset_otps
            SET is_active = false,
                consumed_at = now()
            WHERE email = $1
              AND code_hash = $2
              AND is_active = true
              AND expires_at > now()
              AND failed_attempts < $3
            RETURNING id
            """,
            email,
            code_hash,
            max_attempts,
        )
        if row is not None:
            return True

        await self._db.execute(
            """
            UPDATE password_reset_otps
            SET failed_attempts = failed_attempts + 1,
                is_active = (failed_attempts + 1) < $2
            WHERE email = $1
              AND is_active = true
            """,
            email,
            max_attempts,
        )
        return False

    async def reset_password(self, email: str, password_hash: str) -> ResetOutcome:
        tag = await self._db.execute(
            """
            UPDATE users
            SET password_hash = $2,
                modified_date = now()
            WHERE lower(email_id) = lower($1)
            """,
            email,
            password_hash,
        )
        return ResetOutcome.RESET if affected_rows(tag) > 0 else ResetOutcome.FAILED


class InMemoryCredentialRepository:
    def __init__(self, state: MemoryState) -> None:
        self._state = state

    def _active_otp(self, email: str) -> dict[str, Any] | None:
        return next((r for r in self._state.otps if r["email"] == email and r["is_active"]), None)

    async def validate_credential(self, user_name: str, password: str) -> Credential | None:
        wanted = user_name.lower()
        row = next((u for u in self._state.users if str(u["user_name"]).lower() == wanted), None)
        return _check_credential(row, password)

    async def issue_otp(self, email: str, code_hash: str, expiry_minutes: int) -> None:
        now = self._state.now()
        self._state.otps = [r for r in self._state.otps if r["email"] != email]
        self._state.otps.append(
            {
                "id": self._state.next_id("otps"),
                "email": email,
                "code_hash": code_hash,
                "expires_at": now + timedelta(minutes=expiry_minutes),
                "is_active": True,
                "failed_attempts": 0,
                "created_at": now,
            }
        )

    async def consume_otp(self, email: str, code_hash: str, *, max_attempts: int) -> bool:
        row = self._active_otp(email)
        if row is None:
            return False
        if (
            row["code_hash"] == code_hash
            and row["expires_at"] > self._state.now()
            and row["failed_attempts"] < max_attempts
        ):
            row["is_active"] = False
            row["consumed_at"] = self._state.now()
            return True
        row["failed_attempts"] += 1
        row["is_active"] = row["failed_attempts"] < max_attempts
        return False

    async def reset_password(self, email: str, password_hash: str) -> ResetOutcome:
        row = next((u for u in self._state.users if str(u.get("email_id") or "").lower() == email.lower()), None)
        if row is None:
            return ResetOutcome.FAILED
        row["password_hash"] = password_hash
        row["modified_date"] = self._state.now()
        return ResetOutcome.RESET
