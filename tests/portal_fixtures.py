from __future__ import annotations

from datetime import datetime, timedelta, timezone
from pathlib import Path
from typing import Any

from fastapi.testclient import TestClient

from auth.security import hash_password
from core.config import Settings
from core.memory import MemoryState
from main import create_app

BASE_TIME = datetime(2024, 5, 1, 9, 0, tzinfo=timezone.utc)

# Tiny but well-formed PNG header; storage never decodes images.
PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 32


def memory_settings(tmp_path: Path, **overrides: Any) -> Settings:
    values: dict[str, Any] = {
        "storage_backend": "memory",
        "jwt_secret": "test-secret",
        "upload_root": str(tmp_path / "uploads"),
        "log_level": "WARNING",
    }
    values.update(overrides)
    return Settings(**values)


class FixedClock:
    def __init__(self, start: datetime = BASE_TIME) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current += timedelta(**delta)


def build_client(tmp_path: Path, state: MemoryState | None = None, **overrides: Any) -> tuple[TestClient, MemoryState]:
    state = state if state is not None else MemoryState()
    app = create_app(memory_settings(tmp_path, **overrides), state=state)
    return TestClient(app, raise_server_exceptions=False), state


def seed_user(
    state: MemoryState,
    *,
    user_name: str,
    password: str = "S3cret-pass",
    email: str | None = None,
    is_active: bool = True,
    role: int = 1,
    is_admin: bool = False,
) -> dict[str, Any]:
    row = {
        "user_id": state.next_id("users", key="user_id"),
        "name": user_name.title(),
        "user_name": user_name,
        "email_id": email or f"{user_name}@example.com",
        "password_hash": hash_password(password),
        "phone_number": None,
        "profile_picture": None,
        "role": role,
        "is_admin": is_admin,
        "is_active": is_active,
        "created_date": state.now(),
    }
    state.users.append(row)
    return row


def seed_inquiries(state: MemoryState, *, total: int, approved: int) -> None:
    for i in range(total):
        state.inquiries.append(
            {
                "id": state.next_id("inquiries"),
                "first_name": f"First{i}",
                "last_name": f"Last{i}",
                "gender": "Female" if i % 2 else "Male",
                "country": "India" if i % 3 else "Canada",
                "status": "approved" if i < approved else "pending",
                "is_deleted": False,
                "created_date": BASE_TIME + timedelta(minutes=i),
            }
        )
