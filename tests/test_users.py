from __future__ import annotations

import asyncio
from io import BytesIO
from pathlib import Path

import pytest
from fastapi import UploadFile

from auth.security import verify_password
from core.envelope import StatusCode
from core.errors import ConflictError, NotFoundError, ValidationError
from core.memory import MemoryState
from core.uploads import ImageStore
from users.repository import InMemoryUserRepository
from users.schemas import AdminFlagOutcome, UpdateUser, UserRegistration
from users.service import UserService
from tests.portal_fixtures import PNG_BYTES, FixedClock, seed_user


class _RecordingRepo:
    def __init__(self) -> None:
        self.calls: list[tuple] = []

    async def set_admin_flag(self, user_id: int, is_admin: bool) -> AdminFlagOutcome:
        self.calls.append((user_id, is_admin))
        return AdminFlagOutcome.UPDATED

    async def list_users_page(self, page_number: int, page_size: int):
        self.calls.append((page_number, page_size))
        return []


def _picture(name: str = "me.png") -> UploadFile:
    return UploadFile(file=BytesIO(PNG_BYTES), filename=name, size=len(PNG_BYTES))


def _build(tmp_path: Path) -> tuple[UserService, MemoryState, FixedClock]:
    clock = FixedClock()
    state = MemoryState(clock=clock)
    service = UserService(InMemoryUserRepository(state), ImageStore(tmp_path, max_bytes=1024))
    return service, state, clock


def _registration(user_name: str = "carol", email: str = "carol@example.com") -> UserRegistration:
    return UserRegistration(name="Carol", user_name=user_name, email=email, password="pw-carol")


def test_register_stores_hash_and_picture(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)

    result = asyncio.run(service.register(_registration(), _picture()))

    assert result.code is StatusCode.SUCCESS
    assert result.data.profile_picture_path == "~/ProfilePicture/carol/me.png"
    assert (tmp_path / "ProfilePicture" / "carol" / "me.png").read_bytes() == PNG_BYTES
    row = state.users[0]
    assert row["password_hash"] != "pw-carol"
    assert verify_password("pw-carol", row["password_hash"])


def test_register_requires_picture_with_allowed_format(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)

    with pytest.raises(ValidationError) as exc:
        asyncio.run(service.register(_registration(), None))
    assert exc.value.message == "Profile picture is required."

    with pytest.raises(ValidationError) as exc:
        asyncio.run(service.register(_registration(), _picture("me.bmp")))
    assert exc.value.message == "Only .jpg, .png, and .jpeg formats are allowed."
    assert state.users == []


def test_duplicate_registration_leaves_existing_picture_alone(tmp_path: Path) -> None:
    service, _, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture("me.png")))

    with pytest.raises(ConflictError):
        asyncio.run(service.register(_registration(email="other@example.com"), _picture("new.png")))
    with pytest.raises(ConflictError):
        asyncio.run(service.register(_registration(user_name="carol2"), _picture()))

    assert [p.name for p in (tmp_path / "ProfilePicture" / "carol").iterdir()] == ["me.png"]


def test_user_details_hide_password_hash(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    seed_user(state, user_name="alice")

    result = asyncio.run(service.user_details("ALICE"))

    assert result.data.user_name == "alice"
    assert "password_hash" not in result.data.model_dump()
    with pytest.raises(NotFoundError):
        asyncio.run(service.user_details("nobody"))
    with pytest.raises(ValidationError):
        asyncio.run(service.user_details(" "))


def test_update_without_picture_keeps_stored_path(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture()))
    user_id = state.users[0]["user_id"]

    asyncio.run(service.update_details(UpdateUser(user_id=user_id, user_name="carol", phone_number="555"), None))

    row = state.users[0]
    assert row["phone_number"] == "555"
    assert row["profile_picture"] == "~/ProfilePicture/carol/me.png"
    assert verify_password("pw-carol", row["password_hash"])


def test_update_with_picture_replaces_old_file(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture("me.png")))
    user_id = state.users[0]["user_id"]

    asyncio.run(
        service.update_details(
            UpdateUser(user_id=user_id, user_name="carol", password="pw-new"),
            _picture("fresh.jpg"),
        )
    )

    assert state.users[0]["profile_picture"] == "~/ProfilePicture/carol/fresh.jpg"
    assert [p.name for p in (tmp_path / "ProfilePicture" / "carol").iterdir()] == ["fresh.jpg"]
    assert verify_password("pw-new", state.users[0]["password_hash"])


def test_update_unknown_user_is_not_found(tmp_path: Path) -> None:
    service, _, _ = _build(tmp_path)

    with pytest.raises(NotFoundError):
        asyncio.run(service.update_details(UpdateUser(user_id=99, user_name="ghost"), None))
    with pytest.raises(ValidationError):
        asyncio.run(service.update_details(UpdateUser(user_id=0, user_name="ghost"), None))


def test_recent_users_newest_first_with_total(tmp_path: Path) -> None:
    service, state, clock = _build(tmp_path)
    assert asyncio.run(service.recent_users()).code is StatusCode.NO_DATA_FOUND

    for i in range(7):
        seed_user(state, user_name=f"user{i}")
        clock.advance(minutes=1)

    result = asyncio.run(service.recent_users())

    assert [u.name for u in result.data] == ["User6", "User5", "User4", "User3", "User2"]
    assert {u.total_users for u in result.data} == {7}


def test_users_page(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    for i in range(3):
        seed_user(state, user_name=f"user{i}")

    result = asyncio.run(service.users_page(2, 2))

    assert [u.user_id for u in result.data] == [3]
    assert asyncio.run(service.users_page(3, 2)).code is StatusCode.NO_DATA_FOUND
    with pytest.raises(ValidationError):
        asyncio.run(service.users_page(0, 2))


def test_set_admin_rejects_non_positive_id_before_storage(tmp_path: Path) -> None:
    repo = _RecordingRepo()
    service = UserService(repo, ImageStore(tmp_path, max_bytes=1024))

    for user_id in (0, -3):
        with pytest.raises(ValidationError):
            asyncio.run(service.set_admin(user_id, True))
    with pytest.raises(ValidationError):
        asyncio.run(service.set_admin(4, None))

    assert repo.calls == []


def test_set_admin_outcomes(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    row = seed_user(state, user_name="alice")

    result = asyncio.run(service.set_admin(row["user_id"], True))

    assert result.code is StatusCode.SUCCESS
    assert row["is_admin"] is True
    with pytest.raises(NotFoundError):
        asyncio.run(service.set_admin(404, True))


def test_register_rejects_names_that_collapse_onto_another_folder(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture("me.png")))

    for user_name in ("carol.", "x/carol", "_carol", "car ol"):
        with pytest.raises(ValidationError):
            asyncio.run(service.register(_registration(user_name=user_name, email="m@example.com"), _picture("me.png")))

    assert (tmp_path / "ProfilePicture" / "carol" / "me.png").read_bytes() == PNG_BYTES
    assert [u["user_name"] for u in state.users] == ["carol"]


def test_rename_with_new_picture_drops_old_folder(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture("me.png")))
    user_id = state.users[0]["user_id"]

    asyncio.run(service.update_details(UpdateUser(user_id=user_id, user_name="caroline"), _picture("new.png")))

    assert state.users[0]["profile_picture"] == "~/ProfilePicture/caroline/new.png"
    assert not (tmp_path / "ProfilePicture" / "carol").exists()
    assert [p.name for p in (tmp_path / "ProfilePicture" / "caroline").iterdir()] == ["new.png"]


def test_rename_without_picture_moves_folder_and_path(tmp_path: Path) -> None:
    service, state, _ = _build(tmp_path)
    asyncio.run(service.register(_registration(), _picture("me.png")))
    user_id = state.users[0]["user_id"]

    asyncio.run(service.update_details(UpdateUser(user_id=user_id, user_name="caroline"), None))

    assert state.users[0]["profile_picture"] == "~/ProfilePicture/caroline/me.png"
    assert not (tmp_path / "ProfilePicture" / "carol").exists()
    assert (tmp_path / "ProfilePicture" / "caroline" / "me.png").read_bytes() == PNG_BYTES

    # The freed name gets a fresh folder and leaves the renamed user's picture alone.
    other = UploadFile(file=BytesIO(b"\x89PNG-other"), filename="me.png", size=10)
    asyncio.run(service.register(_registration(email="new@example.com"), other))
    assert (tmp_path / "ProfilePicture" / "caroline" / "me.png").read_bytes() == PNG_BYTES
    assert (tmp_path / "ProfilePicture" / "carol" / "me.png").read_bytes() == b"\x89PNG-other"
