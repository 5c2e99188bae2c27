"""
User business logic.

Scope:
- user details lookup, registration and profile updates (with profile picture)
- recent users and the paged user listing
- admin flag changes
"""

from __future__ import annotations

import logging
from pathlib import PurePosixPath
from typing import Any

from fastapi import UploadFile

from auth.security import hash_password, is_valid_email, normalize_email
from core.envelope import ApiResult, StatusCode, success, with_status
from core.errors import ConflictError, NotFoundError, StorageError, ValidationError
from core.pagination import validate_page
from core.uploads import ImageStore, has_content, is_safe_component

from .repository import UserRepository
from .schemas import AdminFlagOutcome, RegisterResponse, UpdateUser, UserRegistration

logger = logging.getLogger(__name__)

RECENT_USERS_LIMIT = 5


def _check_user_name(user_name: str) -> None:
    # The user name doubles as the picture folder name.
    if not user_name.strip():
        raise ValidationError("Username is required.")
    if not is_safe_component(user_name):
        raise ValidationError("Username may only contain letters, digits, '.', '_' and '-'.")


class UserService:
    def __init__(self, repository: UserRepository, images: ImageStore) -> None:
        self._repo = repository
        self._images = images

    async def user_details(self, user_name: str | None) -> ApiResult[Any]:
        user_name = (user_name or "").strip()
        if not user_name:
            raise ValidationError("Username is required.")
        details = await self._repo.fetch_user_details(user_name)
        if details is None:
            raise NotFoundError("User not found.")
        return success(details, "User details retrieved successfully.")

    async def register(self, user: UserRegistration, profile_picture: UploadFile | None) -> ApiResult[Any]:
        """
        Register a user with a required profile picture.

        The picture is read and checked first, the row is written next and
        the file last, so a duplicate user name never touches the existing
        user's folder. Not safe to retry blindly.
        """
        if not has_content(profile_picture):
            raise ValidationError("Profile picture is required.")
        _check_user_name(user.user_name)
        email = normalize_email(user.email)
        if not is_valid_email(email):
            raise ValidationError("Email address is not valid.")

        upload = await self._images.read_image(profile_picture)
        path = self._images.profile_picture_path(user.user_name, upload)
        try:
            created = await self._repo.register_user(
                user.model_copy(update={"email": email}),
                path,
                password_hash=hash_password(user.password),
            )
        except ConflictError as exc:
            logger.info("register_conflict user_name=%s", user.user_name)
            raise ConflictError("User name or email is already registered.") from exc
        if not created:
            raise StorageError("An error occurred while registering the user.")

        self._images.save_profile_picture(user.user_name, upload)
        logger.info("user_registered user_name=%s", user.user_name)
        return success(
            RegisterResponse(message="User registered successfully.", profile_picture_path=path),
            "User registered successfully.",
        )

    async def update_details(self, user: UpdateUser, profile_picture: UploadFile | None) -> ApiResult[Any]:
        """
        Update profile fields, optionally replacing the picture.

        A rename carries the picture folder along: the stored path is
        rewritten and the old folder moved (or discarded when a new picture
        arrives), so no stale folder is left for a later user of that name.
        """
        if user.user_id <= 0:
            raise ValidationError("Invalid User ID.")
        _check_user_name(user.user_name)

        current = await self._repo.fetch_user_by_id(user.user_id)
        if current is None:
            raise NotFoundError("User not found.")
        renamed = current.user_name != user.user_name

        upload = await self._images.read_image(profile_picture) if has_content(profile_picture) else None
        path = None
        if upload is not None:
            path = self._images.profile_picture_path(user.user_name, upload)
        elif renamed and current.profile_picture:
            path = self._images.profile_picture_path(user.user_name, PurePosixPath(current.profile_picture).name)
        password_hash = hash_password(user.password) if user.password else None

        updated = await self._repo.update_user_details(user, path, password_hash=password_hash)
        if not updated:
            raise NotFoundError("User not found.")
        if upload is not None:
            if renamed:
                self._images.discard_profile_folder(current.user_name)
            self._images.save_profile_picture(user.user_name, upload, replace=True)
        elif renamed:
            self._images.move_profile_folder(current.user_name, user.user_name)

        logger.info(
            "user_updated user_id=%s picture_replaced=%s renamed=%s", user.user_id, upload is not None, renamed
        )
        return with_status(StatusCode.SUCCESS, "User details updated successfully.")

    async def recent_users(self) -> ApiResult[Any]:
        users = await self._repo.fetch_recent_users(RECENT_USERS_LIMIT)
        if not users:
            return with_status(StatusCode.NO_DATA_FOUND, "No recent users found.")
        return success(users, "Recent users fetched successfully.")

    async def users_page(self, page_number: int, page_size: int) -> ApiResult[Any]:
        validate_page(page_number, page_size)
        users = await self._repo.list_users_page(page_number, page_size)
        if not users:
            return with_status(StatusCode.NO_DATA_FOUND, "No users found.")
        return success(users, "Users retrieved successfully.")

    async def set_admin(self, user_id: int, is_admin: bool | None) -> ApiResult[Any]:
        if user_id <= 0:
            raise ValidationError("Invalid User ID.")
        if is_admin is None:
            raise ValidationError("isAdmin value must be provided.")

        outcome = await self._repo.set_admin_flag(user_id, is_admin)
        if outcome is AdminFlagOutcome.NOT_FOUND:
            raise NotFoundError("User not found.")
        logger.info("admin_flag_updated user_id=%s is_admin=%s", user_id, is_admin)
        return with_status(StatusCode.SUCCESS, "isAdmin updated successfully.")
