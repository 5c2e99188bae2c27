"""
Image upload storage on the local filesystem.

Handlers read an `UploadFile` into an `ImageUpload` first (extension, size and
emptiness are checked there), write the owning row, then store the bytes. Only
the relative path string travels further.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from pathlib import Path, PurePosixPath

from fastapi import UploadFile

from .errors import ValidationError

ALLOWED_IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png"}

PROFILE_PICTURE_DIR = "ProfilePicture"
NEWS_IMAGES_DIR = "NewsImages"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")

logger = logging.getLogger(__name__)


def safe_component(value: str) -> str:
    """
    Reduce a user-supplied name to a single safe path component.
    """
    name = PurePosixPath((value or "").replace("\\", "/")).name
    name = _UNSAFE_CHARS.sub("_", name).strip("._")
    if not name:
        raise ValidationError("Invalid file or folder name.")
    return name


def is_safe_component(value: str) -> bool:
    """
    True when `value` is already its own safe path component, so two distinct
    values can never map to the same folder.
    """
    try:
        return safe_component(value) == value
    except ValidationError:
        return False


def image_extension(filename: str | None) -> str:
    if not filename:
        raise ValidationError("Missing filename.")
    ext = Path(filename).suffix.lower()
    if ext not in ALLOWED_IMAGE_EXTENSIONS:
        raise ValidationError("Only .jpg, .png, and .jpeg formats are allowed.")
    return ext


def has_content(file: UploadFile | None) -> bool:
    if file is None or not file.filename:
        return False
    return file.size is None or file.size > 0


async def read_upload_bytes(file: UploadFile, max_bytes: int) -> bytes:
    """
    Read the upload into memory, enforcing a maximum size.
    """
    chunk_size = 1024 * 1024
    buf = bytearray()

    while True:
        chunk = await file.read(chunk_size)
        if not chunk:
            break
        buf.extend(chunk)
        if len(buf) > max_bytes:
            raise ValidationError(f"File too large. Max is {max_bytes} bytes.")

    return bytes(buf)


def _clear_folder(folder: Path) -> None:
    if not folder.is_dir():
        return
    for existing in folder.iterdir():
        if existing.is_file():
            existing.unlink()


@dataclass(frozen=True)
class ImageUpload:
    filename: str
    data: bytes


class ImageStore:
    def __init__(self, root: str | Path, *, max_bytes: int) -> None:
        self._root = Path(root)
        self._max_bytes = max_bytes

    @property
    def root(self) -> Path:
        return self._root

    async def read_image(self, file: UploadFile) -> ImageUpload:
        image_extension(file.filename)
        filename = safe_component(file.filename or "")
        data = await read_upload_bytes(file, self._max_bytes)
        if not data:
            raise ValidationError("Uploaded file is empty.")
        return ImageUpload(filename=filename, data=data)

    def _profile_folder(self, user_name: str) -> Path:
        return self._root / PROFILE_PICTURE_DIR / safe_component(user_name)

    def profile_picture_path(self, user_name: str, upload: ImageUpload | str) -> str:
        filename = upload if isinstance(upload, str) else upload.filename
        return f"~/{PROFILE_PICTURE_DIR}/{safe_component(user_name)}/{filename}"

    def save_profile_picture(self, user_name: str, upload: ImageUpload, *, replace: bool = False) -> str:
        """
        Write the picture under the user's folder and return its relative path.

        With `replace=True` the user's previous pictures are removed first.
        """
        folder = self._profile_folder(user_name)
        if replace:
            _clear_folder(folder)
        folder.mkdir(parents=True, exist_ok=True)
        (folder / upload.filename).write_bytes(upload.data)
        logger.info("profile_picture_saved user_name=%s file=%s", user_name, upload.filename)
        return self.profile_picture_path(user_name, upload)

    def move_profile_folder(self, old_user_name: str, new_user_name: str) -> None:
        """
        Follow a user rename: the old folder becomes the new one.
        """
        source = self._profile_folder(old_user_name)
        target = self._profile_folder(new_user_name)
        if source == target or not source.is_dir():
            return
        _clear_folder(target)
        if target.is_dir():
            target.rmdir()
        source.rename(target)
        logger.info("profile_folder_moved old=%s new=%s", old_user_name, new_user_name)

    def discard_profile_folder(self, user_name: str) -> None:
        folder = self._profile_folder(user_name)
        _clear_folder(folder)
        if folder.is_dir():
            folder.rmdir()

    def save_news_image(self, news_id: int, upload: ImageUpload) -> str:
        filename = f"{uuid.uuid4()}_{upload.filename}"
        folder = self._root / NEWS_IMAGES_DIR / str(news_id)
        folder.mkdir(parents=True, exist_ok=True)
        (folder / filename).write_bytes(upload.data)
        return f"~/{NEWS_IMAGES_DIR}/{news_id}/{filename}"
