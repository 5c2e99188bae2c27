from __future__ import annotations

import asyncio
from io import BytesIO
from pathlib import Path

import pytest
from fastapi import UploadFile

from core.errors import ValidationError
from core.uploads import ImageStore, image_extension, is_safe_component, safe_component
from tests.portal_fixtures import PNG_BYTES


def _upload(name: str, data: bytes = PNG_BYTES) -> UploadFile:
    return UploadFile(file=BytesIO(data), filename=name, size=len(data))


@pytest.mark.parametrize("name", ["a.jpg", "b.JPEG", "c.png"])
def test_image_extension_accepts_allowed(name: str) -> None:
    assert image_extension(name) in {".jpg", ".jpeg", ".png"}


@pytest.mark.parametrize("name", ["a.gif", "b", "c.png.exe", None])
def test_image_extension_rejects_others(name: str | None) -> None:
    with pytest.raises(ValidationError):
        image_extension(name)


def test_safe_component_strips_path_segments() -> None:
    assert safe_component("../../etc/passwd") == "passwd"
    assert safe_component("my photo.png") == "my_photo.png"
    with pytest.raises(ValidationError):
        safe_component("..")


def test_read_image_enforces_size_limit(tmp_path: Path) -> None:
    store = ImageStore(tmp_path, max_bytes=10)

    with pytest.raises(ValidationError):
        asyncio.run(store.read_image(_upload("big.png", b"x" * 11)))


def test_profile_picture_replace_clears_folder(tmp_path: Path) -> None:
    store = ImageStore(tmp_path, max_bytes=1024)

    first = asyncio.run(store.read_image(_upload("one.png")))
    assert store.save_profile_picture("alice", first) == "~/ProfilePicture/alice/one.png"

    second = asyncio.run(store.read_image(_upload("two.jpg")))
    store.save_profile_picture("alice", second, replace=True)

    assert sorted(p.name for p in (tmp_path / "ProfilePicture" / "alice").iterdir()) == ["two.jpg"]


def test_news_images_get_unique_names(tmp_path: Path) -> None:
    store = ImageStore(tmp_path, max_bytes=1024)
    upload = asyncio.run(store.read_image(_upload("hero.png")))

    a = store.save_news_image(7, upload)
    b = store.save_news_image(7, upload)

    assert a != b
    assert a.startswith("~/NewsImages/7/") and a.endswith("_hero.png")
    assert len(list((tmp_path / "NewsImages" / "7").iterdir())) == 2


@pytest.mark.parametrize(
    ("value", "expected"),
    [("carol", True), ("c.a-r_ol", True), ("carol.", False), ("x/carol", False), ("ca rol", False), ("", False)],
)
def test_is_safe_component_only_accepts_names_that_map_to_themselves(value: str, expected: bool) -> None:
    assert is_safe_component(value) is expected
