"""Shared fixtures: reference pools and on-disk part renders."""

from __future__ import annotations

from pathlib import Path

import pytest

from spine_studio.schemas.references import SystemImage, UserImage
from tests.helpers.mocks import make_png, png_data_url

PART_NAMES = (
    "head", "torso", "neck",
    "front-upper-arm", "rear-upper-arm", "front-bracer", "rear-bracer",
    "front-fist-closed", "front-fist-open",
    "front-thigh", "rear-thigh", "front-shin", "rear-shin", "front-foot", "rear-foot",
    "eye-indifferent", "mouth-smile", "goggles", "gun", "portal-bg",
)


@pytest.fixture
def system_images() -> list[SystemImage]:
    return [
        SystemImage(name=name, locator=f"/assets/spineboy/images/{name}.png")
        for name in PART_NAMES
    ]


@pytest.fixture
def user_images() -> list[UserImage]:
    return [
        UserImage(name="style-board", locator=png_data_url()),
        UserImage(name="palette", locator=png_data_url(make_png(background=(10, 20, 30, 255)))),
    ]


@pytest.fixture
def assets_dir(tmp_path: Path) -> Path:
    """A character image directory holding a few real PNG part renders."""
    for name in ("head", "torso", "front-foot", "rear-foot", "gun"):
        (tmp_path / f"{name}.png").write_bytes(make_png())
    (tmp_path / "notes.txt").write_text("not a part")
    return tmp_path
