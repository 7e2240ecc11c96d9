"""Tests for the image generation client wrapper."""

from __future__ import annotations

import base64
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from spine_studio.config import settings
from spine_studio.schemas.references import SystemImage
from spine_studio.services.image_service import MAX_REFERENCE_IMAGES, ImageGenerationError, generate_image
from tests.helpers.mocks import make_image_response, make_openai_client, make_png


class TestGenerateImage:
    @pytest.mark.asyncio
    async def test_generate_without_references(self) -> None:
        client = make_openai_client(image_response=make_image_response(b64_json=base64.b64encode(b"img").decode()))
        assert await generate_image(client, "a hat") == b"img"
        kwargs = client.images.generate.await_args.kwargs
        assert kwargs["model"] == settings.openai_image_model
        assert kwargs["prompt"] == "a hat"
        assert kwargs["n"] == 1

    @pytest.mark.asyncio
    async def test_edit_with_references(self, user_images, assets_dir) -> None:
        head = SystemImage(name="head", locator=str(assets_dir / "head.png"))
        client = make_openai_client(image_response=make_image_response(b64_json=base64.b64encode(b"img").decode()))
        await generate_image(client, "a hat", [*user_images, head])

        uploads = client.images.edit.await_args.kwargs["image"]
        assert [name for name, _, _ in uploads] == ["00-style-board.png", "01-palette.png", "02-head.png"]
        assert uploads[0][1] == make_png()
        assert all(mime == "image/png" for _, _, mime in uploads)

    @pytest.mark.asyncio
    async def test_reference_cap(self, assets_dir) -> None:
        pool = [SystemImage(name=f"head{i}", locator=str(assets_dir / "head.png")) for i in range(MAX_REFERENCE_IMAGES + 3)]
        client = make_openai_client(image_response=make_image_response(b64_json="aW1n"))
        await generate_image(client, "a hat", pool)
        assert len(client.images.edit.await_args.kwargs["image"]) == MAX_REFERENCE_IMAGES

    @pytest.mark.asyncio
    async def test_unreadable_reference_is_skipped(self, tmp_path) -> None:
        missing = SystemImage(name="head", locator=str(tmp_path / "gone.png"))
        client = make_openai_client(image_response=make_image_response(b64_json="aW1n"))
        assert await generate_image(client, "a hat", [missing]) == b"img"
        client.images.edit.assert_not_awaited()
        client.images.generate.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_url_response_is_downloaded(self) -> None:
        client = make_openai_client(image_response=make_image_response(url="https://img.example.com/1.png"))
        fetch = AsyncMock(return_value=(b"downloaded", "image/png"))
        with patch("spine_studio.services.image_service.fetch_bytes", fetch):
            assert await generate_image(client, "a hat") == b"downloaded"
        fetch.assert_awaited_once_with("https://img.example.com/1.png")

    @pytest.mark.asyncio
    async def test_empty_response(self) -> None:
        response = MagicMock()
        response.data = []
        client = make_openai_client(image_response=response)
        with pytest.raises(ImageGenerationError, match="no images"):
            await generate_image(client, "a hat")

    @pytest.mark.asyncio
    async def test_item_without_payload(self) -> None:
        client = make_openai_client(image_response=make_image_response())
        with pytest.raises(ImageGenerationError):
            await generate_image(client, "a hat")

    @pytest.mark.asyncio
    async def test_client_error_is_wrapped(self) -> None:
        client = make_openai_client(image_error=ConnectionError("reset by peer"))
        with pytest.raises(ImageGenerationError, match="reset by peer") as excinfo:
            await generate_image(client, "a hat")
        assert isinstance(excinfo.value.__cause__, ConnectionError)
