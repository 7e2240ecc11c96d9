import base64
import logging
from collections.abc import Sequence

from openai import AsyncOpenAI

from spine_studio.config import settings
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.services.reference_service import load_image_bytes
from spine_studio.utils.images import extension_for, fetch_bytes

logger = logging.getLogger(__name__)

MAX_REFERENCE_IMAGES = 10


class ImageGenerationError(Exception):
    """The image service failed or answered with an unexpected shape."""


async def _as_upload(image: SystemImage | UserImage, index: int) -> tuple[str, bytes, str]:
    content, mime = await load_image_bytes(image)
    return f"{index:02d}-{image.name}.{extension_for(mime)}", content, mime


async def _extract_image(response) -> bytes:
    data = getattr(response, "data", None)
    if not data:
        raise ImageGenerationError("Image service returned no images")
    item = data[0]
    b64 = getattr(item, "b64_json", None)
    if b64:
        return base64.b64decode(b64)
    url = getattr(item, "url", None)
    if url:
        content, _ = await fetch_bytes(url)
        return content
    raise ImageGenerationError("Image service response had neither b64_json nor url")


async def generate_image(
    client: AsyncOpenAI,
    prompt: str,
    references: Sequence[SystemImage | UserImage] = (),
) -> bytes:
    """Generate one image, composing from ``references`` when any are given."""
    uploads = []
    for i, ref in enumerate(references[:MAX_REFERENCE_IMAGES]):
        try:
            uploads.append(await _as_upload(ref, i))
        except (OSError, ValueError) as e:
            logger.warning("Skipping unreadable reference %s: %s", ref.name, e)

    try:
        if uploads:
            logger.info("Requesting image edit with %d reference(s)", len(uploads))
            response = await client.images.edit(
                model=settings.openai_image_model,
                image=uploads,
                prompt=prompt,
                size=settings.image_size,
                quality=settings.image_quality,
            )
        else:
            logger.info("Requesting image generation without references")
            response = await client.images.generate(
                model=settings.openai_image_model,
                prompt=prompt,
                size=settings.image_size,
                quality=settings.image_quality,
                n=1,
            )
        return await _extract_image(response)
    except ImageGenerationError:
        raise
    except Exception as e:
        raise ImageGenerationError(f"Image service call failed: {e}") from e
