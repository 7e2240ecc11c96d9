from functools import lru_cache

from openai import AsyncOpenAI

from spine_studio.config import settings
from spine_studio.schemas.references import SystemImage
from spine_studio.services.reference_service import load_reference_images


def get_openai_client() -> AsyncOpenAI:
    kwargs: dict = {
        "api_key": settings.openai_api_key,
        "timeout": settings.request_timeout,
        "max_retries": 0,
    }
    if settings.openai_base_url:
        kwargs["base_url"] = settings.openai_base_url
    return AsyncOpenAI(**kwargs)


@lru_cache(maxsize=1)
def _system_references(assets_dir: str) -> tuple[SystemImage, ...]:
    return tuple(load_reference_images(assets_dir))


def get_reference_pool() -> tuple[SystemImage, ...]:
    """System reference images, probed once per assets directory."""
    return _system_references(settings.reference_assets_dir)
