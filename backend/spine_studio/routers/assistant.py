import logging

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from openai import AsyncOpenAI

from spine_studio.dependencies import get_openai_client, get_reference_pool
from spine_studio.pipeline.orchestrator import handle_request, run_pipeline
from spine_studio.schemas.pipeline import RouterRequest, RouterResponse
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.services.reference_service import user_image_from_upload
from spine_studio.utils.sse import sse_done, sse_error

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/assistant", tags=["assistant"])


def _prompt_or_400(data: RouterRequest) -> str:
    prompt = data.user_prompt.strip()
    if not prompt:
        raise HTTPException(status_code=400, detail="Invalid or missing userPrompt")
    return prompt


def _references(pool: tuple[SystemImage, ...], data: RouterRequest) -> list[SystemImage | UserImage]:
    """System pool followed by the request's uploads, renamed from their filenames.

    System images named in the request only ever resolve to pool entries; their
    client-supplied locators are discarded.
    """
    known = {img.name for img in pool}
    uploads: list[UserImage] = []
    for i, img in enumerate(data.reference_images):
        if isinstance(img, UserImage):
            uploads.append(user_image_from_upload(img.name, img.locator, i))
        elif img.name not in known:
            logger.warning("Dropping system reference %r: not in the character part pool", img.name)
    return [*pool, *uploads]


@router.post("/route", response_model=RouterResponse)
async def route_request(
    data: RouterRequest,
    client: AsyncOpenAI = Depends(get_openai_client),
    pool: tuple[SystemImage, ...] = Depends(get_reference_pool),
):
    prompt = _prompt_or_400(data)
    return await handle_request(client, prompt, _references(pool, data))


@router.post("/route/stream")
async def route_request_stream(
    data: RouterRequest,
    client: AsyncOpenAI = Depends(get_openai_client),
    pool: tuple[SystemImage, ...] = Depends(get_reference_pool),
):
    prompt = _prompt_or_400(data)
    references = _references(pool, data)

    async def event_stream():
        try:
            async for event in run_pipeline(client, prompt, references):
                yield event
        except Exception as e:
            yield sse_error(str(e))
            yield sse_done()

    return StreamingResponse(event_stream(), media_type="text/event-stream")
