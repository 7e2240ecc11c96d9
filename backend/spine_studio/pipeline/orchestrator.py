import logging
from collections.abc import AsyncGenerator, Sequence
from datetime import datetime, timezone

from openai import AsyncOpenAI

from spine_studio.pipeline.classifier import classify_request
from spine_studio.pipeline.handlers import dispatch
from spine_studio.schemas.pipeline import RouterResponse
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.utils.sse import sse_classification, sse_done, sse_error, sse_result, sse_stage_change

logger = logging.getLogger(__name__)


def _now() -> datetime:
    return datetime.now(timezone.utc)


async def handle_request(
    client: AsyncOpenAI,
    message: str,
    references: Sequence[SystemImage | UserImage] = (),
) -> RouterResponse:
    """Classify a request, run its handler and return both results."""
    classification = await classify_request(client, message)
    result = await dispatch(client, classification.category, message, classification.extracted_params, references)
    logger.info("Request handled: %s success=%s", result.category, result.success)
    return RouterResponse(classification=classification, result=result, timestamp=_now())


async def run_pipeline(
    client: AsyncOpenAI,
    message: str,
    references: Sequence[SystemImage | UserImage] = (),
) -> AsyncGenerator[str, None]:
    """Same chain as handle_request, yielding SSE-formatted events per stage."""
    yield sse_stage_change("classifier")
    classification = await classify_request(client, message)
    yield sse_classification(classification.model_dump(mode="json"))

    yield sse_stage_change(str(classification.category))
    result = await dispatch(client, classification.category, message, classification.extracted_params, references)
    if not result.success and result.error:
        yield sse_error(result.error)
    yield sse_result(result.model_dump(mode="json"))

    yield sse_done(_now().isoformat())
