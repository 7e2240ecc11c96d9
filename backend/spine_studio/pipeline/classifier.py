import json
import logging

from openai import AsyncOpenAI
from pydantic import ValidationError

from spine_studio.config import settings
from spine_studio.pipeline.prompts.classifier import CLASSIFIER_SYSTEM
from spine_studio.schemas.pipeline import ClassificationResult, ParseOutcome, RequestCategory
from spine_studio.utils.text import strip_code_fences

logger = logging.getLogger(__name__)

HEURISTIC_CONFIDENCE = 0.5

# Checked in order; the first category with a hit wins.
FALLBACK_KEYWORDS: tuple[tuple[RequestCategory, tuple[str, ...]], ...] = (
    (RequestCategory.IMAGE_GENERATION, ("image", "generate", "texture", "color", "colour")),
    (RequestCategory.ANIMATION, ("walk", "run", "jump", "dance", "idle", "animat")),
    (RequestCategory.EXPORT_ASSETS, ("export", "download")),
)

# Category names used by earlier revisions of the router prompt.
LEGACY_CATEGORIES = {
    "walk_animation": ("animation", "walk"),
    "run_animation": ("animation", "run"),
    "idle_animation": ("animation", "idle"),
    "jump_animation": ("animation", "jump"),
    "dance_animation": ("animation", "dance"),
    "other_animation": ("animation", "other"),
    "appearance_change": ("image_generation", None),
}


def try_structured_parse(content: str) -> ClassificationResult | None:
    try:
        data = json.loads(strip_code_fences(content))
    except json.JSONDecodeError:
        return None
    if not isinstance(data, dict):
        return None

    legacy = LEGACY_CATEGORIES.get(str(data.get("category", "")))
    if legacy:
        category, animation_type = legacy
        params = data.get("extractedParams") or data.get("extracted_params") or {}
        if isinstance(params, dict) and animation_type:
            params = {"animationType": animation_type, **params}
        data = {**data, "category": category, "extractedParams": params}
        data.pop("extracted_params", None)

    try:
        return ClassificationResult.model_validate(data)
    except ValidationError:
        return None


def try_text_heuristic(content: str) -> ClassificationResult | None:
    text = content.lower()
    for category, keywords in FALLBACK_KEYWORDS:
        hits = [kw for kw in keywords if kw in text]
        if hits:
            return ClassificationResult(
                category=category,
                confidence=HEURISTIC_CONFIDENCE,
                reasoning=f"Text fallback used: structured parse failed, matched {', '.join(hits)}",
            )
    return None


def parse_classification(content: str) -> ParseOutcome:
    result = try_structured_parse(content)
    if result is not None:
        return ParseOutcome(kind="structured", result=result)

    logger.warning("Classifier response was not valid structured output: %r", content[:200])
    result = try_text_heuristic(content)
    if result is not None:
        return ParseOutcome(kind="heuristic", result=result)

    return ParseOutcome(
        kind="failed",
        result=ClassificationResult(
            category=RequestCategory.UNKNOWN,
            confidence=0.0,
            reasoning="Text fallback used: no category keywords found in the response",
        ),
    )


async def classify_request(client: AsyncOpenAI, message: str) -> ClassificationResult:
    """Categorize a user request. Never raises; failures classify as unknown."""
    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": CLASSIFIER_SYSTEM},
                {"role": "user", "content": message},
            ],
            temperature=0.1,
            **settings.max_tokens_param(500),
        )
        content = response.choices[0].message.content or ""
    except Exception as e:
        logger.exception("Classifier call failed")
        return ClassificationResult(
            category=RequestCategory.UNKNOWN,
            confidence=0.0,
            reasoning=f"Error during LLM categorization: {e}",
        )

    outcome = parse_classification(content)
    logger.info(
        "Classified request as %s (%.2f, %s)",
        outcome.result.category, outcome.result.confidence, outcome.kind,
    )
    return outcome.result
