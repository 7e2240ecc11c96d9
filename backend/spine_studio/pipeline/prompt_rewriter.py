import logging
from collections.abc import Sequence

from openai import AsyncOpenAI

from spine_studio.config import settings
from spine_studio.pipeline.prompts.rewriter import (
    ORIENTATION_CONTRACT,
    REFERENCE_PRIORITY,
    REWRITER_SYSTEM,
    SPRITE_CONSTRAINTS,
)
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.utils.text import mentions, strip_code_fences

logger = logging.getLogger(__name__)

TEMPLATE_PREFIX = "Generate an image of"

# (substrings, item) checked in order when the rewrite call fails.
REWRITE_FALLBACKS: tuple[tuple[tuple[str, ...], str], ...] = (
    (("hat", "cap", "helmet"), "a hat"),
    (("sword", "blade"), "a sword"),
    (("shirt", "jacket"), "a shirt"),
    (("shoe", "boot"), "a pair of shoes"),
    (("glasses", "goggles"), "a pair of goggles"),
    (("gun", "weapon"), "a gun"),
    (("glove",), "a pair of gloves"),
)


def fallback_rewrite(original: str) -> str:
    text = original.lower()
    for needles, item in REWRITE_FALLBACKS:
        if any(mentions(text, n) for n in needles):
            return f"{TEMPLATE_PREFIX} {item}"
    return f"{TEMPLATE_PREFIX} {original.strip()}"


async def rewrite_prompt(client: AsyncOpenAI, original: str) -> str:
    """Compress a free-text request to ``Generate an image of <item>``."""
    try:
        response = await client.chat.completions.create(
            model=settings.openai_model,
            messages=[
                {"role": "system", "content": REWRITER_SYSTEM},
                {"role": "user", "content": original},
            ],
            temperature=0.2,
            **settings.max_tokens_param(100),
        )
        content = strip_code_fences(response.choices[0].message.content or "").strip().strip('"')
    except Exception:
        logger.exception("Prompt rewrite call failed, using fallback template")
        return fallback_rewrite(original)

    if not content:
        return fallback_rewrite(original)
    return content.splitlines()[0].strip()


def enhance_prompt(
    short_prompt: str,
    category: str = "image_generation",
    color: str | None = None,
    item_type: str | None = None,
    references: Sequence[SystemImage | UserImage] = (),
    facing: str | None = None,
    target_slot: str | None = None,
) -> str:
    """Build the full image-generation prompt. Pure: same input, same output."""
    facing = facing or settings.character_facing
    sections = [short_prompt.strip(), SPRITE_CONSTRAINTS]

    details = [f"Request type: {category}"]
    if item_type:
        details.append(f"Item: {item_type}")
    if color:
        details.append(f"Color: {color}")
    if target_slot:
        details.append(f"Worn on / replaces the character's {target_slot} part")
    sections.append("\n".join(details))

    sections.append(ORIENTATION_CONTRACT.format(facing=facing))

    if references:
        body_parts = [ref.name for ref in references if isinstance(ref, SystemImage)]
        style_count = sum(1 for ref in references if isinstance(ref, UserImage))
        sections.append(REFERENCE_PRIORITY.format(
            body_part=f" ({body_parts[0]})" if body_parts else "",
            style_count=f" ({style_count} provided)" if style_count else "",
        ))

    return "\n\n".join(sections)
