import logging
from collections.abc import Sequence
from typing import Any, NamedTuple

from openai import AsyncOpenAI

from spine_studio.config import settings
from spine_studio.pipeline.body_parts import resolve_body_parts
from spine_studio.pipeline.prompt_rewriter import enhance_prompt, rewrite_prompt
from spine_studio.pipeline.references import select_reference_images
from spine_studio.schemas.pipeline import (
    AnimationPlan,
    AnimationTimeline,
    ExportManifest,
    HandlerResult,
    Keyframe,
    RequestCategory,
)
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.services.image_service import ImageGenerationError, generate_image
from spine_studio.utils.background_removal import ImageDecodeError, make_transparent
from spine_studio.utils.images import to_data_url

logger = logging.getLogger(__name__)

References = Sequence[SystemImage | UserImage]


# ─── Animation ──────────────────────────────────────────────

class AnimationPreset(NamedTuple):
    duration: float
    amplitude: float  # peak bone rotation in degrees
    bones: tuple[str, ...]


_LEGS = ("front-thigh", "front-shin", "rear-thigh", "rear-shin")

ANIMATION_PRESETS: dict[str, AnimationPreset] = {
    "walk": AnimationPreset(1.0, 30.0, ("hip", *_LEGS)),
    "run": AnimationPreset(0.6, 45.0, ("torso", "front-upper-arm", "rear-upper-arm", *_LEGS)),
    "jump": AnimationPreset(0.8, 35.0, ("hip", *_LEGS, "front-upper-arm", "rear-upper-arm")),
    "dance": AnimationPreset(2.0, 25.0, ("torso", "head", "front-upper-arm", "rear-upper-arm", "hip")),
    "idle": AnimationPreset(2.0, 3.0, ("torso", "neck", "head")),
    "other": AnimationPreset(1.0, 15.0, ("root",)),
}

ANIMATION_KEYWORDS: tuple[tuple[str, tuple[str, ...]], ...] = (
    ("walk", ("walk", "stroll")),
    ("run", ("run", "sprint", "jog")),
    ("jump", ("jump", "leap", "hop")),
    ("dance", ("danc",)),
    ("idle", ("idle", "stand", "breath")),
)

# speed -> (duration factor, rate multiplier)
SPEED_ADJUSTMENTS = {
    "faster": (0.7, 1.5),
    "slower": (1.5, 0.7),
    "normal": (1.0, 1.0),
}

_FASTER_WORDS = ("faster", "fast", "quicker", "quick", "speed up")
_SLOWER_WORDS = ("slower", "slow")


def infer_animation_type(prompt: str, params: dict[str, Any]) -> str:
    requested = str(params.get("animationType") or params.get("animation_type") or "").lower()
    if requested in ANIMATION_PRESETS:
        return requested
    text = prompt.lower()
    for animation_type, needles in ANIMATION_KEYWORDS:
        if any(n in text for n in needles):
            return animation_type
    return "other"


def normalize_speed(prompt: str, params: dict[str, Any]) -> str:
    raw = params.get("speed")
    text = str(raw).lower() if raw else prompt.lower()
    if any(w in text for w in _SLOWER_WORDS):
        return "slower"
    if any(w in text for w in _FASTER_WORDS):
        return "faster"
    return "normal"


def _keyframes(duration: float, amplitude: float, mirrored: bool) -> list[Keyframe]:
    sign = -1.0 if mirrored else 1.0
    values = (0.0, sign * amplitude, 0.0, -sign * amplitude, 0.0)
    return [
        Keyframe(time=round(duration * i / 4, 3), value=value)
        for i, value in enumerate(values)
    ]


def plan_animation(prompt: str, params: dict[str, Any]) -> AnimationPlan:
    animation_type = infer_animation_type(prompt, params)
    speed = normalize_speed(prompt, params)
    preset = ANIMATION_PRESETS[animation_type]
    duration_factor, rate = SPEED_ADJUSTMENTS[speed]
    duration = round(preset.duration * duration_factor, 3)

    timelines = [
        AnimationTimeline(
            target=bone,
            keyframes=_keyframes(duration, preset.amplitude, mirrored=bone.startswith("rear-")),
        )
        for bone in preset.bones
    ]
    return AnimationPlan(
        name=animation_type if speed == "normal" else f"{animation_type}-{speed}",
        animation_type=animation_type,
        duration=duration,
        speed_multiplier=rate,
        bones=list(preset.bones),
        timelines=timelines,
    )


async def handle_animation(
    client: AsyncOpenAI, prompt: str, params: dict[str, Any], references: References
) -> HandlerResult:
    plan = plan_animation(prompt, params)
    logger.info("Animation %s: %.3fs x%.1f over %d bones", plan.name, plan.duration, plan.speed_multiplier, len(plan.bones))
    return HandlerResult(
        success=True,
        message=f"Created {plan.animation_type} animation ({plan.duration}s, x{plan.speed_multiplier} speed)",
        category=RequestCategory.ANIMATION,
        user_prompt=prompt,
        extracted_params={
            **params,
            "animation_type": plan.animation_type,
            "duration": plan.duration,
            "speed_multiplier": plan.speed_multiplier,
            "bones": plan.bones,
            "animation": plan.model_dump(),
        },
    )


# ─── Export ─────────────────────────────────────────────────

_TRUE = {"true", "1", "yes", "on"}
_FALSE = {"false", "0", "no", "off"}


def _flag(params: dict[str, Any], camel: str, snake: str, default: bool = True) -> bool:
    value = params.get(camel, params.get(snake))
    if value is None:
        return default
    if isinstance(value, str):
        lowered = value.strip().lower()
        if lowered in _TRUE:
            return True
        if lowered in _FALSE:
            return False
        return default
    return bool(value)


def build_export_manifest(params: dict[str, Any], basename: str | None = None) -> ExportManifest:
    basename = basename or settings.export_basename
    include_animations = _flag(params, "includeAnimations", "include_animations")
    include_textures = _flag(params, "includeTextures", "include_textures")

    files = [f"{basename}.json"]
    if include_animations:
        files.append(f"{basename}-animations.json")
    if include_textures:
        files.extend([f"{basename}.atlas", f"{basename}.png"])
    return ExportManifest(files=files, include_animations=include_animations, include_textures=include_textures)


async def handle_export_assets(
    client: AsyncOpenAI, prompt: str, params: dict[str, Any], references: References
) -> HandlerResult:
    manifest = build_export_manifest(params)
    return HandlerResult(
        success=True,
        message=f"Prepared export package with {len(manifest.files)} file(s)",
        category=RequestCategory.EXPORT_ASSETS,
        user_prompt=prompt,
        extracted_params={**params, "manifest": manifest.model_dump()},
    )


# ─── Image generation ───────────────────────────────────────

async def handle_image_generation(
    client: AsyncOpenAI, prompt: str, params: dict[str, Any], references: References
) -> HandlerResult:
    trace: dict[str, Any] = {**params, "image_url": None, "rewritten_prompt": None}

    slots = await resolve_body_parts(prompt, client)
    selected = select_reference_images(references, prompt, slots[0])
    trace.update({
        "target_slots": slots,
        "target_slot": slots[0],
        "references": [{"name": ref.name, "kind": ref.kind} for ref in selected],
    })

    rewritten = await rewrite_prompt(client, prompt)
    enhanced = enhance_prompt(
        rewritten,
        category=RequestCategory.IMAGE_GENERATION.value,
        color=params.get("color"),
        item_type=params.get("itemType") or params.get("item_type"),
        references=selected,
        target_slot=slots[0],
    )
    trace.update({"rewritten_prompt": rewritten, "enhanced_prompt": enhanced})

    try:
        image = await generate_image(client, enhanced, selected)
        trace["image_url"] = to_data_url(make_transparent(image))
    except (ImageGenerationError, ImageDecodeError) as e:
        logger.warning("Image generation failed: %s", e)
        return HandlerResult(
            success=False,
            message="Image generation failed",
            category=RequestCategory.IMAGE_GENERATION,
            user_prompt=prompt,
            extracted_params=trace,
            error=str(e),
        )

    return HandlerResult(
        success=True,
        message=f"Generated image for {slots[0]}",
        category=RequestCategory.IMAGE_GENERATION,
        user_prompt=prompt,
        extracted_params=trace,
    )


# ─── Fallback & dispatch ────────────────────────────────────

async def handle_unknown(
    client: AsyncOpenAI, prompt: str, params: dict[str, Any], references: References
) -> HandlerResult:
    return HandlerResult(
        success=False,
        message="Unknown request category",
        category=RequestCategory.UNKNOWN,
        user_prompt=prompt,
        extracted_params=params,
        error="Request could not be routed",
        use_original_system=True,
    )


HANDLERS = {
    RequestCategory.IMAGE_GENERATION: handle_image_generation,
    RequestCategory.ANIMATION: handle_animation,
    RequestCategory.EXPORT_ASSETS: handle_export_assets,
    RequestCategory.UNKNOWN: handle_unknown,
}


async def dispatch(
    client: AsyncOpenAI,
    category: RequestCategory | str,
    prompt: str,
    params: dict[str, Any] | None = None,
    references: References = (),
) -> HandlerResult:
    """Route to the category's handler. Always returns a HandlerResult."""
    params = dict(params or {})
    try:
        category = RequestCategory(category)
    except ValueError:
        category = RequestCategory.UNKNOWN

    logger.info("Routing request to %s", category.value)
    handler = HANDLERS[category]
    try:
        return await handler(client, prompt, params, references)
    except Exception as e:
        logger.exception("Handler for %s failed", category.value)
        return HandlerResult(
            success=False,
            message=f"{category.value} handler failed",
            category=category,
            user_prompt=prompt,
            extracted_params=params,
            error=str(e),
        )
