import logging
import re

from openai import AsyncOpenAI

from spine_studio.config import settings
from spine_studio.pipeline.prompts.body_parts import BODY_PART_FALLBACK_SYSTEM
from spine_studio.utils.text import mentions, strip_code_fences

logger = logging.getLogger(__name__)

DEFAULT_SLOTS = ("head",)

SLOT_NAMES = (
    "head", "eye", "mouth", "goggles", "neck",
    "torso",
    "front-upper-arm", "rear-upper-arm", "front-bracer", "rear-bracer", "front-fist",
    "front-thigh", "rear-thigh", "front-shin", "rear-shin", "front-foot", "rear-foot",
    "gun", "crosshair", "hoverboard-board", "hoverboard-thruster", "muzzle",
)

# Scanned top to bottom, first whole-word hit wins, so multi-word phrases come
# before the single words they contain ("front foot" > "foot", "upper arm" >
# "arm"). The character faces right, so its right limbs are the front ones.
BODY_PART_KEYWORDS: tuple[tuple[tuple[str, ...], tuple[str, ...]], ...] = (
    (("front foot", "front shoe", "front boot", "right foot", "right shoe", "right boot"), ("front-foot",)),
    (("rear foot", "back foot", "left foot", "rear shoe", "left shoe", "rear boot", "left boot"), ("rear-foot",)),
    (("front leg", "right leg"), ("front-thigh", "front-shin")),
    (("rear leg", "back leg", "left leg"), ("rear-thigh", "rear-shin")),
    (("front hand", "right hand"), ("front-fist",)),
    (("front arm", "right arm"), ("front-upper-arm", "front-bracer")),
    (("rear arm", "back arm", "left arm"), ("rear-upper-arm", "rear-bracer")),
    (("goggles", "glasses", "eyewear", "visor", "shades", "spectacles"), ("goggles",)),
    (("mouth", "lips", "teeth", "smile", "grin"), ("mouth",)),
    (("eyes", "eye"), ("eye",)),
    (("hat", "helmet", "cap", "crown", "hair", "hood", "mask", "headband", "face", "head"), ("head",)),
    (("necklace", "collar", "scarf", "neck"), ("neck",)),
    (("shoes", "shoe", "boots", "boot", "sneaker", "sandal", "footwear", "feet", "foot"), ("front-foot", "rear-foot")),
    (("knee", "calf", "shin"), ("front-shin", "rear-shin")),
    (("thigh", "pants", "trousers", "shorts", "skirt"), ("front-thigh", "rear-thigh")),
    (("legs", "leg"), ("front-thigh", "front-shin", "rear-thigh", "rear-shin")),
    (("glove", "hand", "fist", "finger", "palm"), ("front-fist",)),
    (("forearm", "bracer", "wrist", "gauntlet", "bracelet"), ("front-bracer", "rear-bracer")),
    (("armor", "armour", "shirt", "jacket", "vest", "coat", "cape", "cloak", "chest", "torso", "outfit", "body"), ("torso",)),
    (("upper arm", "shoulder", "bicep", "sleeve"), ("front-upper-arm", "rear-upper-arm")),
    (("arms", "arm"), ("front-upper-arm", "rear-upper-arm")),
    (("gun", "weapon", "rifle", "pistol", "blaster", "cannon"), ("gun",)),
    (("crosshair", "reticle"), ("crosshair",)),
    (("thruster", "jet", "booster"), ("hoverboard-thruster",)),
    (("hoverboard", "skateboard", "board"), ("hoverboard-board",)),
    (("muzzle", "flash"), ("muzzle",)),
)


def match_body_parts(prompt: str) -> list[str] | None:
    """Keyword stage of the resolver: slots for the first matching phrase, or None."""
    text = prompt.lower()
    for phrases, slots in BODY_PART_KEYWORDS:
        for phrase in phrases:
            if mentions(text, phrase):
                logger.debug("Body part keyword %r -> %s", phrase, slots)
                return list(slots)
    return None


def parse_slot_list(content: str) -> list[str]:
    slots: list[str] = []
    for token in re.split(r"[,\n]", strip_code_fences(content)):
        name = token.strip().strip("\"'`.-* ").lower()
        if name in SLOT_NAMES and name not in slots:
            slots.append(name)
    return slots


async def _ask_model(client: AsyncOpenAI, prompt: str) -> list[str]:
    response = await client.chat.completions.create(
        model=settings.openai_model,
        messages=[
            {"role": "system", "content": BODY_PART_FALLBACK_SYSTEM},
            {"role": "user", "content": prompt},
        ],
        temperature=0.1,
        **settings.max_tokens_param(100),
    )
    return parse_slot_list(response.choices[0].message.content or "")


async def resolve_body_parts(prompt: str, client: AsyncOpenAI | None = None) -> list[str]:
    """Map free text to skeleton slot names. Never raises and never returns an empty list."""
    slots = match_body_parts(prompt)
    if slots:
        return slots

    if client is not None and prompt.strip():
        try:
            slots = await _ask_model(client, prompt)
        except Exception:
            logger.exception("Body part fallback call failed")
            slots = []
        if slots:
            logger.info("Body parts resolved by model: %s", slots)
            return slots

    logger.info("No body part matched, defaulting to %s", DEFAULT_SLOTS)
    return list(DEFAULT_SLOTS)
