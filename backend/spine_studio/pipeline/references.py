import logging
from collections.abc import Sequence
from types import MappingProxyType

from spine_studio.pipeline.body_parts import DEFAULT_SLOTS, match_body_parts
from spine_studio.schemas.references import SystemImage, UserImage
from spine_studio.utils.text import mentions

logger = logging.getLogger(__name__)

EXACT_MATCH_SCORE = 100
PARTIAL_MATCH_SCORE = 80
KEYWORD_SCORE = 20
FRONT_BONUS = 5

# More specific parts rank higher; names not listed get 0.
BODY_PART_PRIORITY = MappingProxyType({
    "head": 10, "eye-indifferent": 9, "eye-surprised": 9,
    "mouth-grind": 9, "mouth-oooo": 9, "mouth-smile": 9, "goggles": 8,
    "torso": 10, "neck": 8,
    "front-upper-arm": 10, "rear-upper-arm": 9,
    "front-fist-closed": 8, "front-fist-open": 8,
    "front-bracer": 7, "rear-bracer": 7,
    "front-thigh": 10, "rear-thigh": 9, "front-shin": 8, "rear-shin": 7,
    "front-foot": 6, "rear-foot": 5,
    "gun": 5, "crosshair": 4, "hoverboard-board": 4, "hoverboard-thruster": 4,
    "hoverglow-small": 3, "muzzle-glow": 3, "muzzle-ring": 3,
    "muzzle01": 3, "muzzle02": 3, "muzzle03": 3, "muzzle04": 3, "muzzle05": 3,
    "portal-bg": 2, "portal-flare1": 2, "portal-flare2": 2, "portal-flare3": 2,
    "portal-shade": 2, "portal-streaks1": 2, "portal-streaks2": 2,
})

_HEAD_WORDS = ("head", "face", "skull", "helmet", "hat", "hair", "crown", "cap", "mask", "headband")
_ARM_WORDS = ("arm", "upper-arm", "shoulder", "bicep", "sleeve", "armband")
_BRACER_WORDS = ("bracer", "forearm", "wrist", "guard", "gauntlet", "glove")
_THIGH_WORDS = ("thigh", "leg", "upper-leg", "pants", "trouser")
_SHIN_WORDS = ("shin", "lower-leg", "calf", "knee", "pants", "trouser")
_FOOT_WORDS = ("foot", "feet", "shoe", "boot", "footwear", "sneaker", "sandal", "sole", "toe", "heel")

IMAGE_KEYWORDS = MappingProxyType({
    "head": _HEAD_WORDS,
    "eye-indifferent": ("eye", "eyes", "gaze", "neutral", "normal"),
    "eye-surprised": ("eye", "eyes", "gaze", "surprised", "shock", "amazed", "wide"),
    "mouth-grind": ("mouth", "lips", "teeth", "grind", "clench", "determined"),
    "mouth-oooo": ("mouth", "lips", "open", "oooo", "gasp", "wow", "round"),
    "mouth-smile": ("mouth", "lips", "smile", "grin", "happy", "cheerful"),
    "goggles": ("goggles", "glasses", "eyewear", "spectacles", "shades", "visor", "lens"),
    "torso": ("torso", "body", "chest", "shirt", "armor", "jacket", "vest", "clothing", "outfit", "uniform"),
    "neck": ("neck", "collar", "necklace", "throat", "chain", "pendant", "scarf"),
    "front-upper-arm": _ARM_WORDS,
    "rear-upper-arm": _ARM_WORDS,
    "front-fist-closed": ("fist", "hand", "closed", "punch", "knuckle", "grip"),
    "front-fist-open": ("fist", "hand", "open", "palm", "finger", "wave"),
    "front-bracer": _BRACER_WORDS,
    "rear-bracer": _BRACER_WORDS,
    "front-thigh": _THIGH_WORDS,
    "rear-thigh": _THIGH_WORDS,
    "front-shin": _SHIN_WORDS,
    "rear-shin": _SHIN_WORDS,
    "front-foot": _FOOT_WORDS,
    "rear-foot": _FOOT_WORDS,
    "gun": ("gun", "weapon", "rifle", "pistol", "firearm", "blaster", "cannon"),
    "crosshair": ("crosshair", "target", "aim", "reticle"),
    "hoverboard-board": ("hoverboard", "board", "platform", "skateboard", "deck"),
    "hoverboard-thruster": ("thruster", "engine", "jet", "booster", "rocket"),
})


def partition_images(images: Sequence[SystemImage | UserImage]) -> tuple[list[UserImage], list[SystemImage]]:
    user = [img for img in images if isinstance(img, UserImage)]
    system = [img for img in images if isinstance(img, SystemImage)]
    return user, system


def score_system_image(image: SystemImage, target_slot: str, prompt: str) -> int:
    name = image.name.lower()
    target = target_slot.lower()
    text = prompt.lower()

    score = 0
    if name == target:
        score += EXACT_MATCH_SCORE
    if name and target and (target in name or name in target):
        score += PARTIAL_MATCH_SCORE
    matches = [kw for kw in IMAGE_KEYWORDS.get(name, ()) if mentions(text, kw)]
    score += KEYWORD_SCORE * len(matches)
    score += BODY_PART_PRIORITY.get(name, 0)
    if "front" in name:
        score += FRONT_BONUS
    return score


def select_body_part_image(
    system_images: Sequence[SystemImage], prompt: str, target_slot: str
) -> SystemImage | None:
    """Highest-scoring system image for ``target_slot``; ties keep the earlier image."""
    best: SystemImage | None = None
    best_score = 0
    for image in system_images:
        score = score_system_image(image, target_slot, prompt)
        logger.debug("Reference candidate %s scored %d", image.name, score)
        if score > best_score:
            best, best_score = image, score

    if best is None:
        logger.info("No body part reference scored above zero for %r", target_slot)
    else:
        logger.info("Selected body part reference %s (score %d)", best.name, best_score)
    return best


def enforce_single_body_part(selection: list[SystemImage | UserImage]) -> list[SystemImage | UserImage]:
    """Keep every user image and only the first system image."""
    system = [img for img in selection if isinstance(img, SystemImage)]
    if len(system) <= 1:
        return selection

    logger.warning(
        "Reference selection had %d body part images (%s), keeping only %s",
        len(system), ", ".join(img.name for img in system), system[0].name,
    )
    return [img for img in selection if isinstance(img, UserImage)] + [system[0]]


def select_reference_images(
    images: Sequence[SystemImage | UserImage],
    prompt: str,
    target_slot: str | None = None,
) -> list[SystemImage | UserImage]:
    """All user style images plus at most one body-part image for the target slot."""
    user_images, system_images = partition_images(images)

    if target_slot is None:
        target_slot = (match_body_parts(prompt) or list(DEFAULT_SLOTS))[0]

    selection: list[SystemImage | UserImage] = list(user_images)
    body_part = select_body_part_image(system_images, prompt, target_slot)
    if body_part is not None:
        selection.append(body_part)

    return enforce_single_body_part(selection)
