import logging
import re
from pathlib import Path

from spine_studio.schemas.references import ImageCategory, SystemImage, UserImage
from spine_studio.utils.images import decode_data_url, fetch_bytes

logger = logging.getLogger(__name__)

# Part renders expected in the character's image directory.
CHARACTER_PART_IMAGES = (
    "head.png", "torso.png", "neck.png",
    "front-thigh.png", "front-shin.png", "front-foot.png",
    "rear-thigh.png", "rear-shin.png", "rear-foot.png",
    "front-upper-arm.png", "rear-upper-arm.png",
    "front-fist-closed.png", "front-fist-open.png",
    "front-bracer.png", "rear-bracer.png",
    "eye-indifferent.png", "eye-surprised.png",
    "mouth-grind.png", "mouth-oooo.png", "mouth-smile.png",
    "goggles.png", "gun.png", "crosshair.png",
    "hoverboard-board.png", "hoverboard-thruster.png", "hoverglow-small.png",
    "muzzle-glow.png", "muzzle-ring.png",
    "muzzle01.png", "muzzle02.png", "muzzle03.png", "muzzle04.png", "muzzle05.png",
    "portal-bg.png", "portal-flare1.png", "portal-flare2.png", "portal-flare3.png",
    "portal-shade.png", "portal-streaks1.png", "portal-streaks2.png",
)

_PART_WORDS = ("head", "torso", "neck", "thigh", "shin", "foot", "arm", "fist", "bracer")
_ACCESSORY_WORDS = ("goggles", "gun", "crosshair", "hoverboard", "portal")
_TEXTURE_WORDS = ("muzzle", "glow", "flare", "streak", "eye", "mouth")


def categorize_image_name(name: str) -> ImageCategory:
    lowered = name.lower()
    if any(w in lowered for w in _PART_WORDS):
        return "character_part"
    if any(w in lowered for w in _ACCESSORY_WORDS):
        return "accessory"
    if any(w in lowered for w in _TEXTURE_WORDS):
        return "texture"
    return "character_part"


def load_reference_images(assets_dir: str | Path) -> list[SystemImage]:
    """Probe the part manifest against ``assets_dir`` and return what exists."""
    root = Path(assets_dir)
    images: list[SystemImage] = []
    for filename in CHARACTER_PART_IMAGES:
        path = root / filename
        if not path.is_file():
            logger.debug("Reference image %s not found, skipping", path)
            continue
        name = path.stem
        images.append(SystemImage(name=name, locator=str(path), category=categorize_image_name(name)))

    logger.info("Loaded %d system reference images from %s", len(images), root)
    return images


def user_image_from_upload(filename: str, data_url: str, index: int = 0) -> UserImage:
    name = re.sub(r"\.[^/.]+$", "", filename) or f"user-uploaded-{index + 1}"
    return UserImage(name=name, locator=data_url)


async def load_image_bytes(image: SystemImage | UserImage) -> tuple[bytes, str]:
    """Return ``(content, mime)`` for a reference image."""
    if isinstance(image, UserImage):
        return decode_data_url(image.locator)
    if image.locator.startswith(("http://", "https://")):
        return await fetch_bytes(image.locator)
    return Path(image.locator).read_bytes(), "image/png"
