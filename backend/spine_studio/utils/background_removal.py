"""Solid-background removal for generated sprite parts.

The image service returns parts on a flat backdrop. We estimate that backdrop
from the border pixels, knock out everything within a fixed RGB distance of
it, then snap leftover half-transparent fringe to fully clear or fully solid.
"""
import io
import logging

import numpy as np
from PIL import Image, UnidentifiedImageError

from spine_studio.config import settings

logger = logging.getLogger(__name__)

DEFAULT_BACKGROUND = (255, 255, 255)
FAINT_ALPHA = 50
SOLID_ALPHA = 200

RGB = tuple[int, int, int]


class ImageDecodeError(ValueError):
    """Raised when image bytes cannot be decoded; there is no safe fallback output."""


def decode_image(data: bytes) -> np.ndarray:
    """Decode image bytes into an ``(h, w, 4)`` uint8 RGBA array."""
    try:
        with Image.open(io.BytesIO(data)) as img:
            img.load()
            rgba = img.convert("RGBA")
    except (UnidentifiedImageError, OSError, ValueError) as e:
        raise ImageDecodeError(f"Could not decode image: {e}") from e
    return np.array(rgba, dtype=np.uint8)


def encode_png(pixels: np.ndarray) -> bytes:
    buf = io.BytesIO()
    Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8)).save(buf, format="PNG")
    return buf.getvalue()


def _edge_pixels(rgb: np.ndarray) -> np.ndarray:
    h, w = rgb.shape[:2]
    if h == 0 or w == 0:
        return rgb.reshape(-1, 3)
    return np.concatenate([rgb[0, :], rgb[h - 1, :], rgb[:, 0], rgb[:, w - 1]])


def detect_background_color(pixels: np.ndarray, use_edge_sampling: bool = True) -> RGB:
    """Most frequent exact RGB triple among the sampled pixels.

    Ties go to the colour sampled first. An empty image yields white.
    """
    rgb = pixels[..., :3]
    samples = _edge_pixels(rgb) if use_edge_sampling else rgb.reshape(-1, 3)
    if samples.size == 0:
        return DEFAULT_BACKGROUND

    samples = samples.astype(np.uint32)
    keys = (samples[:, 0] << 16) | (samples[:, 1] << 8) | samples[:, 2]
    colors, first_seen, counts = np.unique(keys, return_index=True, return_counts=True)
    order = np.lexsort((first_seen, -counts.astype(np.int64)))
    best = int(colors[order[0]])
    background = ((best >> 16) & 0xFF, (best >> 8) & 0xFF, best & 0xFF)
    logger.debug("Background estimate rgb%s (%d samples)", background, int(counts[order[0]]))
    return background


def remove_background(pixels: np.ndarray, background: RGB, tolerance: float) -> np.ndarray:
    """Zero the alpha of every pixel within ``tolerance`` (Euclidean RGB) of ``background``."""
    out = pixels.copy()
    diff = out[..., :3].astype(np.float64) - np.asarray(background, dtype=np.float64)
    distance = np.sqrt((diff ** 2).sum(axis=-1))
    mask = distance <= tolerance
    out[..., 3][mask] = 0

    total = mask.size or 1
    logger.info("Made %d pixels transparent (%.1f%%)", int(mask.sum()), 100.0 * mask.sum() / total)
    return out


def cleanup_transparency(pixels: np.ndarray) -> np.ndarray:
    out = pixels.copy()
    alpha = out[..., 3]
    alpha[alpha < FAINT_ALPHA] = 0
    alpha[alpha > SOLID_ALPHA] = 255
    return out


def make_transparent(
    image_bytes: bytes,
    tolerance: float | None = None,
    use_edge_sampling: bool | None = None,
    background_color: RGB | None = None,
) -> bytes:
    """Remove a flat background from ``image_bytes`` and return PNG bytes.

    Raises ImageDecodeError for undecodable input.
    """
    if tolerance is None:
        tolerance = settings.background_tolerance
    if use_edge_sampling is None:
        use_edge_sampling = settings.background_edge_sampling

    pixels = decode_image(image_bytes)
    background = background_color or detect_background_color(pixels, use_edge_sampling)
    pixels = remove_background(pixels, background, tolerance)
    pixels = cleanup_transparency(pixels)
    return encode_png(pixels)
