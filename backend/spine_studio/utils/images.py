import base64
import binascii
import re

import httpx

from spine_studio.config import settings

_DATA_URL_RE = re.compile(r"^data:(?P<mime>[\w/+.-]+)?(?P<params>(;[\w=.-]+)*?)(?P<b64>;base64)?,(?P<data>.*)$", re.DOTALL)

_EXTENSIONS = {"image/png": "png", "image/jpeg": "jpg", "image/webp": "webp", "image/gif": "gif"}


def to_data_url(data: bytes, mime: str = "image/png") -> str:
    return f"data:{mime};base64,{base64.b64encode(data).decode('ascii')}"


def decode_data_url(url: str) -> tuple[bytes, str]:
    """Return ``(payload, mime)`` for a ``data:`` URL. Raises ValueError if malformed."""
    match = _DATA_URL_RE.match(url)
    if not match:
        raise ValueError("not a data URL")
    mime = match.group("mime") or "text/plain"
    payload = match.group("data")
    if match.group("b64"):
        try:
            return base64.b64decode(payload, validate=True), mime
        except binascii.Error as e:
            raise ValueError(f"invalid base64 payload: {e}") from e
    return payload.encode("utf-8"), mime


def extension_for(mime: str) -> str:
    return _EXTENSIONS.get(mime, "png")


async def fetch_bytes(url: str) -> tuple[bytes, str]:
    """Download ``url`` and return ``(content, mime)``."""
    async with httpx.AsyncClient(timeout=settings.request_timeout, follow_redirects=True) as http:
        response = await http.get(url)
        response.raise_for_status()
    mime = response.headers.get("content-type", "image/png").split(";", 1)[0].strip()
    return response.content, mime
