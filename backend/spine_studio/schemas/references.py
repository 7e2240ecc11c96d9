from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, Field, field_validator

ImageCategory = Literal["character_part", "texture", "accessory"]

INLINE_PREFIX = "data:"


class SystemImage(BaseModel):
    """A body-part render shipped with the character assets (pose/shape context)."""

    kind: Literal["system"] = "system"
    name: str
    locator: str  # filesystem path or http(s) URL
    category: ImageCategory = "character_part"

    @field_validator("locator")
    @classmethod
    def _not_inline(cls, v: str) -> str:
        if v.startswith(INLINE_PREFIX):
            raise ValueError("system images must reference a path or URL, not an inline payload")
        return v


class UserImage(BaseModel):
    """A user-uploaded style reference carried inline as a data URL."""

    kind: Literal["user"] = "user"
    name: str
    locator: str  # data:image/...;base64,...
    category: ImageCategory = "texture"

    @field_validator("locator")
    @classmethod
    def _inline(cls, v: str) -> str:
        if not v.startswith(INLINE_PREFIX):
            raise ValueError("user images must be inline data URLs")
        return v


ReferenceImage = Annotated[Union[SystemImage, UserImage], Field(discriminator="kind")]


def tag_reference(raw: Any) -> Any:
    """Fill in ``kind`` for payloads that only carry a locator (e.g. ``url`` from the UI)."""
    if not isinstance(raw, dict):
        return raw
    data = dict(raw)
    if "locator" not in data:
        data["locator"] = data.get("url") or data.get("path") or ""
    if "category" not in data and "type" in data:
        data["category"] = data["type"]
    if "kind" not in data:
        data["kind"] = "user" if str(data["locator"]).startswith(INLINE_PREFIX) else "system"
    return data
