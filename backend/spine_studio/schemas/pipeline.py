from datetime import datetime
from enum import Enum
from typing import Any, Literal

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator

from spine_studio.schemas.references import ReferenceImage, tag_reference


class RequestCategory(str, Enum):
    IMAGE_GENERATION = "image_generation"
    ANIMATION = "animation"
    EXPORT_ASSETS = "export_assets"
    UNKNOWN = "unknown"


class ClassificationResult(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    category: RequestCategory = RequestCategory.UNKNOWN
    confidence: float = Field(default=0.0, ge=0.0, le=1.0)
    reasoning: str = ""
    extracted_params: dict[str, Any] = Field(
        default_factory=dict,
        validation_alias=AliasChoices("extracted_params", "extractedParams"),
    )

    @field_validator("extracted_params", mode="before")
    @classmethod
    def _none_to_empty(cls, v: Any) -> Any:
        return {} if v is None else v


class ParseOutcome(BaseModel):
    kind: Literal["structured", "heuristic", "failed"]
    result: ClassificationResult


class HandlerResult(BaseModel):
    model_config = ConfigDict(use_enum_values=True, validate_default=True)

    success: bool
    message: str
    category: RequestCategory
    extracted_params: dict[str, Any] = Field(default_factory=dict)
    error: str | None = None
    user_prompt: str = ""
    use_original_system: bool = False


class Keyframe(BaseModel):
    time: float
    value: float


class AnimationTimeline(BaseModel):
    type: Literal["rotate"] = "rotate"
    target: str
    keyframes: list[Keyframe] = []


class AnimationPlan(BaseModel):
    name: str
    animation_type: str  # "walk", "run", "jump", "dance", "idle", "other"
    duration: float
    speed_multiplier: float = 1.0
    bones: list[str] = []
    timelines: list[AnimationTimeline] = []


class ExportManifest(BaseModel):
    files: list[str]
    include_animations: bool = True
    include_textures: bool = True


class RouterRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    user_prompt: str = Field(alias="userPrompt")
    reference_images: list[ReferenceImage] = Field(default_factory=list, alias="referenceImages")

    @field_validator("reference_images", mode="before")
    @classmethod
    def _tag_references(cls, v: Any) -> Any:
        if isinstance(v, list):
            return [tag_reference(item) for item in v]
        return v


class RouterResponse(BaseModel):
    classification: ClassificationResult
    result: HandlerResult
    timestamp: datetime
