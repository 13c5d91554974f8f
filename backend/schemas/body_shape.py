"""
Value objects exchanged between the web layer and the generation core.

Field names are snake_case in Python and camelCase on the wire
(``model_dump(by_alias=True)``).
"""

from enum import Enum
from typing import List, Literal, Optional

from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic.alias_generators import to_camel

from .validators import normalize_optional_label


_VALUE_OBJECT_CONFIG = {
    "frozen": True,
    "alias_generator": to_camel,
    "populate_by_name": True,
}

ReturnMimeType = Literal["image/png", "image/jpeg"]


class Subject(BaseModel):
    """The person in the photo, described by height and current weight."""

    model_config = _VALUE_OBJECT_CONFIG

    height_cm: float = Field(..., ge=120, le=220)
    current_weight_kg: float = Field(..., ge=20, le=300)


class TargetWeight(BaseModel):
    model_config = _VALUE_OBJECT_CONFIG

    weight_kg: float = Field(..., ge=20, le=300)
    label: Optional[str] = Field(None, max_length=100)

    @field_validator("label", mode="before")
    @classmethod
    def normalize_label(cls, value: Optional[str]) -> Optional[str]:
        return normalize_optional_label(value)


class GenerationOptions(BaseModel):
    """Optional knobs for a generation request. Absence implies defaults."""

    model_config = _VALUE_OBJECT_CONFIG

    strength: float = Field(0.7, ge=0.0, le=1.0)
    preserve_background: bool = False
    return_mime_type: Optional[ReturnMimeType] = None
    seed: Optional[int] = None


class BodyShapeRequest(BaseModel):
    """Inbound payload as handed over by the web layer (image travels separately)."""

    model_config = _VALUE_OBJECT_CONFIG

    subject: Subject
    targets: List[TargetWeight] = Field(..., min_length=1, max_length=2)
    options: GenerationOptions = Field(default_factory=GenerationOptions)


class GeneratedImage(BaseModel):
    model_config = _VALUE_OBJECT_CONFIG

    label: Optional[str] = None
    base64: str
    mime_type: str
    width: int = Field(..., gt=0)
    height: int = Field(..., gt=0)


class GenerationMetadata(BaseModel):
    model_config = _VALUE_OBJECT_CONFIG

    processing_time_ms: int = Field(..., ge=0)
    confidence: float = Field(..., ge=0.0, le=1.0)
    model: str
    partial_failures: Optional[int] = Field(None, gt=0)


class GenerationResult(BaseModel):
    """
    Unified outcome of a generation request.

    Exactly one of ``images`` / ``error`` is set, matching ``success``.
    """

    model_config = _VALUE_OBJECT_CONFIG

    success: bool
    images: Optional[List[GeneratedImage]] = None
    metadata: Optional[GenerationMetadata] = None
    error: Optional[str] = None
    error_code: Optional[str] = None

    @model_validator(mode="after")
    def check_success_invariant(self) -> "GenerationResult":
        if self.success:
            if self.images is None or self.error is not None:
                raise ValueError("Successful result must carry images and no error")
        else:
            if self.images is not None or not self.error:
                raise ValueError("Failed result must carry an error and no images")
        return self

    @classmethod
    def ok(
        cls, images: List[GeneratedImage], metadata: GenerationMetadata
    ) -> "GenerationResult":
        return cls(success=True, images=images, metadata=metadata)

    @classmethod
    def failure(cls, error: str, code: str) -> "GenerationResult":
        return cls(success=False, error=error, error_code=code)


class ResolutionMethod(str, Enum):
    EXPLICIT = "explicit"
    COLO = "colo"
    COUNTRY = "country"
    CONTINENT = "continent"
    DEFAULT = "default"


class GeographicInfo(BaseModel):
    """Snapshot of the request geography that drove region selection."""

    model_config = _VALUE_OBJECT_CONFIG

    country: Optional[str] = None
    colo: Optional[str] = None
    continent: Optional[str] = None


class LocationResolutionResult(BaseModel):
    model_config = _VALUE_OBJECT_CONFIG

    location: str
    resolution_method: ResolutionMethod
    geographic_info: Optional[GeographicInfo] = None
