from .body_shape import (
    BodyShapeRequest,
    GeneratedImage,
    GenerationMetadata,
    GenerationOptions,
    GenerationResult,
    GeographicInfo,
    LocationResolutionResult,
    ResolutionMethod,
    ReturnMimeType,
    Subject,
    TargetWeight,
)

__all__ = [
    "BodyShapeRequest",
    "GeneratedImage",
    "GenerationMetadata",
    "GenerationOptions",
    "GenerationResult",
    "GeographicInfo",
    "LocationResolutionResult",
    "ResolutionMethod",
    "ReturnMimeType",
    "Subject",
    "TargetWeight",
]
