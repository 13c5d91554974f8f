"""
Test fixtures and configuration for pytest.
"""

import os
import sys
from io import BytesIO
from typing import Any, Optional

import pytest
from PIL import Image

sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from schemas.body_shape import GenerationOptions, Subject, TargetWeight
from services.ai_client import ImageGenerationResult


def make_image_bytes(width: int = 64, height: int = 48, fmt: str = "PNG", color: str = "white") -> bytes:
    img = Image.new("RGB", (width, height), color)
    buffer = BytesIO()
    img.save(buffer, format=fmt)
    return buffer.getvalue()


class FakeAIClient:
    """
    In-memory AIClientAdapter.

    ``behaviours`` maps a target weight (as it appears in the prompt) to either
    an ImageGenerationResult or an exception to raise.
    """

    def __init__(self, model: str = "fake-image-model", default: Any = None):
        self.model = model
        self.default = default or ImageGenerationResult(
            success=True, image_base64="R0VORVJBVEVE", mime_type="image/png", width=512, height=768
        )
        self.behaviours: dict[str, Any] = {}
        self.calls: list[dict[str, Any]] = []

    def when_target(self, weight: str, behaviour: Any) -> "FakeAIClient":
        self.behaviours[f"Target weight: {weight} kg"] = behaviour
        return self

    async def generate_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        generation_config: Optional[dict] = None,
    ) -> ImageGenerationResult:
        self.calls.append(
            {
                "prompt": prompt,
                "image_bytes": image_bytes,
                "mime_type": mime_type,
                "generation_config": generation_config,
            }
        )
        behaviour = self.default
        for marker, candidate in self.behaviours.items():
            if marker in prompt:
                behaviour = candidate
                break
        if isinstance(behaviour, BaseException):
            raise behaviour
        return behaviour


@pytest.fixture
def png_bytes() -> bytes:
    return make_image_bytes(64, 48, "PNG")


@pytest.fixture
def subject() -> Subject:
    return Subject(height_cm=170, current_weight_kg=70)


@pytest.fixture
def lighter_target() -> TargetWeight:
    return TargetWeight(weight_kg=60, label="slim")


@pytest.fixture
def heavier_target() -> TargetWeight:
    return TargetWeight(weight_kg=80, label="fuller")


@pytest.fixture
def default_options() -> GenerationOptions:
    return GenerationOptions()


@pytest.fixture
def fake_ai_client() -> FakeAIClient:
    return FakeAIClient()


@pytest.fixture
def clear_settings_cache():
    """Reset the cached Settings so env patches take effect."""
    from config import get_settings

    get_settings.cache_clear()
    yield
    get_settings.cache_clear()
