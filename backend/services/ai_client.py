"""
Google GenAI image client.

Wraps a single "generate content from text + image" call to the image model
(Gemini Developer API or Vertex AI, selected by configuration) behind the
``AIClientAdapter`` protocol, with bounded retry around each call.
"""

import asyncio
import base64
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Protocol

from services.errors import (
    ConfigurationError,
    ConversionError,
    InvalidArgumentsError,
    TerminalRemoteError,
    TransientRemoteError,
    sanitize_public_error_message,
)
from services.image_validation import (
    ALLOWED_IMAGE_MIME_TYPES,
    decode_image_base64,
    normalize_image_mime_type,
    read_image_dimensions,
)
from services.location_resolver import GeoInfo, LocationResolver
from services.retry import RetryExecutor, is_retryable_message
from services.structured_logging import StructuredLogger, get_structured_logger

CLOUD_PLATFORM_SCOPE = "https://www.googleapis.com/auth/cloud-platform"
GOOGLE_TOKEN_URI = "https://oauth2.googleapis.com/token"


@dataclass(frozen=True)
class ImageGenerationResult:
    success: bool
    image_base64: Optional[str] = None
    mime_type: Optional[str] = None
    width: Optional[int] = None
    height: Optional[int] = None
    error: Optional[str] = None
    attempts: int = 0


@dataclass(frozen=True)
class InlineImage:
    data_base64: str
    mime_type: Optional[str]
    width: Optional[int] = None
    height: Optional[int] = None


class AIClientAdapter(Protocol):
    """One remote image call: prompt + source image -> generated image."""

    model: str

    async def generate_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        generation_config: Optional[dict[str, Any]] = None,
    ) -> ImageGenerationResult:
        ...


class GenAIImageClient:
    """
    ``AIClientAdapter`` over the google-genai SDK.

    The SDK call is blocking, so it runs in a worker thread under a timeout.
    Remote failures come back as ``ImageGenerationResult(success=False)``;
    only invalid arguments raise.
    """

    RESPONSE_MODALITIES = ["TEXT", "IMAGE"]
    API_TIMEOUT_SECONDS = 120.0

    def __init__(
        self,
        client: Any,
        model: str,
        retry_executor: Optional[RetryExecutor] = None,
        *,
        timeout_seconds: Optional[float] = None,
        location: Optional[str] = None,
        logger: Optional[StructuredLogger] = None,
    ):
        self._client = client
        self.model = model
        self.location = location
        self._retry = retry_executor or RetryExecutor()
        self._timeout_seconds = timeout_seconds or self.API_TIMEOUT_SECONDS
        self._log = logger or get_structured_logger("ai_client")

    async def _run_with_timeout(self, call: Callable[[], Any]) -> Any:
        # wait_for cannot stop the worker thread; the SDK client carries the same
        # timeout in its HTTP options (see _http_options) so the request itself ends.
        return await asyncio.wait_for(
            asyncio.to_thread(call), timeout=self._timeout_seconds
        )

    @staticmethod
    def _validate_arguments(prompt: str, image_bytes: bytes, mime_type: str) -> str:
        if not prompt or not prompt.strip():
            raise InvalidArgumentsError("Prompt is required")
        if not image_bytes:
            raise InvalidArgumentsError("Image data is required")
        if not mime_type or not mime_type.strip():
            raise InvalidArgumentsError("Image MIME type is required")
        normalized = normalize_image_mime_type(mime_type)
        if normalized not in ALLOWED_IMAGE_MIME_TYPES:
            raise InvalidArgumentsError(
                f"Invalid image mime type. Supported: {', '.join(sorted(ALLOWED_IMAGE_MIME_TYPES))}"
            )
        return normalized

    def _build_config(self, types_module: Any, generation_config: Optional[dict[str, Any]]) -> Any:
        config_kwargs: dict[str, Any] = {"response_modalities": self.RESPONSE_MODALITIES}
        seed = (generation_config or {}).get("seed")
        if seed is not None:
            # Gemini accepts INT32 seeds only.
            config_kwargs["seed"] = int(seed) & 0x7FFFFFFF
        return types_module.GenerateContentConfig(**config_kwargs)

    async def _generate_once(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        generation_config: Optional[dict[str, Any]],
    ) -> InlineImage:
        from google.genai import types

        contents = [
            types.Part.from_text(text=prompt),
            types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
        ]
        config = self._build_config(types, generation_config)

        response = await self._run_with_timeout(
            lambda: self._client.models.generate_content(
                model=self.model,
                contents=contents,
                config=config,
            )
        )

        image = self._extract_inline_image(response)
        if image is not None:
            return image

        reason = self._describe_empty_response(response)
        if is_retryable_message(reason):
            raise TransientRemoteError(f"No image generated in response: {reason}")
        if reason:
            raise TerminalRemoteError(f"No image generated in response: {reason}")
        raise TerminalRemoteError("No image generated in response")

    async def generate_image(
        self,
        prompt: str,
        image_bytes: bytes,
        mime_type: str,
        generation_config: Optional[dict[str, Any]] = None,
    ) -> ImageGenerationResult:
        normalized_mime = self._validate_arguments(prompt, image_bytes, mime_type)

        self._log.info(
            "request",
            model=self.model,
            location=self.location,
            prompt_length=len(prompt),
            image_bytes=len(image_bytes),
            mime_type=normalized_mime,
            seeded=bool(generation_config and generation_config.get("seed") is not None),
        )

        outcome = await self._retry.run(
            lambda: self._generate_once(prompt, image_bytes, normalized_mime, generation_config),
            operation="generate_image",
        )

        if not outcome.success:
            message = (
                sanitize_public_error_message(str(outcome.error), fallback="Image generation failed")
                or "Unknown error occurred during image generation"
            )
            self._log.warning(
                "failed",
                model=self.model,
                attempts=outcome.attempts,
                outcome=outcome.outcome.value,
                error=message,
            )
            return ImageGenerationResult(success=False, error=message, attempts=outcome.attempts)

        image = outcome.value
        self._log.info(
            "succeeded",
            model=self.model,
            attempts=outcome.attempts,
            mime_type=image.mime_type,
            width=image.width,
            height=image.height,
        )
        return ImageGenerationResult(
            success=True,
            image_base64=image.data_base64,
            mime_type=image.mime_type,
            width=image.width,
            height=image.height,
            attempts=outcome.attempts,
        )

    @staticmethod
    def _iter_response_parts(response: object) -> Iterable[object]:
        """Yield candidate parts across SDK response layouts."""
        direct_parts = getattr(response, "parts", None)
        if direct_parts:
            for part in direct_parts:
                yield part

        candidates = getattr(response, "candidates", None)
        if not candidates:
            return
        for candidate in candidates:
            content = getattr(candidate, "content", None)
            if content is None:
                continue
            parts = getattr(content, "parts", None)
            if not parts:
                continue
            for part in parts:
                yield part

    @classmethod
    def _extract_inline_image(cls, response: object) -> Optional[InlineImage]:
        """Extract the first inline image payload from a model response."""
        for part in cls._iter_response_parts(response):
            inline_data = getattr(part, "inline_data", None)
            if inline_data is None:
                continue
            data = getattr(inline_data, "data", None)
            if not data:
                continue

            if isinstance(data, str):
                data_base64 = data
                try:
                    raw = decode_image_base64(data)
                except ConversionError:
                    raw = b""
            elif isinstance(data, (bytes, bytearray)):
                raw = bytes(data)
                data_base64 = base64.b64encode(raw).decode("ascii")
            else:
                continue

            reported_mime = getattr(inline_data, "mime_type", None)
            mime_type = normalize_image_mime_type(reported_mime) if isinstance(reported_mime, str) else ""
            dimensions = read_image_dimensions(raw)
            return InlineImage(
                data_base64=data_base64,
                mime_type=mime_type or None,
                width=dimensions[0] if dimensions else None,
                height=dimensions[1] if dimensions else None,
            )
        return None

    @staticmethod
    def _describe_empty_response(response: object) -> str:
        """Collect finish/block reasons and text from a response without an image."""
        candidates = getattr(response, "candidates", None)
        reasons: list[str] = []

        feedback = getattr(response, "prompt_feedback", None)
        block_reason = getattr(feedback, "block_reason", None) if feedback is not None else None
        if block_reason:
            reasons.append(f"blocked: {getattr(block_reason, 'value', block_reason)}")

        if not candidates:
            reasons.append("No candidates returned from Gemini API")
            return "; ".join(reasons)

        finish_reason = getattr(candidates[0], "finish_reason", None)
        if finish_reason:
            reasons.append(f"finish_reason={getattr(finish_reason, 'value', finish_reason)}")

        text = getattr(response, "text", None)
        if isinstance(text, str) and text.strip():
            reasons.append(" ".join(text.split())[:200])
        return "; ".join(reasons)


def _http_options(settings) -> dict[str, int]:
    """SDK HTTP options; google-genai takes the timeout in milliseconds."""
    return {"timeout": int(settings.API_TIMEOUT_SECONDS * 1000)}


def _build_vertex_credentials(settings) -> Any:
    from google.oauth2 import service_account

    from services.env_validator import normalize_private_key

    info = {
        "type": "service_account",
        "project_id": settings.GOOGLE_PROJECT_ID,
        "private_key_id": settings.GOOGLE_PRIVATE_KEY_ID,
        "private_key": normalize_private_key(settings.GOOGLE_PRIVATE_KEY),
        "client_email": settings.GOOGLE_CLIENT_EMAIL,
        "token_uri": GOOGLE_TOKEN_URI,
    }
    return service_account.Credentials.from_service_account_info(
        info, scopes=[CLOUD_PLATFORM_SCOPE]
    )


def create_ai_client(
    settings,
    geo: Optional[GeoInfo] = None,
    logger: Optional[StructuredLogger] = None,
) -> GenAIImageClient:
    """
    Build the image client for the configured backend.

    Raises ConfigurationError for missing credentials or an unsupported
    explicit region.
    """
    from google import genai

    from config import AIBackend
    from services.env_validator import validate_google_cloud_env

    log = logger or get_structured_logger("ai_client")
    retry = RetryExecutor(
        settings.GENERATION_MAX_RETRIES,
        settings.GENERATION_BASE_DELAY_MS,
        jitter_ms=settings.GENERATION_JITTER_MS,
        logger=log.bind("retry"),
    )

    if settings.AI_BACKEND == AIBackend.VERTEX:
        env_check = validate_google_cloud_env(settings)
        for warning in env_check.warnings:
            log.debug("env_warning", detail=warning)
        if not env_check.is_valid:
            raise ConfigurationError(
                "Google Cloud Service Account credentials are invalid: "
                + "; ".join(env_check.errors)
            )

        resolution = LocationResolver(log.bind("location")).resolve(
            settings.GOOGLE_LOCATION, geo
        )
        client = genai.Client(
            vertexai=True,
            project=settings.GOOGLE_PROJECT_ID,
            location=resolution.location,
            credentials=_build_vertex_credentials(settings),
            http_options=_http_options(settings),
        )
        log.info(
            "initialized",
            backend="vertex",
            model=settings.IMAGE_MODEL,
            location=resolution.location,
            resolution_method=resolution.resolution_method.value,
        )
        return GenAIImageClient(
            client,
            settings.IMAGE_MODEL,
            retry,
            timeout_seconds=settings.API_TIMEOUT_SECONDS,
            location=resolution.location,
            logger=log,
        )

    if not settings.GEMINI_API_KEY:
        raise ConfigurationError("Gemini API key is required")

    client = genai.Client(api_key=settings.GEMINI_API_KEY, http_options=_http_options(settings))
    log.info("initialized", backend="gemini", model=settings.IMAGE_MODEL)
    return GenAIImageClient(
        client,
        settings.IMAGE_MODEL,
        retry,
        timeout_seconds=settings.API_TIMEOUT_SECONDS,
        logger=log,
    )
