"""
Body shape generation orchestrator.

Fans out one image call per target weight, tolerates per-target failures and
folds the outcomes into a single ``GenerationResult``. Callers always get a
result object back; generation-stage errors never escape as exceptions.
"""

import asyncio
import time
from dataclasses import dataclass
from typing import List, Optional, Sequence

from config import NoChangePolicy
from schemas.body_shape import (
    GeneratedImage,
    GenerationMetadata,
    GenerationOptions,
    GenerationResult,
    Subject,
    TargetWeight,
)
from services.ai_client import AIClientAdapter, create_ai_client
from services.errors import (
    BodyShapeError,
    ConversionError,
    GenerationError,
    InputError,
    NoChangeNeededError,
    sanitize_public_error_message,
)
from services.image_validation import (
    encode_image_base64,
    normalize_image_mime_type,
    read_image_dimensions,
    sniff_image_mime_type,
)
from services.location_resolver import GeoInfo
from services.prompt_composer import compose_prompt
from services.structured_logging import StructuredLogger, get_structured_logger

PASSTHROUGH_MODEL = "original-image"
DEFAULT_OUTPUT_MIME_TYPE = "image/png"
MIN_TARGETS = 1
MAX_TARGETS = 2
MIN_CONFIDENCE = 0.8
FAILURE_CONFIDENCE_PENALTY = 0.2

ALL_FAILED_MESSAGE = "All image generations failed"
NO_CHANGE_MESSAGE = (
    "Body shape generation is not needed when target weight equals current weight"
)


def compute_confidence(failed_count: int, target_count: int) -> float:
    """``max(0.8, 1.0 - failed/total * 0.2)``; 1.0 when nothing was attempted."""
    if target_count <= 0:
        return 1.0
    return max(MIN_CONFIDENCE, 1.0 - (failed_count / target_count) * FAILURE_CONFIDENCE_PENALTY)


@dataclass(frozen=True)
class _TargetOutcome:
    index: int
    image: Optional[GeneratedImage] = None
    error: Optional[str] = None


class BodyShapeOrchestrator:
    def __init__(
        self,
        ai_client: AIClientAdapter,
        *,
        model: Optional[str] = None,
        no_change_policy: NoChangePolicy = NoChangePolicy.PASSTHROUGH,
        default_width: int = 1024,
        default_height: int = 1024,
        logger: Optional[StructuredLogger] = None,
    ):
        self._ai_client = ai_client
        self.model = model or getattr(ai_client, "model", "unknown")
        self.no_change_policy = no_change_policy
        self.default_width = default_width
        self.default_height = default_height
        self._log = logger or get_structured_logger("orchestrator")

    async def generate_for_targets(
        self,
        subject: Subject,
        targets: Sequence[TargetWeight],
        options: Optional[GenerationOptions],
        image_bytes: bytes,
        mime_type: str,
    ) -> GenerationResult:
        options = options or GenerationOptions()
        started = time.perf_counter()

        try:
            self._check_targets(targets)
            source_base64 = encode_image_base64(image_bytes)
            mime_type = self._source_mime_type(image_bytes, mime_type)
        except BodyShapeError as e:
            self._log.warning("rejected", code=e.code, error=e.message)
            return GenerationResult.failure(e.message, e.code)

        no_change = [i for i, t in enumerate(targets) if t.weight_kg == subject.current_weight_kg]
        change = [i for i in range(len(targets)) if i not in no_change]

        if no_change and self.no_change_policy == NoChangePolicy.REJECT:
            self._log.warning("rejected", code=NoChangeNeededError.code, no_change=len(no_change))
            return GenerationResult.failure(NO_CHANGE_MESSAGE, NoChangeNeededError.code)

        self._log.info(
            "fan_out",
            targets=len(targets),
            change_targets=len(change),
            passthrough_targets=len(no_change),
            model=self.model,
        )

        slots: List[Optional[GeneratedImage]] = [None] * len(targets)
        if no_change:
            passthrough = self._passthrough_image(source_base64, image_bytes, mime_type)
            for i in no_change:
                slots[i] = passthrough.model_copy(update={"label": targets[i].label})

        if not change:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            self._log.info("completed", images=len(no_change), model=PASSTHROUGH_MODEL)
            return GenerationResult.ok(
                images=[img for img in slots if img is not None],
                metadata=GenerationMetadata(
                    processing_time_ms=elapsed_ms,
                    confidence=1.0,
                    model=PASSTHROUGH_MODEL,
                ),
            )

        outcomes = await asyncio.gather(
            *(
                self._generate_one(i, subject, targets[i], options, image_bytes, mime_type)
                for i in change
            )
        )
        elapsed_ms = int((time.perf_counter() - started) * 1000)

        failed = [o for o in outcomes if o.image is None]
        for outcome in outcomes:
            if outcome.image is not None:
                slots[outcome.index] = outcome.image

        if len(failed) == len(change):
            self._log.error(
                "all_failed",
                targets=len(change),
                processing_time_ms=elapsed_ms,
                last_error=failed[-1].error,
            )
            return GenerationResult.failure(ALL_FAILED_MESSAGE, GenerationError.code)

        confidence = compute_confidence(len(failed), len(change))
        self._log.info(
            "completed",
            images=len(change) - len(failed),
            partial_failures=len(failed) or None,
            confidence=confidence,
            processing_time_ms=elapsed_ms,
        )
        return GenerationResult.ok(
            images=[img for img in slots if img is not None],
            metadata=GenerationMetadata(
                processing_time_ms=elapsed_ms,
                confidence=confidence,
                model=self.model,
                partial_failures=len(failed) or None,
            ),
        )

    @staticmethod
    def _check_targets(targets: Sequence[TargetWeight]) -> None:
        if not (MIN_TARGETS <= len(targets) <= MAX_TARGETS):
            raise InputError(
                f"Targets array must have {MIN_TARGETS} to {MAX_TARGETS} elements",
                field_errors={"targets": ["Targets array must have 1 to 2 elements"]},
            )

    def _source_mime_type(self, image_bytes: bytes, claimed_mime_type: str) -> str:
        """Return the MIME type sniffed from the payload; the claimed type is only a hint."""
        sniffed = sniff_image_mime_type(image_bytes)
        if sniffed is None:
            raise ConversionError("Unsupported or unreadable image data")
        claimed = normalize_image_mime_type(claimed_mime_type)
        if claimed != sniffed:
            self._log.debug("mime_corrected", claimed=claimed or None, sniffed=sniffed)
        return sniffed

    def _passthrough_image(self, source_base64: str, image_bytes: bytes, mime_type: str) -> GeneratedImage:
        dimensions = read_image_dimensions(image_bytes)
        if dimensions is None:
            self._log.debug("passthrough_dimensions_unknown", image_bytes=len(image_bytes))
        return GeneratedImage(
            base64=source_base64,
            mime_type=mime_type,
            width=dimensions[0] if dimensions else self.default_width,
            height=dimensions[1] if dimensions else self.default_height,
        )

    async def _generate_one(
        self,
        index: int,
        subject: Subject,
        target: TargetWeight,
        options: GenerationOptions,
        image_bytes: bytes,
        mime_type: str,
    ) -> _TargetOutcome:
        try:
            prompt = compose_prompt(subject, target, options)
            generation_config = {"seed": options.seed} if options.seed is not None else None
            result = await self._ai_client.generate_image(
                prompt, image_bytes, mime_type, generation_config
            )
            if not result.success or not result.image_base64:
                raise GenerationError(result.error or "No image generated in response")
        except Exception as e:
            message = sanitize_public_error_message(str(e), fallback="Image generation failed")
            self._log.warning(
                "target_failed",
                target_index=index,
                label=target.label,
                error_type=type(e).__name__,
                error=message,
            )
            return _TargetOutcome(index=index, error=message)

        image = GeneratedImage(
            label=target.label,
            base64=result.image_base64,
            mime_type=result.mime_type or options.return_mime_type or DEFAULT_OUTPUT_MIME_TYPE,
            width=result.width or self.default_width,
            height=result.height or self.default_height,
        )
        self._log.info("target_succeeded", target_index=index, label=target.label)
        return _TargetOutcome(index=index, image=image)


def create_orchestrator(
    settings,
    geo: Optional[GeoInfo] = None,
    logger: Optional[StructuredLogger] = None,
) -> BodyShapeOrchestrator:
    """Wire configuration, region resolution and the image client together."""
    log = logger or get_structured_logger("orchestrator")
    client = create_ai_client(settings, geo=geo, logger=log.bind("ai_client"))
    return BodyShapeOrchestrator(
        client,
        model=settings.IMAGE_MODEL,
        no_change_policy=settings.NO_CHANGE_POLICY,
        default_width=settings.DEFAULT_IMAGE_WIDTH,
        default_height=settings.DEFAULT_IMAGE_HEIGHT,
        logger=log,
    )
