"""
Body shape transformation prompt composer.

Turns (subject, target, options) into a structured, human-auditable
instruction for the image model. Output is fully deterministic: the only
source of variation in generation is the optional seed, which travels to
the backend separately.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from schemas.body_shape import GenerationOptions, Subject, TargetWeight
from services.body_metrics import BMI_REFERENCE, BMICategory, classify_bmi, rounded_bmi
from services.errors import NoChangeNeededError


class Direction(str, Enum):
    LIGHTER = "lighter"
    HEAVIER = "heavier"


class Intensity(str, Enum):
    SUBTLE = "subtle"
    MODERATE = "moderate"
    DRAMATIC = "dramatic"


WEIGHT_LOSS_DESCRIPTION = "Fat is reduced. The body becomes slimmer."
WEIGHT_GAIN_DESCRIPTION = "The body becomes fuller."

PRESERVATION_INSTRUCTION = (
    "No changes to any element other than his/her physique will be permitted. "
    "Face, clothing, pose and lighting must be preserved exactly."
)

SAFETY_INSTRUCTION = (
    "Keep the result anatomically plausible and healthy-looking. "
    "Do not exaggerate beyond the target BMI."
)

BACKGROUND_PRESERVE_INSTRUCTION = (
    "Keep the background fully unchanged wherever the body does not overlap it."
)
BACKGROUND_COMPOSITION_INSTRUCTION = (
    "Maintain the overall composition and framing; focus the edit on the body."
)

_DIRECTION_VERBS = {
    Direction.LIGHTER: "slim down",
    Direction.HEAVIER: "fill out",
}

_INTENSITY_TEMPLATES = {
    Intensity.DRAMATIC: (
        "Apply a dramatic transformation: {adverb} {verb} the whole figure, "
        "including waist, limbs, neck and facial fullness."
    ),
    Intensity.MODERATE: (
        "Apply a moderate transformation: {adverb} {verb} the waist, arms and legs."
    ),
    Intensity.SUBTLE: (
        "Apply a subtle transformation: {adverb} {verb} the body contours only."
    ),
}

PROMPT_TEMPLATE = """<subject>
Height: {height} cm, Weight: {current_weight} kg (BMI: {current_bmi}, {current_category})
</subject>

<transformation>
Target weight: {target_weight} kg (Target BMI: {target_bmi}, {target_category})
Change: {weight_diff} kg {direction}. {description}
{intensity_instruction}
</transformation>

<composition>
{background_instruction}
</composition>

<bmi_reference>
{bmi_reference}
</bmi_reference>

<constraints>
{constraints}
</constraints>"""


def _fmt(value: float) -> str:
    return f"{round(value, 1):g}"


def intensity_for_bmi_delta(bmi_delta: float) -> Intensity:
    normalized = min(abs(bmi_delta) / 10, 1.0)
    if normalized > 0.8:
        return Intensity.DRAMATIC
    if normalized > 0.5:
        return Intensity.MODERATE
    return Intensity.SUBTLE


def strength_adverb(strength: float) -> str:
    if strength > 0.8:
        return "dramatically"
    if strength > 0.5:
        return "significantly"
    return "moderately"


@dataclass(frozen=True)
class TransformationDescription:
    current_bmi: float
    current_category: BMICategory
    target_bmi: float
    target_category: BMICategory
    weight_diff_kg: float
    direction: Direction
    intensity: Intensity


def describe_transformation(subject: Subject, target: TargetWeight) -> TransformationDescription:
    """
    Compute BMI values, categories and the direction/intensity of change.

    Raises NoChangeNeededError when the target equals the current weight;
    callers must route such targets around the composer.
    """
    weight_diff = abs(target.weight_kg - subject.current_weight_kg)
    if weight_diff == 0:
        raise NoChangeNeededError(
            "No body shape change needed when target weight equals current weight"
        )

    current_bmi = rounded_bmi(subject.height_cm, subject.current_weight_kg)
    target_bmi = rounded_bmi(subject.height_cm, target.weight_kg)
    direction = (
        Direction.LIGHTER
        if target.weight_kg < subject.current_weight_kg
        else Direction.HEAVIER
    )
    return TransformationDescription(
        current_bmi=current_bmi,
        current_category=classify_bmi(current_bmi),
        target_bmi=target_bmi,
        target_category=classify_bmi(target_bmi),
        weight_diff_kg=weight_diff,
        direction=direction,
        intensity=intensity_for_bmi_delta(target_bmi - current_bmi),
    )


def compose_prompt(
    subject: Subject,
    target: TargetWeight,
    options: Optional[GenerationOptions] = None,
) -> str:
    options = options or GenerationOptions()
    info = describe_transformation(subject, target)

    intensity_instruction = _INTENSITY_TEMPLATES[info.intensity].format(
        adverb=strength_adverb(options.strength),
        verb=_DIRECTION_VERBS[info.direction],
    )
    if info.intensity is Intensity.DRAMATIC:
        intensity_instruction = f"{intensity_instruction} {SAFETY_INSTRUCTION}"

    return PROMPT_TEMPLATE.format(
        height=_fmt(subject.height_cm),
        current_weight=_fmt(subject.current_weight_kg),
        current_bmi=_fmt(info.current_bmi),
        current_category=info.current_category.display_name,
        target_weight=_fmt(target.weight_kg),
        target_bmi=_fmt(info.target_bmi),
        target_category=info.target_category.display_name,
        weight_diff=_fmt(info.weight_diff_kg),
        direction=info.direction.value,
        description=(
            WEIGHT_LOSS_DESCRIPTION
            if info.direction is Direction.LIGHTER
            else WEIGHT_GAIN_DESCRIPTION
        ),
        intensity_instruction=intensity_instruction,
        background_instruction=(
            BACKGROUND_PRESERVE_INSTRUCTION
            if options.preserve_background
            else BACKGROUND_COMPOSITION_INSTRUCTION
        ),
        bmi_reference=BMI_REFERENCE,
        constraints=PRESERVATION_INSTRUCTION,
    )
