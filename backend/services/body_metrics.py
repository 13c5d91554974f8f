"""BMI arithmetic and WHO category bands."""

from enum import Enum


class BMICategory(str, Enum):
    SEVERE_THINNESS = "severe-thinness"
    MODERATE_THINNESS = "moderate-thinness"
    MILD_THINNESS = "mild-thinness"
    NORMAL = "normal"
    OVERWEIGHT = "overweight"
    OBESITY_1 = "obesity-1"
    OBESITY_2 = "obesity-2"
    OBESITY_3 = "obesity-3"

    @property
    def display_name(self) -> str:
        return _DISPLAY_NAMES[self]


_DISPLAY_NAMES = {
    BMICategory.SEVERE_THINNESS: "Severe thinness",
    BMICategory.MODERATE_THINNESS: "Moderate thinness",
    BMICategory.MILD_THINNESS: "Mild thinness",
    BMICategory.NORMAL: "Normal weight",
    BMICategory.OVERWEIGHT: "Overweight",
    BMICategory.OBESITY_1: "Obesity, Class 1",
    BMICategory.OBESITY_2: "Obesity, Class 2",
    BMICategory.OBESITY_3: "Obesity, Class 3",
}

# Exclusive upper bounds, ascending. Anything >= 40.0 is obesity-3.
_UPPER_BOUNDS: tuple[tuple[float, BMICategory], ...] = (
    (16.0, BMICategory.SEVERE_THINNESS),
    (17.0, BMICategory.MODERATE_THINNESS),
    (18.5, BMICategory.MILD_THINNESS),
    (25.0, BMICategory.NORMAL),
    (30.0, BMICategory.OVERWEIGHT),
    (35.0, BMICategory.OBESITY_1),
    (40.0, BMICategory.OBESITY_2),
)

BMI_REFERENCE = (
    "BMI Categories: Severe thinness (<16.0), Moderate thinness (16.0-16.9), "
    "Mild thinness (17.0-18.49), Normal weight (18.5-24.9), Overweight (25.0-29.9), "
    "Obesity Class 1 (30.0-34.9), Obesity Class 2 (35.0-39.9), Obesity Class 3 (>=40.0)"
)


def calculate_bmi(height_cm: float, weight_kg: float) -> float:
    """Raw BMI: weight / height_m^2."""
    if height_cm <= 0:
        raise ValueError("height_cm must be positive")
    height_m = height_cm / 100
    return weight_kg / (height_m * height_m)


def rounded_bmi(height_cm: float, weight_kg: float) -> float:
    """BMI rounded to one decimal, as shown to users and the model."""
    return round(calculate_bmi(height_cm, weight_kg), 1)


def classify_bmi(bmi: float) -> BMICategory:
    for upper, category in _UPPER_BOUNDS:
        if bmi < upper:
            return category
    return BMICategory.OBESITY_3
