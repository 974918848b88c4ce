"""Energy need calculation helpers.

Provides BMR (Mifflin-St Jeor), maintenance calories and BMI used when users
are created or update their biometrics, and by the maintenance calculator
endpoint.
"""

import math
from decimal import Decimal, ROUND_HALF_UP
from typing import Union
from core.exceptions import ValidationError
from core.logger import get_logger

logger = get_logger("services.nutrition_calculator")

ACTIVITY_FACTORS = {
    'sedentary': 1.2,
    'lightly_active': 1.375,
    'moderately_active': 1.55,
    'very_active': 1.725,
    'extremely_active': 1.9
}


def _require_finite(**values: float) -> None:
    for name, value in values.items():
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not math.isfinite(value):
            raise ValidationError(f"{name} must be a finite number", field=name)


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(Decimal(repr(value)).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class NutritionCalculator:
    """Class-based energy need calculator used across the app."""

    def calculate_bmi(self, height_cm: float, weight_kg: float) -> float:
        """Calculate BMI from height in cm and weight in kg."""
        h_m = height_cm / 100.0
        if h_m <= 0:
            return 0.0
        return weight_kg / (h_m * h_m)

    def calculate_bmr(self, weight_kg: float, height_cm: float, age: float, gender: str) -> float:
        """Calculate BMR using the Mifflin-St Jeor equation."""
        _require_finite(weight=weight_kg, height=height_cm, age=age)
        gender = (gender or "").lower()
        if gender == 'male':
            return 10 * weight_kg + 6.25 * height_cm - 5 * age + 5
        if gender == 'female':
            return 10 * weight_kg + 6.25 * height_cm - 5 * age - 161
        raise ValidationError("gender must be 'male' or 'female'", field="gender")

    def calculate_maintenance(self, bmr: float, activity_factor: float) -> int:
        """Scale BMR by the activity factor; rounds half up (1234.5 -> 1235)."""
        _require_finite(bmr=bmr, activity_factor=activity_factor)
        val = round_half_up(bmr * activity_factor)
        logger.debug("Maintenance calories calculated: %s", val)
        return val

    def resolve_activity_factor(self, activity: Union[float, str]) -> float:
        """Accept a numeric factor or one of the named activity presets."""
        if isinstance(activity, str):
            key = activity.strip().lower()
            if key in ACTIVITY_FACTORS:
                return ACTIVITY_FACTORS[key]
            try:
                activity = float(key)
            except ValueError:
                raise ValidationError(f"Unknown activity level '{activity}'", field="activity")
        _require_finite(activity=activity)
        return float(activity)

    def maintenance_for(self, weight_kg: float, height_cm: float, age: float, gender: str,
                        activity: Union[float, str]) -> int:
        """BMR and activity scaling in one step."""
        bmr = self.calculate_bmr(weight_kg, height_cm, age, gender)
        return self.calculate_maintenance(bmr, self.resolve_activity_factor(activity))


# export singleton
nutrition_calculator = NutritionCalculator()
__all__ = ["NutritionCalculator", "nutrition_calculator", "ACTIVITY_FACTORS", "round_half_up"]
