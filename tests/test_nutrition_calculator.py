"""Tests for BMR and maintenance calorie calculation."""
import math

import pytest

from core.exceptions import ValidationError
from services.nutrition_calculator import nutrition_calculator, round_half_up


def test_bmr_female():
    """Test Mifflin-St Jeor BMR for a female profile."""
    # 600 + 1031.25 - 125 - 161
    assert nutrition_calculator.calculate_bmr(60, 165, 25, "female") == 1345.25


def test_bmr_male():
    """Test Mifflin-St Jeor BMR for a male profile."""
    assert nutrition_calculator.calculate_bmr(75, 180, 30, "male") == 1730


def test_maintenance_is_deterministic():
    """Test maintenance calories for numeric and named activity levels."""
    assert nutrition_calculator.calculate_maintenance(1439, 1.55) == 2230
    # 1345.25 * 1.55 = 2085.1375
    assert nutrition_calculator.maintenance_for(60, 165, 25, "female", 1.55) == 2085
    assert nutrition_calculator.maintenance_for(75, 180, 30, "male", "sedentary") == 2076


def test_maintenance_rounds_half_up():
    """Test that maintenance rounds halves up."""
    # Python's round() would give 1234 here
    assert nutrition_calculator.calculate_maintenance(1234.5, 1.0) == 1235
    assert round_half_up(2.5) == 3
    assert round_half_up(2.4999) == 2


@pytest.mark.parametrize("value", [math.nan, math.inf, -math.inf])
def test_non_finite_inputs_are_rejected(value):
    """Test that NaN and infinite inputs are rejected."""
    with pytest.raises(ValidationError):
        nutrition_calculator.calculate_bmr(value, 165, 25, "female")
    with pytest.raises(ValidationError):
        nutrition_calculator.calculate_maintenance(1439, value)


def test_unknown_gender_is_rejected():
    """Test that an unknown gender is rejected by field."""
    with pytest.raises(ValidationError) as exc_info:
        nutrition_calculator.calculate_bmr(60, 165, 25, "other")
    assert exc_info.value.details == {"field": "gender"}


def test_activity_presets_and_numbers():
    """Test activity presets, numbers and numeric strings."""
    assert nutrition_calculator.resolve_activity_factor("moderately_active") == 1.55
    assert nutrition_calculator.resolve_activity_factor(1.725) == 1.725
    assert nutrition_calculator.resolve_activity_factor("1.3") == 1.3
    with pytest.raises(ValidationError):
        nutrition_calculator.resolve_activity_factor("couch")


def test_bmi():
    """Test BMI and the zero-height guard."""
    assert round(nutrition_calculator.calculate_bmi(180, 75), 1) == 23.1
    assert nutrition_calculator.calculate_bmi(0, 75) == 0.0
