"""Keyword based nutrient estimation for free-text food descriptions.

The estimator is a fixed, ordered rule table: the lower-cased text is checked
against each rule's keywords and the first rule with a keyword contained in
the text supplies the profile. Rule order is the tie-break, so "pizza pasta"
is always scored as pizza. Text that matches nothing gets `DEFAULT_PROFILE`.
"""

import math
from dataclasses import dataclass, field
from typing import Dict, Optional, Tuple

from core.exceptions import ValidationError
from core.logger import get_logger

logger = get_logger("services.nutrient_estimator")


@dataclass(frozen=True)
class NutrientProfile:
    """Estimated nutrition facts for one food entry (kcal and grams)."""

    calories: float
    protein: float
    carbs: float
    fat: float
    sugar: float
    confidence: float
    ingredients: Tuple[str, ...] = field(default_factory=tuple)

    def to_dict(self) -> Dict:
        return {
            "calories": self.calories,
            "protein": self.protein,
            "carbs": self.carbs,
            "fat": self.fat,
            "sugar": self.sugar,
            "confidence": self.confidence,
            "ingredients": list(self.ingredients),
        }


@dataclass(frozen=True)
class KeywordRule:
    """Maps a set of keywords to a fixed nutrient profile."""

    name: str
    keywords: Tuple[str, ...]
    profile: NutrientProfile

    def matches(self, lowered_text: str) -> bool:
        return any(keyword in lowered_text for keyword in self.keywords)


DEFAULT_PROFILE = NutrientProfile(
    calories=100, protein=5, carbs=15, fat=3, sugar=5, confidence=0.85, ingredients=()
)

RULES: Tuple[KeywordRule, ...] = (
    KeywordRule(
        "pizza",
        ("pizza",),
        NutrientProfile(650, 25, 80, 25, 5, 0.85, ("dough", "cheese", "sauce")),
    ),
    KeywordRule(
        "pasta",
        ("pasta", "nudeln"),
        NutrientProfile(520, 18, 75, 15, 8, 0.88, ("pasta", "sauce")),
    ),
    KeywordRule(
        "apple",
        ("apfel", "apple"),
        NutrientProfile(80, 0.5, 20, 0, 15, 0.95, ("apple",)),
    ),
    KeywordRule(
        "cereal",
        ("müsli", "cereal"),
        NutrientProfile(340, 12, 58, 8, 22, 0.92, ("oats", "milk")),
    ),
    KeywordRule(
        "salad",
        ("salat", "salad"),
        NutrientProfile(150, 8, 12, 8, 6, 0.78, ("lettuce", "vegetables", "dressing")),
    ),
)


def match_rule(food_text: str, rules: Tuple[KeywordRule, ...] = RULES) -> Optional[KeywordRule]:
    """Return the first rule matching the text, or None."""
    lowered = (food_text or "").lower()
    for rule in rules:
        if rule.matches(lowered):
            return rule
    return None


def estimate(food_text: str, rules: Tuple[KeywordRule, ...] = RULES) -> NutrientProfile:
    """Estimate the nutrient profile of a free-text food description.

    Never raises for empty text; the default profile is returned instead.
    """
    rule = match_rule(food_text, rules)
    if rule is None:
        logger.debug("No estimator rule matched %r, using default profile", food_text)
        return DEFAULT_PROFILE
    logger.debug("Estimator rule %s matched %r", rule.name, food_text)
    return rule.profile


def validate_profile(profile: NutrientProfile) -> NutrientProfile:
    """Check the profile invariants, raising ValidationError on the first violation."""
    for name in ("calories", "protein", "carbs", "fat", "sugar"):
        value = getattr(profile, name)
        if not isinstance(value, (int, float)) or not math.isfinite(value) or value < 0:
            raise ValidationError(f"{name} must be a non-negative number", field=f"nutrientProfile.{name}")
    confidence = profile.confidence
    if not isinstance(confidence, (int, float)) or not 0 <= confidence <= 1:
        raise ValidationError("confidence must be between 0 and 1", field="nutrientProfile.confidence")
    if any(not isinstance(tag, str) for tag in profile.ingredients):
        raise ValidationError("ingredients must be strings", field="nutrientProfile.ingredients")
    return profile


def macro_percentages(profile: NutrientProfile) -> Dict[str, int]:
    """Share of protein, carbs and fat in the macro gram total, in whole percent."""
    total = profile.protein + profile.carbs + profile.fat
    if total == 0:
        return {"protein": 0, "carbs": 0, "fat": 0}
    return {
        "protein": round(profile.protein / total * 100),
        "carbs": round(profile.carbs / total * 100),
        "fat": round(profile.fat / total * 100),
    }
