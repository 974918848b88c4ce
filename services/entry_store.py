"""Persistence contract for food entries.

Entries are validated completely before the single insert; once stored they
are never modified, only deleted. Queries go through an `EntryFilter` built
and validated up front, and always return newest entries first.
"""

import json
import re
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional

from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from core.logger import get_logger
from core.repository import BaseRepository
from database.models import DEFAULT_MEAL, MEAL_TYPES, FoodEntry, User
from services.aggregation import DateRange
from services.nutrient_estimator import NutrientProfile, estimate, validate_profile

logger = get_logger("services.entry_store")

MAX_FOOD_TEXT_LENGTH = 500
MAX_PAGE_SIZE = 500
_ID_PATTERN = re.compile(r"^[0-9a-f]{32}$")


def validate_id(value: str, field: str = "id") -> str:
    """Reject ids that are not 32 lowercase hex characters."""
    if not isinstance(value, str) or not _ID_PATTERN.match(value):
        raise ValidationError(f"Invalid {field} format", field=field)
    return value


def normalize_food_text(food_text: Optional[str]) -> str:
    text = (food_text or "").strip()
    if not text:
        raise ValidationError("Food text is required", field="foodText")
    if len(text) > MAX_FOOD_TEXT_LENGTH:
        raise ValidationError(
            f"Food text too long (maximum {MAX_FOOD_TEXT_LENGTH} characters)", field="foodText"
        )
    return text


def validate_meal(meal: Optional[str]) -> str:
    if meal is None:
        return DEFAULT_MEAL
    if meal not in MEAL_TYPES:
        raise ValidationError(f"meal must be one of {', '.join(MEAL_TYPES)}", field="meal")
    return meal


@dataclass(frozen=True)
class EntryFilter:
    """Which entries to return: one user, optionally one window and one meal."""

    user_id: str
    date_range: Optional[DateRange] = None
    meal: Optional[str] = None

    def __post_init__(self):
        validate_id(self.user_id, "userId")
        if self.meal is not None:
            validate_meal(self.meal)


@dataclass(frozen=True)
class Pagination:
    limit: int = 50
    offset: int = 0

    def __post_init__(self):
        if not 1 <= self.limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"limit must be between 1 and {MAX_PAGE_SIZE}", field="limit")
        if self.offset < 0:
            raise ValidationError("offset must not be negative", field="offset")


def profile_of(entry: FoodEntry) -> NutrientProfile:
    """Rebuild the nutrient profile stored on an entry."""
    return NutrientProfile(
        calories=entry.calories,
        protein=entry.protein,
        carbs=entry.carbs,
        fat=entry.fat,
        sugar=entry.sugar,
        confidence=entry.confidence,
        ingredients=tuple(entry.ingredient_list),
    )


class EntryStore(BaseRepository[FoodEntry]):
    """Food entry operations on top of a SQLAlchemy session."""

    def __init__(self, session: Session):
        super().__init__(FoodEntry, session)

    def create_entry(
        self,
        user_id: str,
        food_text: str,
        meal: Optional[str] = None,
        profile: Optional[NutrientProfile] = None,
        created_at: Optional[datetime] = None,
    ) -> FoodEntry:
        """Validate, estimate (unless a profile is given) and insert one entry.

        Raises:
            ValidationError: If text, meal or profile break the entry invariants.
            NotFoundError: If the user does not exist or is deactivated.
        """
        validate_id(user_id, "userId")
        text = normalize_food_text(food_text)
        meal = validate_meal(meal)
        profile = validate_profile(profile if profile is not None else estimate(text))

        user = self.session.get(User, user_id)
        if user is None or not user.is_active:
            raise NotFoundError("User", user_id)

        entry = FoodEntry(
            user_id=user_id,
            food_text=text,
            calories=profile.calories,
            protein=profile.protein,
            carbs=profile.carbs,
            fat=profile.fat,
            sugar=profile.sugar,
            confidence=profile.confidence,
            ingredients=json.dumps(list(profile.ingredients)),
            meal=meal,
        )
        if created_at is not None:
            entry.created_at = created_at
            entry.updated_at = created_at
        entry = self.create(entry)
        logger.info("Food entry %s logged for user %s (%s kcal, %s)", entry.id, user_id, entry.calories, meal)
        return entry

    def _filtered(self, entry_filter: EntryFilter):
        query = self.session.query(FoodEntry).filter(FoodEntry.user_id == entry_filter.user_id)
        if entry_filter.date_range is not None:
            query = query.filter(FoodEntry.created_at >= entry_filter.date_range.start)
            if entry_filter.date_range.end is not None:
                query = query.filter(FoodEntry.created_at < entry_filter.date_range.end)
        if entry_filter.meal is not None:
            query = query.filter(FoodEntry.meal == entry_filter.meal)
        return query

    def find_entries(self, entry_filter: EntryFilter, pagination: Optional[Pagination] = None) -> List[FoodEntry]:
        """Entries matching the filter, newest first."""
        pagination = pagination or Pagination()
        return (
            self._filtered(entry_filter)
            .order_by(FoodEntry.created_at.desc(), FoodEntry.id.desc())
            .offset(pagination.offset)
            .limit(pagination.limit)
            .all()
        )

    def all_entries(self, entry_filter: EntryFilter) -> List[FoodEntry]:
        """Every entry matching the filter, newest first, for aggregation."""
        return self._filtered(entry_filter).order_by(FoodEntry.created_at.desc()).all()

    def count_entries(self, entry_filter: EntryFilter) -> int:
        return self._filtered(entry_filter).count()

    def delete_entry(self, entry_id: str, user_id: Optional[str] = None) -> None:
        """Delete one entry, optionally only when it belongs to `user_id`.

        Raises:
            ValidationError: If the id is malformed.
            NotFoundError: If no entry has this id (including a repeated delete)
                or it belongs to another user.
        """
        validate_id(entry_id)
        entry = self.get_by_id(entry_id)
        if entry is None or (user_id is not None and entry.user_id != user_id):
            raise NotFoundError("Food entry", entry_id)
        self.delete(entry)
        logger.info("Food entry %s deleted", entry_id)
