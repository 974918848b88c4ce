"""Food entries API router.

Logging a food description runs the nutrient estimator and stores the entry
for the calling user. Listing supports day and meal filters and returns the
calorie total and per-meal counts of the returned page alongside the entries.
"""

from datetime import date, timezone
from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from core.config import Settings, get_settings
from core.exceptions import AuthenticationError, ValidationError
from core.identity import optional_caller_id, require_caller_id
from core.logger import get_logger
from database.deps import get_db_read, get_db_write
from database.models import FoodEntry
from schemas.food_entry_schema import (
    FoodEntryCreateRequest,
    FoodEntryDeletedResponse,
    FoodEntryListResponse,
    FoodEntryResponse,
    NutrientProfileSchema,
)
from services import aggregation
from services.aggregation import DateRange
from services.entry_store import EntryFilter, EntryStore, Pagination, profile_of, validate_id
from services.nutrient_estimator import macro_percentages

logger = get_logger("api.food_entries")
router = APIRouter(prefix="/food-entries", tags=["food-entries"])


def as_utc(moment):
    """Attach the UTC zone to a stored naive timestamp for serialization."""
    return moment.replace(tzinfo=timezone.utc)


def entry_to_response(entry: FoodEntry) -> FoodEntryResponse:
    """Convert a stored entry to its API representation."""
    profile = profile_of(entry)
    return FoodEntryResponse(
        id=entry.id,
        user_id=entry.user_id,
        food_text=entry.food_text,
        nutrient_profile=NutrientProfileSchema(**profile.to_dict()),
        macro_percentages=macro_percentages(profile),
        meal=entry.meal,
        created_at=as_utc(entry.created_at),
    )


def parse_date_filter(value: Optional[str], settings: Settings) -> Optional[DateRange]:
    """Turn the `date` query value into a UTC window.

    `today` is the current local calendar day, an ISO date (YYYY-MM-DD) is
    that local day, and `all` or no value means no date restriction.
    """
    if value is None or value == "all":
        return None
    if value == "today":
        return aggregation.today_range(settings.timezone)
    try:
        day = date.fromisoformat(value)
    except ValueError:
        raise ValidationError("date must be 'today', 'all' or an ISO date (YYYY-MM-DD)", field="date")
    return aggregation.day_range(day, settings.timezone)


@router.post("", response_model=FoodEntryResponse, status_code=201)
def create_food_entry(
    payload: FoodEntryCreateRequest,
    caller_id: str = Depends(require_caller_id),
    db: Session = Depends(get_db_write),
):
    """Estimate nutrients for the submitted text and store the entry.

    Raises:
        ValidationError: If the text is empty or longer than 500 characters.
        NotFoundError: If the calling user does not exist or is deactivated.
    """
    entry = EntryStore(db).create_entry(caller_id, payload.food_text, payload.meal)
    return entry_to_response(entry)


@router.get("", response_model=FoodEntryListResponse)
def list_food_entries(
    user_id: Optional[str] = Query(None, alias="userId"),
    date: Optional[str] = Query(None, examples=["today"]),
    meal: Optional[str] = Query(None, examples=["lunch"]),
    limit: int = Query(50, ge=1, le=500),
    offset: int = Query(0, ge=0),
    caller_id: Optional[str] = Depends(optional_caller_id),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db_read),
):
    """Return a page of entries (newest first) with the page's calorie total.

    The user comes from the `userId` query parameter, falling back to the
    caller identity header.
    """
    target = user_id or caller_id
    if target is None:
        raise AuthenticationError("userId or X-User-Id header required")
    validate_id(target, "userId")

    entry_filter = EntryFilter(
        user_id=target,
        date_range=parse_date_filter(date, settings),
        meal=None if meal in (None, "all") else meal,
    )
    entries = EntryStore(db).find_entries(entry_filter, Pagination(limit=limit, offset=offset))
    logger.info("Listed %s entries for user %s (date=%s, meal=%s)", len(entries), target, date, meal)

    return FoodEntryListResponse(
        entries=[entry_to_response(e) for e in entries],
        total_calories=aggregation.total_calories(entries),
        entry_count=aggregation.entry_count(entries),
        by_meal=aggregation.group_by_meal(entries),
        date=date,
    )


@router.delete("/{entry_id}", response_model=FoodEntryDeletedResponse)
def delete_food_entry(
    entry_id: str,
    caller_id: str = Depends(require_caller_id),
    db: Session = Depends(get_db_write),
):
    """Delete one of the caller's entries.

    Raises:
        ValidationError: If the id is malformed.
        NotFoundError: If the entry does not exist or belongs to another user.
    """
    EntryStore(db).delete_entry(entry_id, user_id=caller_id)
    return FoodEntryDeletedResponse(message="Food entry deleted successfully", deleted_id=entry_id)
