"""User API router.

Provides registration, profile reads with entry statistics, partial updates
(recomputing maintenance calories when biometrics change), soft deletion,
and the per-user calorie balance and daily trend views.
"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional
from api.food_entries import as_utc, parse_date_filter
from core.config import Settings, get_settings
from core.exceptions import ValidationError
from core.logger import get_logger
from database.deps import get_db_read, get_db_write
from database.models import User
from schemas.user_schema import (
    CalorieBalanceResponse,
    CalorieTrendResponse,
    PaginationInfo,
    RecentEntry,
    TrendPoint,
    UserCreateRequest,
    UserDeactivatedResponse,
    UserProfileResponse,
    UserResponse,
    UserStatsResponse,
    UserSummary,
    UsersListResponse,
    UserUpdateRequest,
)
from services import aggregation
from services.entry_store import EntryFilter, EntryStore, Pagination
from services.nutrition_calculator import nutrition_calculator
from services.user_store import UserStore

logger = get_logger("api.users")
router = APIRouter(prefix="/users", tags=["users"])


def user_to_response(user: User) -> UserResponse:
    return UserResponse(
        id=user.id,
        username=user.username,
        email=user.email,
        age=user.age,
        gender=user.gender,
        weight=user.weight,
        height=user.height,
        activity_level=user.activity_level,
        maintenance_calories=user.maintenance_calories,
        bmi=round(nutrition_calculator.calculate_bmi(user.height, user.weight), 1),
        is_active=user.is_active,
        is_admin=user.is_admin,
        created_at=as_utc(user.created_at),
        updated_at=as_utc(user.updated_at),
    )


def user_to_summary(user: User) -> UserSummary:
    return UserSummary(
        id=user.id,
        username=user.username,
        email=user.email,
        is_active=user.is_active,
        is_admin=user.is_admin,
        created_at=as_utc(user.created_at),
    )


@router.get("", response_model=UsersListResponse)
def list_users(
    search: Optional[str] = None,
    active: Optional[bool] = None,
    admin: Optional[bool] = None,
    limit: int = Query(20, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db_read),
):
    """Return a page of users with overall and active user counts.

    Args:
        search: Case-insensitive substring of username or email.
        active: Only active (true) or only deactivated (false) users.
        admin: When true, only administrators.
        limit (int): Maximum number of users to return.
        offset (int): Number of users to skip (pagination).
        db: Read-only SQLAlchemy session injected by dependency.
    """
    store = UserStore(db)
    users, matching = store.list_users(search=search, active=active, admin=admin, limit=limit, offset=offset)
    return UsersListResponse(
        users=[user_to_summary(u) for u in users],
        total_users=store.count_users(),
        active_users=store.count_users(active=True),
        pagination=PaginationInfo(limit=limit, offset=offset, has_more=offset + len(users) < matching),
    )


@router.post("", response_model=UserSummary, status_code=201)
def create_user(payload: UserCreateRequest, db: Session = Depends(get_db_write)):
    """Register a user and compute their maintenance calories.

    Raises:
        ValidationError: If a field is missing or out of range.
        ConflictError: If the username or email is already taken.
    """
    logger.info("Creating user: %s", payload.username)
    user = UserStore(db).create_user(payload.model_dump())
    return user_to_summary(user)


@router.get("/{user_id}", response_model=UserProfileResponse)
def get_user_profile(
    user_id: str,
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db_read),
):
    """Return the user with entry statistics and their most recent entries.

    Totals cover every entry; the daily average and active days cover the
    last `CALORA_STATS_WINDOW_DAYS` days.
    """
    user = UserStore(db).get_user(user_id)
    entry_store = EntryStore(db)
    entry_filter = EntryFilter(user_id=user.id)
    entries = entry_store.all_entries(entry_filter)
    stats = aggregation.user_stats(entries, window_days=settings.stats_window_days, tz=settings.timezone)
    recent = entry_store.find_entries(entry_filter, Pagination(limit=settings.recent_entries_limit))

    return UserProfileResponse(
        user=user_to_response(user),
        stats=UserStatsResponse(
            total_entries=stats.total_entries,
            total_calories=stats.total_calories,
            avg_calories_per_day=stats.avg_calories_per_day,
            days_active=stats.days_active,
        ),
        recent_entries=[
            RecentEntry(
                id=e.id,
                food_text=e.food_text,
                calories=e.calories,
                meal=e.meal,
                created_at=as_utc(e.created_at),
            )
            for e in recent
        ],
    )


@router.put("/{user_id}", response_model=UserResponse)
def update_user(user_id: str, payload: UserUpdateRequest, db: Session = Depends(get_db_write)):
    """Apply a partial profile update.

    Raises:
        NotFoundError: If the user does not exist.
        ConflictError: If the new username or email is taken.
    """
    user = UserStore(db).update_user(user_id, payload.model_dump(exclude_unset=True))
    return user_to_response(user)


@router.delete("/{user_id}", response_model=UserDeactivatedResponse)
def deactivate_user(user_id: str, db: Session = Depends(get_db_write)):
    """Soft delete: the user is marked inactive and their entries are kept."""
    user = UserStore(db).deactivate_user(user_id)
    return UserDeactivatedResponse(message="User deactivated successfully", id=user.id)


@router.get("/{user_id}/balance", response_model=CalorieBalanceResponse)
def get_calorie_balance(
    user_id: str,
    date: str = Query("today", examples=["today", "2026-10-19"]),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db_read),
):
    """Compare the calories consumed on a day with the user's maintenance calories."""
    if date == "all":
        raise ValidationError("balance needs a single day", field="date")
    user = UserStore(db).get_user(user_id)
    window = parse_date_filter(date, settings)
    entries = EntryStore(db).all_entries(EntryFilter(user_id=user.id, date_range=window))
    balance = aggregation.calorie_balance(aggregation.total_calories(entries), user.maintenance_calories)
    if balance is None:
        raise ValidationError("User has no maintenance calories", field="maintenanceCalories")
    return CalorieBalanceResponse(
        date=aggregation.local_date(window.start, settings.timezone).isoformat(),
        maintenance_calories=balance.maintenance_calories,
        consumed_calories=balance.consumed_calories,
        balance=balance.balance,
        percentage=balance.percentage,
    )


@router.get("/{user_id}/trend", response_model=CalorieTrendResponse)
def get_calorie_trend(
    user_id: str,
    days: int = Query(7, ge=1, le=365),
    settings: Settings = Depends(get_settings),
    db: Session = Depends(get_db_read),
):
    """Per-day calorie totals for the last `days` calendar days (today included), oldest first."""
    user = UserStore(db).get_user(user_id)
    window = aggregation.last_days(days, settings.timezone)
    entries = EntryStore(db).all_entries(EntryFilter(user_id=user.id, date_range=window))
    points = [
        TrendPoint(date=p["date"].isoformat(), calories=p["calories"], entry_count=p["entry_count"])
        for p in aggregation.daily_totals(entries, settings.timezone)
    ]
    return CalorieTrendResponse(days=days, points=points)
