"""Calorie aggregation over sets of food entries.

Everything here is a stateless reduce over entries already loaded from the
entry store: totals, counts, per-meal breakdowns and per-calendar-day sums.
Entries only need `calories`, `meal` and `created_at` attributes, where
`created_at` is a naive UTC datetime (the storage convention).

Calendar days are taken in the configured time zone. Averages are over days
that have at least one entry, not over calendar days in the window.
"""

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone, tzinfo
from typing import Dict, Iterable, List, Optional

import pandas as pd

from core.config import local_timezone
from core.exceptions import ValidationError
from database.models import MEAL_TYPES
from services.nutrition_calculator import round_half_up


@dataclass(frozen=True)
class DateRange:
    """Half-open UTC interval [start, end); `end=None` means open-ended."""

    start: datetime
    end: Optional[datetime] = None

    def __post_init__(self):
        if self.start.tzinfo is not None or (self.end is not None and self.end.tzinfo is not None):
            raise ValidationError("date range bounds must be naive UTC datetimes", field="date")
        if self.end is not None and self.end <= self.start:
            raise ValidationError("date range end must be after its start", field="date")

    def contains(self, moment: datetime) -> bool:
        return moment >= self.start and (self.end is None or moment < self.end)


@dataclass(frozen=True)
class CalorieBalance:
    maintenance_calories: int
    consumed_calories: float
    balance: float
    percentage: float


@dataclass(frozen=True)
class UserStats:
    total_entries: int
    total_calories: float
    avg_calories_per_day: int
    days_active: int


def resolve_tz(tz: Optional[tzinfo] = None) -> tzinfo:
    """Return `tz`, or the server's local time zone when it is None."""
    return tz if tz is not None else local_timezone()


def _to_utc_naive(moment: datetime) -> datetime:
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def _aware_now(now: Optional[datetime], tz: tzinfo) -> datetime:
    if now is None:
        return datetime.now(tz)
    if now.tzinfo is None:
        return now.replace(tzinfo=tz)
    return now


def local_date(created_at: datetime, tz: Optional[tzinfo] = None) -> date:
    """Calendar date of a stored UTC timestamp in the given zone."""
    return created_at.replace(tzinfo=timezone.utc).astimezone(resolve_tz(tz)).date()


def day_range(day: date, tz: Optional[tzinfo] = None) -> DateRange:
    """UTC interval covering one local calendar day."""
    tz = resolve_tz(tz)
    start = datetime.combine(day, time.min, tzinfo=tz)
    end = datetime.combine(day + timedelta(days=1), time.min, tzinfo=tz)
    return DateRange(_to_utc_naive(start), _to_utc_naive(end))


def today_range(tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> DateRange:
    """From local midnight today to local midnight tomorrow."""
    tz = resolve_tz(tz)
    return day_range(_aware_now(now, tz).astimezone(tz).date(), tz)


def last_days(days: int, tz: Optional[tzinfo] = None, now: Optional[datetime] = None) -> DateRange:
    """The last `days` local calendar days, today included, up to local midnight tomorrow."""
    if days <= 0:
        raise ValidationError("window must be at least one day", field="days")
    tz = resolve_tz(tz)
    today = _aware_now(now, tz).astimezone(tz).date()
    first = day_range(today - timedelta(days=days - 1), tz)
    return DateRange(first.start, day_range(today, tz).end)


def since(days: int, now: Optional[datetime] = None) -> DateRange:
    """Rolling window covering the last `days` days up to now."""
    if days <= 0:
        raise ValidationError("window must be at least one day", field="days")
    current = _aware_now(now, timezone.utc)
    return DateRange(_to_utc_naive(current) - timedelta(days=days))


def total_calories(entries: Iterable) -> float:
    return sum(entry.calories for entry in entries)


def entry_count(entries: Iterable) -> int:
    return sum(1 for _ in entries)


def group_by_meal(entries: Iterable) -> Dict[str, int]:
    """Count entries per meal, in breakfast/lunch/dinner/snack order."""
    counts: Dict[str, int] = {}
    for entry in entries:
        counts[entry.meal] = counts.get(entry.meal, 0) + 1
    return {meal: counts[meal] for meal in MEAL_TYPES if meal in counts}


def calories_by_meal(entries: Iterable) -> Dict[str, float]:
    totals: Dict[str, float] = {}
    for entry in entries:
        totals[entry.meal] = totals.get(entry.meal, 0) + entry.calories
    return {meal: totals[meal] for meal in MEAL_TYPES if meal in totals}


def _daily_frame(entries: Iterable, tz: Optional[tzinfo]) -> pd.DataFrame:
    rows = [{"created_at": e.created_at, "calories": e.calories} for e in entries]
    if not rows:
        return pd.DataFrame(columns=["day", "calories", "entry_count"])
    df = pd.DataFrame(rows)
    df["day"] = pd.to_datetime(df["created_at"], utc=True).dt.tz_convert(resolve_tz(tz)).dt.date
    return (
        df.groupby("day")
        .agg(calories=("calories", "sum"), entry_count=("calories", "size"))
        .reset_index()
        .sort_values("day")
    )


def _within_window(entries: Iterable, window_days: Optional[int], now: Optional[datetime]) -> List:
    entries = list(entries)
    if window_days is None:
        return entries
    window = since(window_days, now)
    return [e for e in entries if window.contains(e.created_at)]


def daily_totals(entries: Iterable, tz: Optional[tzinfo] = None) -> List[Dict]:
    """Per-day calorie sums and entry counts, oldest day first."""
    frame = _daily_frame(entries, tz)
    return [
        {"date": row.day, "calories": float(row.calories), "entry_count": int(row.entry_count)}
        for row in frame.itertuples(index=False)
    ]


def days_active(entries: Iterable, tz: Optional[tzinfo] = None) -> int:
    return len(_daily_frame(entries, tz))


def average_per_day(entries: Iterable, window_days: Optional[int] = None, tz: Optional[tzinfo] = None,
                    now: Optional[datetime] = None) -> float:
    """Mean of the per-day calorie sums over days that have entries.

    With `window_days`, only entries from the last `window_days` days count.
    Returns 0.0 when there is nothing to average.
    """
    frame = _daily_frame(_within_window(entries, window_days, now), tz)
    if frame.empty:
        return 0.0
    return float(frame["calories"].mean())


def calorie_balance(consumed: float, maintenance_calories: int) -> Optional[CalorieBalance]:
    """Compare consumed calories to the maintenance baseline.

    Returns None when no baseline is available (zero or missing).
    """
    if not maintenance_calories:
        return None
    return CalorieBalance(
        maintenance_calories=maintenance_calories,
        consumed_calories=consumed,
        balance=consumed - maintenance_calories,
        percentage=round(consumed / maintenance_calories * 100, 1),
    )


def user_stats(entries: Iterable, window_days: int = 30, tz: Optional[tzinfo] = None,
               now: Optional[datetime] = None) -> UserStats:
    """Lifetime totals plus the daily average and active days of the recent window."""
    entries = list(entries)
    recent = _within_window(entries, window_days, now)
    return UserStats(
        total_entries=entry_count(entries),
        total_calories=total_calories(entries),
        avg_calories_per_day=round_half_up(average_per_day(recent, tz=tz)),
        days_active=days_active(recent, tz),
    )
