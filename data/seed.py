"""Seed the database with sample users and a short food log.

This module provides:
- parse_food_log_csv(csv_path): returns a list of normalized log rows
- seed_database(session, csv_path): idempotently creates the sample users and
  their entries

The CSV expects the columns `username`, `food_text`, `meal`, `days_ago` and
`hour`. Entries are timestamped `days_ago` days before today at `hour`
o'clock UTC and go through the regular entry store, so every row is
estimated and validated like a logged entry.
"""
from __future__ import annotations

from datetime import datetime, timedelta
from typing import Dict, List, Optional
import math
import os
import pandas as pd

from core.config import get_settings
from core.logger import get_logger
from database import StoreClient, models
from database.models import utcnow
from services.entry_store import EntryStore
from services.user_store import UserStore
from data.sample_data import SAMPLE_USERS

logger = get_logger("data.seed")

DEFAULT_CSV = os.path.join(os.path.dirname(__file__), "fixtures", "sample_food_log.csv")


def _int_cell(val, default: int = 0) -> int:
    """Return an int for a CSV cell, falling back to `default` for blanks."""
    if val is None or (isinstance(val, float) and math.isnan(val)):
        return default
    try:
        return int(float(val))
    except (TypeError, ValueError):
        return default


def parse_food_log_csv(csv_path: str) -> List[Dict]:
    """Parse the food log CSV into row dictionaries.

    Rows without a username or food text are skipped.

    Args:
        csv_path: Path to the food log CSV file.

    Returns:
        List of dictionaries with keys: username, food_text, meal, days_ago, hour.
    """
    logger.info("Parsing food log CSV: %s", csv_path)
    df = pd.read_csv(csv_path, encoding="utf-8", dtype={"username": str, "food_text": str, "meal": str})
    df = df.rename(columns=lambda s: s.strip())

    rows = []
    for _, row in df.iterrows():
        username = row.get("username")
        food_text = row.get("food_text")
        if not isinstance(username, str) or not isinstance(food_text, str):
            continue
        meal = row.get("meal")
        rows.append({
            "username": username.strip(),
            "food_text": food_text.strip(),
            "meal": meal.strip() if isinstance(meal, str) and meal.strip() else None,
            "days_ago": _int_cell(row.get("days_ago")),
            "hour": min(max(_int_cell(row.get("hour"), 12), 0), 23),
        })

    logger.info("Parsed %s food log rows", len(rows))
    return rows


def seed_database(session, csv_path: str = DEFAULT_CSV, now: Optional[datetime] = None) -> Dict[str, int]:
    """Idempotently create the sample users and their food log.

    Users are matched by username, entries by (user, text, timestamp), so a
    second run on the same day adds nothing.

    Returns:
        Dictionary with the number of users and entries added.
    """
    now = now or utcnow()
    user_store = UserStore(session)
    entry_store = EntryStore(session)

    users_by_name = {}
    users_added = 0
    for profile in SAMPLE_USERS:
        user = session.query(models.User).filter(models.User.username == profile["username"]).first()
        if user is None:
            user = user_store.create_user(profile)
            users_added += 1
        users_by_name[user.username] = user

    entries_added = 0
    for row in parse_food_log_csv(csv_path):
        user = users_by_name.get(row["username"])
        if user is None:
            logger.warning("Skipping log row for unknown user %s", row["username"])
            continue
        created_at = (now - timedelta(days=row["days_ago"])).replace(
            hour=row["hour"], minute=0, second=0, microsecond=0
        )
        exists = (
            session.query(models.FoodEntry)
            .filter(
                models.FoodEntry.user_id == user.id,
                models.FoodEntry.food_text == row["food_text"],
                models.FoodEntry.created_at == created_at,
            )
            .first()
        )
        if exists:
            continue
        entry_store.create_entry(user.id, row["food_text"], row["meal"], created_at=created_at)
        entries_added += 1

    logger.info("Seeded %s users and %s food entries", users_added, entries_added)
    return {"users": users_added, "entries": entries_added}


if __name__ == "__main__":
    import argparse

    p = argparse.ArgumentParser("Seed sample users and food entries into the DB")
    p.add_argument("csv_path", nargs="?", default=DEFAULT_CSV)
    args = p.parse_args()

    store = StoreClient.from_settings(get_settings())
    store.init_db()
    session = store.WriteSession()
    try:
        result = seed_database(session, args.csv_path)
    finally:
        session.close()
        store.dispose()
    print("Done: %(users)s users, %(entries)s entries" % result)
