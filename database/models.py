"""SQLAlchemy ORM models for the calorie tracking service.

This module defines the two persisted records: User and FoodEntry. The
nutrient profile of an entry is flattened into columns, with the ingredient
tags stored as a JSON-encoded string like the other list fields.
"""

import json
import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Float, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()

MEAL_TYPES = ("breakfast", "lunch", "dinner", "snack")
DEFAULT_MEAL = "snack"
GENDERS = ("male", "female")


def new_id() -> str:
    """Return a fresh opaque record id (32 lowercase hex characters)."""
    return uuid.uuid4().hex


def utcnow() -> datetime:
    """Current UTC time as a naive datetime, the storage convention."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


class User(Base):
    """ORM model representing an application user.

    `maintenance_calories` is derived from the biometric columns and is
    recomputed by the user store whenever one of them changes.
    """

    __tablename__ = "users"
    id = Column(String(32), primary_key=True, default=new_id)
    username = Column(String(20), nullable=False, unique=True)
    email = Column(String(254), nullable=False, unique=True)
    age = Column(Integer, nullable=False)
    gender = Column(String(6), nullable=False)
    weight = Column(Float, nullable=False)
    height = Column(Float, nullable=False)
    activity_level = Column(Float, nullable=False)
    maintenance_calories = Column(Integer, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    is_admin = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)


class FoodEntry(Base):
    """ORM model for one logged food description and its nutrient estimate."""

    __tablename__ = "food_entries"
    id = Column(String(32), primary_key=True, default=new_id)
    user_id = Column(String(32), ForeignKey("users.id"), nullable=False)
    food_text = Column(String(500), nullable=False)
    calories = Column(Float, nullable=False)
    protein = Column(Float, nullable=False)
    carbs = Column(Float, nullable=False)
    fat = Column(Float, nullable=False)
    sugar = Column(Float, nullable=False)
    confidence = Column(Float, nullable=False)
    ingredients = Column(Text, nullable=False, default="[]")
    meal = Column(String(9), nullable=False, default=DEFAULT_MEAL)
    created_at = Column(DateTime, nullable=False, default=utcnow)
    updated_at = Column(DateTime, nullable=False, default=utcnow, onupdate=utcnow)

    __table_args__ = (
        Index("ix_food_entries_user_created", "user_id", created_at.desc()),
    )

    @property
    def ingredient_list(self):
        return json.loads(self.ingredients) if self.ingredients else []
