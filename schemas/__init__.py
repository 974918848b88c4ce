"""Pydantic schema package for request and response models."""

from .food_entry_schema import (
    FoodEntryCreateRequest,
    FoodEntryResponse,
    FoodEntryListResponse,
    FoodEntryDeletedResponse,
    NutrientProfileSchema,
)
from .user_schema import (
    UserCreateRequest,
    UserUpdateRequest,
    UserSummary,
    UserResponse,
    UserProfileResponse,
    UsersListResponse,
)

__all__ = [
    "FoodEntryCreateRequest",
    "FoodEntryResponse",
    "FoodEntryListResponse",
    "FoodEntryDeletedResponse",
    "NutrientProfileSchema",
    "UserCreateRequest",
    "UserUpdateRequest",
    "UserSummary",
    "UserResponse",
    "UserProfileResponse",
    "UsersListResponse",
]
