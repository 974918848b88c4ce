"""Schemas for food entry requests and responses."""

from datetime import datetime
from pydantic import Field
from typing import Dict, List, Literal, Optional

from .base import CamelModel

MealType = Literal["breakfast", "lunch", "dinner", "snack"]


class NutrientProfileSchema(CamelModel):
    """Estimated nutrition facts attached to an entry."""

    calories: float = Field(..., ge=0, examples=[650])
    protein: float = Field(..., ge=0, examples=[25])
    carbs: float = Field(..., ge=0, examples=[80])
    fat: float = Field(..., ge=0, examples=[25])
    sugar: float = Field(..., ge=0, examples=[5])
    confidence: float = Field(..., ge=0, le=1, examples=[0.85])
    ingredients: List[str] = Field(default_factory=list, examples=[["dough", "cheese", "sauce"]])


class MacroPercentages(CamelModel):
    protein: int
    carbs: int
    fat: int


class FoodEntryCreateRequest(CamelModel):
    """Payload for logging a food description."""

    food_text: str = Field(..., examples=["Pizza Margherita"], description="Free-text description, 1-500 characters after trimming")
    meal: Optional[MealType] = Field(None, examples=["dinner"], description="Meal type, defaults to snack")


class FoodEntryResponse(CamelModel):
    id: str
    user_id: str
    food_text: str
    nutrient_profile: NutrientProfileSchema
    macro_percentages: MacroPercentages
    meal: MealType
    created_at: datetime


class FoodEntryListResponse(CamelModel):
    entries: List[FoodEntryResponse]
    total_calories: float
    entry_count: int
    by_meal: Dict[str, int]
    date: Optional[str] = None


class FoodEntryDeletedResponse(CamelModel):
    message: str
    deleted_id: str
