"""Schemas for user-related requests and responses."""

from datetime import datetime
from pydantic import Field
from typing import List, Literal, Optional, Union

from .base import CamelModel

Gender = Literal["male", "female"]


class UserCreateRequest(CamelModel):
    """Request payload for registering a user."""

    username: str = Field(..., examples=["nora_test"], description="3-20 characters, unique")
    email: str = Field(..., examples=["nora@example.com"], description="Unique, stored lower-cased")
    age: int = Field(..., ge=13, le=120, examples=[27], description="Age in years (13-120)")
    gender: Gender = Field(..., examples=["female"], description="Gender (male/female)")
    weight: float = Field(..., ge=30, le=300, examples=[65.0], description="Weight in kilograms (30-300)")
    height: float = Field(..., ge=100, le=250, examples=[168.0], description="Height in centimeters (100-250)")
    activity_level: float = Field(..., ge=1.2, le=1.9, examples=[1.55], description="Activity factor (1.2-1.9)")


class UserUpdateRequest(CamelModel):
    """Partial profile update; omitted fields are left unchanged."""

    username: Optional[str] = Field(None, examples=["nora"])
    email: Optional[str] = Field(None, examples=["nora@example.org"])
    age: Optional[int] = Field(None, ge=13, le=120)
    gender: Optional[Gender] = None
    weight: Optional[float] = Field(None, ge=30, le=300)
    height: Optional[float] = Field(None, ge=100, le=250)
    activity_level: Optional[float] = Field(None, ge=1.2, le=1.9)
    is_active: Optional[bool] = None


class UserSummary(CamelModel):
    """Short user representation used in listings and after registration."""

    id: str
    username: str
    email: str
    is_active: bool
    is_admin: bool
    created_at: datetime


class UserResponse(CamelModel):
    id: str
    username: str
    email: str
    age: int
    gender: Gender
    weight: float
    height: float
    activity_level: float
    maintenance_calories: int
    bmi: float
    is_active: bool
    is_admin: bool
    created_at: datetime
    updated_at: datetime


class UserStatsResponse(CamelModel):
    total_entries: int
    total_calories: float
    avg_calories_per_day: int
    days_active: int


class RecentEntry(CamelModel):
    id: str
    food_text: str
    calories: float
    meal: str
    created_at: datetime


class UserProfileResponse(CamelModel):
    user: UserResponse
    stats: UserStatsResponse
    recent_entries: List[RecentEntry]


class PaginationInfo(CamelModel):
    limit: int
    offset: int
    has_more: bool


class UsersListResponse(CamelModel):
    users: List[UserSummary]
    total_users: int
    active_users: int
    pagination: PaginationInfo


class UserDeactivatedResponse(CamelModel):
    message: str
    id: str


class CalorieBalanceResponse(CamelModel):
    date: str
    maintenance_calories: int
    consumed_calories: float
    balance: float
    percentage: float


class TrendPoint(CamelModel):
    date: str
    calories: float
    entry_count: int


class CalorieTrendResponse(CamelModel):
    days: int
    points: List[TrendPoint]


class MaintenanceRequest(CamelModel):
    """Inputs for the stand-alone maintenance calculator."""

    age: int = Field(..., ge=13, le=120, examples=[25])
    height: float = Field(..., ge=100, le=250, examples=[165])
    weight: float = Field(..., ge=30, le=300, examples=[60])
    gender: Gender = Field(..., examples=["female"])
    activity: Union[float, str] = Field(..., examples=[1.55, "moderately_active"], description="Factor 1.2-1.9 or a named activity level")


class MaintenanceResponse(CamelModel):
    bmr: float
    maintenance: int
