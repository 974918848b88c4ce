"""Persistence contract for users.

The store owns the user invariants: unique username and email, biometric
ranges, and a maintenance-calorie value that always matches the saved
biometrics. Updates are applied to the loaded row and committed once.
"""

import re
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from core.exceptions import ConflictError, NotFoundError, ValidationError
from core.logger import get_logger
from core.repository import BaseRepository
from database.models import GENDERS, User
from services.entry_store import validate_id
from services.nutrition_calculator import nutrition_calculator

logger = get_logger("services.user_store")

_EMAIL_PATTERN = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")

# field -> (min, max), inclusive
RANGES = {
    "age": (13, 120),
    "weight": (30, 300),
    "height": (100, 250),
    "activity_level": (1.2, 1.9),
}
BIOMETRIC_FIELDS = ("weight", "height", "age", "activity_level", "gender")
UPDATABLE_FIELDS = ("username", "email", "is_active") + BIOMETRIC_FIELDS
REQUIRED_FIELDS = ("username", "email", "age", "gender", "weight", "height", "activity_level")


def normalize_username(username: Any) -> str:
    name = str(username or "").strip()
    if not 3 <= len(name) <= 20:
        raise ValidationError("username must be 3-20 characters", field="username")
    return name


def normalize_email(email: Any) -> str:
    value = str(email or "").strip().lower()
    if not _EMAIL_PATTERN.match(value):
        raise ValidationError("email is not a valid address", field="email")
    return value


def validate_biometrics(values: Dict[str, Any]) -> None:
    """Range-check whichever biometric fields are present."""
    for field, (low, high) in RANGES.items():
        if field not in values:
            continue
        value = values[field]
        if isinstance(value, bool) or not isinstance(value, (int, float)) or not low <= value <= high:
            raise ValidationError(f"{field} must be between {low} and {high}", field=field)
    if "age" in values and int(values["age"]) != values["age"]:
        raise ValidationError("age must be a whole number", field="age")
    if "gender" in values and values["gender"] not in GENDERS:
        raise ValidationError("gender must be 'male' or 'female'", field="gender")


def escape_like(value: str) -> str:
    """Make `%` and `_` match literally in a LIKE pattern escaped with a backslash."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


def compute_maintenance(user: User) -> int:
    bmr = nutrition_calculator.calculate_bmr(user.weight, user.height, user.age, user.gender)
    return nutrition_calculator.calculate_maintenance(bmr, user.activity_level)


class UserStore(BaseRepository[User]):
    """User operations on top of a SQLAlchemy session."""

    def __init__(self, session: Session):
        super().__init__(User, session)

    def _check_unique(self, username: Optional[str], email: Optional[str], exclude_id: Optional[str] = None):
        clauses = []
        if username is not None:
            clauses.append(func.lower(User.username) == username.lower())
        if email is not None:
            clauses.append(User.email == email)
        if not clauses:
            return
        query = self.session.query(User).filter(or_(*clauses))
        if exclude_id is not None:
            query = query.filter(User.id != exclude_id)
        existing = query.first()
        if existing is None:
            return
        fields = {}
        if email is not None and existing.email == email:
            fields["email"] = "Email already taken"
        if username is not None and existing.username.lower() == username.lower():
            fields["username"] = "Username already taken"
        raise ConflictError("User already exists", fields)

    def create_user(self, profile: Dict[str, Any]) -> User:
        """Validate a registration payload and insert the user.

        Raises:
            ValidationError: On a missing or out-of-range field.
            ConflictError: If the username or email is taken.
        """
        missing = [f for f in REQUIRED_FIELDS if profile.get(f) is None]
        if missing:
            raise ValidationError(f"Missing required fields: {', '.join(missing)}", field=missing[0])
        username = normalize_username(profile["username"])
        email = normalize_email(profile["email"])
        validate_biometrics(profile)
        self._check_unique(username, email)

        user = User(
            username=username,
            email=email,
            age=int(profile["age"]),
            gender=profile["gender"],
            weight=float(profile["weight"]),
            height=float(profile["height"]),
            activity_level=float(profile["activity_level"]),
            is_active=True,
            is_admin=bool(profile.get("is_admin", False)),
        )
        user.maintenance_calories = compute_maintenance(user)
        user = self.create(user)
        logger.info("User %s created (id=%s, maintenance=%s kcal)", user.username, user.id, user.maintenance_calories)
        return user

    def get_user(self, user_id: str) -> User:
        validate_id(user_id)
        user = self.get_by_id(user_id)
        if user is None:
            raise NotFoundError("User", user_id)
        return user

    def list_users(
        self,
        search: Optional[str] = None,
        active: Optional[bool] = None,
        admin: Optional[bool] = None,
        limit: int = 20,
        offset: int = 0,
    ) -> Tuple[List[User], int]:
        """Return one page of matching users (newest first) and the matching total."""
        query = self.session.query(User)
        if search:
            pattern = f"%{escape_like(search.lower())}%"
            query = query.filter(or_(
                func.lower(User.username).like(pattern, escape="\\"),
                User.email.like(pattern, escape="\\"),
            ))
        if active is not None:
            query = query.filter(User.is_active.is_(active))
        if admin:
            query = query.filter(User.is_admin.is_(True))
        total = query.count()
        users = query.order_by(User.created_at.desc()).offset(offset).limit(limit).all()
        return users, total

    def count_users(self, active: Optional[bool] = None) -> int:
        query = self.session.query(User)
        if active is not None:
            query = query.filter(User.is_active.is_(active))
        return query.count()

    def update_user(self, user_id: str, changes: Dict[str, Any]) -> User:
        """Apply a partial profile update.

        Maintenance calories are recomputed when any biometric field is part
        of the update, before the single commit.

        Raises:
            NotFoundError: If the user does not exist.
            ConflictError: If the new username or email is taken.
            ValidationError: On an out-of-range or unknown field.
        """
        user = self.get_user(user_id)
        changes = {k: v for k, v in changes.items() if v is not None}
        unknown = set(changes) - set(UPDATABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Cannot update fields: {', '.join(sorted(unknown))}", field=sorted(unknown)[0])

        if "username" in changes:
            changes["username"] = normalize_username(changes["username"])
        if "email" in changes:
            changes["email"] = normalize_email(changes["email"])
        validate_biometrics(changes)
        self._check_unique(changes.get("username"), changes.get("email"), exclude_id=user.id)

        for field, value in changes.items():
            setattr(user, field, value)
        if any(field in changes for field in BIOMETRIC_FIELDS):
            previous = user.maintenance_calories
            user.maintenance_calories = compute_maintenance(user)
            logger.info("Maintenance calories for user %s: %s -> %s", user.id, previous, user.maintenance_calories)
        user = self.update(user)
        logger.info("User %s updated (%s)", user.id, ", ".join(sorted(changes)) or "no changes")
        return user

    def deactivate_user(self, user_id: str) -> User:
        """Soft delete: mark the user inactive, keeping the record and its entries."""
        user = self.get_user(user_id)
        user.is_active = False
        user = self.update(user)
        logger.info("User %s deactivated", user.id)
        return user
