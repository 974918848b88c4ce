"""Application settings read from environment variables.

All knobs live on a single `Settings` object so the store client, logger and
request handlers see the same values. Settings are read when the object is
constructed; the app builds a fresh instance in its lifespan handler.
"""

import os
from datetime import datetime, timezone, tzinfo
from typing import Optional
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from core.exceptions import ConfigurationError


def _float_env(name: str, default: float) -> float:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be a number, got {raw!r}", config_key=name)


def _int_env(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}", config_key=name)


LOCALTIME_PATH = "/etc/localtime"


def _zone(name: str) -> Optional[tzinfo]:
    if name.upper() == "UTC":
        return timezone.utc
    try:
        return ZoneInfo(name)
    except (ZoneInfoNotFoundError, ValueError, OSError):
        return None


def local_timezone() -> tzinfo:
    """The server's local time zone, as an IANA zone when it can be determined.

    Checks the `TZ` variable, then the target of the `/etc/localtime` link, so
    day boundaries follow daylight saving changes. Falls back to the current
    fixed UTC offset.
    """
    candidates = []
    if os.environ.get("TZ"):
        candidates.append(os.environ["TZ"].lstrip(":"))
    target = os.path.realpath(LOCALTIME_PATH)
    marker = "zoneinfo" + os.sep
    if marker in target:
        candidates.append(target.split(marker, 1)[1])
    for name in candidates:
        zone = _zone(name)
        if zone is not None:
            return zone
    return datetime.now().astimezone().tzinfo


class Settings:
    """Centralized configuration for the calorie tracking service."""

    def __init__(self) -> None:
        self.database_url: str = os.environ.get("CALORA_DATABASE_URL", "sqlite:///calora.db")
        # Reads go to the write database unless a replica is configured.
        self.read_database_url: str = os.environ.get("CALORA_READ_DATABASE_URL", self.database_url)
        self.connect_timeout: float = _float_env("CALORA_CONNECT_TIMEOUT", 5.0)
        self.pool_recycle: int = _int_env("CALORA_POOL_RECYCLE", 1800)
        self.echo_sql: bool = os.environ.get("CALORA_ECHO_SQL", "").lower() in ("1", "true", "yes")

        self.environment: str = os.environ.get("CALORA_ENV", "development").lower()
        self.timezone_name: Optional[str] = os.environ.get("CALORA_TIMEZONE") or None

        self.stats_window_days: int = _int_env("CALORA_STATS_WINDOW_DAYS", 30)
        self.recent_entries_limit: int = _int_env("CALORA_RECENT_ENTRIES", 5)

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    @property
    def timezone(self) -> tzinfo:
        """Time zone used for calendar-day boundaries.

        Falls back to the server's local zone when `CALORA_TIMEZONE` is unset.
        """
        if self.timezone_name is None:
            return local_timezone()
        if self.timezone_name.upper() == "UTC":
            return timezone.utc
        try:
            return ZoneInfo(self.timezone_name)
        except (ZoneInfoNotFoundError, ValueError):
            raise ConfigurationError(
                f"Unknown time zone {self.timezone_name!r}", config_key="CALORA_TIMEZONE"
            )


def get_settings() -> Settings:
    """Return settings built from the current environment."""
    return Settings()
