"""Clock and office-time-zone helpers.

``now_utc`` is wrapped so services can accept an injected instant and
tests can patch the clock.
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

from hrms.config import settings


def office_tz() -> ZoneInfo:
    return ZoneInfo(settings.TIMEZONE)


def now_utc() -> datetime:
    """Current instant, timezone-aware (UTC)."""
    return datetime.now(timezone.utc)


def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC (SQLite drops tzinfo on round-trip)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def to_local(value: datetime) -> datetime:
    """Convert an instant to the office time zone."""
    return ensure_aware(value).astimezone(office_tz())


def local_today(now: datetime | None = None) -> date:
    """Calendar date in the office time zone."""
    return to_local(now or now_utc()).date()


def format_clock(value: datetime) -> str:
    """Format an instant as office-local ``h:mm AM``."""
    local = to_local(value)
    return f"{local.hour % 12 or 12}:{local.minute:02d} {'AM' if local.hour < 12 else 'PM'}"
