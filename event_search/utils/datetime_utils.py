"""Utility functions for working with dates and times."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

__all__ = [
    "get_current_timestamp",
    "start_of_today",
    "today_iso",
    "end_of_year_iso",
    "parse_date",
    "as_utc",
    "hours_since",
    "is_within_ttl",
]


def get_current_timestamp() -> datetime:
    """Return the current UTC datetime with micro-second precision.

    This object can be stored directly in MongoDB where it will be written as
    a BSON Date.
    """
    return datetime.now(tz=timezone.utc)


def start_of_today(now: datetime | None = None) -> datetime:
    """Return midnight (UTC) of the current day."""
    now = now or get_current_timestamp()
    return now.replace(hour=0, minute=0, second=0, microsecond=0)


def today_iso(now: datetime | None = None) -> str:
    return (now or get_current_timestamp()).date().isoformat()


def end_of_year_iso(now: datetime | None = None) -> str:
    return f"{(now or get_current_timestamp()).year}-12-31"


def parse_date(value: str) -> datetime:
    """Parse an ISO date or datetime string into an aware UTC datetime.

    Raises
    ------
    ValueError
        If *value* is not a valid ISO-8601 date.
    """
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return as_utc(datetime.fromisoformat(text))


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (pymongo returns naive UTC by default)."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def hours_since(timestamp: datetime, now: datetime | None = None) -> float:
    now = now or get_current_timestamp()
    return (now - as_utc(timestamp)).total_seconds() / 3600


def is_within_ttl(timestamp: datetime, ttl: timedelta, now: datetime | None = None) -> bool:
    """Shared freshness predicate: ``now - timestamp < ttl``.

    Both the persisted execution cache and the in-process result cache
    decide freshness through this function.
    """
    now = now or get_current_timestamp()
    return now - as_utc(timestamp) < ttl
