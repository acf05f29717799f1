"""Datetime helpers for values read back from the database."""

from __future__ import annotations

from datetime import datetime, timezone


def ensure_utc(value: datetime | None) -> datetime | None:
    """Treat naive datetimes (SQLite round-trips) as UTC."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def seconds_between(start: datetime | None, end: datetime | None) -> int | None:
    """Whole seconds from start to end, or None when either is missing."""
    if start is None or end is None:
        return None
    return int((ensure_utc(end) - ensure_utc(start)).total_seconds())
