from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


# PUBLIC_INTERFACE
def utc_now() -> datetime:
    """Return the current time as a timezone-aware UTC datetime."""
    return datetime.now(timezone.utc)


# PUBLIC_INTERFACE
def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime to timezone-aware UTC.

    Naive datetimes are interpreted as already being in UTC; aware datetimes
    are converted.
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def parse_iso_datetime(s: Optional[str]) -> Optional[datetime]:
    """Parse an ISO8601 string written by a storage backend back into UTC."""
    if s is None:
        return None
    return as_utc(datetime.fromisoformat(s))
