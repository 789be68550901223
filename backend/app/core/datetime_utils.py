"""
Datetime utility functions for handling timezone-aware datetimes.
"""
from datetime import datetime, timedelta, timezone
from typing import Optional


def utc_now() -> datetime:
    """
    Return the current datetime in UTC timezone.

    Every expiry decision goes through this function so tests can patch a
    single place to move the clock.

    Returns:
        A timezone-aware datetime object representing the current time in UTC.
    """
    return datetime.now(timezone.utc)


def ensure_timezone_aware(dt: Optional[datetime]) -> datetime:
    """
    Ensure a datetime object is timezone-aware (UTC).
    SQLite may return timezone-naive datetimes even when stored as timezone-aware.

    Args:
        dt: The datetime to ensure is timezone-aware

    Returns:
        A timezone-aware datetime object in UTC

    Raises:
        ValueError: If dt is None
    """
    if dt is None:
        raise ValueError("datetime cannot be None")
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def expires_after(delta: timedelta, now: Optional[datetime] = None) -> datetime:
    """Return the instant `delta` after `now` (defaults to the current time)."""
    return (now or utc_now()) + delta


def is_expired(expires_at: datetime, now: Optional[datetime] = None) -> bool:
    """
    Check whether an expiry instant has been reached.

    A grant is expired from the instant `expires_at` onwards, so
    `now == expires_at` counts as expired.

    Args:
        expires_at: Expiry instant (naive values are treated as UTC)
        now: Reference time, defaults to utc_now()

    Returns:
        True if `now` is at or past `expires_at`
    """
    reference = ensure_timezone_aware(now) if now is not None else utc_now()
    return reference >= ensure_timezone_aware(expires_at)


def to_iso(dt: datetime) -> str:
    """Serialize a datetime as an ISO 8601 string in UTC."""
    return ensure_timezone_aware(dt).astimezone(timezone.utc).isoformat()
