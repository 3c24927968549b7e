"""
Datetime helpers for message timestamps.

Every timestamp is stored and compared as UTC. Some database backends
(SQLite in tests) hand back naive datetimes, so anything read from storage
goes through ensure_utc() before it is compared with utc_now().
"""

from datetime import datetime, timezone


def utc_now() -> datetime:
    """
    Get current UTC time as timezone-aware datetime.

    Returns:
        datetime: Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime | None) -> datetime | None:
    """
    Ensure datetime is UTC timezone-aware.

    Naive values are assumed to already be UTC.

    Args:
        dt: Datetime object (naive or aware) or None

    Returns:
        datetime | None: UTC timezone-aware datetime or None
    """
    if dt is None:
        return None

    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)

    return dt.astimezone(timezone.utc)


def to_iso_utc(dt: datetime | None) -> str | None:
    """
    Convert datetime to ISO format with 'Z' suffix.

    Example:
        >>> to_iso_utc(datetime(2025, 12, 16, 11, 30, tzinfo=timezone.utc))
        '2025-12-16T11:30:00Z'
    """
    if dt is None:
        return None

    return ensure_utc(dt).isoformat().replace('+00:00', 'Z')


def parse_iso_utc(value: str | None) -> datetime | None:
    """
    Parse an ISO 8601 string (with 'Z' or an offset) into an aware UTC datetime.

    Used by the sync client, which receives timestamps as JSON strings.
    """
    if not value:
        return None

    if value.endswith("Z"):
        value = value[:-1] + "+00:00"

    return ensure_utc(datetime.fromisoformat(value))


def is_strictly_after(dt: datetime | None, reference: datetime | None) -> bool:
    """
    True when dt is later than reference.

    A missing reference means "never", so any existing dt is after it.
    A missing dt is never after anything.
    """
    if dt is None:
        return False
    if reference is None:
        return True
    return ensure_utc(dt) > ensure_utc(reference)
