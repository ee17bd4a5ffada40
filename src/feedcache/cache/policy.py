"""Freshness rules for the cached feed snapshot."""

from datetime import datetime, timedelta, timezone

MAX_CACHE_AGE = timedelta(days=7)


def _as_utc(value: datetime) -> datetime:
    # Handle timezone-naive datetimes
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def is_cache_valid(
    timestamp: datetime,
    against: datetime,
    max_age: timedelta = MAX_CACHE_AGE,
) -> bool:
    """Check if a snapshot taken at ``timestamp`` may still be served.

    The window is exclusive: a snapshot exactly ``max_age`` old is already
    invalid.

    Args:
        timestamp: When the snapshot was cached
        against: The current time
        max_age: Maximum age of a valid snapshot

    Returns:
        True if the snapshot is still fresh, False if stale

    Examples:
        >>> now = datetime(2024, 1, 15, tzinfo=timezone.utc)
        >>> is_cache_valid(now - timedelta(days=7), against=now)
        False
        >>> is_cache_valid(now - timedelta(days=7) + timedelta(seconds=1), against=now)
        True
    """
    return _as_utc(against) < _as_utc(timestamp) + max_age


def get_cache_age_remaining(
    timestamp: datetime,
    against: datetime,
    max_age: timedelta = MAX_CACHE_AGE,
) -> int:
    """Get seconds remaining until a snapshot goes stale.

    Args:
        timestamp: When the snapshot was cached
        against: The current time
        max_age: Maximum age of a valid snapshot

    Returns:
        Whole seconds remaining, 0 once stale
    """
    remaining = (_as_utc(timestamp) + max_age - _as_utc(against)).total_seconds()
    return max(0, int(remaining))
