"""
Datetime utilities.

Provides timezone-aware datetime functions.
"""

from datetime import UTC, datetime


def utc_now() -> datetime:
    """
    Get current UTC datetime with timezone info.

    Returns:
        Current datetime in UTC with timezone awareness
    """
    return datetime.now(UTC)


def as_utc(value: datetime) -> datetime:
    """
    Normalize a datetime read from the database to aware UTC.

    Some backends (SQLite) return naive datetimes for timezone-aware
    columns; those values were written as UTC.

    Args:
        value: Datetime, naive or aware

    Returns:
        Timezone-aware UTC datetime
    """
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)
