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


def from_unix_timestamp(timestamp: int) -> datetime:
    """
    Convert a unix timestamp (seconds) to an aware UTC datetime.

    Raises:
        ValueError: If timestamp is not positive
    """
    if timestamp <= 0:
        raise ValueError(f"Invalid timestamp: {timestamp}")
    return datetime.fromtimestamp(timestamp, UTC)


def to_iso(value: datetime) -> str:
    """Format datetime as ISO-8601 with millisecond precision and a Z suffix."""
    return value.astimezone(UTC).isoformat(timespec="milliseconds").replace("+00:00", "Z")
