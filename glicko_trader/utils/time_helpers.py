# glicko_trader/utils/time_helpers.py
"""
Time-related utility functions. All timestamps are epoch milliseconds.
"""

from datetime import datetime, timezone


MS_PER_SECOND = 1000
MS_PER_HOUR = 60 * 60 * MS_PER_SECOND
MS_PER_DAY = 24 * MS_PER_HOUR
MS_PER_YEAR = 365.25 * MS_PER_DAY
DAYS_PER_MONTH = 30  # walk-forward windows use fixed 30-day months


def months_to_ms(months: int) -> int:
    """
    Convert a window length in months to milliseconds.

    Args:
        months: Number of 30-day months

    Returns:
        Duration in milliseconds
    """
    return months * DAYS_PER_MONTH * MS_PER_DAY


def ms_to_datetime(timestamp_ms: int) -> datetime:
    """Convert epoch milliseconds to an aware UTC datetime."""
    return datetime.fromtimestamp(timestamp_ms / MS_PER_SECOND, tz=timezone.utc)


def datetime_to_ms(dt: datetime) -> int:
    """
    Convert a datetime to epoch milliseconds.

    Naive datetimes are treated as UTC.
    """
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return int(round(dt.timestamp() * MS_PER_SECOND))


def parse_timestamp(value) -> int:
    """
    Parse epoch milliseconds or an ISO-8601 date string.

    Args:
        value: int/float milliseconds or a string such as '2024-01-01'

    Returns:
        Epoch milliseconds

    Raises:
        ValueError: If the value cannot be parsed
    """
    if isinstance(value, bool):
        raise ValueError(f"Unable to parse timestamp: {value!r}")
    if isinstance(value, (int, float)):
        return int(value)
    if isinstance(value, str):
        stripped = value.strip()
        if stripped.lstrip('-').isdigit():
            return int(stripped)
        try:
            return datetime_to_ms(datetime.fromisoformat(stripped.replace('Z', '+00:00')))
        except ValueError:
            pass
    raise ValueError(f"Unable to parse timestamp: {value!r}")


def format_duration(hours: float) -> str:
    """
    Format a duration in hours to a human readable string.

    Args:
        hours: Duration in hours

    Returns:
        Formatted duration string
    """
    if hours < 1:
        return f"{hours * 60:.1f}m"
    elif hours < 24:
        return f"{hours:.1f}h"
    else:
        return f"{hours / 24:.1f}d"
