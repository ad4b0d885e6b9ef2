"""
Datetime utility functions.
Provides replacements for deprecated datetime functions.
"""

from datetime import date, datetime
from typing import Optional, Union
import pytz


def utcnow() -> datetime:
    """
    Get current UTC datetime using pytz.UTC.

    Returns:
        Current UTC datetime with pytz timezone information
    """
    return datetime.now(pytz.UTC)


def ensure_utc(value: Optional[datetime]) -> Optional[datetime]:
    """
    Make a datetime timezone-aware in UTC.

    Some drivers (SQLite) hand back naive datetimes for timezone-aware
    columns; values are always stored in UTC, so a naive value is UTC.

    Args:
        value: Datetime (naive or aware) or None

    Returns:
        Aware UTC datetime, or None if value is None
    """
    if value is None:
        return None
    if value.tzinfo is None:
        return pytz.UTC.localize(value)
    return value.astimezone(pytz.UTC)


def to_iso(value: Optional[datetime]) -> Optional[str]:
    """Serialize a stored datetime as an ISO 8601 UTC string."""
    value = ensure_utc(value)
    return value.isoformat() if value else None


def format_match_date(date_input: Union[str, date, datetime]) -> str:
    """
    Format a date for notification text in M/D/YYYY format (no leading zeros).

    Args:
        date_input: Date as ISO string ("2026-01-21" or a full ISO timestamp),
                    date or datetime object

    Returns:
        Formatted date string like "1/21/2026" (no leading zeros)

    Examples:
        >>> format_match_date("2026-01-21")
        "1/21/2026"
        >>> format_match_date(datetime(2026, 1, 21, 18, 30))
        "1/21/2026"
    """
    if isinstance(date_input, (datetime, date)):
        return f"{date_input.month}/{date_input.day}/{date_input.year}"

    if not isinstance(date_input, str):
        raise ValueError(f"Expected string, date or datetime, got {type(date_input)}")

    date_str = date_input.strip()
    try:
        parsed = datetime.fromisoformat(date_str)
        return f"{parsed.month}/{parsed.day}/{parsed.year}"
    except ValueError:
        # Already formatted or unparseable; pass through
        return date_str
