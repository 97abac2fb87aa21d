"""Time and timezone utilities for bintally.

UTC discipline:
- all timestamps are stored as ISO-8601 UTC strings
- naive datetimes are interpreted as UTC
- local time only exists for bucketing and display
"""

from __future__ import annotations

from datetime import date, datetime, timezone
from zoneinfo import ZoneInfo

__all__ = [
    "ensure_utc",
    "format_utc_iso8601",
    "get_current_utc",
    "localize_utc_to_tz",
    "parse_utc_iso8601",
    "today_in_timezone",
]


def get_current_utc() -> datetime:
    """Get current time in UTC.

    Returns
    -------
    datetime
        Current time in UTC with timezone info
    """
    return datetime.now(timezone.utc)


def ensure_utc(dt: datetime) -> datetime:
    """Return ``dt`` as an aware UTC datetime (naive input is taken as UTC)."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def format_utc_iso8601(dt: datetime) -> str:
    """Format datetime as ISO-8601 UTC string.

    Always converts to UTC before formatting.

    Parameters
    ----------
    dt
        Datetime to format (with or without timezone)

    Returns
    -------
    str
        ISO-8601 UTC string (e.g., "2025-10-08T12:30:00+00:00")

    Example
    -------
    >>> dt = datetime(2025, 10, 8, 12, 30, 0, tzinfo=timezone.utc)
    >>> format_utc_iso8601(dt)
    '2025-10-08T12:30:00+00:00'
    """
    return ensure_utc(dt).isoformat()


def parse_utc_iso8601(iso_string: str) -> datetime:
    """Parse ISO-8601 string to UTC datetime.

    Parameters
    ----------
    iso_string
        ISO-8601 formatted string ("Z" suffix accepted)

    Returns
    -------
    datetime
        Datetime in UTC

    Raises
    ------
    ValueError
        If string is not valid ISO-8601

    Example
    -------
    >>> dt = parse_utc_iso8601("2025-10-08T14:30:00+02:00")
    >>> dt.hour
    12
    """
    dt = datetime.fromisoformat(iso_string.replace("Z", "+00:00"))
    return ensure_utc(dt)


def localize_utc_to_tz(utc_dt: datetime, tz: str | ZoneInfo) -> datetime:
    """Convert a UTC datetime to a timezone for display or bucketing."""
    if isinstance(tz, str):
        tz = ZoneInfo(tz)
    return ensure_utc(utc_dt).astimezone(tz)


def today_in_timezone(tz: str | ZoneInfo, now: datetime | None = None) -> date:
    """Calendar date of ``now`` (default: current time) in ``tz``.

    The live counters roll over at local midnight, so "today" is always the
    local calendar date, never the UTC one.
    """
    if now is None:
        now = get_current_utc()
    return localize_utc_to_tz(now, tz).date()
