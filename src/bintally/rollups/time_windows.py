"""Calendar windowing with DST awareness.

Compute local window boundaries (hour range, ISO week, month, year, epoch
range) and the canonical bucket labels inside them.

All boundaries are half-open ``[start, end)`` and timezone-aware in the
configured local timezone. Naive references are interpreted as UTC.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta

import pytz

from ..core.models import Granularity, Window
from ..core.time import ensure_utc

__all__ = [
    "DEFAULT_EPOCH_YEAR",
    "HOUR_LABEL_END",
    "HOUR_LABEL_START",
    "MONTH_ABBREVIATIONS",
    "MONTH_NAMES",
    "WEEKDAY_ABBREVIATIONS",
    "CalendarConfig",
    "InvalidWindowError",
    "bucket_key",
    "bucket_labels",
    "epoch_bounds",
    "format_week_range",
    "get_week_start",
    "hour_bounds",
    "hour_label",
    "month_bounds",
    "resolve_window",
    "week_bounds",
    "week_of_month",
    "year_bounds",
]

DEFAULT_EPOCH_YEAR = 2025
HOUR_LABEL_START = 7
HOUR_LABEL_END = 22

WEEKDAY_ABBREVIATIONS = ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")
MONTH_ABBREVIATIONS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")
MONTH_NAMES = (
    "January",
    "February",
    "March",
    "April",
    "May",
    "June",
    "July",
    "August",
    "September",
    "October",
    "November",
    "December",
)


class InvalidWindowError(ValueError):
    """Raised for windows that cannot be resolved (future offsets, end before start)."""


@dataclass(frozen=True)
class CalendarConfig:
    """Calendar settings shared by windowing and aggregation.

    Attributes
    ----------
    timezone : str
        IANA timezone used for local day boundaries
    epoch_year : int
        First year of the yearly chart
    hourly_start : int
        First hour of the hourly view (inclusive)
    hourly_end : int
        Last hour of the hourly view (exclusive)
    """

    timezone: str = "UTC"
    epoch_year: int = DEFAULT_EPOCH_YEAR
    hourly_start: int = HOUR_LABEL_START
    hourly_end: int = HOUR_LABEL_END

    def __post_init__(self) -> None:
        try:
            pytz.timezone(self.timezone)
        except pytz.UnknownTimeZoneError as exc:
            raise ValueError(f"Invalid timezone: {self.timezone}") from exc

        if not 0 <= self.hourly_start < self.hourly_end <= 24:
            raise ValueError(
                f"Hourly range must satisfy 0 <= start < end <= 24, got [{self.hourly_start}, {self.hourly_end})"
            )


def _to_local(reference: datetime, tz: pytz.BaseTzInfo) -> datetime:
    return ensure_utc(reference).astimezone(tz)


def _local_midnight(day: date, tz: pytz.BaseTzInfo) -> datetime:
    # localize() picks the correct UTC offset on DST transition days
    return tz.localize(datetime.combine(day, time()))


def _add_months(day: date, months: int) -> date:
    index = day.year * 12 + (day.month - 1) + months
    return date(index // 12, index % 12 + 1, 1)


def get_week_start(dt: datetime, start_on: int = 0) -> datetime:
    """Get start of week for a datetime.

    Parameters
    ----------
    dt
        Datetime to get week start for
    start_on
        Day of week to start on (0=Monday, 6=Sunday)

    Returns
    -------
    datetime
        Start of week (same time as input)
    """
    days_since_start = (dt.weekday() - start_on) % 7
    return dt - timedelta(days=days_since_start)


def week_bounds(
    reference: datetime,
    offset_weeks: int = 0,
    timezone_str: str = "UTC",
) -> tuple[datetime, datetime]:
    """ISO week (Monday to next Monday) containing ``reference``.

    Parameters
    ----------
    reference
        Any instant in the week
    offset_weeks
        Whole weeks to shift (-1 = previous week)
    timezone_str
        Timezone name

    Returns
    -------
    tuple[datetime, datetime]
        (start, end) local midnights, half-open

    Examples
    --------
    >>> start, end = week_bounds(datetime(2025, 10, 8, 12, tzinfo=pytz.UTC))
    >>> start.date(), end.date()
    (datetime.date(2025, 10, 6), datetime.date(2025, 10, 13))
    """
    tz = pytz.timezone(timezone_str)
    local = _to_local(reference, tz)

    monday = get_week_start(local).date() + timedelta(weeks=offset_weeks)

    return _local_midnight(monday, tz), _local_midnight(monday + timedelta(days=7), tz)


def month_bounds(reference: datetime, timezone_str: str = "UTC") -> tuple[datetime, datetime]:
    """Calendar month containing ``reference``."""
    tz = pytz.timezone(timezone_str)
    first = _to_local(reference, tz).date().replace(day=1)

    return _local_midnight(first, tz), _local_midnight(_add_months(first, 1), tz)


def year_bounds(reference: datetime, timezone_str: str = "UTC") -> tuple[datetime, datetime]:
    """Calendar year containing ``reference``."""
    tz = pytz.timezone(timezone_str)
    year = _to_local(reference, tz).year

    return _local_midnight(date(year, 1, 1), tz), _local_midnight(date(year + 1, 1, 1), tz)


def epoch_bounds(
    reference: datetime,
    epoch_year: int = DEFAULT_EPOCH_YEAR,
    timezone_str: str = "UTC",
) -> tuple[datetime, datetime]:
    """Range from Jan 1 of ``epoch_year`` to the end of the reference year.

    Raises
    ------
    InvalidWindowError
        If the reference year precedes the epoch year
    """
    tz = pytz.timezone(timezone_str)
    year = _to_local(reference, tz).year
    if year < epoch_year:
        raise InvalidWindowError(f"Reference year {year} precedes epoch year {epoch_year}")

    return _local_midnight(date(epoch_year, 1, 1), tz), _local_midnight(date(year + 1, 1, 1), tz)


def hour_bounds(
    reference: datetime | date,
    start_hour: int = HOUR_LABEL_START,
    end_hour: int = HOUR_LABEL_END,
    timezone_str: str = "UTC",
) -> tuple[datetime, datetime]:
    """Local day of ``reference`` clipped to ``[start_hour, end_hour)``.

    A ``date`` is taken as the local day itself; a ``datetime`` is first
    converted to ``timezone_str``. ``end_hour`` may be 24 (next midnight).
    """
    if not 0 <= start_hour < end_hour <= 24:
        raise InvalidWindowError(f"Invalid hour range [{start_hour}, {end_hour})")

    tz = pytz.timezone(timezone_str)
    day = _to_local(reference, tz).date() if isinstance(reference, datetime) else reference
    midnight = datetime.combine(day, time())

    return (
        tz.localize(midnight + timedelta(hours=start_hour)),
        tz.localize(midnight + timedelta(hours=end_hour)),
    )


def resolve_window(
    window: Window,
    calendar: CalendarConfig | None = None,
    *,
    allow_future: bool = False,
) -> tuple[datetime, datetime]:
    """Resolve a navigable window to absolute ``[start, end)`` bounds.

    Dispatch per granularity:

    - hourly: local day of ``reference`` shifted by ``offset`` days, clipped to the
      configured hour range
    - daily: ISO week of ``reference`` shifted by ``offset`` weeks
    - weekly: month of ``reference``
    - monthly: year of ``reference``
    - yearly: epoch year through the reference year

    Parameters
    ----------
    window
        Window to resolve
    calendar
        Calendar settings (default: UTC, epoch 2025, 7 AM-10 PM)
    allow_future
        Permit positive offsets (export ranges)

    Raises
    ------
    InvalidWindowError
        For future offsets while browsing, offsets on non-navigable
        granularities, or an empty range
    """
    calendar = calendar or CalendarConfig()
    granularity = window.granularity

    if window.offset > 0 and not allow_future:
        raise InvalidWindowError(f"Cannot navigate into the future (offset={window.offset})")

    if granularity == Granularity.HOURLY:
        tz = pytz.timezone(calendar.timezone)
        day = _to_local(window.reference, tz).date() + timedelta(days=window.offset)
        start, end = hour_bounds(day, calendar.hourly_start, calendar.hourly_end, calendar.timezone)
    elif granularity == Granularity.DAILY:
        start, end = week_bounds(window.reference, window.offset, calendar.timezone)
    else:
        if window.offset != 0:
            raise InvalidWindowError(f"{granularity.value} windows are not offset-navigable")

        if granularity == Granularity.WEEKLY:
            start, end = month_bounds(window.reference, calendar.timezone)
        elif granularity == Granularity.MONTHLY:
            start, end = year_bounds(window.reference, calendar.timezone)
        else:
            start, end = epoch_bounds(window.reference, calendar.epoch_year, calendar.timezone)

    if end <= start:
        raise InvalidWindowError(f"Window end {end.isoformat()} is not after start {start.isoformat()}")

    return start, end


def week_of_month(day_of_month: int) -> int:
    """One-based week-of-month index: days 1-7 -> 1, ..., 29-31 -> 5."""
    return (day_of_month - 1) // 7 + 1


def hour_label(hour: int) -> str:
    """12-hour clock label, e.g. 7 -> "7 AM", 21 -> "9 PM", 0 -> "12 AM"."""
    suffix = "AM" if hour < 12 else "PM"
    return f"{hour % 12 or 12} {suffix}"


def bucket_key(granularity: Granularity, local_dt: datetime) -> str:
    """Label of the bucket ``local_dt`` falls into.

    This is the only placement rule: label generation and event placement
    both go through it.
    """
    if granularity == Granularity.HOURLY:
        return hour_label(local_dt.hour)
    if granularity == Granularity.DAILY:
        return WEEKDAY_ABBREVIATIONS[local_dt.weekday()]
    if granularity == Granularity.WEEKLY:
        return f"Week {week_of_month(local_dt.day)}"
    if granularity == Granularity.MONTHLY:
        return MONTH_ABBREVIATIONS[local_dt.month - 1]
    if granularity == Granularity.YEARLY:
        return str(local_dt.year)
    raise ValueError(f"Unknown granularity: {granularity}")


def bucket_labels(
    granularity: Granularity,
    start: datetime,
    end: datetime,
    timezone_str: str = "UTC",
) -> tuple[str, ...]:
    """Canonical labels for every calendar unit in ``[start, end)``.

    Walks the range in local wall-clock time one unit at a time, so a month
    of 28 days yields four week labels and a 29-31 day month yields five.

    Raises
    ------
    InvalidWindowError
        If ``end`` is not after ``start``
    """
    if end <= start:
        raise InvalidWindowError(f"Window end {end.isoformat()} is not after start {start.isoformat()}")

    tz = pytz.timezone(timezone_str)
    cursor = _to_local(start, tz).replace(tzinfo=None)
    stop = _to_local(end, tz).replace(tzinfo=None)

    if granularity == Granularity.HOURLY:
        cursor = cursor.replace(minute=0, second=0, microsecond=0)
    elif granularity in (Granularity.DAILY, Granularity.WEEKLY):
        cursor = datetime.combine(cursor.date(), time())
    elif granularity == Granularity.MONTHLY:
        cursor = datetime.combine(cursor.date().replace(day=1), time())
    else:
        cursor = datetime(cursor.year, 1, 1)

    labels: list[str] = []
    while cursor < stop:
        label = bucket_key(granularity, cursor)
        if label not in labels:
            labels.append(label)

        if granularity == Granularity.HOURLY:
            cursor += timedelta(hours=1)
        elif granularity in (Granularity.DAILY, Granularity.WEEKLY):
            cursor += timedelta(days=1)
        elif granularity == Granularity.MONTHLY:
            cursor = datetime.combine(_add_months(cursor.date(), 1), time())
        else:
            cursor = datetime(cursor.year + 1, 1, 1)

    return tuple(labels)


def format_week_range(reference: datetime, offset_weeks: int = 0, timezone_str: str = "UTC") -> str:
    """Week navigator caption, e.g. ``"October 6 - October 12"``."""
    start, _ = week_bounds(reference, offset_weeks, timezone_str)
    first = start.date()
    last = first + timedelta(days=6)

    return f"{MONTH_NAMES[first.month - 1]} {first.day} - {MONTH_NAMES[last.month - 1]} {last.day}"
