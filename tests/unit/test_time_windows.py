"""Tests for calendar windowing and bucket labels.

Weeks with DST changes yield correct boundaries, and labels are dense and
stable for every granularity.
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from bintally.core.models import Granularity, Window
from bintally.rollups.time_windows import (
    CalendarConfig,
    InvalidWindowError,
    bucket_key,
    bucket_labels,
    epoch_bounds,
    format_week_range,
    get_week_start,
    hour_bounds,
    hour_label,
    month_bounds,
    resolve_window,
    week_bounds,
    week_of_month,
    year_bounds,
)

# Wednesday, Oct 8, 2025
REFERENCE = datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc)


def test_get_week_start_monday():
    """Test getting week start (Monday)."""
    dt = datetime(2025, 10, 8, 15, 30, 0)

    start = get_week_start(dt, start_on=0)

    assert start.weekday() == 0
    assert start.day == 6  # Oct 6 is Monday
    assert start.hour == 15  # Same time as input


def test_week_bounds_iso_week():
    """Week runs Monday midnight to next Monday midnight."""
    start, end = week_bounds(REFERENCE)

    assert start == datetime(2025, 10, 6, tzinfo=timezone.utc)
    assert end == datetime(2025, 10, 13, tzinfo=timezone.utc)


def test_week_bounds_offset():
    """Negative offsets move whole weeks back."""
    start, end = week_bounds(REFERENCE, offset_weeks=-1)

    assert start == datetime(2025, 9, 29, tzinfo=timezone.utc)
    assert end == datetime(2025, 10, 6, tzinfo=timezone.utc)


def test_week_bounds_fall_back():
    """Test DST fall back week (one extra hour).

    Europe/Brussels leaves CEST on Oct 26, 2025.
    """
    start, end = week_bounds(datetime(2025, 10, 22, 12, tzinfo=timezone.utc), timezone_str="Europe/Brussels")

    # Monday midnight CEST (UTC+2) and next Monday midnight CET (UTC+1)
    assert start.astimezone(timezone.utc) == datetime(2025, 10, 19, 22, tzinfo=timezone.utc)
    assert end.astimezone(timezone.utc) == datetime(2025, 10, 26, 23, tzinfo=timezone.utc)
    assert (end - start).total_seconds() == 7 * 24 * 3600 + 3600


def test_week_bounds_uses_local_date():
    """Late Sunday UTC may already be Monday locally."""
    # Sunday 23:30 UTC = Monday 01:30 in Brussels
    reference = datetime(2025, 10, 12, 23, 30, tzinfo=timezone.utc)

    start, _ = week_bounds(reference, timezone_str="Europe/Brussels")

    assert start.date() == datetime(2025, 10, 13).date()


def test_month_and_year_bounds():
    """Month and year bounds are local midnights."""
    month_start, month_end = month_bounds(datetime(2025, 12, 15, tzinfo=timezone.utc))
    year_start, year_end = year_bounds(REFERENCE)

    assert month_start == datetime(2025, 12, 1, tzinfo=timezone.utc)
    assert month_end == datetime(2026, 1, 1, tzinfo=timezone.utc)
    assert year_start == datetime(2025, 1, 1, tzinfo=timezone.utc)
    assert year_end == datetime(2026, 1, 1, tzinfo=timezone.utc)


def test_epoch_bounds_reference_before_epoch():
    """A reference year before the epoch cannot be charted."""
    with pytest.raises(InvalidWindowError):
        epoch_bounds(datetime(2024, 6, 1, tzinfo=timezone.utc), epoch_year=2025)


def test_hour_bounds_spring_forward():
    """Hour range on the DST spring forward day (New York, Mar 9, 2025)."""
    start, end = hour_bounds(datetime(2025, 3, 9, 16, tzinfo=timezone.utc), 7, 22, "America/New_York")

    # 7 AM and 10 PM EDT (UTC-4)
    assert start.astimezone(timezone.utc) == datetime(2025, 3, 9, 11, tzinfo=timezone.utc)
    assert end.astimezone(timezone.utc) == datetime(2025, 3, 10, 2, tzinfo=timezone.utc)


def test_hour_bounds_local_date():
    start, end = hour_bounds(date(2025, 10, 26), 0, 24, "Europe/Brussels")

    assert end - start == timedelta(hours=25)


def test_hour_bounds_invalid_range():
    with pytest.raises(InvalidWindowError):
        hour_bounds(REFERENCE, 22, 7)


class TestResolveWindow:
    """Test dispatch of windows to absolute bounds."""

    def test_daily_is_iso_week(self):
        start, end = resolve_window(Window(Granularity.DAILY, REFERENCE))

        assert (start.date().isoformat(), end.date().isoformat()) == ("2025-10-06", "2025-10-13")

    def test_weekly_is_month(self):
        start, end = resolve_window(Window(Granularity.WEEKLY, REFERENCE))

        assert start == datetime(2025, 10, 1, tzinfo=timezone.utc)
        assert end == datetime(2025, 11, 1, tzinfo=timezone.utc)

    def test_yearly_spans_epoch_to_reference(self):
        reference = datetime(2027, 3, 1, tzinfo=timezone.utc)

        start, end = resolve_window(Window(Granularity.YEARLY, reference))

        assert start == datetime(2025, 1, 1, tzinfo=timezone.utc)
        assert end == datetime(2028, 1, 1, tzinfo=timezone.utc)

    def test_hourly_offset_in_days(self):
        start, end = resolve_window(Window(Granularity.HOURLY, REFERENCE, -1))

        assert start == datetime(2025, 10, 7, 7, tzinfo=timezone.utc)
        assert end == datetime(2025, 10, 7, 22, tzinfo=timezone.utc)

    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            # Oct 26 23:30 CET, the 25-hour fall back day
            (datetime(2025, 10, 26, 22, 30, tzinfo=timezone.utc), date(2025, 10, 25)),
            # Mar 31 00:30 CEST, just after the 23-hour spring forward day
            (datetime(2025, 3, 30, 22, 30, tzinfo=timezone.utc), date(2025, 3, 30)),
        ],
    )
    def test_hourly_previous_day_across_dst(self, reference, expected):
        """One day back is the previous local calendar day, however long it was."""
        calendar = CalendarConfig(timezone="Europe/Brussels")

        start, end = resolve_window(Window(Granularity.HOURLY, reference, -1), calendar)

        assert start.date() == expected
        assert end.date() == expected
        assert (start.hour, end.hour) == (7, 22)

    def test_future_offset_rejected(self):
        """Browsing never moves past the current period."""
        with pytest.raises(InvalidWindowError):
            resolve_window(Window(Granularity.DAILY, REFERENCE, 1))

    def test_future_offset_allowed_for_exports(self):
        start, _ = resolve_window(Window(Granularity.DAILY, REFERENCE, 1), allow_future=True)

        assert start == datetime(2025, 10, 13, tzinfo=timezone.utc)

    @pytest.mark.parametrize("granularity", [Granularity.WEEKLY, Granularity.MONTHLY, Granularity.YEARLY])
    def test_offset_not_navigable(self, granularity):
        with pytest.raises(InvalidWindowError):
            resolve_window(Window(granularity, REFERENCE, -1))

    def test_custom_calendar(self):
        calendar = CalendarConfig(timezone="Europe/Brussels", hourly_start=0, hourly_end=24)

        start, end = resolve_window(Window(Granularity.HOURLY, REFERENCE), calendar)

        assert start.astimezone(timezone.utc) == datetime(2025, 10, 7, 22, tzinfo=timezone.utc)
        assert end.astimezone(timezone.utc) == datetime(2025, 10, 8, 22, tzinfo=timezone.utc)


class TestCalendarConfig:
    def test_unknown_timezone(self):
        with pytest.raises(ValueError, match="Invalid timezone"):
            CalendarConfig(timezone="Mars/Olympus_Mons")

    def test_inverted_hour_range(self):
        with pytest.raises(ValueError):
            CalendarConfig(hourly_start=22, hourly_end=7)


class TestLabels:
    """Label generation is dense, ordered and locale independent."""

    def test_week_of_month(self):
        assert week_of_month(1) == 1
        assert week_of_month(7) == 1
        assert week_of_month(8) == 2
        assert week_of_month(28) == 4
        assert week_of_month(29) == 5
        assert week_of_month(31) == 5

    def test_hour_label(self):
        assert hour_label(0) == "12 AM"
        assert hour_label(7) == "7 AM"
        assert hour_label(12) == "12 PM"
        assert hour_label(21) == "9 PM"

    def test_bucket_key(self):
        local = datetime(2025, 10, 8, 15, 45)

        assert bucket_key(Granularity.HOURLY, local) == "3 PM"
        assert bucket_key(Granularity.DAILY, local) == "Wed"
        assert bucket_key(Granularity.WEEKLY, local) == "Week 2"
        assert bucket_key(Granularity.MONTHLY, local) == "Oct"
        assert bucket_key(Granularity.YEARLY, local) == "2025"

    def test_daily_labels(self):
        start, end = week_bounds(REFERENCE)

        assert bucket_labels(Granularity.DAILY, start, end) == ("Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun")

    def test_hourly_labels(self):
        start, end = hour_bounds(REFERENCE)
        labels = bucket_labels(Granularity.HOURLY, start, end)

        assert len(labels) == 15
        assert labels[0] == "7 AM"
        assert labels[-1] == "9 PM"

    @pytest.mark.parametrize(
        ("reference", "expected"),
        [
            (datetime(2025, 2, 10, tzinfo=timezone.utc), 4),  # 28 days
            (datetime(2024, 2, 10, tzinfo=timezone.utc), 5),  # leap year
            (datetime(2025, 10, 8, tzinfo=timezone.utc), 5),  # 31 days
        ],
    )
    def test_weekly_labels_follow_month_length(self, reference, expected):
        start, end = month_bounds(reference)
        labels = bucket_labels(Granularity.WEEKLY, start, end)

        assert labels == tuple(f"Week {n}" for n in range(1, expected + 1))

    def test_monthly_labels(self):
        start, end = year_bounds(REFERENCE)

        assert bucket_labels(Granularity.MONTHLY, start, end) == (
            "Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec",
        )  # fmt: skip

    def test_yearly_labels(self):
        start, end = epoch_bounds(datetime(2027, 3, 1, tzinfo=timezone.utc))

        assert bucket_labels(Granularity.YEARLY, start, end) == ("2025", "2026", "2027")

    def test_daily_labels_across_dst(self):
        """The 169-hour fall back week still has seven days."""
        start, end = week_bounds(datetime(2025, 10, 22, tzinfo=timezone.utc), timezone_str="Europe/Brussels")

        assert len(bucket_labels(Granularity.DAILY, start, end, "Europe/Brussels")) == 7

    def test_empty_range_rejected(self):
        start, _ = week_bounds(REFERENCE)

        with pytest.raises(InvalidWindowError):
            bucket_labels(Granularity.DAILY, start, start)


def test_format_week_range():
    assert format_week_range(REFERENCE) == "October 6 - October 12"
    assert format_week_range(REFERENCE, -1) == "September 29 - October 5"
