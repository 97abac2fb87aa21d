"""Integration tests for the summary pipeline.

Store -> windowing -> aggregation -> export, plus failure handling.
"""

import tempfile
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from bintally.core.categories import Category
from bintally.core.models import Event, Granularity, LiveCounter, Window
from bintally.counters.rollover import CounterRollover
from bintally.export.csv_export import NothingToExportError
from bintally.pipelines.summary_pipeline import create_summary_pipeline
from bintally.rollups.time_windows import CalendarConfig, InvalidWindowError
from bintally.storage.base import DataFetchError
from bintally.storage.memory_store import InMemoryDetectionStore
from bintally.storage.sqlite_store import SQLiteDetectionStore

# Wednesday, Oct 8, 2025
NOW = datetime(2025, 10, 8, 12, 0, tzinfo=timezone.utc)
MONDAY = datetime(2025, 10, 6, 10, tzinfo=timezone.utc)


class FlakySource(InMemoryDetectionStore):
    """Memory store whose reads can be switched off."""

    def __init__(self):
        super().__init__()
        self.available = True

    def query_all(self, categories, start, end):
        if not self.available:
            raise DataFetchError("Store offline", start=start, end=end)
        return super().query_all(categories, start, end)


@pytest.fixture
def test_env():
    """SQLite store seeded with one week of detections."""
    with tempfile.TemporaryDirectory() as tmpdir:
        store = SQLiteDetectionStore(Path(tmpdir) / "bins.db")
        for event in [
            Event(Category.PAPER, MONDAY),
            Event(Category.PAPER, MONDAY + timedelta(hours=3)),
            Event(Category.CAN, MONDAY + timedelta(days=2)),
            Event(Category.PET_BOTTLE, MONDAY + timedelta(days=6)),
            Event(Category.CAN, MONDAY - timedelta(days=7)),
        ]:
            store.append(event)

        yield store, Path(tmpdir)


def test_summarize_current_week(test_env):
    store, _ = test_env
    pipeline = create_summary_pipeline(store)

    result = pipeline.summarize(Window(Granularity.DAILY, NOW))

    assert result.counts_for(Category.PAPER) == (2, 0, 0, 0, 0, 0, 0)
    assert result.counts_for(Category.CAN) == (0, 0, 1, 0, 0, 0, 0)
    assert result.counts_for(Category.PET_BOTTLE) == (0, 0, 0, 0, 0, 0, 1)
    assert pipeline.current[Granularity.DAILY] is result


def test_navigate_week(test_env):
    """Navigating back shows last week; forward stops at the current week."""
    store, _ = test_env
    pipeline = create_summary_pipeline(store)
    pipeline.summarize(Window(Granularity.DAILY, NOW))

    previous = pipeline.navigate_week(-1, NOW)
    assert previous.counts_for(Category.CAN) == (1, 0, 0, 0, 0, 0, 0)
    assert pipeline.last_window.offset == -1

    pipeline.navigate_week(+1, NOW)
    current = pipeline.navigate_week(+1, NOW)
    assert pipeline.last_window.offset == 0
    assert current.totals()[Category.PAPER] == 2


def test_week_caption():
    pipeline = create_summary_pipeline(InMemoryDetectionStore())

    assert pipeline.week_caption(-1, NOW) == "September 29 - October 5"


def test_monthly_and_yearly(test_env):
    store, _ = test_env
    pipeline = create_summary_pipeline(store)

    monthly = pipeline.summarize(Window(Granularity.MONTHLY, NOW))
    yearly = pipeline.summarize(Window(Granularity.YEARLY, NOW))

    assert monthly.labels[9] == "Oct"
    assert monthly.totals() == {Category.PAPER: 2, Category.CAN: 2, Category.PET_BOTTLE: 1}
    assert yearly.labels == ("2025",)
    assert yearly.source_count == 5


def test_hourly_in_local_time():
    """Hourly view of a Brussels day buckets by local hour."""
    store = InMemoryDetectionStore()
    store.append(Event(Category.CAN, datetime(2025, 10, 8, 6, 15, tzinfo=timezone.utc)))  # 8:15 local
    pipeline = create_summary_pipeline(store, CalendarConfig(timezone="Europe/Brussels"))

    result = pipeline.hourly(0, NOW)

    assert dict(zip(result.labels, result.counts_for(Category.CAN)))["8 AM"] == 1


def test_fetch_failure_keeps_previous_result():
    """DataFetchError propagates and the previous chart state survives."""
    source = FlakySource()
    source.append(Event(Category.PAPER, MONDAY))
    pipeline = create_summary_pipeline(source)

    first = pipeline.summarize(Window(Granularity.DAILY, NOW))

    source.available = False
    with pytest.raises(DataFetchError):
        pipeline.summarize(Window(Granularity.DAILY, NOW))

    assert pipeline.current[Granularity.DAILY] is first


def test_future_offset_rejected():
    pipeline = create_summary_pipeline(InMemoryDetectionStore())

    with pytest.raises(InvalidWindowError):
        pipeline.summarize(Window(Granularity.DAILY, NOW, 1))


def test_notify_change_reaggregates_last_window():
    store = InMemoryDetectionStore()
    pipeline = create_summary_pipeline(store)

    assert pipeline.notify_change(Category.CAN, NOW) is None

    pipeline.summarize(Window(Granularity.DAILY, NOW))
    store.append(Event(Category.CAN, NOW))

    result = pipeline.notify_change(Category.CAN, NOW)

    assert result.counts_for(Category.CAN)[2] == 1
    assert pipeline.current[Granularity.DAILY] is result


def test_rollover_archive_shows_up_in_chart():
    """The archived daily total is a row of the log, counted at archive time."""
    store = InMemoryDetectionStore()
    store.put_counter(LiveCounter(Category.CAN, 5, NOW.date() - timedelta(days=1)))
    CounterRollover(store).refresh(NOW)

    result = create_summary_pipeline(store).summarize(Window(Granularity.DAILY, NOW))

    assert result.counts_for(Category.CAN) == (0, 0, 1, 0, 0, 0, 0)


class TestExport:
    def test_export_daily(self, test_env):
        store, tmpdir = test_env
        pipeline = create_summary_pipeline(store)

        path = pipeline.export(Window(Granularity.DAILY, NOW), tmpdir / "exports")

        assert path.name == "combined_bins_daily.csv"
        lines = path.read_text(encoding="utf-8").split("\n")
        assert lines[0] == "label,paper,can,pet bottle"
        assert lines[-1] == "total,2,1,1"

    def test_export_hourly_filename(self, test_env):
        store, tmpdir = test_env
        pipeline = create_summary_pipeline(store)

        path = pipeline.export(Window(Granularity.HOURLY, MONDAY), tmpdir)

        assert path.name == "October-6-2025_Hourly_Collection_hourly.csv"

    def test_export_empty_range(self, test_env):
        store, tmpdir = test_env
        pipeline = create_summary_pipeline(store)

        with pytest.raises(NothingToExportError):
            pipeline.export(Window(Granularity.WEEKLY, datetime(2025, 12, 1, tzinfo=timezone.utc)), tmpdir)

    def test_export_does_not_replace_chart_state(self, test_env):
        store, tmpdir = test_env
        pipeline = create_summary_pipeline(store)
        chart = pipeline.summarize(Window(Granularity.DAILY, NOW))

        pipeline.export(Window(Granularity.DAILY, NOW, -1), tmpdir)

        assert pipeline.current[Granularity.DAILY] is chart
        assert pipeline.last_window.offset == 0
