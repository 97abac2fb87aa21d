"""Summary pipeline - thin orchestration for charts and exports.

Fetches detection events for a window, runs the multi-category aggregator
and remembers the last good result per granularity. Change notifications
from the detector re-run the last requested window; the pipeline owns no
subscription of its own.
"""

from __future__ import annotations

import uuid
from dataclasses import replace
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from ..core.categories import Category
from ..core.models import AggregationResult, Granularity, Window
from ..core.time import get_current_utc
from ..export.csv_export import DEFAULT_FILE_HINT, hourly_file_hint, write_csv
from ..observability.loguru_config import get_logger, timing_context
from ..rollups.aggregator import aggregate_all
from ..rollups.time_windows import CalendarConfig, format_week_range, resolve_window
from ..storage.base import DataFetchError

if TYPE_CHECKING:
    from ..storage.base import EventSource

__all__ = [
    "SummaryPipeline",
    "create_summary_pipeline",
]

logger = get_logger("pipeline")


class SummaryPipeline:
    """Aggregation front-end for chart and export consumers.

    Responsibilities:
    - Resolve windows and fetch events in one batch
    - Aggregate every category over a shared label axis
    - Keep the previous result when a fetch fails
    - Re-aggregate on change notification

    Example:
        >>> store = SQLiteDetectionStore(Path("data/bins.db"))
        >>> pipeline = create_summary_pipeline(store, CalendarConfig(timezone="Europe/Brussels"))
        >>> result = pipeline.summarize(Window.current("daily"))
        >>> result.labels
        ('Mon', 'Tue', 'Wed', 'Thu', 'Fri', 'Sat', 'Sun')
    """

    def __init__(self, source: EventSource, calendar: CalendarConfig | None = None) -> None:
        """Initialize summary pipeline.

        Parameters
        ----------
        source
            Event source to fetch detections from
        calendar
            Calendar settings (timezone, epoch year, hour range)
        """
        self.source = source
        self.calendar = calendar or CalendarConfig()
        self.current: dict[Granularity, AggregationResult] = {}
        self.last_window: Window | None = None

    def summarize(self, window: Window, *, allow_future: bool = False) -> AggregationResult:
        """Fetch and aggregate one window.

        Parameters
        ----------
        window
            Window to aggregate
        allow_future
            Permit positive offsets (export ranges); such results are not
            stored as the current chart state

        Returns
        -------
        AggregationResult
            Aggregated series

        Raises
        ------
        DataFetchError
            If the event source fails; the previous result is kept
        InvalidWindowError
            If the window cannot be resolved
        """
        trace_id = str(uuid.uuid4())
        start, end = resolve_window(window, self.calendar, allow_future=allow_future)

        try:
            with timing_context(
                "fetch_events",
                component="pipeline",
                trace_id=trace_id,
                granularity=window.granularity.value,
            ) as ctx:
                events = self.source.query_all(Category.ordered(), start, end)
                ctx["events"] = sum(len(batch) for batch in events.values())
        except DataFetchError as exc:
            logger.error(
                "Event fetch failed, keeping previous result",
                trace_id=trace_id,
                granularity=window.granularity.value,
                offset=window.offset,
                error=str(exc),
            )
            raise

        with timing_context("aggregate", component="aggregation", trace_id=trace_id) as ctx:
            result = aggregate_all(events, window, self.calendar, allow_future=allow_future)
            ctx["buckets"] = len(result.labels)

        if not allow_future:
            self.current[window.granularity] = result
            self.last_window = window

        logger.info(
            "Window aggregated",
            trace_id=trace_id,
            granularity=window.granularity.value,
            offset=window.offset,
            buckets=len(result.labels),
            events=result.source_count,
        )
        return result

    def hourly(self, day_offset: int = 0, now: datetime | None = None) -> AggregationResult:
        """Hourly view of one local day (``day_offset`` days from today)."""
        return self.summarize(Window(Granularity.HOURLY, now or get_current_utc(), day_offset))

    def navigate_week(self, delta: int, now: datetime | None = None) -> AggregationResult:
        """Move the daily chart by ``delta`` weeks, never past the current week."""
        current = self.last_window if self.last_window and self.last_window.granularity == Granularity.DAILY else None
        offset = min((current.offset if current else 0) + delta, 0)

        return self.summarize(Window(Granularity.DAILY, now or get_current_utc(), offset))

    def week_caption(self, offset: int = 0, now: datetime | None = None) -> str:
        """Navigator caption for the daily chart, e.g. ``"October 6 - October 12"``."""
        return format_week_range(now or get_current_utc(), offset, self.calendar.timezone)

    def notify_change(self, category: Category, now: datetime | None = None) -> AggregationResult | None:
        """Re-aggregate the last requested window after a new detection.

        Returns None when no window has been requested yet.
        """
        if self.last_window is None:
            return None

        logger.debug("Change notification", category=category.value, granularity=self.last_window.granularity.value)
        return self.summarize(replace(self.last_window, reference=now or get_current_utc()))

    def export(
        self,
        window: Window,
        output_dir: Path,
        file_hint: str | None = None,
    ) -> Path:
        """Aggregate ``window`` and write it as CSV.

        Raises
        ------
        NothingToExportError
            If the window holds no detections (no file is written)
        DataFetchError
            If the event source fails
        """
        result = self.summarize(window, allow_future=True)

        if window.granularity == Granularity.HOURLY:
            hint = file_hint or hourly_file_hint(result.start.date())
        else:
            hint = file_hint or DEFAULT_FILE_HINT

        return write_csv(result, output_dir, hint, window.granularity.value)


def create_summary_pipeline(source: EventSource, calendar: CalendarConfig | None = None) -> SummaryPipeline:
    """Create summary pipeline.

    Parameters
    ----------
    source
        Event source
    calendar
        Calendar settings

    Returns
    -------
    SummaryPipeline
        Configured pipeline
    """
    return SummaryPipeline(source, calendar)
