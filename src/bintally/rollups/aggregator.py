"""Detection rollup aggregation.

Aggregate detection events into dense, zero-filled bucket series per
category over a resolved time window.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from datetime import datetime

import pytz

from ..core.categories import Category
from ..core.models import AggregationResult, Bucket, Event, Window
from ..observability.loguru_config import get_logger
from .time_windows import CalendarConfig, bucket_key, bucket_labels, resolve_window

__all__ = [
    "aggregate",
    "aggregate_all",
    "count_into_buckets",
    "is_event_in_window",
    "split_by_category",
]

logger = get_logger("aggregation")


def is_event_in_window(event: Event, start: datetime, end: datetime) -> bool:
    """Check if an event falls within ``[start, end)``."""
    return start <= event.occurred_at < end


def count_into_buckets(
    events: Iterable[Event],
    window: Window,
    start: datetime,
    end: datetime,
    labels: tuple[str, ...],
    timezone_str: str = "UTC",
) -> tuple[tuple[Bucket, ...], int]:
    """Bucket events into a pre-computed label axis.

    Parameters
    ----------
    events
        Events to place (any order)
    window
        Window the labels were computed for
    start
        Window start (inclusive)
    end
        Window end (exclusive)
    labels
        Canonical labels of the window
    timezone_str
        Timezone used for placement

    Returns
    -------
    tuple[tuple[Bucket, ...], int]
        Buckets in label order and the number of events inside the window
    """
    tz = pytz.timezone(timezone_str)
    counts = dict.fromkeys(labels, 0)
    in_window = 0
    dropped = 0

    for event in events:
        if not is_event_in_window(event, start, end):
            continue

        in_window += 1
        key = bucket_key(window.granularity, event.occurred_at.astimezone(tz))
        if key in counts:
            counts[key] += 1
        else:
            dropped += 1

    if dropped:
        logger.debug(
            "Dropped events outside the label axis",
            granularity=window.granularity.value,
            dropped=dropped,
        )

    return tuple(Bucket(label, counts[label]) for label in labels), in_window


def aggregate(
    events: Iterable[Event],
    window: Window,
    calendar: CalendarConfig | None = None,
    *,
    allow_future: bool = False,
) -> tuple[Bucket, ...]:
    """Aggregate events into a dense bucket series.

    Every canonical unit of the window appears exactly once, in calendar
    order, with count 0 when no event landed in it.

    Parameters
    ----------
    events
        Events of a single category (order irrelevant)
    window
        Window to aggregate over; carries the granularity
    calendar
        Calendar settings (timezone, epoch year, hour range)
    allow_future
        Permit positive offsets (export ranges)

    Returns
    -------
    tuple[Bucket, ...]
        Dense bucket series

    Examples
    --------
    >>> window = Window("monthly", datetime(2025, 6, 1, tzinfo=pytz.UTC))
    >>> len(aggregate([], window))
    12
    """
    calendar = calendar or CalendarConfig()
    start, end = resolve_window(window, calendar, allow_future=allow_future)
    labels = bucket_labels(window.granularity, start, end, calendar.timezone)

    buckets, _ = count_into_buckets(events, window, start, end, labels, calendar.timezone)
    return buckets


def aggregate_all(
    events_by_category: Mapping[Category, Iterable[Event]],
    window: Window,
    calendar: CalendarConfig | None = None,
    *,
    allow_future: bool = False,
) -> AggregationResult:
    """Aggregate every category over one shared label axis.

    Categories missing from ``events_by_category`` still get a full
    zero-filled series. Series order is paper, can, pet bottle.

    Parameters
    ----------
    events_by_category
        Events keyed by category
    window
        Window to aggregate over
    calendar
        Calendar settings
    allow_future
        Permit positive offsets (export ranges)

    Returns
    -------
    AggregationResult
        Parallel series sharing ``labels``
    """
    calendar = calendar or CalendarConfig()
    start, end = resolve_window(window, calendar, allow_future=allow_future)
    labels = bucket_labels(window.granularity, start, end, calendar.timezone)

    series: dict[Category, tuple[int, ...]] = {}
    source_count = 0

    for category in Category.ordered():
        events = events_by_category.get(category, ())
        buckets, in_window = count_into_buckets(events, window, start, end, labels, calendar.timezone)
        series[category] = tuple(bucket.count for bucket in buckets)
        source_count += in_window

    return AggregationResult(
        granularity=window.granularity,
        start=start,
        end=end,
        labels=labels,
        series=series,
        source_count=source_count,
    )


def split_by_category(events: Iterable[Event]) -> dict[Category, list[Event]]:
    """Group a flat event list by category (every category present)."""
    grouped: dict[Category, list[Event]] = {category: [] for category in Category.ordered()}
    for event in events:
        grouped[event.category].append(event)
    return grouped
