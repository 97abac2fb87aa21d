"""Time-bucketed rollups of detection events."""

from .aggregator import aggregate, aggregate_all, is_event_in_window, split_by_category
from .time_windows import (
    CalendarConfig,
    InvalidWindowError,
    bucket_key,
    bucket_labels,
    epoch_bounds,
    format_week_range,
    hour_bounds,
    month_bounds,
    resolve_window,
    week_bounds,
    year_bounds,
)

__all__ = [
    # Time windows
    "CalendarConfig",
    "InvalidWindowError",
    "bucket_key",
    "bucket_labels",
    "epoch_bounds",
    "format_week_range",
    "hour_bounds",
    "month_bounds",
    "resolve_window",
    "week_bounds",
    "year_bounds",
    # Aggregation
    "aggregate",
    "aggregate_all",
    "is_event_in_window",
    "split_by_category",
]
