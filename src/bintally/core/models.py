"""Value objects shared by the aggregation engine.

Design:
- Frozen dataclasses (safe to share between readers)
- Events and archive entries are append-only records
- Aggregation results are recomputed per query, never cached
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import date, datetime
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping

from .categories import Category
from .time import ensure_utc, format_utc_iso8601, get_current_utc

__all__ = [
    "AggregationResult",
    "ArchiveEntry",
    "Bucket",
    "Event",
    "Granularity",
    "LiveCounter",
    "Window",
]


class Granularity(str, Enum):
    """Time unit represented by one bucket."""

    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"
    MONTHLY = "monthly"
    YEARLY = "yearly"


@dataclass(frozen=True)
class Event:
    """One detection recorded in the detections log.

    Attributes
    ----------
    category : Category
        Detected object type
    occurred_at : datetime
        Detection instant (normalised to UTC)
    """

    category: Category
    occurred_at: datetime

    def __post_init__(self) -> None:
        object.__setattr__(self, "category", Category.parse(self.category))
        object.__setattr__(self, "occurred_at", ensure_utc(self.occurred_at))


@dataclass(frozen=True)
class LiveCounter:
    """Running total for the current day of one category.

    Attributes
    ----------
    category : Category
        Counted object type
    count : int
        Detections since the last reset (never negative)
    last_reset_date : date
        Local calendar date of the last reset
    """

    category: Category
    count: int
    last_reset_date: date

    def __post_init__(self) -> None:
        if self.count < 0:
            raise ValueError(f"Counter for {self.category.value} cannot be negative: {self.count}")

    def is_stale(self, today: date) -> bool:
        """True when the counter still holds a previous day's total."""
        return self.last_reset_date < today

    def reset(self, today: date) -> LiveCounter:
        """Return the zeroed counter for ``today``."""
        return replace(self, count=0, last_reset_date=today)


@dataclass(frozen=True)
class ArchiveEntry:
    """Snapshot of a counter written to the detections log on rollover."""

    category: Category
    count: int
    archived_at: datetime
    counter_date: date

    def to_event(self) -> Event:
        """The archive row as seen by the aggregators."""
        return Event(category=self.category, occurred_at=self.archived_at)


@dataclass(frozen=True)
class Window:
    """Navigable time window.

    Attributes
    ----------
    granularity : Granularity
        Bucket width (and therefore window extent)
    reference : datetime
        Instant the window is computed around (usually "now")
    offset : int
        Whole units to shift from ``reference``: weeks for daily charts,
        days for the hourly view
    """

    granularity: Granularity
    reference: datetime
    offset: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "granularity", Granularity(self.granularity))
        object.__setattr__(self, "reference", ensure_utc(self.reference))

    @classmethod
    def current(
        cls,
        granularity: Granularity | str,
        offset: int = 0,
        now: datetime | None = None,
    ) -> Window:
        """Window around the current instant."""
        return cls(Granularity(granularity), now or get_current_utc(), offset)

    def shifted(self, delta: int) -> Window:
        """Same window moved by ``delta`` units."""
        return replace(self, offset=self.offset + delta)


@dataclass(frozen=True)
class Bucket:
    """One labelled count slot in a series."""

    label: str
    count: int = 0


@dataclass(frozen=True)
class AggregationResult:
    """Per-category series sharing one label axis.

    Attributes
    ----------
    granularity : Granularity
        Bucket width
    start : datetime
        Window start (inclusive)
    end : datetime
        Window end (exclusive)
    labels : tuple[str, ...]
        Canonical bucket labels in order
    series : Mapping[Category, tuple[int, ...]]
        Counts aligned with ``labels``, in paper/can/pet bottle order
        (read-only)
    source_count : int
        Events that fell inside the window before bucketing
    """

    granularity: Granularity
    start: datetime
    end: datetime
    labels: tuple[str, ...]
    series: Mapping[Category, tuple[int, ...]] = field(default_factory=dict)
    source_count: int = 0

    def __post_init__(self) -> None:
        object.__setattr__(self, "series", MappingProxyType(dict(self.series)))

    def counts_for(self, category: Category) -> tuple[int, ...]:
        """Series of ``category`` (zero-filled when absent)."""
        return self.series.get(category, (0,) * len(self.labels))

    def totals(self) -> dict[Category, int]:
        """Sum of every series."""
        return {category: sum(self.counts_for(category)) for category in Category.ordered()}

    def is_empty(self) -> bool:
        """True when no event fell inside the window and every series is zero."""
        return self.source_count == 0 and not any(self.totals().values())

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-friendly dictionary."""
        return {
            "granularity": self.granularity.value,
            "start": format_utc_iso8601(self.start),
            "end": format_utc_iso8601(self.end),
            "labels": list(self.labels),
            "series": {category.value: list(self.counts_for(category)) for category in Category.ordered()},
            "totals": {category.value: total for category, total in self.totals().items()},
            "source_count": self.source_count,
        }
