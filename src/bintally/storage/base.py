"""Collaborator interfaces for the detection stores.

The aggregation core only reads events and live counters; these protocols
describe what it needs from whatever backs them.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import date, datetime
from typing import Protocol, runtime_checkable

from ..core.categories import Category
from ..core.models import Event, LiveCounter

__all__ = [
    "DataFetchError",
    "EventSource",
    "InconsistentRolloverStateError",
    "LiveCounterStore",
]


class DataFetchError(Exception):
    """Raised when the event or counter store cannot be read or written.

    Carries enough context (category, window) for the caller to retry.
    """

    def __init__(
        self,
        message: str,
        *,
        category: Category | None = None,
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> None:
        self.category = category
        self.start = start
        self.end = end

        context = []
        if category is not None:
            context.append(f"category={category.value}")
        if start is not None and end is not None:
            context.append(f"window=[{start.isoformat()}, {end.isoformat()})")

        super().__init__(f"{message} ({', '.join(context)})" if context else message)


class InconsistentRolloverStateError(Exception):
    """Archive and reset of a live counter were not applied together.

    This is a data-integrity alarm and must never be retried silently.
    """

    def __init__(self, category: Category, message: str) -> None:
        self.category = category
        super().__init__(f"Inconsistent rollover state for {category.value}: {message}")


@runtime_checkable
class EventSource(Protocol):
    """Time-series store of detection events.

    Ranges are half-open ``[start, end)``; results come in no particular order.
    """

    def query(self, category: Category, start: datetime, end: datetime) -> Sequence[Event]: ...

    def query_all(
        self,
        categories: Iterable[Category],
        start: datetime,
        end: datetime,
    ) -> dict[Category, list[Event]]: ...


@runtime_checkable
class LiveCounterStore(Protocol):
    """Key-value store of the per-category running totals."""

    def read(self, category: Category) -> LiveCounter: ...

    def conditional_reset(
        self,
        category: Category,
        expected_stale_date: date,
        today: date,
        archived_at: datetime,
    ) -> bool:
        """Archive the current count and reset it, atomically.

        Succeeds only while ``last_reset_date`` still equals
        ``expected_stale_date``; returns False (no write) otherwise.
        """
        ...
