"""In-process detection store (tests, demos, single-process deployments)."""

from __future__ import annotations

import threading
from collections.abc import Iterable
from datetime import date, datetime

from ..core.categories import Category
from ..core.models import ArchiveEntry, Event, LiveCounter
from ..core.time import today_in_timezone

__all__ = ["InMemoryDetectionStore"]


class InMemoryDetectionStore:
    """Same contract as the SQLite store, guarded by one lock."""

    def __init__(self, *, timezone: str = "UTC") -> None:
        self.timezone = timezone
        self._lock = threading.Lock()
        self._events: list[Event] = []
        self._counters: dict[Category, LiveCounter] = {}
        self._archive: list[ArchiveEntry] = []

    def append(self, event: Event) -> None:
        with self._lock:
            self._events.append(event)

    def extend(self, events: Iterable[Event]) -> None:
        with self._lock:
            self._events.extend(events)

    def query(self, category: Category, start: datetime, end: datetime) -> list[Event]:
        return self.query_all([category], start, end)[category]

    def query_all(
        self,
        categories: Iterable[Category],
        start: datetime,
        end: datetime,
    ) -> dict[Category, list[Event]]:
        result: dict[Category, list[Event]] = {Category.parse(category): [] for category in categories}
        with self._lock:
            for event in self._events:
                if event.category in result and start <= event.occurred_at < end:
                    result[event.category].append(event)
        return result

    def list_archive(self, category: Category | None = None) -> list[ArchiveEntry]:
        with self._lock:
            return [entry for entry in self._archive if category is None or entry.category == category]

    def read(self, category: Category) -> LiveCounter:
        with self._lock:
            return self._read_locked(category)

    def _read_locked(self, category: Category) -> LiveCounter:
        if category not in self._counters:
            self._counters[category] = LiveCounter(category, 0, today_in_timezone(self.timezone))
        return self._counters[category]

    def put_counter(self, counter: LiveCounter) -> None:
        with self._lock:
            self._counters[counter.category] = counter

    def increment(self, category: Category, amount: int = 1) -> LiveCounter:
        with self._lock:
            current = self._read_locked(category)
            updated = LiveCounter(category, current.count + amount, current.last_reset_date)
            self._counters[category] = updated
            return updated

    def conditional_reset(
        self,
        category: Category,
        expected_stale_date: date,
        today: date,
        archived_at: datetime,
    ) -> bool:
        with self._lock:
            current = self._counters.get(category)
            if current is None or current.last_reset_date != expected_stale_date:
                return False

            entry = ArchiveEntry(category, current.count, archived_at, expected_stale_date)
            self._archive.append(entry)
            self._events.append(entry.to_event())
            self._counters[category] = current.reset(today)

            return True
