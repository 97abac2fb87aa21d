"""Concurrent rollover on a shared SQLite database.

Many readers notice the stale counter at the same time; exactly one of them
archives it and the rest observe the reset counter.
"""

import tempfile
import threading
from datetime import date, datetime, timezone
from pathlib import Path

import pytest

from bintally.core.categories import Category
from bintally.core.models import LiveCounter
from bintally.counters.rollover import CounterRollover, rollover_if_stale
from bintally.storage.sqlite_store import SQLiteDetectionStore

TODAY = date(2025, 10, 8)
YESTERDAY = date(2025, 10, 7)
NOW = datetime(2025, 10, 8, 0, 1, tzinfo=timezone.utc)


@pytest.fixture
def store():
    with tempfile.TemporaryDirectory() as tmpdir:
        yield SQLiteDetectionStore(Path(tmpdir) / "bins.db", timeout=30.0)


def test_parallel_readers_archive_once(store):
    """Test DoD: N concurrent rollovers produce one archive entry."""
    store.put_counter(LiveCounter(Category.CAN, 5, YESTERDAY))
    snapshot = store.read(Category.CAN)

    barrier = threading.Barrier(8)
    results = []
    errors = []
    lock = threading.Lock()

    def reader():
        try:
            barrier.wait()
            outcome = rollover_if_stale(store, snapshot, TODAY, NOW)
            with lock:
                results.append(outcome)
        except Exception as exc:
            with lock:
                errors.append(exc)

    threads = [threading.Thread(target=reader) for _ in range(8)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    assert errors == []
    assert sum(1 for archived, _ in results if archived) == 1
    assert all(counter == LiveCounter(Category.CAN, 0, TODAY) for _, counter in results)

    entries = store.list_archive(Category.CAN)
    assert [(entry.count, entry.counter_date) for entry in entries] == [(5, YESTERDAY)]


def test_parallel_refresh_all_categories(store):
    for category in Category.ordered():
        store.put_counter(LiveCounter(category, 3, YESTERDAY))

    rollover = CounterRollover(store)
    threads = [threading.Thread(target=rollover.refresh, args=(NOW,)) for _ in range(4)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=60)

    entries = store.list_archive()
    assert sorted(entry.category.value for entry in entries) == sorted(category.value for category in Category.ordered())
    for category in Category.ordered():
        assert store.read(category) == LiveCounter(category, 0, TODAY)
