"""Detection stores: event log and live counters."""

from .base import DataFetchError, EventSource, InconsistentRolloverStateError, LiveCounterStore
from .memory_store import InMemoryDetectionStore
from .sqlite_store import SQLiteDetectionStore, create_detection_store

__all__ = [
    "DataFetchError",
    "EventSource",
    "InMemoryDetectionStore",
    "InconsistentRolloverStateError",
    "LiveCounterStore",
    "SQLiteDetectionStore",
    "create_detection_store",
]
