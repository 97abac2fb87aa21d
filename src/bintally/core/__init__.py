"""Core types and time helpers."""

from .categories import Category
from .models import AggregationResult, ArchiveEntry, Bucket, Event, Granularity, LiveCounter, Window

__all__ = [
    "AggregationResult",
    "ArchiveEntry",
    "Bucket",
    "Category",
    "Event",
    "Granularity",
    "LiveCounter",
    "Window",
]
