"""Live per-category counters and their daily rollover."""

from .rollover import CounterRollover, InconsistentRolloverStateError, rollover_if_stale

__all__ = [
    "CounterRollover",
    "InconsistentRolloverStateError",
    "rollover_if_stale",
]
