"""Daily rollover of the live detection counters.

Each category keeps a running total for the current local day. The first
reader (or change notification) after midnight archives yesterday's total
into the detections log and resets the counter, exactly once per day:

- archive + reset are one conditional write keyed by (category, stale date)
- losing the race to another reader is a no-op, not an error
- a half-applied rollover raises InconsistentRolloverStateError
"""

from __future__ import annotations

from datetime import date, datetime

from ..core.categories import Category
from ..core.models import LiveCounter
from ..core.time import get_current_utc, today_in_timezone
from ..observability.loguru_config import get_logger
from ..storage.base import InconsistentRolloverStateError, LiveCounterStore

__all__ = [
    "CounterRollover",
    "InconsistentRolloverStateError",
    "rollover_if_stale",
]

logger = get_logger("rollover")


def rollover_if_stale(
    store: LiveCounterStore,
    counter: LiveCounter,
    today: date,
    now: datetime | None = None,
) -> tuple[bool, LiveCounter]:
    """Archive and reset ``counter`` if it still belongs to an earlier day.

    Parameters
    ----------
    store
        Live counter store providing the conditional reset
    counter
        Counter as last read by the caller
    today
        Current local calendar date
    now
        Archive timestamp (default: current UTC time)

    Returns
    -------
    tuple[bool, LiveCounter]
        ``(archived, counter)``: archived is True only for the caller whose
        conditional write succeeded; counter is the up-to-date state

    Raises
    ------
    InconsistentRolloverStateError
        If the store applied only half of the rollover
    """
    if counter.last_reset_date == today:
        return False, counter

    if counter.last_reset_date > today:
        logger.warning(
            "Live counter is dated in the future, leaving it untouched",
            category=counter.category.value,
            last_reset_date=counter.last_reset_date.isoformat(),
            today=today.isoformat(),
        )
        return False, counter

    archived = store.conditional_reset(
        counter.category,
        counter.last_reset_date,
        today,
        now or get_current_utc(),
    )

    if not archived:
        # Another reader rolled it over first
        logger.debug(
            "Lost rollover race",
            category=counter.category.value,
            stale_date=counter.last_reset_date.isoformat(),
        )
        return False, store.read(counter.category)

    return True, counter.reset(today)


class CounterRollover:
    """Read-triggered rollover for every category.

    Usage:
        rollover = CounterRollover(store, timezone="Europe/Brussels")

        # Read access: roll over stale counters, return current totals
        counters = rollover.refresh()

        # Change notification for one category
        counter = rollover.on_change(Category.CAN)
    """

    def __init__(self, store: LiveCounterStore, *, timezone: str = "UTC") -> None:
        self.store = store
        self.timezone = timezone

    def today(self, now: datetime | None = None) -> date:
        return today_in_timezone(self.timezone, now)

    def on_change(self, category: Category, now: datetime | None = None) -> LiveCounter:
        """Roll over ``category`` if stale and return its current state."""
        now = now or get_current_utc()
        _, counter = rollover_if_stale(self.store, self.store.read(category), self.today(now), now)
        return counter

    def refresh(self, now: datetime | None = None) -> dict[Category, LiveCounter]:
        """Roll over every stale counter and return all current counters."""
        now = now or get_current_utc()
        today = self.today(now)

        counters: dict[Category, LiveCounter] = {}
        archived: list[str] = []

        for category in Category.ordered():
            did_archive, counter = rollover_if_stale(self.store, self.store.read(category), today, now)
            counters[category] = counter
            if did_archive:
                archived.append(category.value)

        if archived:
            logger.info("Rolled over live counters", categories=archived, today=today.isoformat())

        return counters
