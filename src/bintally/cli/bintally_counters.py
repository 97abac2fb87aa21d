#!/usr/bin/env python3
"""CLI commands for the live detection counters."""

from datetime import datetime

import click

from ..core.categories import Category
from ..core.models import Event
from ..core.time import get_current_utc, parse_utc_iso8601
from ..counters.rollover import CounterRollover
from .cli_common import CONTEXT_SETTINGS, CLIContext, cli_command


def _parse_category(_ctx: click.Context, _param: click.Parameter, value: str) -> Category:
    try:
        return Category.parse(value)
    except ValueError as exc:
        choices = ", ".join(category.value for category in Category.ordered())
        raise click.BadParameter(f"{exc}. Choose from: {choices}") from exc


def _parse_instant(_ctx: click.Context, _param: click.Parameter, value: str | None) -> datetime | None:
    if value is None:
        return None
    try:
        return parse_utc_iso8601(value)
    except ValueError as exc:
        raise click.BadParameter(f"Not an ISO-8601 timestamp: {value}") from exc


@click.command(context_settings=CONTEXT_SETTINGS, help="Show today's live counters")
@cli_command
def counters_command(ctx: CLIContext) -> None:
    """Read every live counter, rolling over the ones left from a previous day."""
    rollover = CounterRollover(ctx.store, timezone=ctx.settings.default_timezone)
    counters = rollover.refresh()

    data = {
        category.value: {"count": counter.count, "last_reset_date": counter.last_reset_date.isoformat()}
        for category, counter in counters.items()
    }

    if ctx.json_output:
        ctx.output(data)
    else:
        ctx.output({category.label: counter.count for category, counter in counters.items()})


@click.command(context_settings=CONTEXT_SETTINGS, help="Record one detection (paper, can, pet bottle)")
@click.argument("category", callback=_parse_category)
@click.option(
    "--at",
    "occurred_at",
    callback=_parse_instant,
    help="Detection time, ISO-8601 (default: now); only detections of today bump the live counter",
)
@cli_command
def record_command(ctx: CLIContext, category: Category, occurred_at: datetime | None) -> None:
    """Append a detection to the log and bump today's live counter.

    A backdated detection (``--at`` on another local day) is only logged;
    the live counter holds today's total.
    """
    store = ctx.store
    now = get_current_utc()
    rollover = CounterRollover(store, timezone=ctx.settings.default_timezone)

    # Yesterday's total is archived before today's first detection is counted
    counter = rollover.on_change(category, now)

    event = Event(category=category, occurred_at=occurred_at or now)
    store.append(event)
    if rollover.today(event.occurred_at) == rollover.today(now):
        counter = store.increment(category)

    ctx.output(
        {
            "category": category.value,
            "occurred_at": event.occurred_at.isoformat(),
            "count": counter.count,
        }
    )
