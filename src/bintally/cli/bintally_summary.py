#!/usr/bin/env python3
"""CLI commands for chart summaries (daily, weekly, monthly, yearly, hourly)."""

import click

from ..core.categories import Category
from ..core.models import AggregationResult, Granularity, Window
from ..pipelines.summary_pipeline import create_summary_pipeline
from ..rollups.time_windows import format_week_range
from .cli_common import CONTEXT_SETTINGS, CLIContext, cli_command

CHART_RANGES = [Granularity.DAILY.value, Granularity.WEEKLY.value, Granularity.MONTHLY.value, Granularity.YEARLY.value]


def format_table(result: AggregationResult, title: str) -> str:
    """Render a result as an aligned text table with a total row."""
    header = ["label", *(category.value for category in Category.ordered())]
    rows = [
        [label, *(str(result.counts_for(category)[index]) for category in Category.ordered())]
        for index, label in enumerate(result.labels)
    ]
    rows.append(["total", *(str(total) for total in result.totals().values())])

    widths = [max(len(row[column]) for row in [header, *rows]) for column in range(len(header))]
    lines = [title, ""]
    for row in [header, *rows]:
        lines.append("  ".join(cell.ljust(width) for cell, width in zip(row, widths)).rstrip())

    return "\n".join(lines)


def _summarize(ctx: CLIContext, window: Window) -> AggregationResult:
    pipeline = create_summary_pipeline(ctx.store, ctx.settings.calendar())
    return pipeline.summarize(window)


def _emit(ctx: CLIContext, result: AggregationResult, title: str) -> None:
    if ctx.json_output:
        ctx.output(result.to_dict(), meta={"title": title})
    else:
        ctx.output(format_table(result, title))


@click.command(context_settings=CONTEXT_SETTINGS, help="Show the detection summary of a chart range")
@click.option(
    "--range",
    "range_name",
    type=click.Choice(CHART_RANGES),
    default=Granularity.DAILY.value,
    show_default=True,
    help="Chart range (bucket granularity)",
)
@click.option("--offset", type=int, default=0, show_default=True, help="Weeks back from the current week (daily only)")
@cli_command
def summary_command(ctx: CLIContext, range_name: str, offset: int) -> None:
    """Show detections per bucket for every category."""
    window = Window.current(range_name, offset)

    if window.granularity == Granularity.DAILY:
        title = f"Daily summary ({format_week_range(window.reference, offset, ctx.settings.default_timezone)})"
    else:
        title = f"{range_name.capitalize()} summary"

    _emit(ctx, _summarize(ctx, window), title)


@click.command(context_settings=CONTEXT_SETTINGS, help="Show detections per hour of one day")
@click.option("--offset", type=int, default=0, show_default=True, help="Days back from today")
@cli_command
def hourly_command(ctx: CLIContext, offset: int) -> None:
    """Show the hourly view of one local day."""
    result = _summarize(ctx, Window.current(Granularity.HOURLY, offset))

    _emit(ctx, result, f"Hourly summary ({result.start.date().isoformat()})")
