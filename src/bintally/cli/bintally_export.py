#!/usr/bin/env python3
"""CLI command for CSV exports."""

from pathlib import Path

import click

from ..core.models import Granularity, Window
from ..pipelines.summary_pipeline import create_summary_pipeline
from .cli_common import CONTEXT_SETTINGS, CLIContext, cli_command


@click.command(context_settings=CONTEXT_SETTINGS, help="Export a range as CSV (one column per category)")
@click.option(
    "--range",
    "range_name",
    type=click.Choice([granularity.value for granularity in Granularity]),
    default=Granularity.DAILY.value,
    show_default=True,
    help="Range to export",
)
@click.option("--offset", type=int, default=0, show_default=True, help="Weeks (daily) or days (hourly) to shift")
@click.option(
    "--output-dir",
    type=click.Path(file_okay=False, path_type=Path),
    help="Target directory (default: BINTALLY_EXPORT_DIR)",
)
@click.option("--name", "file_hint", type=str, help="File name prefix (default: combined_bins)")
@cli_command
def cli(ctx: CLIContext, range_name: str, offset: int, output_dir: Path | None, file_hint: str | None) -> None:
    """Write ``<hint>_<range>.csv`` with a per-category total row."""
    settings = ctx.settings
    pipeline = create_summary_pipeline(ctx.store, settings.calendar())

    path = pipeline.export(Window.current(range_name, offset), output_dir or settings.export_dir, file_hint)

    if ctx.json_output:
        ctx.output({"path": str(path), "range": range_name})
    else:
        ctx.output(f"Exported {range_name} range to {path}")
