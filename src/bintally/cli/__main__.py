#!/usr/bin/env python3
"""Main CLI module for bintally."""

import sys

import click

from .bintally_config import cli as config_cli
from .bintally_counters import counters_command, record_command
from .bintally_export import cli as export_cli
from .bintally_summary import hourly_command, summary_command
from .cli_common import CONTEXT_SETTINGS

EPILOG = """
Examples:
  bintally summary --range daily            # Detections per weekday, this week
  bintally summary --range daily --offset -1  # Previous week
  bintally hourly --offset -1               # Yesterday, 7 AM - 9 PM
  bintally export --range monthly           # combined_bins_monthly.csv
  bintally counters                         # Live totals (rolls over stale days)
  bintally record can                       # Record one detection
  bintally config example > .env            # Example configuration
""".strip()


@click.group(
    context_settings=CONTEXT_SETTINGS,
    help="bintally - detection summaries for smart recycling bins",
    epilog=EPILOG,
)
def cli() -> None:
    """Root CLI command."""


cli.add_command(summary_command, "summary")
cli.add_command(hourly_command, "hourly")
cli.add_command(export_cli, "export")
cli.add_command(counters_command, "counters")
cli.add_command(record_command, "record")
cli.add_command(config_cli, "config")


def main(args: list[str] | None = None) -> int:
    """CLI entry point."""

    try:
        normalized_args = list(args) if args is not None else None
        return cli.main(args=normalized_args, standalone_mode=False) or 0
    except click.ClickException as exc:
        exc.show()
        return exc.exit_code
    except click.exceptions.Abort:
        click.echo("Aborted!", err=True)
        return 1
    except SystemExit as exc:  # pragma: no cover - commands exit with stable codes
        return int(exc.code) if exc.code is not None else 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
