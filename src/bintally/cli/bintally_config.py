#!/usr/bin/env python3
"""CLI commands for configuration."""

import click

from ..config.settings import generate_example_env
from .cli_common import CONTEXT_SETTINGS, CLIContext, cli_command


@click.group(context_settings=CONTEXT_SETTINGS, help="Configuration helpers")
def cli() -> None:
    """Configuration commands."""


@cli.command("example", context_settings=CONTEXT_SETTINGS)
def example_command() -> None:
    """Print an example .env file."""
    click.echo(generate_example_env(), nl=False)


@cli.command("show", context_settings=CONTEXT_SETTINGS)
@cli_command
def show_command(ctx: CLIContext) -> None:
    """Show the effective settings."""
    settings = ctx.settings
    ctx.output(
        {
            "db_path": str(settings.db_path),
            "default_timezone": settings.default_timezone,
            "epoch_year": settings.epoch_year,
            "hourly_range": f"{settings.hourly_start}-{settings.hourly_end}",
            "export_dir": str(settings.export_dir),
            "log_level": settings.log_level,
            "log_dir": str(settings.log_dir),
        }
    )
