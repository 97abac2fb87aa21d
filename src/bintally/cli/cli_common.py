"""Common CLI utilities: JSON output, stable exit codes, application bootstrap."""

from __future__ import annotations

import functools
import json
import traceback
import uuid
from enum import IntEnum
from typing import Any

import click

from ..config.settings import ConfigError, Settings, load_settings
from ..counters.rollover import InconsistentRolloverStateError
from ..export.csv_export import NothingToExportError
from ..observability.loguru_config import configure_loguru
from ..rollups.time_windows import InvalidWindowError
from ..storage.base import DataFetchError
from ..storage.sqlite_store import SQLiteDetectionStore, create_detection_store

CONTEXT_SETTINGS = {"help_option_names": ["-h", "--help"]}


class ExitCode(IntEnum):
    """Stable exit codes for CLI commands."""

    SUCCESS = 0
    INVALID_WINDOW = 2  # Window cannot be resolved (future offset, bad range)
    NOTHING_TO_EXPORT = 3  # Export range holds no detections
    INTEGRITY_ERROR = 4  # Half-applied counter rollover
    DATA_FETCH_ERROR = 5  # Store unreachable or failing
    CONFIG_ERROR = 6  # Configuration error
    UNKNOWN_ERROR = 7  # Unknown/unexpected error


def exit_code_for(exc: Exception) -> ExitCode:
    """Map an exception to its stable exit code."""
    if isinstance(exc, InvalidWindowError):
        return ExitCode.INVALID_WINDOW
    if isinstance(exc, NothingToExportError):
        return ExitCode.NOTHING_TO_EXPORT
    if isinstance(exc, InconsistentRolloverStateError):
        return ExitCode.INTEGRITY_ERROR
    if isinstance(exc, DataFetchError):
        return ExitCode.DATA_FETCH_ERROR
    if isinstance(exc, ConfigError):
        return ExitCode.CONFIG_ERROR
    return ExitCode.UNKNOWN_ERROR


class CLIContext:
    """Context for CLI execution with JSON output and trace ID."""

    def __init__(self, json_output: bool = False, verbose: bool = False, trace_id: str | None = None):
        """Initialize CLI context.

        Args:
            json_output: Enable JSON output mode
            verbose: Verbose output (console logging, tracebacks)
            trace_id: Trace ID for correlation
        """
        self.json_output = json_output
        self.verbose = verbose
        self.trace_id = trace_id or f"trace-{uuid.uuid4().hex[:12]}"
        self._settings: Settings | None = None
        self._store: SQLiteDetectionStore | None = None

    @property
    def settings(self) -> Settings:
        """Settings loaded on first use; also configures logging."""
        if self._settings is None:
            self._settings = load_settings()
            configure_loguru(
                log_dir=self._settings.log_dir,
                level=self._settings.log_level,
                enable_console=self.verbose,
            )
        return self._settings

    @property
    def store(self) -> SQLiteDetectionStore:
        if self._store is None:
            self._store = create_detection_store(self.settings.db_path, timezone=self.settings.default_timezone)
        return self._store

    def output(self, data: Any, status: str = "success", error: str | None = None, meta: dict[str, Any] | None = None) -> None:
        """Output result in appropriate format.

        Args:
            data: Result data (dict, list or preformatted text)
            status: Status ("success", "error", "warning")
            error: Error message if status is error
            meta: Additional metadata
        """
        if self.json_output:
            result: dict[str, Any] = {"status": status, "trace_id": self.trace_id}

            if error:
                result["error"] = error
            else:
                result["data"] = data

            if meta:
                result["meta"] = meta

            click.echo(json.dumps(result, ensure_ascii=False, indent=2))
            return

        if status == "error":
            click.echo(f"Error: {error}", err=True)
        elif isinstance(data, dict):
            for key, value in data.items():
                click.echo(f"{key}: {value}")
        elif isinstance(data, list):
            for item in data:
                click.echo(f"  - {item}")
        elif data is not None:
            click.echo(data)

    def fail(self, exc: Exception) -> None:
        """Report ``exc`` and exit with its stable code."""
        code = exit_code_for(exc)
        self.output(None, status="error", error=str(exc), meta={"exit_code": int(code), "error_type": type(exc).__name__})

        if self.verbose and not self.json_output:
            click.echo("\nTraceback:", err=True)
            click.echo(traceback.format_exc(), err=True)

        raise SystemExit(int(code))


def cli_command(func):
    """Decorator adding --json, --verbose and --trace-id to a command.

    The wrapped function receives a :class:`CLIContext` as first argument;
    exceptions are mapped to stable exit codes.
    """

    @click.option("--json", "json_output", is_flag=True, help="Output as JSON (machine-readable)")
    @click.option("--verbose", "-v", is_flag=True, help="Verbose output")
    @click.option("--trace-id", type=str, help="Trace ID for correlation")
    @functools.wraps(func)
    def wrapper(json_output: bool, verbose: bool, trace_id: str | None, *args: Any, **kwargs: Any) -> None:
        ctx = CLIContext(json_output=json_output, verbose=verbose, trace_id=trace_id)
        try:
            func(ctx, *args, **kwargs)
        except click.exceptions.Exit:
            raise
        except click.ClickException:
            raise
        except Exception as exc:
            ctx.fail(exc)

    return wrapper
