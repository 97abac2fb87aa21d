"""Loguru configuration with timing for fetch and aggregation.

This module provides centralized loguru configuration with:
- Coloured console output
- Structured JSON logging per component
- Context manager for timing operations

Components: aggregation, rollover, export, storage, pipeline.
"""

from __future__ import annotations

import sys
import time
from contextlib import contextmanager
from pathlib import Path
from typing import TYPE_CHECKING, Any

from loguru import logger

if TYPE_CHECKING:
    from collections.abc import Generator

__all__ = [
    "COMPONENTS",
    "configure_loguru",
    "get_logger",
    "timing_context",
]

COMPONENTS = ("aggregation", "rollover", "export", "storage", "pipeline")


def configure_loguru(
    *,
    log_dir: Path | None = None,
    level: str = "INFO",
    rotation: str = "100 MB",
    retention: str = "10 days",
    compression: str = "zip",
    enable_console: bool = True,
    enable_timing_logs: bool = True,
) -> None:
    """Configure loguru with structured logging and timing support.

    Parameters
    ----------
    log_dir
        Directory for log files (default: logs/)
    level
        Minimum log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
    rotation
        Log rotation policy (e.g., "100 MB", "1 day")
    retention
        Log retention policy (e.g., "10 days", "1 week")
    compression
        Compression for rotated logs (zip, gz, bz2, xz)
    enable_console
        Enable console output
    enable_timing_logs
        Enable separate timing logs file

    Example
    -------
    >>> configure_loguru(log_dir=Path("logs"), level="INFO")
    """
    log_dir = log_dir or Path("logs")
    log_dir.mkdir(parents=True, exist_ok=True)

    logger.remove()

    if enable_console:
        logger.add(
            sys.stderr,
            format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
            "<level>{level: <8}</level> | "
            "<cyan>{extra[component]}</cyan> | "
            "<level>{message}</level>",
            level=level,
            colorize=True,
            backtrace=True,
            diagnose=False,
        )

    logger.add(
        log_dir / "bintally.jsonl",
        format="{message}",
        level=level,
        rotation=rotation,
        retention=retention,
        compression=compression,
        serialize=True,
        backtrace=True,
        diagnose=False,
    )

    if enable_timing_logs:
        logger.add(
            log_dir / "timing.jsonl",
            format="{message}",
            level="DEBUG",
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=True,
            filter=lambda record: record["extra"].get("timing", False),
        )

    for component in COMPONENTS:
        logger.add(
            log_dir / f"{component}.jsonl",
            format="{message}",
            level=level,
            rotation=rotation,
            retention=retention,
            compression=compression,
            serialize=True,
            filter=lambda record, comp=component: record["extra"].get("component") == comp,
        )

    logger.configure(extra={"component": "bintally"})
    logger.info("Loguru configured", log_dir=str(log_dir), level=level)


def get_logger(component: str = "bintally") -> Any:
    """Get logger instance bound to a component.

    Parameters
    ----------
    component
        Component name (aggregation, rollover, export, storage, pipeline)

    Returns
    -------
    Logger
        Loguru logger bound to component
    """
    return logger.bind(component=component)


@contextmanager
def timing_context(
    operation: str,
    *,
    component: str = "bintally",
    **metadata: Any,
) -> Generator[dict[str, Any], None, None]:
    """Context manager for timing an operation.

    Parameters
    ----------
    operation
        Name of the operation being timed
    component
        Component name for filtering logs
    **metadata
        Additional metadata to log

    Yields
    ------
    dict
        Context dictionary that can be updated with additional data

    Example
    -------
    >>> with timing_context("fetch_events", component="pipeline", granularity="daily") as ctx:
    ...     events = source.query_all(categories, start, end)
    ...     ctx["events"] = sum(len(v) for v in events.values())
    """
    start_time_ns = time.perf_counter_ns()
    context: dict[str, Any] = dict(metadata)
    bound = logger.bind(component=component, timing=True, operation=operation)

    bound.debug(f"START: {operation}", phase="start", **metadata)

    try:
        yield context
    finally:
        duration_ns = time.perf_counter_ns() - start_time_ns
        bound.debug(
            f"END: {operation}",
            phase="end",
            duration_ms=duration_ns / 1_000_000,
            duration_ns=duration_ns,
            **context,
        )
