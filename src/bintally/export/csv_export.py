"""Flatten aggregation results into CSV exports.

Output format:

    label,paper,can,pet bottle
    Mon,2,0,0
    ...
    total,2,1,1

Rows are newline-joined without a trailing newline. Labels come from a
controlled vocabulary and are never quoted.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from pathlib import Path

from ..core.categories import Category
from ..core.models import AggregationResult
from ..observability.loguru_config import get_logger
from ..rollups.time_windows import MONTH_NAMES

__all__ = [
    "CSV_HEADER",
    "DEFAULT_FILE_HINT",
    "ExportRow",
    "NothingToExportError",
    "export_filename",
    "hourly_file_hint",
    "render_csv",
    "to_rows",
    "write_csv",
]

logger = get_logger("export")

CSV_HEADER = "label," + ",".join(category.value for category in Category.ordered())
TOTAL_LABEL = "total"
DEFAULT_FILE_HINT = "combined_bins"


class NothingToExportError(Exception):
    """Raised when a result has no source events to export.

    Distinct from an all-zero series: a dense zero chart is valid, an export
    of nothing is refused.
    """


@dataclass(frozen=True)
class ExportRow:
    """One CSV row: a bucket label and a count per category."""

    label: str
    counts: dict[Category, int] = field(default_factory=dict)

    def count(self, category: Category) -> int:
        return self.counts.get(category, 0)

    def to_csv_line(self) -> str:
        return ",".join([self.label, *(str(int(self.count(category))) for category in Category.ordered())])


def to_rows(result: AggregationResult) -> list[ExportRow]:
    """Flatten ``result`` into rows plus a final ``total`` row.

    Parameters
    ----------
    result
        Aggregation to export

    Returns
    -------
    list[ExportRow]
        One row per label in result order, then the column totals

    Raises
    ------
    NothingToExportError
        If no source event fell inside the window and every series is zero
    """
    if result.is_empty():
        raise NothingToExportError(
            f"No records found for this range ({result.granularity.value}, "
            f"{result.start.isoformat()} - {result.end.isoformat()})"
        )

    rows = [
        ExportRow(label, {category: result.counts_for(category)[index] for category in Category.ordered()})
        for index, label in enumerate(result.labels)
    ]

    totals = {category: sum(row.count(category) for row in rows) for category in Category.ordered()}
    rows.append(ExportRow(TOTAL_LABEL, totals))

    return rows


def render_csv(rows: list[ExportRow]) -> str:
    """Render rows (including the total row) as CSV text."""
    return "\n".join([CSV_HEADER, *(row.to_csv_line() for row in rows)])


def export_filename(file_hint: str, range_tag: str) -> str:
    """File name for an export, e.g. ``combined_bins_daily.csv``."""
    return f"{file_hint}_{range_tag}.csv"


def hourly_file_hint(day: date) -> str:
    """File hint of the hourly export, e.g. ``October-8-2025_Hourly_Collection``."""
    return f"{MONTH_NAMES[day.month - 1]}-{day.day}-{day.year}_Hourly_Collection"


def write_csv(
    result: AggregationResult,
    output_dir: Path,
    file_hint: str = DEFAULT_FILE_HINT,
    range_tag: str | None = None,
) -> Path:
    """Export ``result`` to ``output_dir`` and return the written path.

    Raises
    ------
    NothingToExportError
        If the result holds no detections (no file is written)
    """
    rows = to_rows(result)
    range_tag = range_tag or result.granularity.value

    output_dir.mkdir(parents=True, exist_ok=True)
    path = output_dir / export_filename(file_hint, range_tag)
    path.write_text(render_csv(rows), encoding="utf-8")

    logger.info("CSV exported", path=str(path), rows=len(rows) - 1, range=range_tag)
    return path
