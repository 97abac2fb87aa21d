"""CSV export of aggregation results."""

from .csv_export import (
    CSV_HEADER,
    ExportRow,
    NothingToExportError,
    export_filename,
    hourly_file_hint,
    render_csv,
    to_rows,
    write_csv,
)

__all__ = [
    "CSV_HEADER",
    "ExportRow",
    "NothingToExportError",
    "export_filename",
    "hourly_file_hint",
    "render_csv",
    "to_rows",
    "write_csv",
]
