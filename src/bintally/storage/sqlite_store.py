"""SQLite-backed detections log and live counters.

Tables mirror the detector's schema:

- ``detections_log(object_type, created_at, count, counter_date)``:
  append-only event log. Detector rows leave ``count``/``counter_date``
  NULL; rollover archive rows carry the archived total.
- ``detections(object_type, count, last_updated)``: one live counter per
  category, ``last_updated`` being the local date of the last reset.

Every operation opens its own connection, so one store instance can be
shared between threads; the rollover compare-and-swap relies on SQLite's
write lock (``BEGIN IMMEDIATE``).
"""

from __future__ import annotations

import sqlite3
from collections.abc import Generator, Iterable
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path

from ..core.categories import Category
from ..core.models import ArchiveEntry, Event, LiveCounter
from ..core.time import format_utc_iso8601, parse_utc_iso8601, today_in_timezone
from ..observability.loguru_config import get_logger
from .base import DataFetchError, InconsistentRolloverStateError

__all__ = [
    "SQLiteDetectionStore",
    "create_detection_store",
]

logger = get_logger("storage")


class SQLiteDetectionStore:
    """Detections log and live counters in one SQLite database.

    Implements both :class:`~bintally.storage.base.EventSource` and
    :class:`~bintally.storage.base.LiveCounterStore`.
    """

    def __init__(self, db_path: Path | str, *, timezone: str = "UTC", timeout: float = 5.0) -> None:
        """Initialize store.

        Parameters
        ----------
        db_path
            Path to SQLite database file
        timezone
            Timezone used to date counters created on first read
        timeout
            Seconds to wait for the database write lock
        """
        self.db_path = Path(db_path)
        self.timezone = timezone
        self.timeout = timeout
        self._init_database()

    def _init_database(self) -> None:
        """Initialize database schema."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            with self._connect() as conn:
                self._create_schema(conn)
        except sqlite3.Error as exc:
            raise DataFetchError(f"Cannot initialize detections database {self.db_path}") from exc

    def _create_schema(self, conn: sqlite3.Connection) -> None:
        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS detections_log (
                id INTEGER PRIMARY KEY AUTOINCREMENT,
                object_type TEXT NOT NULL,
                created_at TEXT NOT NULL,
                count INTEGER,
                counter_date TEXT
            )
        """
        )

        conn.execute(
            """
            CREATE INDEX IF NOT EXISTS idx_detections_log_type_created
            ON detections_log(object_type, created_at)
        """
        )

        conn.execute(
            """
            CREATE TABLE IF NOT EXISTS detections (
                object_type TEXT PRIMARY KEY,
                count INTEGER NOT NULL DEFAULT 0 CHECK (count >= 0),
                last_updated TEXT NOT NULL
            )
        """
        )

    @contextmanager
    def _connect(self) -> Generator[sqlite3.Connection, None, None]:
        """Open a short-lived autocommit connection."""
        try:
            conn = sqlite3.connect(str(self.db_path), timeout=self.timeout, isolation_level=None)
        except sqlite3.Error as exc:
            raise DataFetchError(f"Cannot open detections database {self.db_path}") from exc

        conn.row_factory = sqlite3.Row
        try:
            yield conn
        finally:
            conn.close()

    # Event log

    def append(self, event: Event) -> None:
        """Append a detection event to the log."""
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT INTO detections_log (object_type, created_at) VALUES (?, ?)",
                    (event.category.value, format_utc_iso8601(event.occurred_at)),
                )
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to append event", category=event.category) from exc

    def query(self, category: Category, start: datetime, end: datetime) -> list[Event]:
        """Events of ``category`` with ``start <= created_at < end``."""
        return self.query_all([category], start, end)[category]

    def query_all(
        self,
        categories: Iterable[Category],
        start: datetime,
        end: datetime,
    ) -> dict[Category, list[Event]]:
        """Batch fetch of several categories over one range.

        Returns
        -------
        dict[Category, list[Event]]
            Events per requested category (empty lists included)

        Raises
        ------
        DataFetchError
            If the database cannot be queried
        """
        wanted = [Category.parse(category) for category in categories]
        result: dict[Category, list[Event]] = {category: [] for category in wanted}
        if not wanted:
            return result

        placeholders = ", ".join("?" for _ in wanted)
        sql = (
            "SELECT object_type, created_at FROM detections_log "
            f"WHERE object_type IN ({placeholders}) AND created_at >= ? AND created_at < ?"
        )
        params = [category.value for category in wanted] + [format_utc_iso8601(start), format_utc_iso8601(end)]

        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            category = wanted[0] if len(wanted) == 1 else None
            raise DataFetchError("Failed to query detections log", category=category, start=start, end=end) from exc

        for row in rows:
            category = Category.parse(row["object_type"])
            result[category].append(Event(category=category, occurred_at=parse_utc_iso8601(row["created_at"])))

        return result

    def list_archive(self, category: Category | None = None) -> list[ArchiveEntry]:
        """Rollover snapshots, oldest first."""
        sql = "SELECT object_type, count, created_at, counter_date FROM detections_log WHERE count IS NOT NULL"
        params: list[str] = []
        if category is not None:
            sql += " AND object_type = ?"
            params.append(category.value)
        sql += " ORDER BY id"

        try:
            with self._connect() as conn:
                rows = conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to read rollover archive", category=category) from exc

        return [
            ArchiveEntry(
                category=Category.parse(row["object_type"]),
                count=row["count"],
                archived_at=parse_utc_iso8601(row["created_at"]),
                counter_date=date.fromisoformat(row["counter_date"]),
            )
            for row in rows
        ]

    # Live counters

    def read(self, category: Category) -> LiveCounter:
        """Read the live counter, creating a zeroed one dated today if missing."""
        try:
            with self._connect() as conn:
                conn.execute(
                    "INSERT OR IGNORE INTO detections (object_type, count, last_updated) VALUES (?, 0, ?)",
                    (category.value, today_in_timezone(self.timezone).isoformat()),
                )
                row = conn.execute(
                    "SELECT count, last_updated FROM detections WHERE object_type = ?",
                    (category.value,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to read live counter", category=category) from exc

        return LiveCounter(
            category=category,
            count=row["count"],
            last_reset_date=date.fromisoformat(row["last_updated"][:10]),
        )

    def put_counter(self, counter: LiveCounter) -> None:
        """Overwrite a live counter (seeding and administration)."""
        try:
            with self._connect() as conn:
                conn.execute(
                    """
                    INSERT INTO detections (object_type, count, last_updated) VALUES (?, ?, ?)
                    ON CONFLICT(object_type) DO UPDATE SET
                        count = excluded.count,
                        last_updated = excluded.last_updated
                """,
                    (counter.category.value, counter.count, counter.last_reset_date.isoformat()),
                )
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to write live counter", category=counter.category) from exc

    def increment(self, category: Category, amount: int = 1) -> LiveCounter:
        """Add detections to the live counter (detector side)."""
        self.read(category)
        try:
            with self._connect() as conn:
                conn.execute(
                    "UPDATE detections SET count = count + ? WHERE object_type = ?",
                    (amount, category.value),
                )
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to increment live counter", category=category) from exc

        return self.read(category)

    def conditional_reset(
        self,
        category: Category,
        expected_stale_date: date,
        today: date,
        archived_at: datetime,
    ) -> bool:
        """Archive and reset the counter in one transaction.

        Parameters
        ----------
        category
            Counter to roll over
        expected_stale_date
            ``last_reset_date`` observed by the caller
        today
            New reset date
        archived_at
            Timestamp of the archive row

        Returns
        -------
        bool
            True if this call archived and reset; False if another caller
            already rolled the counter over (nothing written)

        Raises
        ------
        InconsistentRolloverStateError
            If the archive row was written but the reset did not apply
        DataFetchError
            If the database cannot be reached
        """
        expected = expected_stale_date.isoformat()

        try:
            with self._connect() as conn:
                conn.execute("BEGIN IMMEDIATE")
                try:
                    row = conn.execute(
                        "SELECT count, last_updated FROM detections WHERE object_type = ?",
                        (category.value,),
                    ).fetchone()

                    if row is None or row["last_updated"][:10] != expected:
                        conn.execute("ROLLBACK")
                        return False

                    conn.execute(
                        """
                        INSERT INTO detections_log (object_type, created_at, count, counter_date)
                        VALUES (?, ?, ?, ?)
                    """,
                        (category.value, format_utc_iso8601(archived_at), row["count"], expected),
                    )

                    cursor = conn.execute(
                        "UPDATE detections SET count = 0, last_updated = ? WHERE object_type = ? AND last_updated = ?",
                        (today.isoformat(), category.value, row["last_updated"]),
                    )
                    if cursor.rowcount != 1:
                        conn.execute("ROLLBACK")
                        raise InconsistentRolloverStateError(
                            category, f"archive written but reset matched {cursor.rowcount} rows"
                        )

                    conn.execute("COMMIT")
                except sqlite3.Error:
                    if conn.in_transaction:
                        conn.execute("ROLLBACK")
                    raise
        except sqlite3.Error as exc:
            raise DataFetchError("Failed to roll over live counter", category=category) from exc

        logger.info(
            "Archived live counter",
            category=category.value,
            count=row["count"],
            counter_date=expected,
            today=today.isoformat(),
        )
        return True


def create_detection_store(db_path: Path, *, timezone: str = "UTC") -> SQLiteDetectionStore:
    """Create the detection store for a database path."""
    return SQLiteDetectionStore(db_path, timezone=timezone)
