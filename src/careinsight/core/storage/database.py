"""SQLite database management for the patient tracking record store.

Handles connection lifecycle, schema creation, and scoped query sessions.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Sequence

logger = logging.getLogger(__name__)

# Current schema version
SCHEMA_VERSION = 1

# ---------------------------------------------------------------------------
# Schema DDL
# ---------------------------------------------------------------------------

_SCHEMA_V1 = """
-- Trackable categories (exercise, medication, sleep, ...)
CREATE TABLE IF NOT EXISTS track_item (
    id         INTEGER PRIMARY KEY,
    code       TEXT NOT NULL UNIQUE,
    name       TEXT NOT NULL DEFAULT '',
    status     TEXT NOT NULL DEFAULT 'active',
    created_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Questions asked under a track item
CREATE TABLE IF NOT EXISTS question (
    id            INTEGER PRIMARY KEY,
    code          TEXT NOT NULL,
    text          TEXT NOT NULL DEFAULT '',
    type          TEXT NOT NULL,
    track_item_id INTEGER NOT NULL REFERENCES track_item(id),
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Per-day selection record of a track item by a patient.
-- date is stored either as MM-DD-YYYY or YYYY-MM-DD.
CREATE TABLE IF NOT EXISTS track_item_entry (
    id            INTEGER PRIMARY KEY,
    patient_id    TEXT NOT NULL,
    track_item_id INTEGER NOT NULL REFERENCES track_item(id),
    date          TEXT NOT NULL,
    selected      INTEGER NOT NULL DEFAULT 0,
    created_at    TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Logged answers; answer is loosely typed (JSON text, plain text, number)
CREATE TABLE IF NOT EXISTS track_response (
    id                  INTEGER PRIMARY KEY,
    patient_id          TEXT NOT NULL,
    question_id         INTEGER NOT NULL REFERENCES question(id),
    track_item_entry_id INTEGER NOT NULL REFERENCES track_item_entry(id),
    answer,
    created_at          TEXT NOT NULL DEFAULT (datetime('now'))
);

CREATE TABLE IF NOT EXISTS schema_version (
    version    INTEGER NOT NULL,
    applied_at TEXT NOT NULL DEFAULT (datetime('now'))
);

-- Indexes for common query patterns
CREATE INDEX IF NOT EXISTS idx_question_type        ON question(type);
CREATE INDEX IF NOT EXISTS idx_question_item        ON question(track_item_id);
CREATE INDEX IF NOT EXISTS idx_entry_patient        ON track_item_entry(patient_id);
CREATE INDEX IF NOT EXISTS idx_response_patient_q   ON track_response(patient_id, question_id);
CREATE INDEX IF NOT EXISTS idx_response_entry       ON track_response(track_item_entry_id);
"""


class DatabaseError(Exception):
    """Raised when the database is used outside its lifecycle."""


class DataAccessError(Exception):
    """Raised when a query against the record store fails.

    Surfaced verbatim to callers; the engine never retries.
    """


class QuerySession:
    """Operating context on the database for the duration of one operation.

    Obtained from :meth:`TrackingDatabase.session`; unusable after release.
    """

    def __init__(self, connection: sqlite3.Connection) -> None:
        self._conn: sqlite3.Connection | None = connection

    @property
    def is_open(self) -> bool:
        return self._conn is not None

    async def run_query(self, sql: str, params: Sequence[Any] = ()) -> list[sqlite3.Row]:
        """Execute a parameterized read query and return all rows.

        Raises:
            DataAccessError: If the session was released or the query fails.
        """
        if self._conn is None:
            raise DataAccessError("Query session already released")
        try:
            cursor = self._conn.execute(sql, tuple(params))
            try:
                return cursor.fetchall()
            finally:
                cursor.close()
        except sqlite3.Error as exc:
            logger.error("Query failed: %s", exc)
            raise DataAccessError(f"Query failed: {exc}") from exc

    def release(self) -> None:
        self._conn = None


class TrackingDatabase:
    """SQLite database manager for the tracking record store.

    Supports both file-based and in-memory (`:memory:`) databases.
    In-memory mode is used for testing.

    Usage::

        db = TrackingDatabase(":memory:")
        db.initialize()
        async with db.session() as session:
            rows = await session.run_query("SELECT * FROM track_item")
        db.close()
    """

    def __init__(self, db_path: str = ":memory:") -> None:
        """Initialize database manager.

        Args:
            db_path: Path to SQLite file, or ":memory:" for in-memory DB.
        """
        self._db_path = db_path
        self._conn: sqlite3.Connection | None = None
        self._open_sessions = 0

    @property
    def connection(self) -> sqlite3.Connection:
        """Get the active database connection.

        Raises:
            DatabaseError: If the database has not been initialized.
        """
        if self._conn is None:
            raise DatabaseError("Database not initialized. Call initialize() first.")
        return self._conn

    @property
    def open_sessions(self) -> int:
        """Number of query sessions currently acquired."""
        return self._open_sessions

    def initialize(self) -> None:
        """Create the database connection and ensure schema exists.

        For file-based databases, creates parent directories if needed.
        Idempotent: safe to call multiple times.
        """
        if self._conn is not None:
            return  # Already initialized

        if self._db_path != ":memory:":
            db_file = Path(self._db_path).expanduser()
            db_file.parent.mkdir(parents=True, exist_ok=True)
            self._conn = sqlite3.connect(str(db_file))
        else:
            self._conn = sqlite3.connect(":memory:")

        self._conn.row_factory = sqlite3.Row
        self._conn.execute("PRAGMA journal_mode=WAL")
        self._conn.execute("PRAGMA foreign_keys=ON")

        self._ensure_schema()
        logger.info("Tracking database initialized: %s", self._db_path)

    def _ensure_schema(self) -> None:
        """Create tables if they don't exist and record the schema version."""
        conn = self.connection
        conn.executescript(_SCHEMA_V1)

        current_version = self.get_schema_version()
        if current_version < SCHEMA_VERSION:
            conn.execute(
                "INSERT INTO schema_version (version) VALUES (?)",
                (SCHEMA_VERSION,),
            )
            conn.commit()
            logger.info(
                "Schema updated from version %d to %d", current_version, SCHEMA_VERSION
            )

    def get_schema_version(self) -> int:
        """Return the current schema version."""
        cursor = self.connection.execute("SELECT MAX(version) FROM schema_version")
        row = cursor.fetchone()
        return row[0] if row[0] is not None else 0

    @asynccontextmanager
    async def session(self) -> AsyncIterator[QuerySession]:
        """Acquire a query session, released on every exit path."""
        query_session = QuerySession(self.connection)
        self._open_sessions += 1
        try:
            yield query_session
        finally:
            query_session.release()
            self._open_sessions -= 1

    def close(self) -> None:
        """Close the database connection."""
        if self._conn is not None:
            self._conn.close()
            self._conn = None
            logger.info("Tracking database closed")

    def __enter__(self) -> TrackingDatabase:
        self.initialize()
        return self

    def __exit__(self, *args) -> None:
        self.close()
