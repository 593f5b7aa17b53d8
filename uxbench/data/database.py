"""
SQLite store for the recorder.

Owns the one connection the ingestion worker writes through and hands out
the Repository bound to it. All actual queries live in Repository.
"""

from __future__ import annotations

import logging
import sqlite3
from pathlib import Path
from typing import Optional, Union

from .repository import Repository

logger = logging.getLogger(__name__)

# Default DB lives in the user's home directory
DEFAULT_DB_PATH = Path.home() / ".uxbench" / "uxbench.db"
MEMORY = ":memory:"

SCHEMA_SQL = """
-- Key-value records (sessionState, stats, finalizedReport) -----------------
CREATE TABLE IF NOT EXISTS records (
    key         TEXT    PRIMARY KEY,
    value       TEXT    NOT NULL,
    updated_at  TEXT    NOT NULL DEFAULT (datetime('now'))
);

-- Completed runs, oldest first -----------------------------------------------
CREATE TABLE IF NOT EXISTS runs (
    id          INTEGER PRIMARY KEY AUTOINCREMENT,
    recorded_at TEXT    NOT NULL DEFAULT (datetime('now')),
    report_json TEXT    NOT NULL
);
"""


class Database:
    """The recorder's SQLite file (or an in-memory store for tests and replays)."""

    def __init__(self, db_path: Union[Path, str, None] = None) -> None:
        self.db_path = MEMORY if db_path == MEMORY else Path(db_path or DEFAULT_DB_PATH)
        self.conn: Optional[sqlite3.Connection] = None
        self._repo: Optional[Repository] = None

    @classmethod
    def in_memory(cls) -> "Database":
        return cls(MEMORY)

    @property
    def is_memory(self) -> bool:
        return self.db_path == MEMORY

    # -- lifecycle -----------------------------------------------------------

    def connect(self) -> sqlite3.Connection:
        """Open the connection once and make sure both tables exist."""
        if self.conn is not None:
            return self.conn
        if not self.is_memory:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
        logger.info("Opening recorder store at %s", self.db_path)
        # The ingestion worker writes from its own thread.
        self.conn = sqlite3.connect(str(self.db_path), check_same_thread=False)
        self.conn.row_factory = sqlite3.Row
        if not self.is_memory:
            self.conn.execute("PRAGMA journal_mode=WAL")
        self.conn.executescript(SCHEMA_SQL)
        self.conn.commit()
        return self.conn

    def repository(self) -> Repository:
        """The Repository over this store, connecting on first use."""
        if self._repo is None:
            self._repo = Repository(self.connect())
        return self._repo

    def close(self) -> None:
        if self.conn is None:
            return
        self.conn.close()
        self.conn = None
        self._repo = None
        logger.info("Recorder store closed.")

    def __enter__(self) -> "Database":
        self.connect()
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Opens the recorder's SQLite store and creates its two tables: `records`
#   for the three restart-survival values and `runs` for completed reports.
#
# Key pieces:
#   - Database.in_memory(): same schema without a file, used by tests.
#   - Database.repository(): the single Repository bound to the connection.
#   - check_same_thread=False: the queue worker, not the opening thread,
#     does the writes. Repository serializes them with a lock.
#
# Data flow:
#   start-up → Database(path).repository() → RecordingService(repo=...)
#   → every processed event upserts `sessionState` and `stats`.
