"""
Repository: the single place where SQL lives.

Holds the three records the engine persists for restart survival
(sessionState, stats, finalizedReport) plus the list of completed runs
that multi-run export averages.
"""

from __future__ import annotations

import json
import logging
import sqlite3
import threading
from typing import Any, Dict, List, Optional

from .models import Report

logger = logging.getLogger(__name__)

SESSION_STATE_KEY = "sessionState"
STATS_KEY = "stats"
FINALIZED_REPORT_KEY = "finalizedReport"


class Repository:
    """Data-access layer wrapping a sqlite3 connection."""

    def __init__(self, conn: sqlite3.Connection) -> None:
        self.conn = conn
        self._lock = threading.Lock()

    # ── Generic records ─────────────────────────────────────────────────────

    def put_record(self, key: str, value: Any) -> None:
        with self._lock:
            self.conn.execute(
                "INSERT INTO records (key, value, updated_at) VALUES (?, ?, datetime('now')) "
                "ON CONFLICT(key) DO UPDATE SET value = excluded.value, "
                "updated_at = excluded.updated_at",
                (key, json.dumps(value)),
            )
            self.conn.commit()

    def get_record(self, key: str) -> Optional[Any]:
        with self._lock:
            row = self.conn.execute(
                "SELECT value FROM records WHERE key = ?", (key,)
            ).fetchone()
        return json.loads(row["value"]) if row else None

    def delete_records(self, *keys: str) -> None:
        with self._lock:
            self.conn.executemany(
                "DELETE FROM records WHERE key = ?", [(k,) for k in keys]
            )
            self.conn.commit()

    # ── Session state / live stats ──────────────────────────────────────────

    def save_session_state(self, state: Dict[str, Any]) -> None:
        self.put_record(SESSION_STATE_KEY, state)

    def load_session_state(self) -> Optional[Dict[str, Any]]:
        return self.get_record(SESSION_STATE_KEY)

    def save_stats(self, stats: Dict[str, Any]) -> None:
        self.put_record(STATS_KEY, stats)

    def load_stats(self) -> Optional[Dict[str, Any]]:
        return self.get_record(STATS_KEY)

    def clear_stats(self) -> None:
        self.delete_records(STATS_KEY)

    def clear_live_records(self) -> None:
        """Drop stats and any finalized report left over from a previous run."""
        self.delete_records(STATS_KEY, FINALIZED_REPORT_KEY)

    # ── Finalized report ────────────────────────────────────────────────────

    def save_finalized_report(self, report: Report) -> None:
        self.put_record(FINALIZED_REPORT_KEY, report.to_dict())

    def load_finalized_report(self) -> Optional[Report]:
        data = self.get_record(FINALIZED_REPORT_KEY)
        return Report.from_dict(data) if data else None

    # ── Completed runs ──────────────────────────────────────────────────────

    def add_run(self, report: Report) -> int:
        with self._lock:
            cur = self.conn.execute(
                "INSERT INTO runs (report_json) VALUES (?)",
                (json.dumps(report.to_dict()),),
            )
            self.conn.commit()
        return cur.lastrowid

    def list_runs(self) -> List[Report]:
        with self._lock:
            rows = self.conn.execute(
                "SELECT report_json FROM runs ORDER BY id"
            ).fetchall()
        return [Report.from_dict(json.loads(r["report_json"])) for r in rows]

    def count_runs(self) -> int:
        with self._lock:
            row = self.conn.execute("SELECT COUNT(*) FROM runs").fetchone()
        return row[0]

    def clear_runs(self) -> None:
        with self._lock:
            self.conn.execute("DELETE FROM runs")
            self.conn.commit()
        logger.info("Stored runs cleared.")
