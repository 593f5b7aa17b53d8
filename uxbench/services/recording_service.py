"""
Recording Service: the engine facade producers and displays talk to.

Wires the ingestion queue, the session service and the repository
together. Every state change runs on the queue's worker thread, so the
session never sees two events at once. Persistence is best-effort: a
failed write is logged and in-memory processing carries on.
"""

from __future__ import annotations

import logging
import sqlite3
from concurrent.futures import Future
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional

from uxbench.data.events import MalformedEvent, parse_event
from uxbench.data.models import MalformedReport, Report
from uxbench.data.repository import Repository
from uxbench.export.report_export import export_averaged

from .feed import FeedEntry, MetricsUpdate
from .idle_gaps import IDLE_GAP_THRESHOLD_MS
from .ingestion_queue import IngestionQueue
from .session_service import Clock, RecordingContext, SessionService, epoch_ms
from .session_state import SessionState

logger = logging.getLogger(__name__)


class RecordingService:
    """
    Accepts raw event payloads from any thread and turns them into a report.

    Callbacks (all optional, called on the worker thread):
        on_started(metadata)    after a session starts
        on_feed(entry)          once per feed entry
        on_snapshot(snapshot)   after every processed event
        on_stopped(report)      after the finalized report is written
    """

    def __init__(
        self,
        repo: Optional[Repository] = None,
        clock: Optional[Clock] = None,
        on_started: Optional[Callable] = None,
        on_feed: Optional[Callable[[FeedEntry], Any]] = None,
        on_snapshot: Optional[Callable[[Dict[str, Dict[str, str]]], Any]] = None,
        on_stopped: Optional[Callable[[Report], Any]] = None,
        idle_threshold_ms: float = IDLE_GAP_THRESHOLD_MS,
    ) -> None:
        self.repo = repo
        self.clock: Clock = clock or epoch_ms
        self.session_svc = SessionService(clock=self.clock, idle_threshold_ms=idle_threshold_ms)
        self.queue = IngestionQueue()

        self.on_started = on_started
        self.on_feed = on_feed
        self.on_snapshot = on_snapshot
        self.on_stopped = on_stopped

        # Completed runs when no repository is attached
        self._runs: List[Report] = []

    @property
    def recording(self) -> bool:
        return self.session_svc.recording

    # ── Public API ──────────────────────────────────────────────────────────

    def start(self, context: Optional[RecordingContext] = None) -> Future:
        """Queue a session start. The Future resolves to False if already recording."""
        return self.queue.submit(self._start, context)

    def submit(self, payload: Any) -> Future:
        """Queue one raw event payload, stamped with its receipt time."""
        return self.queue.submit(self._ingest, payload, self.clock())

    def stop(self, timeout: Optional[float] = None) -> Optional[Report]:
        """Stop after every earlier submission; returns the finalized report."""
        return self._run(self._stop, timeout=timeout)

    def flush(self, timeout: Optional[float] = None) -> None:
        self.queue.drain(timeout)

    def resume(self, timeout: Optional[float] = None) -> bool:
        """Continue a session persisted before a restart. True if one was found."""
        return self._run(self._resume, timeout=timeout)

    def runs(self) -> List[Report]:
        if self.repo is None:
            return list(self._runs)
        return self.repo.list_runs()

    def clear_runs(self) -> None:
        if self.repo is None:
            self._runs.clear()
        else:
            self.repo.clear_runs()

    def export_runs(self, directory: Path, fmt: str = "json") -> Path:
        """Average every stored run into one file. Raises NoValidReports."""
        return export_averaged(self.runs(), Path(directory), fmt=fmt)

    def close(self) -> None:
        self.queue.close()

    # ── Worker-side handlers ────────────────────────────────────────────────

    def _start(self, context: Optional[RecordingContext]) -> bool:
        if not self.session_svc.start(context):
            return False
        self._persist("clear_live_records")
        self._persist("save_session_state", self.session_svc.session.to_dict())
        self._notify(self.on_started, self.session_svc.session.report.metadata)
        return True

    def _ingest(self, payload: Any, received_at: float) -> Optional[MetricsUpdate]:
        if not self.session_svc.recording:
            logger.debug("Ignoring event while not recording.")
            return None
        try:
            event = parse_event(payload, received_at)
        except MalformedEvent as exc:
            logger.warning("Dropped malformed event: %s", exc)
            return None

        update = self.session_svc.dispatch(event)
        if update is None:
            return None

        self._persist("save_stats", update.stats)
        self._persist("save_session_state", self.session_svc.session.to_dict())
        for entry in update.feed:
            self._notify(self.on_feed, entry)
        self._notify(self.on_snapshot, update.snapshot)
        return update

    def _stop(self) -> Optional[Report]:
        report = self.session_svc.stop()
        if report is None:
            return None

        # Consumers read the report once they see "stopped", so write first.
        self._persist("save_finalized_report", report)
        self._persist("add_run", report)
        self._persist("clear_stats")
        self._persist("save_session_state", self.session_svc.session.to_dict())
        if self.repo is None:
            self._runs.append(report)
        self._notify(self.on_stopped, report)
        return report

    def _resume(self) -> bool:
        if self.repo is None:
            return False
        try:
            data = self.repo.load_session_state()
        except sqlite3.Error as exc:
            logger.error("Could not load session state: %s", exc)
            return False
        if not data or not data.get("recording"):
            return False
        try:
            session = SessionState.from_dict(data)
        except MalformedReport as exc:
            logger.error("Stored session state does not load: %s", exc)
            return False
        self.session_svc.restore(session)
        return True

    # ── Persistence helpers ─────────────────────────────────────────────────

    def _persist(self, method: str, *args: Any) -> None:
        """Call a repository write, logging instead of raising on failure."""
        if self.repo is None:
            return
        try:
            getattr(self.repo, method)(*args)
        except sqlite3.Error as exc:
            logger.error("Persistence call %s failed: %s", method, exc)

    # ── Internal ────────────────────────────────────────────────────────────

    def _run(self, fn: Callable, *args: Any, timeout: Optional[float] = None) -> Any:
        if self.queue.in_worker():
            return fn(*args)
        return self.queue.submit(fn, *args).result(timeout=timeout)

    @staticmethod
    def _notify(callback: Optional[Callable], *args: Any) -> None:
        if callback is None:
            return
        try:
            callback(*args)
        except Exception:
            logger.exception("Callback %s raised", getattr(callback, "__name__", callback))


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   The facade sensors and displays use. Every call becomes a job on the
#   ingestion queue, so the session only ever sees one event at a time.
#
# Key pieces:
#   - submit(): stamps the receipt time, then queues parse + dispatch.
#   - _stop(): writes the finalized report and the run before on_stopped
#     fires, so a listener can always read what it was told about.
#   - _persist(): repository writes are best-effort; a sqlite error is
#     logged and the in-memory session keeps going.
#
# Data flow:
#   sensor thread → submit(payload) → queue → parse_event → SessionService
#   → repo.save_stats / save_session_state → on_feed / on_snapshot.
