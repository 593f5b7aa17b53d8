"""
Ingestion Queue: serializes work from any number of producer threads.

One daemon worker thread takes jobs off a FIFO queue and runs them one at a
time, in submission order. A job that raises is logged and its Future
carries the exception; the worker moves on to the next job.
"""

from __future__ import annotations

import logging
import queue
import threading
from concurrent.futures import Future
from typing import Any, Callable, Optional

logger = logging.getLogger(__name__)

_STOP = object()


class IngestionQueue:
    """Single-consumer task queue."""

    def __init__(self, name: str = "uxbench-ingest") -> None:
        self._jobs: "queue.Queue[Any]" = queue.Queue()
        self._lock = threading.Lock()
        self._closed = False
        self._thread = threading.Thread(target=self._work_loop, name=name, daemon=True)
        self._thread.start()

    # ── Public API ──────────────────────────────────────────────────────────

    def submit(self, fn: Callable[..., Any], *args: Any) -> Future:
        """Enqueue ``fn(*args)`` without blocking. Returns its Future."""
        future: Future = Future()
        with self._lock:
            if self._closed:
                raise RuntimeError("Ingestion queue is closed.")
            self._jobs.put((future, fn, args))
        return future

    def drain(self, timeout: Optional[float] = None) -> None:
        """Block until every job submitted before this call has run."""
        if self.in_worker():
            return
        self.submit(lambda: None).result(timeout=timeout)

    def close(self, timeout: Optional[float] = 5.0) -> None:
        """Finish queued jobs, then stop the worker."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
            self._jobs.put(_STOP)
        if not self.in_worker():
            self._thread.join(timeout=timeout)
        logger.info("Ingestion queue closed.")

    def in_worker(self) -> bool:
        return threading.current_thread() is self._thread

    @property
    def closed(self) -> bool:
        return self._closed

    # ── Worker ──────────────────────────────────────────────────────────────

    def _work_loop(self) -> None:
        while True:
            item = self._jobs.get()
            if item is _STOP:
                break
            future, fn, args = item
            if not future.set_running_or_notify_cancel():
                continue
            try:
                result = fn(*args)
            except Exception as exc:
                logger.exception("Queued job %s failed", getattr(fn, "__name__", fn))
                future.set_exception(exc)
            else:
                future.set_result(result)


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   A single worker thread draining a FIFO queue. Producers on any thread
#   call submit() and get a concurrent.futures.Future back.
#
# Key pieces:
#   - _STOP sentinel: close() enqueues it behind the pending jobs, so
#     everything submitted before close still runs.
#   - drain(): a no-op job whose Future resolves once all earlier jobs ran.
#   - in_worker(): lets a job call drain()/close() without deadlocking on
#     its own thread.
#
# Data flow:
#   submit(fn, *args) → queue.Queue → _work_loop → fn(*args) → Future.
