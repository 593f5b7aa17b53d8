"""
Session Service: owns the lifecycle of a recording session.

Handles: start, stop, routing each event through idle detection, its
processor, the composite scorer and the feed builder, and computing the
time-on-task aggregates when a session ends.

Not thread-safe on its own; RecordingService drives it from a single
ingestion worker.
"""

from __future__ import annotations

import copy
import logging
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Optional

from uxbench.data.events import Event
from uxbench.data.models import Report, ReportMetadata, TimeOnTask
from uxbench.metrics.composite import compute_composite_score
from uxbench.metrics.formatting import round_int

from .feed import MetricsUpdate, build_update
from .idle_gaps import IDLE_GAP_THRESHOLD_MS, detect_idle_gap
from .processors import PROCESSORS
from .session_state import RecordingState, SessionState

logger = logging.getLogger(__name__)

Clock = Callable[[], float]


def epoch_ms() -> float:
    return time.time() * 1000


@dataclass
class RecordingContext:
    """What is being recorded; copied into the report metadata."""
    product: str = ""
    task: str = ""
    url: str = ""
    recording_name: str = ""
    browser: str = ""
    source_version: str = ""
    operator: str = "human"
    persona: Optional[str] = None
    agent_model: Optional[str] = None


class SessionService:
    """
    Manages one recording session at a time.

    State transitions:
        not_recording → start() → recording → stop() → not_recording
    Events are only processed while recording; anything else is dropped.
    """

    def __init__(
        self,
        clock: Optional[Clock] = None,
        idle_threshold_ms: float = IDLE_GAP_THRESHOLD_MS,
    ) -> None:
        self.clock: Clock = clock or epoch_ms
        self.idle_threshold_ms = idle_threshold_ms
        self.session = SessionState()

    @property
    def state(self) -> str:
        return RecordingState.RECORDING if self.session.recording else RecordingState.NOT_RECORDING

    @property
    def recording(self) -> bool:
        return self.session.recording

    # ── Session lifecycle ───────────────────────────────────────────────────

    def start(self, context: Optional[RecordingContext] = None) -> bool:
        """Begin a new session. Returns False if one is already running."""
        if self.session.recording:
            logger.info("Start ignored: already recording.")
            return False

        context = context or RecordingContext()
        now = self.clock()
        report = Report(metadata=ReportMetadata(
            recording_name=context.recording_name or _default_name(context, now),
            product=context.product,
            task=context.task,
            url=context.url,
            urls_visited=[context.url] if context.url else [],
            timestamp=_iso(now),
            browser=context.browser,
            source_version=context.source_version,
            operator=context.operator,
            persona=context.persona,
            agent_model=context.agent_model,
        ))
        self.session = SessionState(recording=True, started_at=now, report=report)
        logger.info("Recording started: %s", report.metadata.recording_name)
        return True

    def stop(self) -> Optional[Report]:
        """End the session and return its frozen report, or None if idle."""
        if not self.session.recording:
            logger.debug("Stop ignored: not recording.")
            return None

        report = self.session.report
        elapsed = self.clock() - (self.session.started_at or 0)
        total_ms = max(round_int(elapsed), 0)
        _finalize_time_on_task(report.metrics.time_on_task, total_ms)
        report.metadata.duration_ms = total_ms
        report.metrics.composite_score = compute_composite_score(report.metrics)

        frozen = copy.deepcopy(report)
        self.session = SessionState()
        logger.info(
            "Recording stopped after %d ms: %d clicks, composite %.2f",
            total_ms, frozen.metrics.click_count.total, frozen.metrics.composite_score,
        )
        return frozen

    def restore(self, session: SessionState) -> None:
        """Adopt a session reloaded from storage."""
        self.session = session
        logger.info("Session restored (recording=%s).", session.recording)

    # ── Event routing ───────────────────────────────────────────────────────

    def dispatch(self, event: Event) -> Optional[MetricsUpdate]:
        """Apply one event. Returns the display update, or None if dropped."""
        if not self.session.recording:
            logger.debug("Dropped %s event: not recording.", event.kind)
            return None

        processor = PROCESSORS[event.kind]
        detect_idle_gap(self.session, event, self.idle_threshold_ms)
        processor(self.session, event)

        metrics = self.session.report.metrics
        metrics.composite_score = compute_composite_score(metrics)
        return build_update(self.session, event)


# ── Helpers ─────────────────────────────────────────────────────────────────

def _finalize_time_on_task(tot: TimeOnTask, total_ms: int) -> None:
    tot.total_ms = total_ms
    if not tot.idle_gaps:
        tot.idle_ms = 0
        tot.active_ms = total_ms
        tot.longest_idle_ms = None
        tot.longest_idle_after = None
        return

    idle = sum(gap.gap_ms for gap in tot.idle_gaps)
    longest = max(tot.idle_gaps, key=lambda gap: gap.gap_ms)
    tot.idle_ms = round_int(idle)
    tot.active_ms = max(total_ms - tot.idle_ms, 0)
    tot.longest_idle_ms = round_int(longest.gap_ms)
    tot.longest_idle_after = longest.after_action


def _iso(ms: float) -> str:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).isoformat()


def _default_name(context: RecordingContext, ms: float) -> str:
    stamp = datetime.fromtimestamp(ms / 1000, tz=timezone.utc).strftime("%Y-%m-%d %H:%M")
    subject = " - ".join(p for p in (context.product, context.task) if p)
    return f"{subject} ({stamp})" if subject else f"Recording {stamp}"


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Owns one recording session: start, stop, restore after a restart, and
#   dispatch of each parsed event to the processor for its kind.
#
# Key pieces:
#   - RecordingContext: product / task / url / name supplied at start.
#   - SessionService.dispatch(): idle-gap check first, then the processor,
#     then the composite score, then the feed update for displays.
#   - stop(): fills in idle / active time and hands back a deep copy of the
#     report before the state is reset.
#
# Data flow:
#   RecordingService worker → dispatch(event) → processors mutate the
#   report → build_update() → MetricsUpdate back to the worker.
