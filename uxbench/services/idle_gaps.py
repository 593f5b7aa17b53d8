"""
Idle gap detection: pauses of more than 3 s between deliberate actions.

Only clicks, keyboard summaries and scroll updates count as actions.
Cursor travel arrives continuously and never marks a decision point, so it
neither opens nor closes a gap.
"""

from __future__ import annotations

import logging
from typing import Optional

from uxbench.data.events import ClickTarget, Event, EventKind
from uxbench.data.models import IdleGap
from uxbench.metrics.formatting import truncate

from .session_state import SessionState

logger = logging.getLogger(__name__)

IDLE_GAP_THRESHOLD_MS = 3000
LABEL_MAX_CHARS = 40
ACTIVE_KINDS = (EventKind.CLICK, EventKind.KEYBOARD, EventKind.SCROLL)


def click_label(target: ClickTarget) -> str:
    """Visible text of the clicked element, falling back to its tag."""
    return truncate(target.text, LABEL_MAX_CHARS) or target.tag or "element"


def derive_label(event: Event) -> str:
    if event.kind == EventKind.CLICK:
        return click_label(event.target)
    return event.kind


def detect_idle_gap(
    session: SessionState,
    event: Event,
    threshold_ms: float = IDLE_GAP_THRESHOLD_MS,
) -> Optional[IdleGap]:
    """
    Record a gap if this action came more than ``threshold_ms`` after the
    previous one, then make this action the new reference point.

    Returns the appended gap, or None.
    """
    if event.kind not in ACTIVE_KINDS:
        return None

    label = derive_label(event)
    gap: Optional[IdleGap] = None
    if session.last_action_at is not None:
        elapsed = event.timestamp - session.last_action_at
        if elapsed > threshold_ms:
            gap = IdleGap(
                gap_ms=elapsed,
                after_action=session.last_action_label,
                before_action=label,
            )
            session.report.metrics.time_on_task.idle_gaps.append(gap)
            logger.debug("Idle gap of %.0f ms before %s", elapsed, label)

    session.last_action_at = event.timestamp
    session.last_action_label = label
    return gap
