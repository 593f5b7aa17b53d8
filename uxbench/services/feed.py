"""
Snapshot / Feed Builder: turns the current report into display output.

After every state-changing event the engine emits:
    - a snapshot: {metric_key: {"value": formatted string}} for a live display
    - one or more feed entries for an append-only activity timeline
    - the raw live stats record persisted for late-attaching displays
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass, field
from typing import Any, Dict, List, Optional

from uxbench.data.events import (
    ClickClass, ClickEvent, CursorTravelEvent, Event, EventKind, KeyboardEvent,
    ScrollEvent,
)
from uxbench.data.models import IdleGap, Metrics
from uxbench.metrics.formatting import (
    format_compact, format_number, format_ratio, format_seconds, round2,
)

from .idle_gaps import click_label
from .session_state import SessionState

logger = logging.getLogger(__name__)

IDLE_FEED_TYPE = "idle"

# Snapshot keys touched by each event kind.
AFFECTED_KEYS: Dict[str, List[str]] = {
    EventKind.CLICK: ["clicks", "fitts", "scan_avg", "cost"],
    EventKind.SCROLL: ["scroll", "cost"],
    EventKind.KEYBOARD: ["switches", "shortcuts", "typing", "cost"],
    EventKind.MOUSE_TRAVEL: ["travel"],
}


@dataclass
class FeedEntry:
    id: int
    timestamp: float
    type: str
    label: str
    detail: Optional[str] = None
    metric_updates: Dict[str, Dict[str, str]] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        data = asdict(self)
        if data["detail"] is None:
            del data["detail"]
        return data


@dataclass
class MetricsUpdate:
    """Everything the engine emits after one processed event."""
    snapshot: Dict[str, Dict[str, str]]
    feed: List[FeedEntry]
    stats: Dict[str, Any]


# ── Snapshot / stats ────────────────────────────────────────────────────────

def build_snapshot(metrics: Metrics) -> Dict[str, Dict[str, str]]:
    values = {
        "clicks": str(metrics.click_count.total),
        "gaps": str(len(metrics.time_on_task.idle_gaps)),
        "fitts": format_ratio(metrics.fitts.average_id),
        "travel": format_compact(metrics.mouse_travel.total_px),
        "scan_avg": format_compact(metrics.scanning_distance.average_px),
        "scroll": format_compact(metrics.scroll_distance.total_px),
        "switches": str(metrics.context_switches.total),
        "shortcuts": str(metrics.shortcut_coverage.shortcuts_used),
        "typing": format_ratio(metrics.typing_ratio.ratio),
        "cost": format_ratio(metrics.composite_score),
    }
    return {key: {"value": value} for key, value in values.items()}


def build_live_stats(metrics: Metrics) -> Dict[str, Any]:
    """Raw numbers for the persisted stats record."""
    return {
        "clicks": metrics.click_count.total,
        "scroll": metrics.scroll_distance.total_px,
        "switches": metrics.context_switches.total,
        "composite": metrics.composite_score,
        "fitts": round2(metrics.fitts.average_id),
        "shortcuts": metrics.shortcut_coverage.shortcuts_used,
        "typing": metrics.typing_ratio.ratio,
        "scan_avg": round2(metrics.scanning_distance.average_px),
        "travel": metrics.mouse_travel.total_px,
        "gaps": len(metrics.time_on_task.idle_gaps),
    }


# ── Feed ────────────────────────────────────────────────────────────────────

def build_update(session: SessionState, event: Event) -> MetricsUpdate:
    """Build snapshot, feed entries and stats for an event just processed."""
    metrics = session.report.metrics
    snapshot = build_snapshot(metrics)
    feed: List[FeedEntry] = []

    # Gaps appended by the detector but not yet shown go first.
    gaps = metrics.time_on_task.idle_gaps
    for gap in gaps[session.announced_gaps:]:
        feed.append(_idle_entry(session, gap, event.timestamp, snapshot))
    session.announced_gaps = len(gaps)

    label, detail = _describe(session, event)
    updates = {key: snapshot[key] for key in AFFECTED_KEYS.get(event.kind, [])}
    feed.append(FeedEntry(
        id=session.next_feed_id(),
        timestamp=event.timestamp,
        type=event.kind,
        label=label,
        detail=detail,
        metric_updates=updates,
    ))
    return MetricsUpdate(snapshot=snapshot, feed=feed, stats=build_live_stats(metrics))


def _idle_entry(
    session: SessionState, gap: IdleGap, timestamp: float, snapshot: Dict[str, Dict[str, str]]
) -> FeedEntry:
    detail = None
    if gap.after_action or gap.before_action:
        detail = f"after {gap.after_action or '?'}, before {gap.before_action or '?'}"
    return FeedEntry(
        id=session.next_feed_id(),
        timestamp=timestamp,
        type=IDLE_FEED_TYPE,
        label=f"IDLE {format_seconds(gap.gap_ms)}",
        detail=detail,
        metric_updates={"gaps": snapshot["gaps"]},
    )


def _describe(session: SessionState, event: Event):
    if isinstance(event, ClickEvent):
        return _describe_click(event)
    if isinstance(event, ScrollEvent):
        return _describe_scroll(session, event)
    if isinstance(event, KeyboardEvent):
        return _describe_keyboard(event)
    if isinstance(event, CursorTravelEvent):
        return _describe_travel(session, event)
    return event.kind.upper(), None


def _describe_click(event: ClickEvent):
    label = f'CLICK {event.target.tag or "ELEMENT"} "{click_label(event.target)}"'
    detail = None
    if event.classification != ClickClass.PRODUCTIVE:
        detail = event.classification
        if event.reason:
            detail += f": {event.reason}"
    return label, detail


def _describe_scroll(session: SessionState, event: ScrollEvent):
    delta = event.total_px - session.last_scroll_total
    session.last_scroll_total = event.total_px
    detail = f"heaviest: {event.heaviest_container}" if event.heaviest_container else None
    return f"SCROLL +{format_compact(max(delta, 0))}px", detail


def _describe_keyboard(event: KeyboardEvent):
    parts = []
    if event.longest_keyboard_streak is not None:
        parts.append(f"keyboard streak {event.longest_keyboard_streak}")
    if event.longest_mouse_streak is not None:
        parts.append(f"mouse streak {event.longest_mouse_streak}")
    parts.append(f"{event.shortcuts_used} shortcuts")
    return f"KEYBOARD {event.switches_total} switches", ", ".join(parts)


def _describe_travel(session: SessionState, event: CursorTravelEvent):
    delta = event.total_px - session.last_travel_total
    session.last_travel_total = event.total_px
    efficiency = session.report.metrics.mouse_travel.path_efficiency
    detail = None
    if efficiency is not None:
        detail = f"path efficiency {format_number(round2(efficiency))}"
    return f"TRAVEL +{format_compact(max(delta, 0))}px", detail
