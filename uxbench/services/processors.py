"""
Per-type metric processors.

Each processor mutates only its own metric groups of the session report:

    click         → click_count, scanning_distance, fitts, action_log
    scroll        → scroll_distance            (latest value wins)
    keyboard      → context_switches, shortcut_coverage, typing_ratio
    mouse_travel  → mouse_travel               (plus derived path efficiency)

Composite score and display output are handled by the caller.
"""

from __future__ import annotations

import logging
from typing import Callable, Dict

from uxbench.data.events import (
    ClickClass, ClickEvent, CursorTravelEvent, Event, EventKind, KeyboardEvent,
    ScrollEvent,
)
from uxbench.data.models import (
    ActionLogEntry, ClickCount, ClickDetail, Fitts, FittsTarget, Metrics,
    ScanningDistance,
)
from uxbench.metrics.fitts import euclidean, format_target_size, index_of_difficulty

from .idle_gaps import click_label
from .session_state import SessionState

logger = logging.getLogger(__name__)

TOP_HARDEST = 3


# ── Click ───────────────────────────────────────────────────────────────────

def process_click(session: SessionState, event: ClickEvent) -> None:
    metrics = session.report.metrics
    label = click_label(event.target)

    _classify(metrics.click_count, event)

    # The first click of a session has no reference point.
    if session.has_previous_click:
        dx = event.x - session.last_click_x
        dy = event.y - session.last_click_y
        _add_scan(metrics.scanning_distance, dx, dy, session.last_click_label, label)
        _add_fitts(metrics.fitts, dx, dy, event, label)

    _update_averages(metrics)

    session.last_click_x = event.x
    session.last_click_y = event.y
    session.last_click_label = label
    session.report.action_log.append(ActionLogEntry(
        type="click",
        timestamp=event.timestamp,
        target=event.target.element,
        text=event.target.text,
        classification=event.classification,
    ))


def _classify(counts: ClickCount, event: ClickEvent) -> None:
    counts.total += 1
    if event.classification == ClickClass.CEREMONIAL:
        counts.ceremonial += 1
        counts.ceremonial_details.append(
            ClickDetail(element=event.target.element, reason=event.reason or "")
        )
    elif event.classification == ClickClass.WASTED:
        counts.wasted += 1
        counts.wasted_details.append(
            ClickDetail(element=event.target.element, reason=event.reason or "")
        )
    else:
        counts.productive += 1


def _add_scan(scan: ScanningDistance, dx: float, dy: float,
              from_label: str, to_label: str) -> None:
    distance = euclidean(0.0, 0.0, dx, dy)
    scan.cumulative_px += distance
    if distance > scan.max_single_px:
        scan.max_single_px = distance
        scan.max_single_from = from_label
        scan.max_single_to = to_label


def _add_fitts(fitts: Fitts, dx: float, dy: float, event: ClickEvent, label: str) -> None:
    width, height = event.target.rect_width, event.target.rect_height
    difficulty = index_of_difficulty(dx, dy, width, height)
    if difficulty is None:
        logger.debug("Skipping Fitts ID for %s: degenerate geometry", label)
        return

    distance = euclidean(0.0, 0.0, dx, dy)
    size = format_target_size(width, height)
    fitts.cumulative_id += difficulty
    if difficulty > fitts.max_id:
        fitts.max_id = difficulty
        fitts.max_id_element = label
        fitts.max_id_distance_px = distance
        fitts.max_id_target_size = size

    fitts.top_3_hardest.append(
        FittsTarget(element=label, id=difficulty, distance_px=distance, target_size=size)
    )
    fitts.top_3_hardest.sort(key=lambda t: t.id, reverse=True)
    del fitts.top_3_hardest[TOP_HARDEST:]


def _update_averages(metrics: Metrics) -> None:
    movements = metrics.click_count.total - 1
    if movements > 0:
        metrics.fitts.average_id = metrics.fitts.cumulative_id / movements
        metrics.scanning_distance.average_px = (
            metrics.scanning_distance.cumulative_px / movements
        )
    else:
        metrics.fitts.average_id = 0.0
        metrics.scanning_distance.average_px = 0.0


# ── Scroll / keyboard (latest value wins) ───────────────────────────────────

def process_scroll(session: SessionState, event: ScrollEvent) -> None:
    scroll = session.report.metrics.scroll_distance
    scroll.total_px = event.total_px
    scroll.page_scroll_px = event.page_scroll_px
    scroll.container_scroll_px = event.container_scroll_px
    scroll.total_horizontal_px = event.horizontal_px
    scroll.scroll_events = event.scroll_event_count
    scroll.heaviest_container = event.heaviest_container


def process_keyboard(session: SessionState, event: KeyboardEvent) -> None:
    metrics = session.report.metrics

    switches = metrics.context_switches
    switches.total = event.switches_total
    switches.ratio = event.switch_ratio
    switches.longest_keyboard_streak = event.longest_keyboard_streak
    switches.longest_mouse_streak = event.longest_mouse_streak

    metrics.shortcut_coverage.shortcuts_used = event.shortcuts_used

    typing = metrics.typing_ratio
    typing.free_text_inputs = event.free_text_inputs
    typing.constrained_inputs = event.constrained_inputs
    typing.ratio = event.typing_ratio
    typing.free_text_fields = list(event.free_text_field_labels)


# ── Cursor travel ───────────────────────────────────────────────────────────

def process_cursor_travel(session: SessionState, event: CursorTravelEvent) -> None:
    metrics = session.report.metrics
    travel = metrics.mouse_travel
    travel.total_px = event.total_px
    travel.idle_travel_px = event.idle_travel_px
    travel.move_events = event.move_events
    # Straight-line click-to-click distance over the path actually travelled.
    if event.total_px > 0:
        travel.path_efficiency = metrics.scanning_distance.cumulative_px / event.total_px
    else:
        travel.path_efficiency = None


PROCESSORS: Dict[str, Callable[[SessionState, Event], None]] = {
    EventKind.CLICK: process_click,
    EventKind.SCROLL: process_scroll,
    EventKind.KEYBOARD: process_keyboard,
    EventKind.MOUSE_TRAVEL: process_cursor_travel,
}
