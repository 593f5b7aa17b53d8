"""
Data models for the efficiency report.

Plain dataclasses, one per metric group, so processors can only touch the
group they own. to_dict()/from_dict() map them to the snake_case JSON that
the comparison tool reads; from_dict() validates through pydantic.
"""

from __future__ import annotations

from collections import deque
from dataclasses import asdict, dataclass, field
from typing import Annotated, Any, Deque, Dict, List, Mapping, Optional

from pydantic import BeforeValidator, TypeAdapter, ValidationError

from .events import describe_errors

SCHEMA_VERSION = "1.0"
REPORT_SOURCE = "uxbench-recorder"
ACTION_LOG_CAPACITY = 500


class MalformedReport(ValueError):
    """Raised when a stored or imported report does not load."""


def _null_as_zero(value: Any) -> Any:
    return 0 if value is None else value


# A null metric number reads as zero; any other wrong type is rejected.
Amount = Annotated[float, BeforeValidator(_null_as_zero)]
Count = Annotated[int, BeforeValidator(_null_as_zero)]


@dataclass
class ClickDetail:
    """A ceremonial or wasted click and why it was classified that way."""
    element: str = ""
    reason: str = ""


@dataclass
class IdleGap:
    gap_ms: Amount = 0.0
    after_action: Optional[str] = None
    before_action: Optional[str] = None


@dataclass
class FittsTarget:
    element: str = ""
    id: Amount = 0.0
    distance_px: Amount = 0.0
    target_size: str = ""


@dataclass
class ActionLogEntry:
    type: str = ""
    timestamp: Amount = 0.0
    target: str = ""
    text: str = ""
    classification: str = ""


# ── Metric groups ───────────────────────────────────────────────────────────

@dataclass
class ClickCount:
    total: Count = 0
    productive: Count = 0
    ceremonial: Count = 0
    wasted: Count = 0
    ceremonial_details: List[ClickDetail] = field(default_factory=list)
    wasted_details: List[ClickDetail] = field(default_factory=list)


@dataclass
class TimeOnTask:
    """Wall-clock time; idle/active figures are only filled in at stop."""
    total_ms: Count = 0
    idle_gaps: List[IdleGap] = field(default_factory=list)
    idle_ms: Optional[int] = None
    active_ms: Optional[int] = None
    longest_idle_ms: Optional[int] = None
    longest_idle_after: Optional[str] = None


@dataclass
class Fitts:
    formula: str = "shannon"
    cumulative_id: Amount = 0.0
    average_id: Amount = 0.0
    max_id: Amount = 0.0
    max_id_element: str = ""
    max_id_distance_px: Amount = 0.0
    max_id_target_size: str = ""
    top_3_hardest: List[FittsTarget] = field(default_factory=list)


@dataclass
class ContextSwitches:
    total: Count = 0
    ratio: Amount = 0.0
    longest_keyboard_streak: Optional[int] = None
    longest_mouse_streak: Optional[int] = None


@dataclass
class ShortcutCoverage:
    shortcuts_used: Count = 0


@dataclass
class TypingRatio:
    free_text_inputs: Count = 0
    constrained_inputs: Count = 0
    ratio: Amount = 0.0
    free_text_fields: List[str] = field(default_factory=list)


@dataclass
class ScanningDistance:
    method: str = "euclidean"
    cumulative_px: Amount = 0.0
    average_px: Amount = 0.0
    max_single_px: Amount = 0.0
    max_single_from: Optional[str] = None
    max_single_to: Optional[str] = None


@dataclass
class ScrollDistance:
    total_px: Amount = 0.0
    page_scroll_px: Optional[float] = None
    container_scroll_px: Optional[float] = None
    total_horizontal_px: Optional[float] = None
    scroll_events: Optional[int] = None
    heaviest_container: Optional[str] = None


@dataclass
class MouseTravel:
    total_px: Amount = 0.0
    idle_travel_px: Amount = 0.0
    move_events: Count = 0
    path_efficiency: Optional[float] = None


@dataclass
class Metrics:
    click_count: ClickCount = field(default_factory=ClickCount)
    time_on_task: TimeOnTask = field(default_factory=TimeOnTask)
    fitts: Fitts = field(default_factory=Fitts)
    context_switches: ContextSwitches = field(default_factory=ContextSwitches)
    shortcut_coverage: ShortcutCoverage = field(default_factory=ShortcutCoverage)
    typing_ratio: TypingRatio = field(default_factory=TypingRatio)
    scanning_distance: ScanningDistance = field(default_factory=ScanningDistance)
    scroll_distance: ScrollDistance = field(default_factory=ScrollDistance)
    mouse_travel: MouseTravel = field(default_factory=MouseTravel)
    composite_score: Amount = 0.0


@dataclass
class ReportMetadata:
    recording_name: str = ""
    product: str = ""
    task: str = ""
    url: str = ""
    urls_visited: List[str] = field(default_factory=list)
    timestamp: str = ""  # ISO-8601 start time
    duration_ms: Count = 0
    browser: str = ""
    source_version: str = ""
    operator: str = "human"
    persona: Optional[str] = None
    agent_model: Optional[str] = None
    run_count: Optional[int] = None
    averaged: bool = False


def _new_action_log() -> Deque[ActionLogEntry]:
    return deque(maxlen=ACTION_LOG_CAPACITY)


@dataclass
class Report:
    """
    One recording session's efficiency report.

    action_log is a ring buffer: once ACTION_LOG_CAPACITY entries are held,
    appending evicts the oldest.
    """
    schema_version: str = SCHEMA_VERSION
    source: str = REPORT_SOURCE
    metadata: ReportMetadata = field(default_factory=ReportMetadata)
    metrics: Metrics = field(default_factory=Metrics)
    action_log: Deque[ActionLogEntry] = field(default_factory=_new_action_log)

    # ── Serialization ───────────────────────────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        metadata = asdict(self.metadata)
        if metadata["run_count"] is None:
            del metadata["run_count"]
        if not metadata["averaged"]:
            del metadata["averaged"]
        return {
            "schema_version": self.schema_version,
            "source": self.source,
            "metadata": metadata,
            "metrics": asdict(self.metrics),
            "action_log": [asdict(entry) for entry in self.action_log],
        }

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "Report":
        """
        Rebuild a report from its JSON form. Unknown keys are ignored.

        Raises MalformedReport when a field holds a value of the wrong type.
        """
        try:
            report = _REPORT_ADAPTER.validate_python(data)
        except ValidationError as exc:
            raise MalformedReport(describe_errors(exc)) from exc
        report.action_log = deque(report.action_log, maxlen=ACTION_LOG_CAPACITY)
        return report


_REPORT_ADAPTER: TypeAdapter = TypeAdapter(Report)
