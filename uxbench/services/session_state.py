"""
In-memory state of one recording session.

Besides the report being built it carries the small "cursor" fields the
processors need between events: last click position and label, last
active action, and the feed bookkeeping (entry counter, last scroll and
travel totals, how many idle gaps were already announced).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Any, Dict, Optional

from uxbench.data.models import Report


class RecordingState:
    """Session-level states."""
    NOT_RECORDING = "not_recording"
    RECORDING = "recording"


@dataclass
class SessionState:
    recording: bool = False
    started_at: Optional[float] = None  # epoch ms
    last_action_at: Optional[float] = None
    last_action_label: Optional[str] = None
    last_click_x: Optional[float] = None
    last_click_y: Optional[float] = None
    last_click_label: Optional[str] = None
    report: Report = field(default_factory=Report)

    # Feed bookkeeping
    feed_counter: int = 0
    last_scroll_total: float = 0.0
    last_travel_total: float = 0.0
    announced_gaps: int = 0

    @property
    def has_previous_click(self) -> bool:
        return self.last_click_x is not None and self.last_click_y is not None

    def next_feed_id(self) -> int:
        self.feed_counter += 1
        return self.feed_counter

    # ── Serialization (sessionState record) ─────────────────────────────────

    def to_dict(self) -> Dict[str, Any]:
        data = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "report"}
        data["report"] = self.report.to_dict()
        return data

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SessionState":
        known = {f.name for f in fields(cls)} - {"report"}
        kwargs = {k: v for k, v in data.items() if k in known}
        return cls(report=Report.from_dict(data.get("report") or {}), **kwargs)

