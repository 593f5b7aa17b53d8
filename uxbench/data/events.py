"""
Event model: the typed payloads the recording engine accepts.

Sensors hand the engine plain dicts discriminated by ``type``. Each wire
shape is a pydantic model; parse_event() validates the payload against the
tagged union and converts it to one of four engine dataclasses. Anything
that does not fit raises MalformedEvent so the queue can log and drop it.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Annotated, Any, List, Literal, Optional, Union

from pydantic import (
    BaseModel, ConfigDict, Field, StrictFloat, StrictInt, StrictStr, TypeAdapter,
    ValidationError, field_validator,
)

class MalformedEvent(ValueError):
    """Raised when an inbound payload is missing or has unusable fields."""


class ClickClass:
    """Pre-computed click classification."""
    PRODUCTIVE = "productive"
    CEREMONIAL = "ceremonial"
    WASTED = "wasted"

    ALL = (PRODUCTIVE, CEREMONIAL, WASTED)


class EventKind:
    """Internal event kinds, one per processor."""
    CLICK = "click"
    SCROLL = "scroll"
    KEYBOARD = "keyboard"
    MOUSE_TRAVEL = "mouse_travel"


@dataclass
class ClickTarget:
    """The element that received a click."""
    tag: str = ""
    id: str = ""
    text: str = ""
    rect_width: float = 0.0
    rect_height: float = 0.0

    @property
    def element(self) -> str:
        """``TAG#id`` form used in detail lists and the action log."""
        return f"{self.tag}#{self.id}" if self.id else self.tag


@dataclass
class ClickEvent:
    timestamp: float
    x: float
    y: float
    target: ClickTarget
    classification: str = ClickClass.PRODUCTIVE
    reason: Optional[str] = None

    kind = EventKind.CLICK


@dataclass
class ScrollEvent:
    """Scroll totals, already aggregated by the producer."""
    timestamp: float
    total_px: float
    page_scroll_px: Optional[float] = None
    container_scroll_px: Optional[float] = None
    horizontal_px: Optional[float] = None
    scroll_event_count: Optional[int] = None
    heaviest_container: Optional[str] = None

    kind = EventKind.SCROLL


@dataclass
class KeyboardEvent:
    """Keyboard / mode-switch summary, already aggregated by the producer."""
    timestamp: float
    switches_total: int
    switch_ratio: float = 0.0
    longest_keyboard_streak: Optional[int] = None
    longest_mouse_streak: Optional[int] = None
    shortcuts_used: int = 0
    free_text_inputs: int = 0
    constrained_inputs: int = 0
    typing_ratio: float = 0.0
    free_text_field_labels: List[str] = field(default_factory=list)

    kind = EventKind.KEYBOARD


@dataclass
class CursorTravelEvent:
    timestamp: float
    total_px: float
    idle_travel_px: float = 0.0
    move_events: int = 0

    kind = EventKind.MOUSE_TRAVEL


Event = Union[ClickEvent, ScrollEvent, KeyboardEvent, CursorTravelEvent]


# ── Wire payloads ───────────────────────────────────────────────────────────

# Booleans are not numbers on the wire.
Number = Union[StrictInt, StrictFloat]


class _Payload(BaseModel):
    model_config = ConfigDict(extra="ignore")


class RectPayload(_Payload):
    width: Optional[Number] = None
    height: Optional[Number] = None


class TargetPayload(_Payload):
    tagName: Optional[StrictStr] = None
    id: Optional[StrictStr] = None
    innerText: Optional[StrictStr] = None
    rect: Optional[RectPayload] = None


class ClickPayload(_Payload):
    type: Literal["click"]
    timestamp: Optional[Number] = None
    x: Number
    y: Number
    target: TargetPayload
    classification: Optional[Literal["productive", "ceremonial", "wasted"]] = None
    classificationReason: Optional[StrictStr] = None

    @field_validator("classification", mode="before")
    @classmethod
    def _blank_means_productive(cls, value: Any) -> Any:
        return value or None

    def to_event(self, timestamp: float) -> ClickEvent:
        rect = self.target.rect or RectPayload()
        return ClickEvent(
            timestamp=timestamp,
            x=float(self.x),
            y=float(self.y),
            target=ClickTarget(
                tag=self.target.tagName or "",
                id=self.target.id or "",
                text=self.target.innerText or "",
                rect_width=float(rect.width or 0),
                rect_height=float(rect.height or 0),
            ),
            classification=self.classification or ClickClass.PRODUCTIVE,
            reason=self.classificationReason,
        )


class ScrollPayload(_Payload):
    type: Literal["scroll_update"]
    timestamp: Optional[Number] = None
    total_px: Number
    page_scroll_px: Optional[Number] = None
    container_scroll_px: Optional[Number] = None
    total_horizontal_px: Optional[Number] = None
    scroll_events: Optional[Number] = None
    heaviest_container: Optional[StrictStr] = None

    def to_event(self, timestamp: float) -> ScrollEvent:
        return ScrollEvent(
            timestamp=timestamp,
            total_px=float(self.total_px),
            page_scroll_px=_as_float(self.page_scroll_px),
            container_scroll_px=_as_float(self.container_scroll_px),
            horizontal_px=_as_float(self.total_horizontal_px),
            scroll_event_count=_as_int(self.scroll_events),
            heaviest_container=self.heaviest_container,
        )


class ContextSwitchesPayload(_Payload):
    total: Number
    ratio: Optional[Number] = None
    longest_keyboard_streak: Optional[Number] = None
    longest_mouse_streak: Optional[Number] = None


class ShortcutCoveragePayload(_Payload):
    shortcuts_used: Optional[Number] = None


class TypingRatioPayload(_Payload):
    free_text_inputs: Optional[Number] = None
    constrained_inputs: Optional[Number] = None
    ratio: Optional[Number] = None
    free_text_fields: Optional[List[StrictStr]] = None


class KeyboardPayload(_Payload):
    type: Literal["keyboard_update"]
    timestamp: Optional[Number] = None
    context_switches: ContextSwitchesPayload
    shortcut_coverage: Optional[ShortcutCoveragePayload] = None
    typing_ratio: Optional[TypingRatioPayload] = None

    def to_event(self, timestamp: float) -> KeyboardEvent:
        switches = self.context_switches
        shortcuts = self.shortcut_coverage or ShortcutCoveragePayload()
        typing = self.typing_ratio or TypingRatioPayload()
        return KeyboardEvent(
            timestamp=timestamp,
            switches_total=int(switches.total),
            switch_ratio=float(switches.ratio or 0),
            longest_keyboard_streak=_as_int(switches.longest_keyboard_streak),
            longest_mouse_streak=_as_int(switches.longest_mouse_streak),
            shortcuts_used=int(shortcuts.shortcuts_used or 0),
            free_text_inputs=int(typing.free_text_inputs or 0),
            constrained_inputs=int(typing.constrained_inputs or 0),
            typing_ratio=float(typing.ratio or 0),
            free_text_field_labels=list(typing.free_text_fields or []),
        )


class CursorTravelPayload(_Payload):
    # path_efficiency from the producer is ignored; the engine derives it.
    type: Literal["mouse_travel_update"]
    timestamp: Optional[Number] = None
    total_px: Number
    idle_travel_px: Optional[Number] = None
    move_events: Optional[Number] = None

    def to_event(self, timestamp: float) -> CursorTravelEvent:
        return CursorTravelEvent(
            timestamp=timestamp,
            total_px=float(self.total_px),
            idle_travel_px=float(self.idle_travel_px or 0),
            move_events=int(self.move_events or 0),
        )


EventPayload = Annotated[
    Union[ClickPayload, ScrollPayload, KeyboardPayload, CursorTravelPayload],
    Field(discriminator="type"),
]

_PAYLOAD_ADAPTER: TypeAdapter = TypeAdapter(EventPayload)


def _as_float(value: Optional[Number]) -> Optional[float]:
    return None if value is None else float(value)


def _as_int(value: Optional[Number]) -> Optional[int]:
    return None if value is None else int(value)


# ── Parsing ─────────────────────────────────────────────────────────────────

def parse_event(payload: Any, received_at: float) -> Event:
    """
    Build a typed event from a raw producer payload.

    ``received_at`` (epoch ms) is used as the event time when the payload
    carries no ``timestamp`` of its own.
    """
    try:
        wire = _PAYLOAD_ADAPTER.validate_python(payload)
    except ValidationError as exc:
        raise MalformedEvent(describe_errors(exc)) from exc
    timestamp = float(wire.timestamp) if wire.timestamp is not None else received_at
    return wire.to_event(timestamp)


def describe_errors(exc: ValidationError) -> str:
    """One ``loc.path: message`` entry per failing field."""
    return "; ".join(
        f"{'.'.join(str(part) for part in err['loc']) or 'payload'}: {err['msg']}"
        for err in exc.errors()
    )
