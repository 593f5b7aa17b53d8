from .database import Database
from .events import (
    ClickEvent, ClickTarget, CursorTravelEvent, KeyboardEvent, MalformedEvent,
    ScrollEvent, parse_event,
)
from .models import MalformedReport, Report
from .repository import Repository

__all__ = [
    "Database", "Repository", "Report", "ClickEvent", "ClickTarget",
    "ScrollEvent", "KeyboardEvent", "CursorTravelEvent", "MalformedEvent",
    "parse_event", "MalformedReport",
]
