"""
Number formatting shared by the live display, the feed and the exports.

Rounding is half-up (like a spreadsheet), not Python's banker's rounding,
so averaged reports match what users compute by hand.
"""

from __future__ import annotations

import math
from typing import Optional


def round_int(value: float) -> int:
    return int(math.floor(value + 0.5))


def round2(value: float) -> float:
    return math.floor(value * 100 + 0.5) / 100


def format_number(value: float) -> str:
    """Render 2.0 as "2" and 2.5 as "2.5"."""
    value = float(value)
    return str(int(value)) if value.is_integer() else str(value)


def format_ratio(value: Optional[float]) -> str:
    if value is None:
        return "--"
    return format_number(round2(value))


def format_compact(value: float) -> str:
    """Pixel counts: 950 -> "950", 1500 -> "1.5k"."""
    if value >= 1000:
        return format_number(round2(value / 1000)) + "k"
    return str(round_int(value))


def format_seconds(ms: float) -> str:
    return format_number(round2(ms / 1000)) + "s"


def format_duration(ms: float) -> str:
    """45s below a minute, otherwise 3m 12s."""
    secs = int(ms // 1000)
    mins, rem = divmod(secs, 60)
    return f"{mins}m {rem}s" if mins > 0 else f"{rem}s"


def truncate(text: str, limit: int) -> str:
    text = (text or "").strip()
    return text if len(text) <= limit else text[: limit - 1] + "…"
