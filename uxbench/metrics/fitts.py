"""
Pointing geometry: click-to-click distance and Fitts's Law difficulty.

Uses the Shannon formulation, ID = log2(D / W + 1), with a directional
effective width: the target rectangle projected onto the approach angle
instead of min(width, height).
"""

from __future__ import annotations

import math
from typing import Optional


def euclidean(x1: float, y1: float, x2: float, y2: float) -> float:
    return math.hypot(x2 - x1, y2 - y1)


def effective_width(dx: float, dy: float, width: float, height: float) -> float:
    """Width of a width×height target as seen along the (dx, dy) approach."""
    angle = math.atan2(abs(dy), abs(dx))
    return width * abs(math.cos(angle)) + height * abs(math.sin(angle))


def index_of_difficulty(
    dx: float, dy: float, width: float, height: float
) -> Optional[float]:
    """
    Shannon ID in bits for a movement of (dx, dy) onto a width×height target.

    Returns None for degenerate geometry (zero distance or zero effective
    width) so the caller can skip the click instead of failing.
    """
    distance = math.hypot(dx, dy)
    w_eff = effective_width(dx, dy, width, height)
    if w_eff <= 0 or distance <= 0:
        return None
    return math.log2(distance / w_eff + 1)


def format_target_size(width: float, height: float) -> str:
    return f"{_num(width)}x{_num(height)}px"


def _num(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:g}"
