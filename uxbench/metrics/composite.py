"""Interaction cost: one weighted scalar over the current report."""

from __future__ import annotations

from uxbench.data.models import Metrics

SWITCH_WEIGHT = 1.5
FITTS_WEIGHT = 1.0
SCROLL_WEIGHT = 0.005


def compute_composite_score(metrics: Metrics) -> float:
    """
    Recompute the composite from the cumulative fields.

    Cursor travel is not part of the score.
    """
    return (
        metrics.context_switches.total * SWITCH_WEIGHT
        + metrics.fitts.cumulative_id * FITTS_WEIGHT
        + metrics.scroll_distance.total_px * SCROLL_WEIGHT
    )
