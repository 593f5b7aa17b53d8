"""
Report Averager: merges N finalized runs into one comparable report.

Numeric fields listed in AVERAGED_FIELDS are averaged arithmetically and
rounded per field. The rest of the report is copied from the last valid
run, except for a few merged fields:
    - fitts.top_3_hardest: union of every run's entries, hardest three kept
    - typing_ratio.free_text_fields: de-duplicated union, first-seen order
    - fitts.max_id_element (+ distance, size): from the run with the highest max_id
"""

from __future__ import annotations

import copy
import logging
from dataclasses import dataclass
from typing import Any, Callable, List, Mapping, Optional, Sequence, Union

import numpy as np

from uxbench.data.models import FittsTarget, MalformedReport, Metrics, Report
from uxbench.metrics.formatting import round2, round_int

from .processors import TOP_HARDEST

logger = logging.getLogger(__name__)


class NoValidReports(ValueError):
    """Raised when none of the inputs is a usable report."""


@dataclass(frozen=True)
class AveragedField:
    """One numeric metric: where it lives and how its average is rounded."""
    path: str
    group: Callable[[Metrics], Any]
    attr: str
    rounding: Callable[[float], float]

    def read(self, metrics: Metrics) -> Optional[float]:
        value = getattr(self.group(metrics), self.attr)
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            return None
        return value

    def write(self, metrics: Metrics, value: Optional[float]) -> None:
        setattr(self.group(metrics), self.attr, value)


def _whole(group: Callable[[Metrics], Any], attr: str, path: str) -> AveragedField:
    return AveragedField(path, group, attr, round_int)


def _ratio(group: Callable[[Metrics], Any], attr: str, path: str) -> AveragedField:
    return AveragedField(path, group, attr, round2)


AVERAGED_FIELDS: List[AveragedField] = [
    _whole(lambda m: m.click_count, "total", "click_count.total"),
    _whole(lambda m: m.click_count, "productive", "click_count.productive"),
    _whole(lambda m: m.click_count, "ceremonial", "click_count.ceremonial"),
    _whole(lambda m: m.click_count, "wasted", "click_count.wasted"),
    _whole(lambda m: m.time_on_task, "total_ms", "time_on_task.total_ms"),
    _whole(lambda m: m.time_on_task, "idle_ms", "time_on_task.idle_ms"),
    _whole(lambda m: m.time_on_task, "active_ms", "time_on_task.active_ms"),
    _ratio(lambda m: m, "composite_score", "composite_score"),
    _ratio(lambda m: m.fitts, "cumulative_id", "fitts.cumulative_id"),
    _ratio(lambda m: m.fitts, "average_id", "fitts.average_id"),
    _ratio(lambda m: m.fitts, "max_id", "fitts.max_id"),
    _whole(lambda m: m.scanning_distance, "cumulative_px", "scanning_distance.cumulative_px"),
    _whole(lambda m: m.scanning_distance, "average_px", "scanning_distance.average_px"),
    _whole(lambda m: m.scanning_distance, "max_single_px", "scanning_distance.max_single_px"),
    _whole(lambda m: m.scroll_distance, "total_px", "scroll_distance.total_px"),
    _whole(lambda m: m.scroll_distance, "page_scroll_px", "scroll_distance.page_scroll_px"),
    _whole(lambda m: m.scroll_distance, "container_scroll_px", "scroll_distance.container_scroll_px"),
    _whole(lambda m: m.scroll_distance, "total_horizontal_px", "scroll_distance.total_horizontal_px"),
    _whole(lambda m: m.scroll_distance, "scroll_events", "scroll_distance.scroll_events"),
    _whole(lambda m: m.context_switches, "total", "context_switches.total"),
    _ratio(lambda m: m.context_switches, "ratio", "context_switches.ratio"),
    _whole(lambda m: m.shortcut_coverage, "shortcuts_used", "shortcut_coverage.shortcuts_used"),
    _whole(lambda m: m.typing_ratio, "free_text_inputs", "typing_ratio.free_text_inputs"),
    _whole(lambda m: m.typing_ratio, "constrained_inputs", "typing_ratio.constrained_inputs"),
    _ratio(lambda m: m.typing_ratio, "ratio", "typing_ratio.ratio"),
    _whole(lambda m: m.mouse_travel, "total_px", "mouse_travel.total_px"),
    _whole(lambda m: m.mouse_travel, "idle_travel_px", "mouse_travel.idle_travel_px"),
    _whole(lambda m: m.mouse_travel, "move_events", "mouse_travel.move_events"),
    _ratio(lambda m: m.mouse_travel, "path_efficiency", "mouse_travel.path_efficiency"),
]

ReportInput = Union[Report, Mapping[str, Any]]


# ── Validation ──────────────────────────────────────────────────────────────

def is_valid_report(report: ReportInput) -> bool:
    """A run is usable when it has a numeric click_count.total."""
    if isinstance(report, Report):
        total = report.metrics.click_count.total
    elif isinstance(report, Mapping):
        metrics = report.get("metrics")
        click_count = metrics.get("click_count") if isinstance(metrics, Mapping) else None
        total = click_count.get("total") if isinstance(click_count, Mapping) else None
    else:
        return False
    return isinstance(total, (int, float)) and not isinstance(total, bool)


# ── Averaging ───────────────────────────────────────────────────────────────

def average_reports(reports: Sequence[ReportInput]) -> Report:
    """
    Merge finalized reports into one averaged report.

    Invalid entries, and dicts that do not load as a report, are skipped.
    Raises NoValidReports when nothing is left. The inputs are never modified.
    """
    valid: List[Report] = []
    for report in reports:
        if not is_valid_report(report):
            continue
        try:
            valid.append(_as_report(report))
        except MalformedReport as exc:
            logger.warning("Skipping unloadable report: %s", exc)
    if not valid:
        raise NoValidReports("No valid runs to average.")
    skipped = len(reports) - len(valid)
    if skipped:
        logger.warning("Skipped %d invalid report(s) while averaging.", skipped)

    result = copy.deepcopy(valid[-1])
    metrics = result.metrics

    for avg_field in AVERAGED_FIELDS:
        values = [v for v in (avg_field.read(r.metrics) for r in valid) if v is not None]
        mean = avg_field.rounding(float(np.mean(values))) if values else None
        avg_field.write(metrics, mean)

    metrics.fitts.top_3_hardest = _merge_hardest(valid)
    metrics.typing_ratio.free_text_fields = _merge_free_text_fields(valid)

    best = valid[0]
    for run in valid:
        if (run.metrics.fitts.max_id or 0) > (best.metrics.fitts.max_id or 0):
            best = run
    metrics.fitts.max_id_element = best.metrics.fitts.max_id_element
    metrics.fitts.max_id_distance_px = best.metrics.fitts.max_id_distance_px
    metrics.fitts.max_id_target_size = best.metrics.fitts.max_id_target_size

    result.metadata.duration_ms = metrics.time_on_task.total_ms
    result.metadata.run_count = len(valid)
    result.metadata.averaged = True
    logger.info("Averaged %d run(s).", len(valid))
    return result


def _as_report(report: ReportInput) -> Report:
    if isinstance(report, Report):
        return report
    return Report.from_dict(report)


def _merge_hardest(runs: List[Report]) -> List[FittsTarget]:
    merged = [copy.copy(t) for run in runs for t in run.metrics.fitts.top_3_hardest]
    merged.sort(key=lambda t: t.id or 0, reverse=True)
    return merged[:TOP_HARDEST]


def _merge_free_text_fields(runs: List[Report]) -> List[str]:
    seen: List[str] = []
    for run in runs:
        for label in run.metrics.typing_ratio.free_text_fields:
            if label not in seen:
                seen.append(label)
    return seen


# ---------------------------------------------------------------------------
# Explanation (for interviews)
# ---------------------------------------------------------------------------
# What this file does:
#   Turns several finalized runs of the same task into one report whose
#   numbers are per-run means, ready for export.
#
# Key pieces:
#   - AVERAGED_FIELDS: the table of averaged metrics and their rounding.
#     Adding a metric means adding one row here.
#   - is_valid_report(): a run counts only with a numeric click total.
#     Dicts that fail to load as a Report are skipped too.
#   - np.mean over the values that are present; a field missing from
#     every run stays None instead of turning into 0.
#
# Data flow:
#   stored runs / report files → average_reports() → export_averaged()
#   → JSON or Markdown file.
