"""Markdown rendering of a (usually averaged) report."""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from uxbench.data.models import Report
from uxbench.metrics.formatting import (
    format_compact, format_duration, format_number, format_ratio, round2, round_int,
)


def render_markdown(report: Report, now: Optional[datetime] = None) -> str:
    m = report.metrics
    meta = report.metadata
    now = now or datetime.now()
    lines: List[str] = ["# UX Bench Report", ""]

    # Header
    parts = []
    if meta.product:
        parts.append(f"**Product:** {meta.product}")
    if meta.task:
        parts.append(f"**Task:** {meta.task}")
    if m.time_on_task.total_ms:
        parts.append(f"**Duration:** {format_duration(m.time_on_task.total_ms)}")
    if (meta.run_count or 0) > 1:
        parts.append(f"**Runs:** {meta.run_count} (averaged)")
    if parts:
        lines.append("  |  ".join(parts))
    if meta.url:
        lines.append(f"**URL:** {meta.url}")
    lines.append(f"**Date:** {_display_date(meta.timestamp)}")
    lines.append("")

    # Metrics table
    cc = m.click_count
    tr = m.typing_ratio
    scroll_detail = (
        f"heaviest: {m.scroll_distance.heaviest_container}"
        if m.scroll_distance.heaviest_container else ""
    )
    if tr.free_text_inputs + tr.constrained_inputs > 0:
        typing = f"{round_int(tr.ratio * 100)}%"
    else:
        typing = "--"

    lines += [
        "## Metrics",
        "",
        "| Metric | Value | Detail |",
        "|--------|-------|--------|",
        f"| Clicks | {cc.total} | {cc.productive} productive, "
        f"{cc.ceremonial} ceremonial, {cc.wasted} wasted |",
        f"| Fitts Avg ID | {format_ratio(m.fitts.average_id)} | "
        f'max {format_ratio(m.fitts.max_id)} on "{m.fitts.max_id_element}" |',
        f"| Scanning Distance | {round_int(m.scanning_distance.average_px)}px avg | "
        f"{format_compact(m.scanning_distance.cumulative_px)}px total |",
        f"| Mouse Travel | {format_compact(m.mouse_travel.total_px)}px | "
        f"efficiency: {format_ratio(m.mouse_travel.path_efficiency)} |",
        f"| Scroll Distance | {format_compact(m.scroll_distance.total_px)}px | {scroll_detail} |",
        f"| Context Switches | {m.context_switches.total} | "
        f"ratio: {format_ratio(m.context_switches.ratio)} |",
        f"| Shortcuts Used | {m.shortcut_coverage.shortcuts_used} | |",
        f"| Typing Ratio | {typing} free-text | {tr.free_text_inputs} free-text, "
        f"{tr.constrained_inputs} constrained |",
        f"| **Interaction Cost** | **{format_ratio(m.composite_score)}** | |",
        "",
    ]

    if m.fitts.top_3_hardest:
        lines += ["## Hardest Targets (Fitts)", ""]
        for i, t in enumerate(m.fitts.top_3_hardest, start=1):
            lines.append(
                f"{i}. **{t.element}**: ID {format_ratio(t.id)}, "
                f"{round_int(t.distance_px)}px away ({t.target_size})"
            )
        lines.append("")

    for title, details in (
        ("Ceremonial Clicks", cc.ceremonial_details),
        ("Wasted Clicks", cc.wasted_details),
    ):
        if details:
            lines += [f"## {title}", ""]
            lines += [f"- {d.element}: {d.reason}" for d in details]
            lines.append("")

    if tr.free_text_fields:
        lines += ["## Free-Text Fields", ""]
        lines += [f"- {label}" for label in tr.free_text_fields]
        lines.append("")

    gaps = m.time_on_task.idle_gaps
    if gaps:
        lines += ["## Idle Gaps (> 3s)", ""]
        for g in gaps:
            seconds = format_number(round2(g.gap_ms / 1000))
            lines.append(f'- {seconds}s after "{g.after_action}" -> before "{g.before_action}"')
        lines.append("")

    lines.append("---")
    lines.append(f"*Generated by UX Bench on {now.strftime('%Y-%m-%d %H:%M:%S')}*")
    return "\n".join(lines)


def _display_date(timestamp: str) -> str:
    if not timestamp:
        return "Unknown"
    try:
        return datetime.fromisoformat(timestamp).strftime("%Y-%m-%d %H:%M:%S")
    except ValueError:
        return timestamp
