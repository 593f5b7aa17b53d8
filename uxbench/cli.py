"""
Command line: replay recorded event streams and average report files.

    replay EVENTS.jsonl [--out REPORT.json] [--product P] [--task T] [--url U] [--name N]
    average REPORT.json... [--out-dir DIR] [--format json|markdown]
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from uxbench.export.report_export import FORMATS, export_averaged
from uxbench.services.averager import NoValidReports
from uxbench.services.recording_service import RecordingService
from uxbench.services.session_service import RecordingContext

logger = logging.getLogger(__name__)


class ReplayClock:
    """Engine clock driven by the timestamps of the events being replayed."""

    def __init__(self, start: float = 0.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now


# ── replay ──────────────────────────────────────────────────────────────────

def read_events(path: Path) -> List[Any]:
    """Parse a JSON-lines file. Unparseable lines are logged and skipped."""
    events = []
    with open(path, encoding="utf-8") as fh:
        for lineno, line in enumerate(fh, start=1):
            line = line.strip()
            if not line:
                continue
            try:
                events.append(json.loads(line))
            except json.JSONDecodeError as exc:
                logger.warning("%s:%d: skipping unparseable line (%s)", path, lineno, exc)
    return events


def _event_time(payload: Any) -> Optional[float]:
    if isinstance(payload, dict):
        ts = payload.get("timestamp")
        if isinstance(ts, (int, float)) and not isinstance(ts, bool):
            return float(ts)
    return None


def replay(events: List[Any], context: RecordingContext) -> Dict[str, Any]:
    """Run events through a fresh engine in order; returns the report dict."""
    times = [t for t in (_event_time(e) for e in events) if t is not None]
    clock = ReplayClock(times[0] if times else 0.0)
    service = RecordingService(clock=clock)
    try:
        service.start(context).result()
        for payload in events:
            ts = _event_time(payload)
            if ts is not None:
                clock.now = ts
            # One at a time so the clock matches the event being processed.
            service.submit(payload).result()
        report = service.stop()
    finally:
        service.close()
    return report.to_dict()


def handle_replay(args: argparse.Namespace) -> int:
    path = Path(args.events)
    if not path.exists():
        logger.error("Event file %s not found.", path)
        return 1

    context = RecordingContext(
        product=args.product or "",
        task=args.task or "",
        url=args.url or "",
        recording_name=args.name or "",
    )
    report = replay(read_events(path), context)
    content = json.dumps(report, indent=2)
    if args.out:
        out = Path(args.out)
        out.parent.mkdir(parents=True, exist_ok=True)
        out.write_text(content, encoding="utf-8")
        print(f"Report written to {out}")
    else:
        print(content)
    return 0


# ── average ─────────────────────────────────────────────────────────────────

def load_reports(paths: List[str]) -> List[Dict[str, Any]]:
    reports = []
    for name in paths:
        try:
            with open(name, encoding="utf-8") as fh:
                reports.append(json.load(fh))
        except (OSError, json.JSONDecodeError) as exc:
            logger.warning("Skipping %s: %s", name, exc)
    return reports


def handle_average(args: argparse.Namespace) -> int:
    reports = load_reports(args.reports)
    try:
        path = export_averaged(reports, Path(args.out_dir), fmt=args.format)
    except NoValidReports:
        logger.warning("No valid reports to average; nothing written.")
        print("Warning: no valid reports to average. Nothing was written.", file=sys.stderr)
        return 1
    print(f"Averaged report written to {path}")
    return 0


# ── Entry point ─────────────────────────────────────────────────────────────

def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="uxbench", description="UX Bench recorder engine")
    subparsers = parser.add_subparsers(dest="command", required=True)

    # replay
    replay_parser = subparsers.add_parser("replay", help="Replay a JSON-lines event stream")
    replay_parser.add_argument("events", help="Path to the .jsonl event file")
    replay_parser.add_argument("--out", help="Write the report here instead of stdout")
    replay_parser.add_argument("--product", help="Product under test")
    replay_parser.add_argument("--task", help="Task being performed")
    replay_parser.add_argument("--url", help="Starting URL")
    replay_parser.add_argument("--name", help="Recording name")

    # average
    average_parser = subparsers.add_parser("average", help="Average finalized report files")
    average_parser.add_argument("reports", nargs="+", help="Report JSON files")
    average_parser.add_argument("--out-dir", default=".", help="Directory for the export")
    average_parser.add_argument(
        "--format", choices=sorted(FORMATS), default="json", help="Export format"
    )
    return parser


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    if args.command == "replay":
        return handle_replay(args)
    return handle_average(args)
