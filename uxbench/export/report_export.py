"""
Multi-run export: average stored runs and write a single file.

The averaged report is built before anything touches the disk, so a
failed average (NoValidReports) leaves the output directory untouched.
"""

from __future__ import annotations

import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional, Sequence

from uxbench.services.averager import ReportInput, average_reports

from .markdown import render_markdown

logger = logging.getLogger(__name__)

FORMATS = {"json": "json", "markdown": "md"}


def export_filename(run_count: int, fmt: str = "json", now: Optional[datetime] = None) -> str:
    """uxbench_<YYYY-MM-DDTHH-MM-SS>_AVG_<n>runs.<ext>"""
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {fmt!r}")
    stamp = (now or datetime.now()).strftime("%Y-%m-%dT%H-%M-%S")
    return f"uxbench_{stamp}_AVG_{run_count}runs.{FORMATS[fmt]}"


def export_averaged(
    reports: Sequence[ReportInput],
    directory: Path,
    fmt: str = "json",
    now: Optional[datetime] = None,
) -> Path:
    """
    Average ``reports`` and write the result into ``directory``.

    Returns the written path. Raises NoValidReports (nothing written) when
    no input is usable, ValueError for an unknown format.
    """
    if fmt not in FORMATS:
        raise ValueError(f"Unknown export format: {fmt!r}")
    report = average_reports(reports)
    now = now or datetime.now()

    if fmt == "markdown":
        content = render_markdown(report, now=now)
    else:
        content = json.dumps(report.to_dict(), indent=2)

    directory = Path(directory)
    directory.mkdir(parents=True, exist_ok=True)
    path = directory / export_filename(report.metadata.run_count or 1, fmt, now)
    path.write_text(content, encoding="utf-8")
    logger.info("Exported %d averaged run(s) to %s", report.metadata.run_count, path)
    return path
