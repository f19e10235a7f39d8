"""Markdown remediation report for an extraction result."""
from __future__ import annotations

from collections.abc import Iterable
from datetime import UTC, datetime
from pathlib import Path

from .extractor import ExtractedTask, ExtractionResult
from .summary import summarize


def render_report(result: ExtractionResult, source: str | None = None) -> str:
    inspection = result.inspection
    summary = summarize(result)
    now = datetime.now(UTC).replace(microsecond=0).isoformat()
    lines = ["# Fire Door Remediation Report", "", f"_Generated: {now}_", ""]
    if source:
        lines.append(f"**Source:** {escape_cell(source)}")
    lines.append(f"**Location:** {inspection.location or 'Unknown Location'}")
    lines.append(f"**Date:** {inspection.date or 'Unknown'}")
    lines.append(f"**Inspector:** {inspection.inspector or 'Unknown Inspector'}")
    lines.append("")
    lines.append(
        f"**Doors with remedial actions:** {inspection.non_compliant_doors} | "
        f"**Tasks:** {summary['totalTasks']} "
        f"(critical {summary['criticalTasks']}, high {summary['highPriorityTasks']}, "
        f"medium {summary['mediumPriorityTasks']}, low {summary['lowPriorityTasks']})"
    )
    lines.append("")
    by_category = summary["byCategory"]
    if by_category:
        category_text = ", ".join(
            f"{category} ({count})" for category, count in sorted(by_category.items())
        )
        lines.append(f"**By category:** {category_text}")
        lines.append("")
    lines.append("## Tasks")
    lines.append("")
    if not result.tasks:
        lines.append("_No remedial actions found._")
    else:
        lines.append("| Door | Location | Task | Category | Priority |")
        lines.append("| --- | --- | --- | --- | --- |")
        lines.extend(format_task_rows(result.tasks))
    lines.append("")
    return "\n".join(lines)


def write_report(path: Path, result: ExtractionResult, source: str | None = None) -> str:
    content = render_report(result, source)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")
    return content


def format_task_rows(tasks: Iterable[ExtractedTask]) -> list[str]:
    return [
        f"| {escape_cell(task.door_id)} | {escape_cell(task.location)} | "
        f"{escape_cell(task.description)} | {escape_cell(task.category)} | {task.priority} |"
        for task in tasks
    ]


def escape_cell(value: str) -> str:
    return value.replace("|", "\\|")
