"""Counts reported alongside an extraction result."""
from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from typing import Any

from .extractor import ExtractedTask, ExtractionResult


def critical_issue_count(tasks: Iterable[ExtractedTask]) -> int:
    return sum(1 for task in tasks if task.priority == "critical")


def count_by_category(tasks: Iterable[ExtractedTask]) -> dict[str, int]:
    """Category counts in order of first appearance."""
    counts: Counter[str] = Counter()
    for task in tasks:
        counts[task.category] += 1
    return dict(counts)


def summarize(result: ExtractionResult) -> dict[str, Any]:
    priorities = Counter(task.priority for task in result.tasks)
    inspection = result.inspection
    return {
        "totalDoors": inspection.total_doors,
        "compliantDoors": inspection.compliant_doors,
        "nonCompliantDoors": inspection.non_compliant_doors,
        "totalTasks": len(result.tasks),
        "criticalTasks": critical_issue_count(result.tasks),
        "highPriorityTasks": priorities["high"],
        "mediumPriorityTasks": priorities["medium"],
        "lowPriorityTasks": priorities["low"],
        "byCategory": count_by_category(result.tasks),
    }
