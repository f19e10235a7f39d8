from __future__ import annotations

from pathlib import Path

from door_inspection.remedial_extractor import extract_fire_door_tasks, renderer, summary
from door_inspection.remedial_extractor.extractor import ExtractionResult, InspectionSummary

DOCUMENT = """Client / Site
Oak House
Conducted on
2 February 2024
Fire Door Inspector
Sam Patel
Door identification number
1
Location of door
Bedroom
1A
Remedial Action
Doorset to be replaced with 'FD30s' fire rated doorset
Yes
Seals - Install smoke seals
Yes
Compliance Rating
Fail
Door identification number
2
Location of door
Office | East
2B
Remedial Action
Confirmation/evidence required to confirm the
material/product used to repair doorset
Yes
Seals - Install threshold seal
Yes
Compliance Rating
Fail
"""


def test_summarize_counts_priorities_and_categories() -> None:
    result = extract_fire_door_tasks(DOCUMENT)
    counts = summary.summarize(result)
    assert counts["totalDoors"] == 2
    assert counts["nonCompliantDoors"] == 2
    assert counts["compliantDoors"] == 0
    assert counts["totalTasks"] == 4
    assert counts["criticalTasks"] == 1
    assert counts["highPriorityTasks"] == 1
    assert counts["mediumPriorityTasks"] == 1
    assert counts["lowPriorityTasks"] == 1
    assert counts["byCategory"] == {
        "Complete Replacement": 1,
        "Seal Replacement": 2,
        "Documentation": 1,
    }
    assert summary.critical_issue_count(result.tasks) == 1


def test_report_lists_tasks_and_escapes_cells(tmp_path: Path) -> None:
    result = extract_fire_door_tasks(DOCUMENT)
    output = tmp_path / "reports" / "oak_house.md"
    content = renderer.write_report(output, result, source="oak_house.pdf")
    assert output.read_text(encoding="utf-8") == content
    assert "**Location:** Oak House" in content
    assert "**Inspector:** Sam Patel" in content
    assert "| 1A | Bedroom 1A | Replace with FD30s fire rated doorset" in content
    assert "Office \\| East 2B" in content
    assert content.index("| 1A |") < content.index("| 2B |")


def test_report_for_empty_result() -> None:
    content = renderer.render_report(ExtractionResult(InspectionSummary()))
    assert "_No remedial actions found._" in content
    assert "**Location:** Unknown Location" in content
