from __future__ import annotations

import json
from pathlib import Path

import pytest

from door_inspection.scripts import extract_tasks

SITE_A = """Client / Site
Maple Court
Conducted on
15 January 2024
Fire Door Inspector
Jane Smith
Door identification number
1
Location of door
Bedroom
1B
Remedial Action
Handle - To be replaced
Yes
Compliance Rating
Fail
"""

SITE_B = """Client / Site
Birch Lodge
Door identification number
3
Location of door
Lounge
3A
Remedial Action
Seals - Replace all seals
No
Compliance Rating
Pass
"""


@pytest.fixture()
def workspace(tmp_path: Path) -> Path:
    root = tmp_path / "repo"
    target = root / "inspections"
    target.mkdir(parents=True)
    (target / "site_a.txt").write_text(SITE_A, encoding="utf-8")
    (target / "site_b.txt").write_text(SITE_B, encoding="utf-8")
    return root


def test_scan_writes_results_report_and_manifest(workspace: Path) -> None:
    extract_tasks.main(["--root", str(workspace), "scan"])
    index_dir = workspace / "inspections" / "_index"
    result = json.loads(
        (index_dir / "results" / "inspections__site_a.txt.json").read_text(encoding="utf-8")
    )
    assert result["inspection"]["location"] == "Maple Court"
    assert [task["title"] for task in result["tasks"]] == ["1B - Replace handle"]
    assert result["summary"]["highPriorityTasks"] == 1

    report = json.loads((index_dir / "scan_report.json").read_text(encoding="utf-8"))
    assert report["counts"] == {"files": 2, "tasks": 1, "doors": 1, "errors": 0}
    assert report["files"]["inspections/site_b.txt"]["task_count"] == 0

    manifest = json.loads((index_dir / "manifest.json").read_text(encoding="utf-8"))
    statuses = {path: entry["status"] for path, entry in manifest["files"].items()}
    assert statuses == {"inspections/site_a.txt": "new", "inspections/site_b.txt": "new"}


def test_rescan_skips_unchanged_and_tracks_changes(workspace: Path) -> None:
    extract_tasks.main(["--root", str(workspace), "scan"])
    target = workspace / "inspections"
    (target / "site_b.txt").write_text(
        SITE_B.replace("No\nCompliance", "Yes\nCompliance"), encoding="utf-8"
    )
    (target / "site_a.txt").unlink()
    extract_tasks.main(["--root", str(workspace), "scan"])

    index_dir = target / "_index"
    manifest = json.loads((index_dir / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["files"]["inspections/site_a.txt"]["status"] == "missing"
    assert manifest["files"]["inspections/site_b.txt"]["status"] == "modified"
    assert manifest["files"]["inspections/site_b.txt"]["task_count"] == 1

    extract_tasks.main(["--root", str(workspace), "scan"])
    manifest = json.loads((index_dir / "manifest.json").read_text(encoding="utf-8"))
    assert manifest["files"]["inspections/site_b.txt"]["status"] == "unchanged"
    assert manifest["files"]["inspections/site_b.txt"]["task_count"] == 1


def test_render_after_scan(workspace: Path) -> None:
    extract_tasks.main(["--root", str(workspace), "scan"])
    extract_tasks.main(["--root", str(workspace), "render"])
    report = workspace / "inspections" / "_index" / "reports" / "inspections__site_a.txt.md"
    content = report.read_text(encoding="utf-8")
    assert "| 1B | Bedroom 1B | Handle needs to be replaced | Hardware Issues | high |" in content


def test_render_without_scan_exits(workspace: Path) -> None:
    with pytest.raises(SystemExit):
        extract_tasks.main(["--root", str(workspace), "render"])


def test_missing_target_exits(tmp_path: Path) -> None:
    with pytest.raises(SystemExit):
        extract_tasks.main(["--root", str(tmp_path / "nowhere"), "scan"])


def test_extract_single_document(workspace: Path, tmp_path: Path) -> None:
    output = tmp_path / "out" / "site_a.json"
    markdown = tmp_path / "out" / "site_a.md"
    extract_tasks.main(
        [
            "extract",
            str(workspace / "inspections" / "site_a.txt"),
            "--output",
            str(output),
            "--markdown",
            str(markdown),
        ]
    )
    payload = json.loads(output.read_text(encoding="utf-8"))
    assert payload["source"] == "site_a.txt"
    assert payload["tasks"][0]["doorId"] == "1B"
    assert payload["inspection"]["inspector"] == "Jane Smith"
    assert "pdf_meta" not in payload
    assert markdown.exists()


def test_extract_prints_json(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    extract_tasks.main(["extract", str(workspace / "inspections" / "site_b.txt")])
    payload = json.loads(capsys.readouterr().out)
    assert payload["tasks"] == []
    assert payload["inspection"]["totalDoors"] == 0


def test_check_reports_statuses(workspace: Path, capsys: pytest.CaptureFixture[str]) -> None:
    extract_tasks.main(["--root", str(workspace), "scan"])
    (workspace / "inspections" / "site_c.txt").write_text(SITE_A, encoding="utf-8")
    capsys.readouterr()
    extract_tasks.main(["--root", str(workspace), "check"])
    lines = capsys.readouterr().out.splitlines()
    rows = {line.split()[0]: line.split()[1] for line in lines if line.startswith("inspections/")}
    assert rows == {
        "inspections/site_a.txt": "unchanged",
        "inspections/site_b.txt": "unchanged",
        "inspections/site_c.txt": "new",
    }


def test_debug_logs_first_door(workspace: Path, caplog: pytest.LogCaptureFixture) -> None:
    with caplog.at_level("INFO", logger="door_inspection.remedial_extractor.cli"):
        extract_tasks.main(["debug", str(workspace / "inspections" / "site_a.txt")])
    assert "Sample door section" in caplog.text
    assert "Handle - To be replaced" in caplog.text


def test_relative_name_outside_root(tmp_path: Path) -> None:
    other = tmp_path / "elsewhere" / "x.pdf"
    assert extract_tasks.relative_name(other, tmp_path / "repo") == other.as_posix()


def test_pdf_and_text_of_same_site_get_separate_results(
    workspace: Path, monkeypatch: pytest.MonkeyPatch
) -> None:
    target = workspace / "inspections"
    (target / "site_a.pdf").write_bytes(b"%PDF-1.4\n%%EOF\n")

    def fake_pdf_text(path: Path, **kwargs: object) -> tuple[str, dict[str, object]]:
        return SITE_B, {"backend": "pypdf", "pages": 3, "chars": len(SITE_B), "error": None}

    monkeypatch.setattr(extract_tasks.pdf_text, "extract_pdf_text", fake_pdf_text)
    extract_tasks.main(["--root", str(workspace), "scan"])

    report = json.loads((target / "_index" / "scan_report.json").read_text(encoding="utf-8"))
    outputs = {name: entry["output"] for name, entry in report["files"].items()}
    assert outputs["inspections/site_a.pdf"] != outputs["inspections/site_a.txt"]

    from_pdf = json.loads(Path(outputs["inspections/site_a.pdf"]).read_text(encoding="utf-8"))
    from_text = json.loads(Path(outputs["inspections/site_a.txt"]).read_text(encoding="utf-8"))
    assert from_pdf["inspection"]["location"] == "Birch Lodge"
    assert from_pdf["totalPages"] == 3
    assert from_pdf["extractedText"] == SITE_B[:500] + "..."
    assert from_text["inspection"]["location"] == "Maple Court"
    assert "totalPages" not in from_text


def test_check_reports_unreadable_file_as_error(
    workspace: Path, monkeypatch: pytest.MonkeyPatch, capsys: pytest.CaptureFixture[str]
) -> None:
    read_bytes = Path.read_bytes

    def flaky_read_bytes(self: Path) -> bytes:
        if self.name == "site_b.txt":
            raise PermissionError("permission denied")
        return read_bytes(self)

    monkeypatch.setattr(Path, "read_bytes", flaky_read_bytes)
    extract_tasks.main(["--root", str(workspace), "check"])
    lines = capsys.readouterr().out.splitlines()
    rows = {line.split()[0]: line.split()[1] for line in lines if line.startswith("inspections/")}
    assert rows == {"inspections/site_a.txt": "new", "inspections/site_b.txt": "error"}
