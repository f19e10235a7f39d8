"""Bookkeeping for batches of inspection documents."""
from __future__ import annotations

import json
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import UTC, datetime
from pathlib import Path
from typing import Any, cast


@dataclass
class DocumentScanResult:
    """Outcome of extracting one inspection document."""

    file: str
    sha256: str
    mtime: int
    task_count: int
    door_count: int
    status: str = "pending"
    error: str | None = None
    pdf_meta: dict[str, Any] | None = None
    output: str | None = None

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = {
            "file": self.file,
            "sha256": self.sha256,
            "mtime": self.mtime,
            "task_count": self.task_count,
            "door_count": self.door_count,
            "status": self.status,
            "error": self.error,
            "output": self.output,
        }
        if self.pdf_meta is not None:
            data["pdf_meta"] = self.pdf_meta
        return data


def now_iso() -> str:
    return datetime.now(UTC).replace(microsecond=0).isoformat()


def ensure_manifest() -> dict[str, Any]:
    timestamp = now_iso()
    return {
        "metadata": {
            "created_at": timestamp,
            "updated_at": timestamp,
            "file_count": 0,
        },
        "files": {},
    }


def load_manifest(path: Path) -> dict[str, Any]:
    if not path.exists():
        return ensure_manifest()
    with path.open("r", encoding="utf-8") as fh:
        return cast(dict[str, Any], json.load(fh))


def save_manifest(path: Path, manifest: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(manifest, fh, indent=2, sort_keys=True)


def determine_status(previous: Mapping[str, Any] | None, sha: str, error: str | None = None) -> str:
    if error:
        return "error"
    if previous is None:
        return "new"
    if previous.get("sha256") != sha or previous.get("status") == "error":
        return "modified"
    return "unchanged"


def update_manifest(
    manifest: dict[str, Any],
    scan_results: Mapping[str, DocumentScanResult],
    run_timestamp: str,
) -> dict[str, Any]:
    files = cast(dict[str, dict[str, Any]], manifest.setdefault("files", {}))
    for file_path, result in scan_results.items():
        previous = files.get(file_path)
        status = determine_status(previous, result.sha256, result.error)
        if status == "unchanged" and previous:
            last_extracted = str(previous.get("last_extracted_at", run_timestamp))
        else:
            last_extracted = run_timestamp
        files[file_path] = {
            "file": file_path,
            "sha256": result.sha256,
            "mtime": result.mtime,
            "task_count": result.task_count,
            "door_count": result.door_count,
            "output": result.output,
            "last_extracted_at": last_extracted,
            "status": status,
            "error": result.error,
        }
    for file_path, data in files.items():
        if file_path not in scan_results:
            data["status"] = "missing"
    metadata = cast(dict[str, Any], manifest.setdefault("metadata", {}))
    metadata["updated_at"] = run_timestamp
    metadata["file_count"] = len(files)
    metadata["last_run"] = run_timestamp
    return manifest
