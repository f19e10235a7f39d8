"""Remedial task extraction for fire-door inspection reports."""
from __future__ import annotations

from pathlib import Path
from typing import Any

from . import catalog, extractor, manifest, pdf_text, renderer, summary
from .catalog import REMEDIAL_ACTIONS, RemedialAction
from .extractor import (
    ExtractedTask,
    ExtractionResult,
    InspectionSummary,
    extract_door_tasks,
    extract_fire_door_tasks,
)

__all__ = [
    "catalog",
    "extractor",
    "manifest",
    "pdf_text",
    "renderer",
    "summary",
    "REMEDIAL_ACTIONS",
    "RemedialAction",
    "ExtractedTask",
    "ExtractionResult",
    "InspectionSummary",
    "extract_door_tasks",
    "extract_fire_door_tasks",
    "extract_from_file",
]


def extract_from_file(
    path: Path, **kwargs: Any
) -> tuple[ExtractionResult, dict[str, Any] | None]:
    """Convenience wrapper: read ``path`` and run the extractor over its text."""
    text, meta = pdf_text.read_inspection_text(path, **kwargs)
    return extract_fire_door_tasks(text), meta
