"""Plain-text extraction for inspection PDFs.

Backends are tried in order until one yields at least ``min_chars`` of
text. ``pikepdf+<backend>`` entries run ``<backend>`` over a copy that
pikepdf has re-saved.
"""
from __future__ import annotations

import logging
import os
import tempfile
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_PDF_BACKENDS = ("pypdf", "pdfminer", "pikepdf+pypdf", "pikepdf+pdfminer")
REPAIR_PREFIX = "pikepdf+"

DEFAULT_MIN_PDF_CHARS = 200

# Uploads above this size were rejected by the inspection upload route.
MAX_PDF_BYTES = 10 * 1024 * 1024

SUPPORTED_EXTENSIONS = {".pdf", ".txt"}


@dataclass
class PdfAttempt:
    """One backend run over an inspection PDF."""

    backend: str
    pages: list[str] = field(default_factory=list)
    repaired: bool = False
    warnings: list[str] = field(default_factory=list)
    error: str | None = None

    @property
    def text(self) -> str:
        return "\n".join(self.pages)

    @property
    def usable(self) -> bool:
        return bool(self.text.strip())

    def meta(self, byte_size: int) -> dict[str, Any]:
        return {
            "backend": self.backend,
            "bytes": byte_size,
            "pages": len(self.pages),
            "chars": len(self.text),
            "repaired": self.repaired,
            "warnings": list(self.warnings),
            "error": self.error,
        }


def _resolve_backend_order(prefer_backends: Iterable[str] | None) -> list[str]:
    if prefer_backends:
        requested = list(prefer_backends)
    else:
        requested = os.environ.get("FIRE_DOOR_PDF_BACKENDS", "").split(",")
    order: list[str] = []
    for backend in (entry.strip() for entry in requested):
        if backend and backend not in order:
            order.append(backend)
    return order or list(DEFAULT_PDF_BACKENDS)


def resolve_min_pdf_chars(value: int | None) -> int:
    if value is not None:
        return max(value, 0)
    env_value = os.environ.get("FIRE_DOOR_MIN_PDF_CHARS")
    if env_value:
        try:
            return max(int(env_value), 0)
        except ValueError:
            logger.debug("Invalid FIRE_DOOR_MIN_PDF_CHARS value: %s", env_value)
    return DEFAULT_MIN_PDF_CHARS


def debug_enabled() -> bool:
    value = os.environ.get("FIRE_DOOR_DEBUG_PDF", "")
    return value.strip().lower() not in {"", "0", "false", "no"}


def extract_pdf_text(
    path: str | Path,
    *,
    min_chars: int = DEFAULT_MIN_PDF_CHARS,
    prefer_backends: Iterable[str] | None = None,
) -> tuple[str, dict[str, Any]]:
    """Return ``(text, meta)`` for an inspection PDF.

    ``meta`` holds ``backend``, ``bytes``, ``pages``, ``chars``,
    ``repaired``, ``warnings`` and ``error``. The text is empty when the file
    is too large or no backend reached ``min_chars``; backend failures never
    propagate.
    """
    pdf_path = Path(path)
    try:
        byte_size = pdf_path.stat().st_size
    except OSError:
        byte_size = 0
    if byte_size > MAX_PDF_BYTES:
        logger.warning("Refusing %s: %d bytes exceeds %d", pdf_path, byte_size, MAX_PDF_BYTES)
        refused = PdfAttempt("none", error=f"file larger than {MAX_PDF_BYTES} bytes")
        return "", refused.meta(byte_size)

    attempts: list[PdfAttempt] = []
    with tempfile.TemporaryDirectory(prefix="fire_door_pdf_") as tmp_dir:
        repaired_path: Path | None = None
        repair_error: str | None = None
        for backend in _resolve_backend_order(prefer_backends):
            source = pdf_path
            if backend.startswith(REPAIR_PREFIX):
                if repaired_path is None and repair_error is None:
                    try:
                        repaired_path = _repair_pdf_with_pikepdf(pdf_path, Path(tmp_dir))
                    except RuntimeError as exc:
                        logger.debug("pikepdf repair failed for %s: %s", pdf_path, exc)
                        repair_error = str(exc)
                if repaired_path is None:
                    attempts.append(
                        PdfAttempt(backend, error=f"pikepdf repair failed: {repair_error}")
                    )
                    continue
                source = repaired_path
            attempt = _run_backend(backend, source)
            attempts.append(attempt)
            if attempt.usable and len(attempt.text) >= min_chars:
                logger.debug(
                    "%s: %d pages, %d chars via %s",
                    pdf_path.name,
                    len(attempt.pages),
                    len(attempt.text),
                    backend,
                )
                return attempt.text, attempt.meta(byte_size)

    return "", _failure_meta(attempts, byte_size, min_chars)


def _run_backend(backend: str, path: Path) -> PdfAttempt:
    repaired = backend.startswith(REPAIR_PREFIX)
    attempt = PdfAttempt(backend, repaired=repaired)
    if repaired:
        attempt.warnings.append("pikepdf repair applied")
    try:
        pages, warnings = _extract_with_backend(backend.removeprefix(REPAIR_PREFIX), path)
    except RuntimeError as exc:
        logger.debug("PDF backend %s failed for %s: %s", backend, path, exc)
        attempt.error = str(exc)
        return attempt
    attempt.pages = pages
    attempt.warnings.extend(warnings)
    return attempt


def _failure_meta(attempts: list[PdfAttempt], byte_size: int, min_chars: int) -> dict[str, Any]:
    """Metadata for a document no backend could read well enough."""
    usable = [attempt for attempt in attempts if attempt.usable]
    best = max(usable, key=lambda attempt: len(attempt.text), default=None)
    errors = [attempt.error for attempt in attempts if attempt.error]
    meta = (best or PdfAttempt("none")).meta(byte_size)
    meta["backend"] = "none"
    meta["error"] = errors[-1] if errors else None
    meta["warnings"] = [
        f"{attempt.backend}: {message}"
        for attempt in attempts
        for message in attempt.warnings + ([attempt.error] if attempt.error else [])
    ]
    if best is not None:
        meta["warnings"].append(
            f"best text shorter than min_chars ({len(best.text)} < {min_chars})"
        )
    elif not errors:
        meta["warnings"].append("no backend produced text")
    return meta


def _extract_with_backend(backend: str, path: Path) -> tuple[list[str], list[str]]:
    """Per-page text and warnings from one backend."""
    if backend == "pypdf":
        return _extract_with_pypdf(path)
    if backend == "pdfminer":
        return _extract_with_pdfminer(path)
    raise RuntimeError(f"unknown backend: {backend}")


def _extract_with_pypdf(path: Path) -> tuple[list[str], list[str]]:
    try:
        from pypdf import PdfReader
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pypdf is not installed") from exc

    try:
        reader = PdfReader(str(path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc

    pages: list[str] = []
    warnings: list[str] = []
    for number, page in enumerate(reader.pages, start=1):
        try:
            pages.append(page.extract_text() or "")
        except Exception as exc:  # pragma: no cover - depends on document
            warnings.append(f"page {number}: {exc}")
            pages.append("")
    return pages, warnings


def _extract_with_pdfminer(path: Path) -> tuple[list[str], list[str]]:
    try:
        from pdfminer.high_level import extract_text
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pdfminer.six is not installed") from exc

    try:
        text = extract_text(str(path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    # pdfminer ends every page with a form feed.
    pages = (text or "").split("\f")
    if pages and not pages[-1].strip():
        pages.pop()
    return pages, []


def _repair_pdf_with_pikepdf(source: Path, temp_dir: Path) -> Path:
    try:
        from pikepdf import Pdf
    except ImportError as exc:  # pragma: no cover - optional dependency
        raise RuntimeError("pikepdf is not installed") from exc

    repaired_path = temp_dir / "repaired.pdf"
    try:
        with Pdf.open(str(source)) as pdf:
            pdf.save(str(repaired_path))
    except Exception as exc:  # pragma: no cover - upstream errors vary
        raise RuntimeError(str(exc)) from exc
    return repaired_path


def read_inspection_text(
    path: Path,
    *,
    min_pdf_chars: int | None = None,
    pdf_backends: Iterable[str] | None = None,
) -> tuple[str, dict[str, Any] | None]:
    """Text of an inspection document; ``.txt`` files hold pre-extracted text."""
    suffix = path.suffix.lower()
    if suffix == ".txt":
        return path.read_text(encoding="utf-8", errors="ignore"), None
    if suffix == ".pdf":
        return extract_pdf_text(
            path,
            min_chars=resolve_min_pdf_chars(min_pdf_chars),
            prefer_backends=pdf_backends,
        )
    raise ValueError(f"unsupported inspection document: {path.name}")


def iter_inspection_files(root: Path) -> Iterable[Path]:
    for path in sorted(root.rglob("*")):
        if not path.is_file():
            continue
        if any(part == "_index" for part in path.parts):
            continue
        if path.suffix.lower() in SUPPORTED_EXTENSIONS:
            yield path
