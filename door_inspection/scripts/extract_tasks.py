#!/usr/bin/env python3
"""CLI entrypoint for the fire-door remedial task extractor."""
from __future__ import annotations

import argparse
import json
import logging
import sys
from collections.abc import Mapping
from hashlib import sha256
from pathlib import Path
from typing import Any, cast

from door_inspection.remedial_extractor import (
    extract_fire_door_tasks,
    manifest,
    pdf_text,
    renderer,
    summary,
)
from door_inspection.remedial_extractor.extractor import (
    LOCATION_TWO_LINES_RE,
    ExtractionResult,
    find_remedial_window,
)
from door_inspection.remedial_extractor.manifest import DocumentScanResult

DEFAULT_ROOT = Path(__file__).resolve().parents[2]
DEFAULT_TARGET = DEFAULT_ROOT / "inspections"

logger = logging.getLogger("door_inspection.remedial_extractor.cli")

PREVIEW_CHARS = 500


class ExtractorPaths:
    def __init__(self, root: Path, target: Path, index_dir: Path | None = None) -> None:
        self.root = root
        self.target = target
        self.index_dir = (index_dir or target / "_index").resolve()
        self.results_dir = self.index_dir / "results"
        self.reports_dir = self.index_dir / "reports"
        self.scan_report_path = self.index_dir / "scan_report.json"
        self.manifest_path = self.index_dir / "manifest.json"

    def result_path(self, rel_file: str) -> Path:
        # The suffix stays in the name so site.pdf and site.txt get separate results.
        stem = rel_file.replace("/", "__")
        return self.results_dir / f"{stem}.json"


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="[%(levelname)s] %(message)s",
    )


def resolve_root(path: str | None) -> Path:
    if path:
        return Path(path).expanduser().resolve()
    return DEFAULT_ROOT


def resolve_target(root: Path, target: str | None) -> Path:
    if target:
        resolved = Path(target).expanduser().resolve()
    elif root == DEFAULT_ROOT:
        resolved = DEFAULT_TARGET
    else:
        resolved = root / "inspections"
    if not resolved.exists():
        raise SystemExit(f"Target directory not found: {resolved}")
    return resolved


def build_paths(args: argparse.Namespace) -> ExtractorPaths:
    root = resolve_root(args.root)
    target = resolve_target(root, args.target)
    index_dir = Path(args.index_dir).expanduser() if args.index_dir else None
    return ExtractorPaths(root, target, index_dir)


def build_payload(
    result: ExtractionResult,
    source: str,
    text: str,
    pdf_meta: Mapping[str, Any] | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = result.to_dict()
    payload["summary"] = summary.summarize(result)
    payload["source"] = source
    if pdf_meta is not None:
        payload["pdf_meta"] = dict(pdf_meta)
        payload["totalPages"] = pdf_meta.get("pages", 0)
        payload["extractedText"] = text[:PREVIEW_CHARS] + "..."
    return payload


def file_digest(document: Path) -> str:
    return sha256(document.read_bytes()).hexdigest()


def command_extract(args: argparse.Namespace) -> None:
    document = Path(args.document).expanduser().resolve()
    if not document.exists():
        raise SystemExit(f"Document not found: {document}")
    text, meta = read_document(document, args)
    if meta is not None and meta.get("error"):
        logger.warning("PDF text extraction reported: %s", meta["error"])
    if args.debug or pdf_text.debug_enabled():
        log_debug_sample(text)
    result = extract_fire_door_tasks(text)
    logger.info("Extracted %d tasks from %s", len(result.tasks), document.name)
    payload = build_payload(result, document.name, text, meta)
    if args.output:
        write_json(Path(args.output), payload)
        logger.info("Result written to %s", args.output)
    else:
        json.dump(payload, sys.stdout, indent=2)
        sys.stdout.write("\n")
    if args.markdown:
        renderer.write_report(Path(args.markdown), result, document.name)
        logger.info("Report written to %s", args.markdown)


def command_scan(args: argparse.Namespace) -> None:
    paths = build_paths(args)
    logger.info("Scanning %s", paths.target)
    paths.results_dir.mkdir(parents=True, exist_ok=True)
    manifest_data = manifest.load_manifest(paths.manifest_path)
    known_files = cast(dict[str, dict[str, Any]], manifest_data.get("files", {}))
    results: dict[str, DocumentScanResult] = {}
    for document in pdf_text.iter_inspection_files(paths.target):
        rel_file = relative_name(document, paths.root)
        previous = known_files.get(rel_file)
        results[rel_file] = scan_document(document, rel_file, previous, paths, args)
    timestamp = manifest.now_iso()
    write_scan_report(paths, results, timestamp)
    manifest.update_manifest(manifest_data, results, timestamp)
    manifest.save_manifest(paths.manifest_path, manifest_data)
    logger.info(
        "Processed %d documents, %d tasks",
        len(results),
        sum(result.task_count for result in results.values()),
    )


def scan_document(
    document: Path,
    rel_file: str,
    previous: Mapping[str, Any] | None,
    paths: ExtractorPaths,
    args: argparse.Namespace,
) -> DocumentScanResult:
    output_path = paths.result_path(rel_file)
    try:
        file_sha = file_digest(document)
    except OSError as exc:
        logger.error("Failed to read %s: %s", document, exc)
        return DocumentScanResult(rel_file, "", 0, 0, 0, status="error", error=str(exc))
    mtime = int(document.stat().st_mtime)
    status = manifest.determine_status(previous, file_sha)
    if status == "unchanged" and not args.force and output_path.exists() and previous:
        logger.debug("Skipping unchanged %s", rel_file)
        return DocumentScanResult(
            rel_file,
            file_sha,
            mtime,
            int(previous.get("task_count", 0)),
            int(previous.get("door_count", 0)),
            status=status,
            output=str(output_path),
        )
    try:
        text, meta = read_document(document, args)
        result = extract_fire_door_tasks(text)
    except Exception as exc:
        logger.exception("Failed to extract %s", document)
        return DocumentScanResult(
            rel_file, file_sha, mtime, 0, 0, status="error", error=str(exc)
        )
    write_json(output_path, build_payload(result, rel_file, text, meta))
    return DocumentScanResult(
        rel_file,
        file_sha,
        mtime,
        len(result.tasks),
        result.inspection.total_doors,
        status=status,
        pdf_meta=meta,
        output=str(output_path),
    )


def command_render(args: argparse.Namespace) -> None:
    paths = build_paths(args)
    if not paths.results_dir.exists():
        raise SystemExit("No extraction output found. Run 'scan' first.")
    count = 0
    for result_path in sorted(paths.results_dir.glob("*.json")):
        payload = read_json(result_path)
        result = ExtractionResult.from_dict(payload)
        report_path = paths.reports_dir / f"{result_path.stem}.md"
        renderer.write_report(report_path, result, str(payload.get("source") or result_path.stem))
        count += 1
    logger.info("Rendered %d reports into %s", count, paths.reports_dir)


def command_check(args: argparse.Namespace) -> None:
    paths = build_paths(args)
    manifest_data = manifest.load_manifest(paths.manifest_path)
    known_files = cast(dict[str, dict[str, Any]], manifest_data.get("files", {}))
    statuses: list[tuple[str, str, str]] = []
    seen = set()
    for document in pdf_text.iter_inspection_files(paths.target):
        rel_file = relative_name(document, paths.root)
        seen.add(rel_file)
        previous = known_files.get(rel_file)
        error: str | None = None
        try:
            file_sha = file_digest(document)
        except OSError as exc:
            logger.error("Failed to read %s: %s", document, exc)
            file_sha, error = "", str(exc)
        status = manifest.determine_status(previous, file_sha, error)
        tasks = str(previous.get("task_count", "-")) if previous else "-"
        statuses.append((rel_file, status, tasks))
    missing = [path for path in known_files if path not in seen]
    print_status_table(statuses, missing, manifest_data)


def command_debug(args: argparse.Namespace) -> None:
    document = Path(args.document).expanduser().resolve()
    if not document.exists():
        raise SystemExit(f"Document not found: {document}")
    text, _ = read_document(document, args)
    log_debug_sample(text)


def log_debug_sample(text: str) -> None:
    """Log the first door section the way the extractor sees it."""
    logger.info("=== PDF EXTRACTION DEBUG ===")
    door_start = text.find("Door identification number")
    if door_start < 0:
        logger.info("No door sections found")
        return
    sample = text[door_start : door_start + 2000]
    logger.info("Sample door section:\n%s", sample)
    location_match = LOCATION_TWO_LINES_RE.search(sample)
    logger.info("Location match: %s", location_match.groups() if location_match else None)
    window = find_remedial_window(sample)
    if window is None:
        logger.info("No remedial action section in sample")
        return
    logger.info("Remedial sample:\n%s", window[:500])


def read_document(document: Path, args: argparse.Namespace) -> tuple[str, dict[str, Any] | None]:
    try:
        return pdf_text.read_inspection_text(
            document,
            min_pdf_chars=getattr(args, "min_pdf_chars", None),
            pdf_backends=parse_backend_list(getattr(args, "pdf_backends", None)),
        )
    except ValueError as exc:
        raise SystemExit(str(exc)) from exc


def relative_name(path: Path, root: Path) -> str:
    if path.is_relative_to(root):
        return path.relative_to(root).as_posix()
    return path.as_posix()


def write_json(path: Path, data: Mapping[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    with path.open("w", encoding="utf-8") as fh:
        json.dump(data, fh, indent=2, ensure_ascii=False)


def read_json(path: Path) -> dict[str, Any]:
    with path.open("r", encoding="utf-8") as fh:
        return cast(dict[str, Any], json.load(fh))


def write_scan_report(
    paths: ExtractorPaths, files: Mapping[str, DocumentScanResult], timestamp: str
) -> None:
    report = {
        "timestamp": timestamp,
        "target": relative_name(paths.target, paths.root),
        "files": {file: data.to_dict() for file, data in files.items()},
        "counts": {
            "files": len(files),
            "tasks": sum(result.task_count for result in files.values()),
            "doors": sum(result.door_count for result in files.values()),
            "errors": sum(1 for result in files.values() if result.status == "error"),
        },
    }
    write_json(paths.scan_report_path, report)


def print_status_table(
    statuses: list[tuple[str, str, str]],
    missing: list[str],
    manifest_data: Mapping[str, Any],
) -> None:
    print("File".ljust(70), "Status".ljust(12), "Tasks")
    print("-" * 95)
    for file_path, status, tasks in sorted(statuses):
        print(file_path.ljust(70), status.ljust(12), tasks)
    for missing_path in missing:
        print(missing_path.ljust(70), "missing".ljust(12), "-")
    metadata = manifest_data.get("metadata", {})
    print("\nLast run:", metadata.get("last_run", "never"))


def parse_backend_list(value: str | None) -> list[str] | None:
    if not value:
        return None
    parts = [entry.strip() for entry in value.split(",") if entry.strip()]
    return parts or None


def add_pdf_options(subparser: argparse.ArgumentParser) -> None:
    subparser.add_argument(
        "--pdf-backends",
        help="Comma-separated PDF extraction backend order (overrides FIRE_DOOR_PDF_BACKENDS)",
    )
    subparser.add_argument(
        "--min-pdf-chars",
        type=int,
        help="Minimum characters required from a PDF (overrides FIRE_DOOR_MIN_PDF_CHARS)",
    )


def build_parser() -> argparse.ArgumentParser:
    parser_obj = argparse.ArgumentParser(
        description="Extract remedial tasks from fire-door inspection reports"
    )
    parser_obj.add_argument("--root", help="Repository root (defaults to script location)")
    parser_obj.add_argument("--target", help="Directory holding inspection documents")
    parser_obj.add_argument("--index-dir", help="Output directory (defaults to <target>/_index)")
    parser_obj.add_argument("--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser_obj.add_subparsers(dest="command")

    extract_parser = subparsers.add_parser("extract", help="Extract tasks from one document")
    extract_parser.add_argument("document", help="Inspection PDF or pre-extracted .txt")
    extract_parser.add_argument("--output", help="Write the JSON result here instead of stdout")
    extract_parser.add_argument("--markdown", help="Also write a Markdown report")
    extract_parser.add_argument(
        "--debug", action="store_true", help="Log the first door section (or set FIRE_DOOR_DEBUG_PDF)"
    )
    add_pdf_options(extract_parser)
    extract_parser.set_defaults(func=command_extract)

    scan_parser = subparsers.add_parser("scan", help="Extract every document under the target")
    scan_parser.add_argument(
        "--force", action="store_true", help="Re-extract documents that have not changed"
    )
    add_pdf_options(scan_parser)
    scan_parser.set_defaults(func=command_scan)

    render_parser = subparsers.add_parser("render", help="Render Markdown reports from results")
    render_parser.set_defaults(func=command_render)

    check_parser = subparsers.add_parser("check", help="Dry-run status check")
    check_parser.set_defaults(func=command_check)

    debug_parser = subparsers.add_parser("debug", help="Show how the first door section parses")
    debug_parser.add_argument("document", help="Inspection PDF or pre-extracted .txt")
    add_pdf_options(debug_parser)
    debug_parser.set_defaults(func=command_debug)

    return parser_obj


def main(argv: list[str] | None = None) -> None:
    parser_obj = build_parser()
    args = parser_obj.parse_args(argv)
    if not getattr(args, "command", None):
        parser_obj.print_help()
        return
    configure_logging(args.verbose)
    args.func(args)


if __name__ == "__main__":
    main()
