"""Turn the plain text of a fire-door inspection report into remedial tasks.

The pipeline is pure: header extraction, door segmentation, door identity
resolution, remedial-action matching, ordering and aggregation. Every stage
degrades to an empty or default value instead of raising; only a non-string
document is rejected.
"""
from __future__ import annotations

import logging
import re
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, field
from functools import cmp_to_key

from .catalog import REMEDIAL_ACTIONS, RemedialAction, priority_rank

logger = logging.getLogger(__name__)

CLIENT_SITE_RE = re.compile(r"Client / Site\s*\n\s*([^\n]+)", re.IGNORECASE)
CONDUCTED_ON_RE = re.compile(
    r"Conducted on\s*\n\s*([0-9]{1,2}\s+[A-Za-z0-9_]+\s+[0-9]{4})", re.IGNORECASE
)
INSPECTOR_RE = re.compile(r"Fire Door Inspector\s*\n\s*([^\n]+)", re.IGNORECASE)

DOOR_DELIMITER_RE = re.compile(r"Door identification number", re.IGNORECASE)
REMEDIAL_WINDOW_RE = re.compile(
    r"Remedial Action(.*?)(?:Compliance Rating|\Z)", re.IGNORECASE | re.DOTALL
)

LOCATION_TWO_LINES_RE = re.compile(r"Location of door.*?\n([^\n]+)\n([^\n]+)", re.IGNORECASE)
LOCATION_BEDROOM_RE = re.compile(r"Location of door.*?\nBedroom\s*\n([^\n]+)", re.IGNORECASE)
LOCATION_ONE_LINE_RE = re.compile(r"Location of door.*?\n([^\n]+)", re.IGNORECASE)
TRAILING_DOOR_ID_RE = re.compile(r"(\d+[A-Z]?)$")
LEADING_NUMBER_RE = re.compile(r"^\s*(\d+)")
NATURAL_ID_RE = re.compile(r"(\d+)([A-Z]?)")

PENDING = "pending"


@dataclass
class InspectionSummary:
    """Header fields and door counts for one inspection report."""

    location: str = ""
    date: str = ""
    inspector: str = ""
    total_doors: int = 0
    compliant_doors: int = 0
    non_compliant_doors: int = 0

    def to_dict(self) -> dict[str, object]:
        return {
            "location": self.location,
            "date": self.date,
            "inspector": self.inspector,
            "totalDoors": self.total_doors,
            "compliantDoors": self.compliant_doors,
            "nonCompliantDoors": self.non_compliant_doors,
        }


@dataclass(frozen=True)
class ExtractedTask:
    """A remedial task raised by one catalog phrase on one door."""

    door_id: str
    location: str
    title: str
    description: str
    category: str
    priority: str
    status: str = PENDING

    def to_dict(self) -> dict[str, object]:
        return {
            "doorId": self.door_id,
            "location": self.location,
            "title": self.title,
            "description": self.description,
            "category": self.category,
            "priority": self.priority,
            "status": self.status,
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> ExtractedTask:
        return cls(
            door_id=str(data.get("doorId", "")),
            location=str(data.get("location", "")),
            title=str(data.get("title", "")),
            description=str(data.get("description", "")),
            category=str(data.get("category", "")),
            priority=str(data.get("priority", "")),
            status=str(data.get("status", PENDING)),
        )


@dataclass
class ExtractionResult:
    inspection: InspectionSummary
    tasks: list[ExtractedTask] = field(default_factory=list)

    def to_dict(self) -> dict[str, object]:
        return {
            "inspection": self.inspection.to_dict(),
            "tasks": [task.to_dict() for task in self.tasks],
        }

    @classmethod
    def from_dict(cls, data: dict[str, object]) -> ExtractionResult:
        raw_inspection = data.get("inspection") or {}
        assert isinstance(raw_inspection, dict)
        inspection = InspectionSummary(
            location=str(raw_inspection.get("location", "")),
            date=str(raw_inspection.get("date", "")),
            inspector=str(raw_inspection.get("inspector", "")),
            total_doors=int(raw_inspection.get("totalDoors", 0) or 0),
            compliant_doors=int(raw_inspection.get("compliantDoors", 0) or 0),
            non_compliant_doors=int(raw_inspection.get("nonCompliantDoors", 0) or 0),
        )
        raw_tasks = data.get("tasks") or []
        assert isinstance(raw_tasks, list)
        return cls(inspection, [ExtractedTask.from_dict(task) for task in raw_tasks])


@dataclass
class DoorIdentity:
    door_id: str = ""
    location: str = ""


def _require_text(text: object) -> str:
    if not isinstance(text, str):
        raise TypeError(f"expected document text as str, got {type(text).__name__}")
    return text


def extract_header(text: str) -> dict[str, str]:
    """Best-effort ``location``, ``date`` and ``inspector`` from the preamble."""
    _require_text(text)
    header = {"location": "", "date": "", "inspector": ""}
    match = CLIENT_SITE_RE.search(text)
    if match:
        header["location"] = match.group(1).strip()
    match = CONDUCTED_ON_RE.search(text)
    if match:
        header["date"] = match.group(1)
    match = INSPECTOR_RE.search(text)
    if match:
        header["inspector"] = match.group(1).strip()
    return header


def split_door_sections(text: str) -> list[str]:
    """Return one block per door; text before the first door is dropped."""
    _require_text(text)
    return DOOR_DELIMITER_RE.split(text)[1:]


# Identity rules are tried in order; each fills what it can and the first
# one to produce a door id wins.
IdentityRule = Callable[[str, DoorIdentity], bool]


def location_on_two_lines(section: str, identity: DoorIdentity) -> bool:
    match = LOCATION_TWO_LINES_RE.search(section)
    if not match:
        return False
    first, second = match.group(1).strip(), match.group(2).strip()
    identity.location = f"{first} {second}"
    identity.door_id = second
    return True


def location_after_bedroom(section: str, identity: DoorIdentity) -> bool:
    match = LOCATION_BEDROOM_RE.search(section)
    if not match:
        return False
    door_line = match.group(1).strip()
    identity.location = f"Bedroom {door_line}"
    identity.door_id = door_line
    return True


def location_on_one_line(section: str, identity: DoorIdentity) -> bool:
    match = LOCATION_ONE_LINE_RE.search(section)
    if not match:
        return False
    identity.location = match.group(1).strip()
    id_match = TRAILING_DOOR_ID_RE.search(identity.location)
    identity.door_id = id_match.group(1) if id_match else identity.location
    return True


LOCATION_RULES: tuple[IdentityRule, ...] = (
    location_on_two_lines,
    location_after_bedroom,
    location_on_one_line,
)


def leading_door_number(section: str) -> str:
    match = LEADING_NUMBER_RE.match(section)
    return match.group(1) if match else ""


def resolve_door_identity(
    section: str,
    index: int,
    rules: Sequence[IdentityRule] = LOCATION_RULES,
) -> DoorIdentity:
    """Derive ``door_id`` and ``location`` for the ``index``-th door (1-based)."""
    identity = DoorIdentity()
    for rule in rules:
        if rule(section, identity):
            break
    if not identity.door_id:
        identity.door_id = leading_door_number(section)
    if not identity.door_id:
        identity.door_id = f"Door-{index}"
    if not identity.location:
        identity.location = identity.door_id
    return identity


def find_remedial_window(section: str) -> str | None:
    """Text between ``Remedial Action`` and the next ``Compliance Rating``."""
    match = REMEDIAL_WINDOW_RE.search(section)
    if not match:
        return None
    return match.group(1)


def match_remedial_actions(
    window: str,
    catalog: Iterable[RemedialAction] = REMEDIAL_ACTIONS,
) -> list[RemedialAction]:
    return [action for action in catalog if action.matches(window)]


def build_task(identity: DoorIdentity, action: RemedialAction) -> ExtractedTask:
    return ExtractedTask(
        door_id=identity.door_id,
        location=identity.location,
        title=f"{identity.door_id} - {action.title}",
        description=action.description,
        category=action.category,
        priority=action.priority,
    )


def compare_door_ids(a: str, b: str) -> int:
    """Natural comparison: ``2A`` < ``2B`` < ``10A``.

    When either id has no digit run the raw strings are compared instead.
    """
    a_match = NATURAL_ID_RE.search(a)
    b_match = NATURAL_ID_RE.search(b)
    if a_match and b_match:
        a_number, b_number = int(a_match.group(1)), int(b_match.group(1))
        if a_number != b_number:
            return -1 if a_number < b_number else 1
        a_letter, b_letter = a_match.group(2), b_match.group(2)
        return (a_letter > b_letter) - (a_letter < b_letter)
    return (a > b) - (a < b)


def compare_tasks(a: ExtractedTask, b: ExtractedTask) -> int:
    rank_diff = priority_rank(a.priority) - priority_rank(b.priority)
    if rank_diff:
        return rank_diff
    return compare_door_ids(a.door_id, b.door_id)


def sort_tasks(tasks: Iterable[ExtractedTask]) -> list[ExtractedTask]:
    return sorted(tasks, key=cmp_to_key(compare_tasks))


def extract_door_tasks(
    text: str,
    catalog: Sequence[RemedialAction] = REMEDIAL_ACTIONS,
) -> list[ExtractedTask]:
    tasks: list[ExtractedTask] = []
    for index, section in enumerate(split_door_sections(text), start=1):
        identity = resolve_door_identity(section, index)
        window = find_remedial_window(section)
        if window is None:
            logger.debug("Door %s has no remedial action section", identity.door_id)
            continue
        for action in match_remedial_actions(window, catalog):
            tasks.append(build_task(identity, action))
    return sort_tasks(tasks)


def extract_fire_door_tasks(
    text: str,
    catalog: Sequence[RemedialAction] = REMEDIAL_ACTIONS,
) -> ExtractionResult:
    """Run the whole pipeline over one document's text."""
    header = extract_header(text)
    tasks = extract_door_tasks(text, catalog)
    unique_doors = {task.door_id for task in tasks}
    # Doors without any matched action never reach the counts.
    inspection = InspectionSummary(
        **header,
        total_doors=len(unique_doors),
        non_compliant_doors=len(unique_doors),
    )
    logger.debug("Extracted %d tasks across %d doors", len(tasks), len(unique_doors))
    return ExtractionResult(inspection, tasks)
