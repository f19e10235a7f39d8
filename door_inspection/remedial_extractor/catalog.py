"""Fixed catalog of remedial actions recognised in fire-door inspection reports."""
from __future__ import annotations

import re
from dataclasses import dataclass

PRIORITY_ORDER: dict[str, int] = {
    "critical": 0,
    "high": 1,
    "medium": 2,
    "low": 3,
}

PRIORITIES = tuple(PRIORITY_ORDER)

CATEGORIES = (
    "Gap Adjustment",
    "Documentation",
    "Structural Repairs",
    "Hardware Issues",
    "Seal Replacement",
    "Complete Replacement",
)


@dataclass(frozen=True)
class RemedialAction:
    """One checklist phrase of the inspection template and the task it raises."""

    pattern: re.Pattern[str]
    title: str
    description: str
    category: str
    priority: str

    def matches(self, window: str) -> bool:
        return self.pattern.search(window) is not None


def _action(
    phrase: str, title: str, description: str, category: str, priority: str
) -> RemedialAction:
    # ``phrase`` is a regex fragment; the checkbox answer must read "Yes".
    pattern = re.compile(phrase + r"\s*Yes", re.IGNORECASE)
    return RemedialAction(pattern, title, description, category, priority)


REMEDIAL_ACTIONS: tuple[RemedialAction, ...] = (
    _action(
        r"Adjust\s+and\s+rehang\s+the\s+door/frame\s+to\s+ensure\s+gaps\s+are\s+2-4mm"
        r"\s*on\s+the\s+latch,\s+top,\s+and\s+hinge\s+sides",
        "Adjust door gaps to 2-4mm",
        "Adjust and rehang the door/frame to ensure gaps are 2-4mm on the latch, top, "
        "and hinge sides",
        "Gap Adjustment",
        "medium",
    ),
    _action(
        r"Bottom\s+gap\s+-\s+Install\s+a\s+hardwood\s+strip\s+to\s+the\s+bottom\s+of\s+the"
        r"\s*door\s+\(FD30\s+only\)",
        "Install hardwood strip to bottom",
        "Install a hardwood strip to the bottom of the door (FD30 only)",
        "Gap Adjustment",
        "medium",
    ),
    _action(
        r"Confirmation/evidence\s+required\s+to\s+confirm\s+the"
        r"\s*material/product\s+used\s+to\s+repair\s+doorset",
        "Provide repair documentation",
        "Confirmation/evidence required to confirm the material/product used to repair "
        "doorset",
        "Documentation",
        "low",
    ),
    _action(
        r"Door\s+leaf\s+-\s+Repair\s+damage\s+to\s+door\s+leaf\s+using\s+approved\s+repair"
        r"\s*techniques?",
        "Repair door leaf damage",
        "Repair damage to door leaf using approved repair techniques",
        "Structural Repairs",
        "medium",
    ),
    _action(
        r"Door\s+lipping\s+to\s+be\s+replaced\s+and\s+ensure\s+it\s+is\s+securely\s+fixed",
        "Replace door lipping",
        "Replace door lipping and ensure it is securely fixed",
        "Structural Repairs",
        "medium",
    ),
    _action(
        r"Door\s+stops\s+to\s+be\s+replaced\s+or\s+repaired",
        "Replace/repair door stops",
        "Replace or repair door stops",
        "Structural Repairs",
        "medium",
    ),
    _action(
        r"Frame\s+-\s+/architrave\s+to\s+be\s+repaired\s+using\s+approved\s+repair"
        r"\s*technique",
        "Repair frame/architrave",
        "Repair frame/architrave using approved repair technique",
        "Structural Repairs",
        "medium",
    ),
    _action(
        r"Frame\s+-\s+to\s+be\s+repaired\s+or\s+replace\s+doorset\s+to\s+achieve\s+certified"
        r"\s*doorset",
        "Repair/replace frame for certification",
        "Repair or replace doorset to achieve certified doorset",
        "Structural Repairs",
        "high",
    ),
    _action(
        r"Handle\s+-\s+Requires\s+tightening",
        "Tighten handle",
        "Handle requires tightening",
        "Hardware Issues",
        "high",
    ),
    _action(
        r"Handle\s+-\s+To\s+be\s+replaced",
        "Replace handle",
        "Handle needs to be replaced",
        "Hardware Issues",
        "high",
    ),
    _action(
        r"Hinges\s+-\s+Replace\s+all\s+hinges\s+with\s+certified\s+hinges",
        "Replace all hinges",
        "Replace all hinges with certified hinges",
        "Hardware Issues",
        "medium",
    ),
    _action(
        r"Hinges\s+-\s+Require\s+intumescent\s+pads\s+installed",
        "Install intumescent pads on hinges",
        "Install intumescent pads on hinges",
        "Hardware Issues",
        "medium",
    ),
    _action(
        r"Latch/lock\s+to\s+be\s+replaced\s+for\s+certified\s+latch/lock",
        "Replace latch/lock",
        "Replace with certified latch/lock",
        "Hardware Issues",
        "medium",
    ),
    _action(
        r"Seals\s+-\s+Replace\s+all\s+seals",
        "Replace all seals",
        "Replace all door seals",
        "Seal Replacement",
        "high",
    ),
    _action(
        r"Seals\s+-\s+Install\s+drop\s+down\s+seal",
        "Install drop down seal",
        "Install drop down seal",
        "Seal Replacement",
        "medium",
    ),
    _action(
        r"Seals\s+-\s+Install\s+smoke\s+seals",
        "Install smoke seals",
        "Install smoke seals",
        "Seal Replacement",
        "high",
    ),
    _action(
        r"Seals\s+-\s+Install\s+intumescent\s+seals",
        "Install intumescent seals",
        "Install intumescent seals",
        "Seal Replacement",
        "high",
    ),
    _action(
        r"Seals\s+-\s+Install\s+threshold\s+seal",
        "Install threshold seal",
        "Install threshold seal",
        "Seal Replacement",
        "medium",
    ),
    _action(
        r"Seals\s+-\s+Replace\s+threshold\s+seal",
        "Replace threshold seal",
        "Replace threshold seal",
        "Seal Replacement",
        "medium",
    ),
    _action(
        r"Seal\s+architrave\s+to\s+wall",
        "Seal architrave to wall",
        "Seal gap between architrave and wall",
        "Structural Repairs",
        "medium",
    ),
    _action(
        r"Door\s+closer\s+-\s+Requires\s+adjusting\s+or\s+repairing",
        "Adjust/repair door closer",
        "Door closer requires adjusting or repairing",
        "Hardware Issues",
        "medium",
    ),
    _action(
        r"Doorset\s+to\s+be\s+replaced\s+with\s+['\"]FD30s['\"]\s+fire\s+rated\s+doorset.*?",
        "Replace entire doorset",
        "Replace with FD30s fire rated doorset (certified installer required)",
        "Complete Replacement",
        "critical",
    ),
)


def priority_rank(priority: str) -> int:
    """Rank used for ordering; unknown priorities sort after ``low``."""
    return PRIORITY_ORDER.get(priority, len(PRIORITY_ORDER))
