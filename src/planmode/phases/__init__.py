"""Planning phase enumeration, ordering, and per-phase tool allow-lists."""

from __future__ import annotations

from enum import Enum
from typing import Dict, Optional, Tuple


class PlanningPhase(str, Enum):
    """The five ordered stages of plan formation."""

    INITIAL_UNDERSTANDING = "initial_understanding"
    DESIGN = "design"
    REVIEW = "review"
    FINAL_PLAN = "final_plan"
    EXIT = "exit"


PHASE_SEQUENCE = [
    PlanningPhase.INITIAL_UNDERSTANDING,
    PlanningPhase.DESIGN,
    PlanningPhase.REVIEW,
    PlanningPhase.FINAL_PLAN,
    PlanningPhase.EXIT,
]

# Stored in a plan record's ``phase`` once the plan has been approved.
PLAN_COMPLETED = "completed"

PHASE_LABELS: Dict[PlanningPhase, str] = {
    PlanningPhase.INITIAL_UNDERSTANDING: "🔍 Understanding",
    PlanningPhase.DESIGN: "📝 Designing",
    PlanningPhase.REVIEW: "👀 Reviewing",
    PlanningPhase.FINAL_PLAN: "✨ Finalizing",
    PlanningPhase.EXIT: "✅ Ready for Approval",
}

PHASE_DESCRIPTIONS: Dict[PlanningPhase, str] = {
    PlanningPhase.INITIAL_UNDERSTANDING: (
        "Exploring codebase to understand requirements and identify files"
    ),
    PlanningPhase.DESIGN: "Creating implementation plan with clarifications",
    PlanningPhase.REVIEW: "Reviewing collected information and plan details",
    PlanningPhase.FINAL_PLAN: "Finalizing plan document and preparing for approval",
    PlanningPhase.EXIT: "Plan complete - waiting for user approval or modification",
}

READ_ONLY_TOOLS: Tuple[str, ...] = (
    "read_file",
    "find_files",
    "search_file_contents",
    "list_directory",
)
WRITE_PLAN_TOOL = "write_plan_file"

PHASE_ALLOWED_TOOLS: Dict[PlanningPhase, Tuple[str, ...]] = {
    PlanningPhase.INITIAL_UNDERSTANDING: READ_ONLY_TOOLS,
    PlanningPhase.DESIGN: (*READ_ONLY_TOOLS, WRITE_PLAN_TOOL),
    PlanningPhase.REVIEW: READ_ONLY_TOOLS,
    PlanningPhase.FINAL_PLAN: READ_ONLY_TOOLS,
    PlanningPhase.EXIT: (),
}


def next_phase(phase: PlanningPhase) -> Optional[PlanningPhase]:
    """Return the phase following ``phase`` or ``None`` at the terminal phase."""
    index = PHASE_SEQUENCE.index(phase)
    if index == len(PHASE_SEQUENCE) - 1:
        return None
    return PHASE_SEQUENCE[index + 1]


def can_transition(source: PlanningPhase, target: PlanningPhase) -> bool:
    """Only the immediate successor is a legal transition target."""
    return PHASE_SEQUENCE.index(target) == PHASE_SEQUENCE.index(source) + 1


def is_tool_allowed_in_phase(tool_name: str, phase: PlanningPhase) -> bool:
    return tool_name in PHASE_ALLOWED_TOOLS[phase]


__all__ = [
    "PHASE_ALLOWED_TOOLS",
    "PHASE_DESCRIPTIONS",
    "PHASE_LABELS",
    "PHASE_SEQUENCE",
    "PLAN_COMPLETED",
    "PlanningPhase",
    "READ_ONLY_TOOLS",
    "WRITE_PLAN_TOOL",
    "can_transition",
    "is_tool_allowed_in_phase",
    "next_phase",
]
