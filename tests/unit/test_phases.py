from __future__ import annotations

from planmode.phases import (
    PHASE_ALLOWED_TOOLS,
    PHASE_DESCRIPTIONS,
    PHASE_LABELS,
    PHASE_SEQUENCE,
    WRITE_PLAN_TOOL,
    PlanningPhase,
    can_transition,
    is_tool_allowed_in_phase,
    next_phase,
)


def test_sequence_and_successors() -> None:
    assert [phase.value for phase in PHASE_SEQUENCE] == [
        "initial_understanding",
        "design",
        "review",
        "final_plan",
        "exit",
    ]
    assert next_phase(PlanningPhase.FINAL_PLAN) is PlanningPhase.EXIT
    assert next_phase(PlanningPhase.EXIT) is None


def test_can_transition_only_forward_by_one() -> None:
    assert can_transition(PlanningPhase.DESIGN, PlanningPhase.REVIEW)
    assert not can_transition(PlanningPhase.DESIGN, PlanningPhase.FINAL_PLAN)
    assert not can_transition(PlanningPhase.REVIEW, PlanningPhase.DESIGN)
    assert not can_transition(PlanningPhase.EXIT, PlanningPhase.EXIT)


def test_allow_lists() -> None:
    assert PHASE_ALLOWED_TOOLS[PlanningPhase.EXIT] == ()
    assert [phase for phase in PHASE_SEQUENCE if is_tool_allowed_in_phase(WRITE_PLAN_TOOL, phase)] == [
        PlanningPhase.DESIGN
    ]
    assert is_tool_allowed_in_phase("read_file", PlanningPhase.REVIEW)
    assert not is_tool_allowed_in_phase("run_shell", PlanningPhase.DESIGN)


def test_every_phase_has_label_and_description() -> None:
    assert set(PHASE_LABELS) == set(PHASE_SEQUENCE)
    assert set(PHASE_DESCRIPTIONS) == set(PHASE_SEQUENCE)
    assert PHASE_LABELS[PlanningPhase.EXIT].endswith("Ready for Approval")
