"""Planning session wiring the phase machine, questions, plan store, and tool gate.

A session is constructed explicitly and passed to whichever UI drives it, so
tests build a fresh one per case instead of resetting process-wide state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional, Sequence

from ..memory.schema import PlanRecord
from ..memory.store import InvalidProjectDirectoryError
from ..phases import WRITE_PLAN_TOOL, PlanningPhase
from ..policy.tool_gate import DevelopmentMode, ToolGate
from ..questions import Question, QuestionAnswer, QuestionManager
from .events import PlanCreated, PlanningEvent, PlanUpdated
from .manager import PlanningManager
from .plan_manager import PlanManager

LOGGER = logging.getLogger(__name__)


class PlanningSession:
    """Drives one plan from request through questions, phases, and approval."""

    def __init__(
        self,
        plans: PlanManager,
        *,
        planning: Optional[PlanningManager] = None,
        questions: Optional[QuestionManager] = None,
        gate: Optional[ToolGate] = None,
        autosave: bool = True,
    ) -> None:
        self.plans = plans
        self.planning = planning or PlanningManager()
        self.questions = questions or QuestionManager()
        self.gate = gate or ToolGate(self.planning)
        self._unsubscribe = self.planning.subscribe(self._autosave) if autosave else None

    def close(self) -> None:
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None

    def _autosave(self, event: PlanningEvent) -> None:
        if isinstance(event, (PlanCreated, PlanUpdated)) and self.planning.enabled:
            self.plans.store.save(event.record)

    # ------------------------------------------------------------ projections
    @property
    def plan(self) -> Optional[PlanRecord]:
        return self.planning.plan_file

    @property
    def phase(self) -> Optional[PlanningPhase]:
        return self.gate.current_planning_phase()

    @property
    def current_question(self) -> Optional[Question]:
        return self.questions.current_question

    @property
    def question_number(self) -> int:
        return self.questions.question_number

    @property
    def total_questions(self) -> int:
        return self.questions.total_questions

    @property
    def is_question_mode(self) -> bool:
        return self.planning.enabled and self.questions.current_question is not None

    @property
    def is_plan_approval_mode(self) -> bool:
        return (
            self.planning.enabled
            and self.planning.current_phase is PlanningPhase.EXIT
            and self.planning.plan_file is not None
        )

    # ------------------------------------------------------------- lifecycle
    def enable_planning_mode(self) -> None:
        self.gate.set_mode(DevelopmentMode.PLAN)

    def disable_planning_mode(self) -> None:
        self.questions.reset()
        if self.gate.mode is DevelopmentMode.PLAN:
            self.gate.set_mode(DevelopmentMode.NORMAL)
        else:
            self.planning.disable()

    def start(self, user_request: str, project_files: Sequence[str] = ()) -> PlanRecord:
        """Open a plan for ``user_request`` and queue clarifying questions.

        Planning restarts from ``initial_understanding`` even when a previous
        plan left it in a later phase. When no question applies, the workflow
        moves straight to ``design``.
        """
        if not self.plans.is_valid_directory():
            raise InvalidProjectDirectoryError(
                "Plan mode needs a project directory; the home directory is not allowed"
            )
        if self.planning.enabled:
            self.planning.disable()
        self.enable_planning_mode()

        record = self.planning.create_plan_file(user_request)
        self.questions.reset()
        self.questions.generate_questions(user_request, list(project_files))
        if self.questions.is_completed():
            self.transition_to_next_phase()
        return record

    def transition_to_next_phase(self) -> bool:
        moved = self.planning.transition_to_next_phase()
        if not moved:
            LOGGER.warning("No more phases to transition to")
        return moved

    # -------------------------------------------------------------- questions
    def answer(self, answer: QuestionAnswer) -> None:
        """Record ``answer`` as a clarification; finish questioning when exhausted."""
        question = self.questions.current_question
        self.questions.submit_answer(answer)
        if question is not None:
            self.planning.add_clarification(question.id, _clarification_value(question, answer))
        if self.questions.is_completed():
            self.transition_to_next_phase()

    def skip(self) -> None:
        self.questions.skip_current_question()
        if self.questions.is_completed():
            self.transition_to_next_phase()

    def cancel(self) -> None:
        self.disable_planning_mode()

    # ------------------------------------------------------------- plan body
    def write_plan_file(
        self,
        implementation_plan: str,
        *,
        files_to_modify: Optional[List[str]] = None,
        verification_steps: Optional[List[str]] = None,
    ) -> PlanRecord:
        """Apply the ``write_plan_file`` tool; only reachable during ``design``."""
        self.gate.check(WRITE_PLAN_TOOL)
        changes: Dict[str, Any] = {"implementation_plan": implementation_plan}
        if files_to_modify is not None:
            changes["files_to_modify"] = list(files_to_modify)
        if verification_steps is not None:
            changes["verification_steps"] = list(verification_steps)
        self.planning.update_plan_file(**changes)
        record = self.planning.plan_file
        if record is None:
            raise RuntimeError("No active plan to write")
        return record

    # -------------------------------------------------------------- approval
    def approve(self, mode: DevelopmentMode | str = DevelopmentMode.NORMAL) -> Optional[PlanRecord]:
        """Persist the plan as completed and leave plan mode for ``mode``."""
        record = self.planning.plan_file
        if record is None:
            return None
        target = DevelopmentMode(mode)
        if target is DevelopmentMode.PLAN:
            raise ValueError("Approval must switch to normal or auto-accept mode")

        completed = self.plans.mark_completed(record)
        self.questions.reset()
        self.gate.set_mode(target)
        LOGGER.info("Plan %s approved; switching to %s mode", completed.slug, target.value)
        return completed

    def edit(self) -> Optional[int]:
        """Open the active plan's markdown in the external editor."""
        record = self.planning.plan_file
        if record is None:
            return None
        if self.plans.load_markdown(record.slug) is None:
            self.plans.store.save(record)
        return self.plans.open_in_editor(record.slug)

    def discard(self) -> Optional[str]:
        """Delete the active plan's files and leave plan mode."""
        record = self.planning.plan_file
        if record is None:
            return None
        self.plans.delete_plan(record.slug)
        self.disable_planning_mode()
        LOGGER.info("Plan %s discarded", record.slug)
        return record.slug


def _clarification_value(question: Question, answer: QuestionAnswer) -> Dict[str, Any]:
    labels = {option.id: option.text for option in question.options}
    value: Dict[str, Any] = {
        "selected": [labels.get(option_id, option_id) for option_id in answer.selected_option_ids],
    }
    if answer.custom_text:
        value["custom"] = answer.custom_text
    return value
