from __future__ import annotations

import pytest

from planmode.memory.store import InvalidProjectDirectoryError, PlanFileStore
from planmode.phases import PlanningPhase
from planmode.planning.plan_manager import PlanManager
from planmode.planning.session import PlanningSession
from planmode.policy import DevelopmentMode, ToolNotAllowedError
from planmode.questions import QuestionAnswer, QuestionValidationError


def test_start_without_questions_goes_to_design(workspace) -> None:
    session = PlanningSession(workspace.plans())

    record = session.start("rename a variable")

    assert session.phase is PlanningPhase.DESIGN
    assert session.gate.mode is DevelopmentMode.PLAN
    assert session.is_question_mode is False
    stored = workspace.store().load(record.slug)
    assert stored is not None
    assert stored.phase is PlanningPhase.DESIGN


def test_start_refused_in_home_directory(tmp_path) -> None:
    session = PlanningSession(PlanManager(PlanFileStore(tmp_path, home=tmp_path)))

    with pytest.raises(InvalidProjectDirectoryError):
        session.start("optimize the database")
    assert session.planning.enabled is False
    assert session.plan is None


def test_full_workflow_to_approval(workspace) -> None:
    plans = workspace.plans()
    session = PlanningSession(plans)

    record = session.start("optimize performance of the database layer", ["db.py"])

    assert session.is_question_mode
    assert session.phase is PlanningPhase.INITIAL_UNDERSTANDING
    assert session.current_question is not None
    assert session.current_question.id == "database-choice"
    assert (session.question_number, session.total_questions) == (1, 2)

    with pytest.raises(ToolNotAllowedError):
        session.write_plan_file("too early")

    session.answer(QuestionAnswer(question_id="database-choice", selected_option_ids=["postgresql"]))
    session.skip()

    assert session.phase is PlanningPhase.DESIGN
    assert not session.is_question_mode

    session.write_plan_file(
        "Add composite indexes",
        files_to_modify=["db.py"],
        verification_steps=["run benchmarks"],
    )
    stored = plans.load_plan(record.slug)
    assert stored is not None
    assert stored.clarifications == {"database-choice": {"selected": ["PostgreSQL"]}}
    assert stored.implementation_plan == "Add composite indexes"
    assert "- `db.py`" in plans.load_markdown(record.slug)

    while session.transition_to_next_phase():
        pass
    assert session.is_plan_approval_mode
    assert session.transition_to_next_phase() is False

    completed = session.approve(DevelopmentMode.AUTO_ACCEPT)

    assert completed is not None
    assert completed.phase == "completed"
    assert plans.load_plan(record.slug).phase == "completed"
    assert session.gate.mode is DevelopmentMode.AUTO_ACCEPT
    assert session.planning.enabled is False
    assert session.plan is None


def test_custom_text_answer_recorded(workspace) -> None:
    session = PlanningSession(workspace.plans())
    session.start("optimize the database")

    session.answer(QuestionAnswer(question_id="database-choice", custom_text="DuckDB"))

    assert session.plan is not None
    assert session.plan.clarifications["database-choice"] == {"selected": [], "custom": "DuckDB"}


def test_wrong_answer_leaves_session_untouched(workspace) -> None:
    session = PlanningSession(workspace.plans())
    session.start("optimize the database")

    with pytest.raises(QuestionValidationError):
        session.answer(QuestionAnswer(question_id="performance-requirements"))

    assert session.plan is not None
    assert session.plan.clarifications == {}
    assert session.current_question.id == "database-choice"


def test_approve_rejects_plan_mode(workspace) -> None:
    session = PlanningSession(workspace.plans())
    session.start("rename a variable")

    with pytest.raises(ValueError):
        session.approve(DevelopmentMode.PLAN)


def test_discard_removes_files(workspace) -> None:
    plans = workspace.plans()
    session = PlanningSession(plans)
    record = session.start("rename a variable")

    assert session.discard() == record.slug

    assert plans.load_plan(record.slug) is None
    assert plans.load_markdown(record.slug) is None
    assert session.planning.enabled is False
    assert session.gate.mode is DevelopmentMode.NORMAL


def test_cancel_clears_questions(workspace) -> None:
    session = PlanningSession(workspace.plans())
    session.start("optimize the database")

    session.cancel()

    assert session.current_question is None
    assert session.phase is None
    assert session.planning.enabled is False


def test_edit_opens_plan_markdown(workspace, monkeypatch: pytest.MonkeyPatch) -> None:
    opened = []
    monkeypatch.setattr(
        "planmode.planning.plan_manager.launch_editor",
        lambda path, *, editor=None, environ=None: opened.append(path) or 0,
    )
    plans = workspace.plans(editor=["true"])
    session = PlanningSession(plans)
    record = session.start("rename a variable")
    plans.markdown_path(record.slug).unlink()

    assert session.edit() == 0
    assert opened == [plans.markdown_path(record.slug)]
    assert plans.markdown_path(record.slug).exists()


def test_closed_session_stops_autosaving(workspace) -> None:
    plans = workspace.plans()
    session = PlanningSession(plans)
    record = session.start("rename a variable")
    session.close()

    session.write_plan_file("not persisted")

    stored = plans.load_plan(record.slug)
    assert stored is not None
    assert stored.implementation_plan == ""


def test_second_start_restarts_from_initial_phase(workspace) -> None:
    plans = workspace.plans()
    session = PlanningSession(plans)
    session.start("rename a variable")
    assert session.phase is PlanningPhase.DESIGN

    record = session.start("optimize the database")

    assert session.phase is PlanningPhase.INITIAL_UNDERSTANDING
    assert record.phase is PlanningPhase.INITIAL_UNDERSTANDING
    session.answer(QuestionAnswer(question_id="database-choice", selected_option_ids=["sqlite"]))
    session.skip()

    assert session.phase is PlanningPhase.DESIGN
    assert session.gate.is_tool_allowed("write_plan_file")
    session.write_plan_file("Add an index")
    assert plans.load_plan(record.slug).implementation_plan == "Add an index"
