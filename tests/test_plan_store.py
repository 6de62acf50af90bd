from __future__ import annotations

import json
from datetime import timedelta
from pathlib import Path

import pytest

from planmode.memory.schema import PlanRecord, utc_now
from planmode.memory.store import (
    InvalidProjectDirectoryError,
    PlanFileCorruptError,
    PlanFileStore,
    is_valid_project_directory,
    render_plan_markdown,
)
from planmode.phases import PlanningPhase


def _record(slug: str, request: str = "Refactor the parser", **extra) -> PlanRecord:
    now = utc_now()
    return PlanRecord(id=slug, slug=slug, created_at=now, updated_at=now, user_request=request, **extra)


def test_save_and_load_round_trip(workspace) -> None:
    store = workspace.store()
    record = _record(
        "a1b2c3d4e5f6",
        clarifications={"database-choice": {"selected": ["SQLite"]}},
        implementation_plan="1. Split tokenizer\n2. Add tests",
        files_to_modify=["src/parser.py"],
        verification_steps=["pytest -q"],
    )

    store.save(record)

    md_path = workspace.root / ".planmode" / "plans" / "a1b2c3d4e5f6.plan.md"
    json_path = workspace.root / ".planmode" / "plans" / "a1b2c3d4e5f6.plan.json"
    assert md_path.exists()
    assert json_path.exists()

    loaded = store.load("a1b2c3d4e5f6")
    assert loaded == record

    markdown = md_path.read_text(encoding="utf-8")
    assert markdown.startswith("# Plan: a1b2c3d4e5f6")
    assert "## User Request\nRefactor the parser" in markdown
    assert "- `src/parser.py`" in markdown
    assert "1. pytest -q" in markdown


def test_sidecar_uses_camel_case_keys(workspace) -> None:
    store = workspace.store()
    store.save(_record("deadbeef0001", files_to_modify=["a.py"]))

    payload = json.loads(store.json_path("deadbeef0001").read_text(encoding="utf-8"))

    assert payload["userRequest"] == "Refactor the parser"
    assert payload["filesToModify"] == ["a.py"]
    assert payload["phase"] == "initial_understanding"
    assert {"createdAt", "updatedAt", "implementationPlan", "verificationSteps"} <= set(payload)
    assert "user_request" not in payload


def test_save_uses_supplied_markdown(workspace) -> None:
    store = workspace.store()
    store.save(_record("cafe00000001"), markdown="# custom body\n")

    assert store.load_markdown("cafe00000001") == "# custom body\n"


def test_render_placeholders_for_empty_plan() -> None:
    markdown = render_plan_markdown(_record("feed00000001"))

    assert "## Clarifications\nNone\n" in markdown
    assert "## Implementation Plan\nTo be determined...\n" in markdown
    assert "## Files to Modify\nNone identified yet\n" in markdown
    assert "## Verification\nTo be determined...\n" in markdown
    assert "**Phase:** initial_understanding" in markdown


def test_load_missing_returns_none(workspace) -> None:
    store = workspace.store()

    assert store.load("000000000000") is None
    assert store.load_markdown("000000000000") is None


def test_load_corrupt_sidecar_raises(workspace) -> None:
    store = workspace.store()
    store.ensure_directory()
    store.json_path("badbadbad000").write_text("{not json", encoding="utf-8")

    with pytest.raises(PlanFileCorruptError):
        store.load("badbadbad000")


def test_list_sorts_newest_first_and_skips_corrupt(workspace) -> None:
    store = workspace.store()
    base = utc_now()
    older = _record("000000000001", request="older")
    older.created_at = base - timedelta(hours=2)
    newer = _record("000000000002", request="newer")
    newer.created_at = base
    middle = _record("000000000003", request="middle")
    middle.created_at = base - timedelta(hours=1)
    for record in (older, newer, middle):
        store.save(record)
    store.json_path("00000000000f").write_text("[]", encoding="utf-8")

    listed = store.list()

    assert [item.slug for item in listed] == ["000000000002", "000000000003", "000000000001"]
    assert [item.record.user_request for item in listed] == ["newer", "middle", "older"]


def test_list_without_directory_is_empty(workspace) -> None:
    assert workspace.store().list() == []


def test_delete_is_idempotent(workspace) -> None:
    store = workspace.store()
    store.save(_record("abcabcabcabc"))
    store.markdown_path("abcabcabcabc").unlink()

    store.delete("abcabcabcabc")
    store.delete("abcabcabcabc")

    assert not store.json_path("abcabcabcabc").exists()
    assert store.load("abcabcabcabc") is None


def test_update_markdown_bumps_timestamp(workspace) -> None:
    store = workspace.store()
    record = _record("123456abcdef")
    record.updated_at = record.created_at - timedelta(days=1)
    store.save(record)

    store.update_markdown("123456abcdef", "# edited\n")

    assert store.load_markdown("123456abcdef") == "# edited\n"
    reloaded = store.load("123456abcdef")
    assert reloaded is not None
    assert reloaded.updated_at > record.updated_at


def test_refuses_home_directory(tmp_path: Path) -> None:
    home = tmp_path / "home" / "alice"
    home.mkdir(parents=True)
    nested = home / "projects" / "demo"
    nested.mkdir(parents=True)

    assert not is_valid_project_directory(home, home)
    assert not is_valid_project_directory(nested, home)
    assert is_valid_project_directory(tmp_path / "work", home)

    store = PlanFileStore(home, home=home)
    with pytest.raises(InvalidProjectDirectoryError):
        store.save(_record("aaaaaaaaaaaa"))
    assert not (home / ".planmode").exists()


def test_rejects_unsafe_slug(workspace) -> None:
    store = workspace.store()

    with pytest.raises(ValueError):
        store.json_path("../escape")


def test_completed_phase_round_trips(workspace) -> None:
    store = workspace.store()
    store.save(_record("c0c0c0c0c0c0", phase="completed"))
    store.save(_record("d0d0d0d0d0d0", phase=PlanningPhase.REVIEW))

    assert store.load("c0c0c0c0c0c0").phase == "completed"
    assert store.load("d0d0d0d0d0d0").phase is PlanningPhase.REVIEW


def test_list_handles_sidecars_without_utc_offset(workspace) -> None:
    store = workspace.store()
    store.save(_record("0a0a0a0a0a0a", request="aware"))
    store.save(_record("0b0b0b0b0b0b", request="naive"))
    json_path = store.json_path("0b0b0b0b0b0b")
    payload = json.loads(json_path.read_text(encoding="utf-8"))
    payload["createdAt"] = "2024-01-01T00:00:00"
    payload["updatedAt"] = "2024-01-01T00:00:00"
    json_path.write_text(json.dumps(payload), encoding="utf-8")

    listed = store.list()

    assert [item.record.user_request for item in listed] == ["aware", "naive"]
    naive = listed[1].record
    assert naive.created_at.tzinfo is not None
    assert naive.created_at.utcoffset() == timedelta(0)
