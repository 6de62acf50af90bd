from __future__ import annotations

import subprocess
from pathlib import Path

import pytest

from planmode.tools.editor import EditorLaunchError, default_editor, launch_editor, resolve_editor


def test_default_editor_by_platform() -> None:
    assert default_editor("win32") == "notepad"
    assert default_editor("linux") == "vi"
    assert default_editor("darwin") == "vi"


def test_resolve_editor_precedence() -> None:
    env = {"VISUAL": "code --wait", "EDITOR": "nano"}

    assert resolve_editor(env, override="emacs -nw") == ["emacs", "-nw"]
    assert resolve_editor(env) == ["code", "--wait"]
    assert resolve_editor({"EDITOR": "nano"}) == ["nano"]
    assert resolve_editor({"VISUAL": "  ", "EDITOR": ""}) == [default_editor()]


def test_launch_editor_runs_command(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    calls = []

    def fake_run(command, check):
        calls.append((command, check))
        return subprocess.CompletedProcess(command, 3)

    monkeypatch.setattr(subprocess, "run", fake_run)
    target = tmp_path / "plan.md"

    code = launch_editor(target, editor=["nano"])

    assert code == 3
    assert calls == [(["nano", str(target)], False)]


def test_launch_editor_wraps_spawn_failure(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    def fake_run(command, check):
        raise FileNotFoundError(command[0])

    monkeypatch.setattr(subprocess, "run", fake_run)

    with pytest.raises(EditorLaunchError):
        launch_editor(tmp_path / "plan.md", environ={"EDITOR": "no-such-editor"})
