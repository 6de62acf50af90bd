from __future__ import annotations

import sys
from dataclasses import dataclass
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
SRC = ROOT / "src"

if str(SRC) not in sys.path:
    sys.path.insert(0, str(SRC))

from planmode.memory.store import PlanFileStore  # noqa: E402
from planmode.planning.plan_manager import PlanManager  # noqa: E402


@dataclass(slots=True)
class Workspace:
    """Project directory paired with a separate fake home directory."""

    root: Path
    home: Path

    def store(self) -> PlanFileStore:
        return PlanFileStore(self.root, home=self.home)

    def plans(self, editor: list[str] | None = None) -> PlanManager:
        return PlanManager(self.store(), editor=editor)


@pytest.fixture()
def workspace(tmp_path: Path) -> Workspace:
    root = tmp_path / "project"
    home = tmp_path / "home"
    root.mkdir()
    home.mkdir()
    return Workspace(root=root, home=home)
