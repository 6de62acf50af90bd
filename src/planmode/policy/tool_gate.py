"""Tool-dispatch gate combining the development mode with planning phases.

The tool-dispatch layer asks the gate before executing any tool call. Outside
of plan mode every tool is permitted (subject to each tool's own approval
rules); in plan mode the planning manager's phase allow-list decides.
"""

from __future__ import annotations

import logging
from enum import Enum
from typing import Iterable, List, Optional

from ..phases import PlanningPhase
from ..planning.manager import PlanningManager

LOGGER = logging.getLogger(__name__)


class DevelopmentMode(str, Enum):
    """How the assistant treats file-modifying tools."""

    NORMAL = "normal"
    AUTO_ACCEPT = "auto-accept"
    PLAN = "plan"


class ToolNotAllowedError(PermissionError):
    """Raised when a tool call is refused in the current phase."""

    def __init__(self, tool_name: str, phase: Optional[PlanningPhase]) -> None:
        label = phase.value if phase is not None else "n/a"
        super().__init__(f"Tool '{tool_name}' is not allowed during planning phase '{label}'")
        self.tool_name = tool_name
        self.phase = phase


class ToolGate:
    """Answers "may this tool run now?" for the tool-dispatch collaborator."""

    def __init__(self, planning: PlanningManager, mode: DevelopmentMode = DevelopmentMode.NORMAL) -> None:
        self._planning = planning
        self._mode = DevelopmentMode(mode)

    @property
    def mode(self) -> DevelopmentMode:
        return self._mode

    def set_mode(self, mode: DevelopmentMode | str) -> None:
        """Switch modes; entering plan mode enables planning, leaving it disables it."""
        self._mode = DevelopmentMode(mode)
        if self._mode is DevelopmentMode.PLAN:
            self._planning.enable()
        else:
            self._planning.disable()
        LOGGER.debug("Development mode set to %s", self._mode.value)

    def _restricted(self) -> bool:
        return self._mode is DevelopmentMode.PLAN and self._planning.enabled

    def is_tool_allowed(self, tool_name: str) -> bool:
        if self._restricted():
            return self._planning.is_tool_allowed(tool_name)
        return True

    def check(self, tool_name: str) -> None:
        """Raise :class:`ToolNotAllowedError` unless ``tool_name`` may run."""
        if not self.is_tool_allowed(tool_name):
            raise ToolNotAllowedError(tool_name, self.current_planning_phase())

    def filter_tools(self, tool_names: Iterable[str]) -> List[str]:
        """Drop tools the current phase forbids; everything passes when unrestricted."""
        names = list(tool_names)
        if not self._restricted():
            return names
        allowed = set(self._planning.get_allowed_tools())
        return [name for name in names if name in allowed]

    def current_planning_phase(self) -> Optional[PlanningPhase]:
        return self._planning.current_phase if self._planning.enabled else None
