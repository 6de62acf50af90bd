"""
Planning workflow: phase state machine, plan facade, and session wiring.
"""

from importlib import import_module
from typing import Any

_EXPORTS = {
    "PhaseTransitionError": "planmode.planning.manager",
    "PlanningManager": "planmode.planning.manager",
    "PlanManager": "planmode.planning.plan_manager",
    "PlanStats": "planmode.planning.plan_manager",
    "PlanningSession": "planmode.planning.session",
}

__all__ = sorted(_EXPORTS)


def __getattr__(name: str) -> Any:
    """Lazily import planning helpers so policy and session modules can import each other."""
    if name in _EXPORTS:
        module = import_module(_EXPORTS[name])
        return getattr(module, name)
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
