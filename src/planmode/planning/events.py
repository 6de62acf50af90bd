"""Notifications emitted by the planning manager after each mutating call."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Union

from ..memory.schema import PlanRecord
from ..phases import PlanningPhase


@dataclass(slots=True, frozen=True)
class PhaseChanged:
    phase: PlanningPhase


@dataclass(slots=True, frozen=True)
class PlanCreated:
    record: PlanRecord


@dataclass(slots=True, frozen=True)
class PlanUpdated:
    record: PlanRecord


@dataclass(slots=True, frozen=True)
class PlanningEnabled:
    pass


@dataclass(slots=True, frozen=True)
class PlanningDisabled:
    pass


PlanningEvent = Union[PhaseChanged, PlanCreated, PlanUpdated, PlanningEnabled, PlanningDisabled]
PlanningListener = Callable[[PlanningEvent], None]

__all__ = [
    "PhaseChanged",
    "PlanCreated",
    "PlanUpdated",
    "PlanningDisabled",
    "PlanningEnabled",
    "PlanningEvent",
    "PlanningListener",
]
