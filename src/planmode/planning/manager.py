"""Phase state machine gating tool access while a plan is being formed.

The manager owns the :class:`PlanningState` and the in-memory plan record. It
performs no I/O: persistence and rendering collaborators subscribe to the
notifications in :mod:`planmode.planning.events` and react synchronously.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, List, Optional, Tuple

from ..memory.schema import PlanningState, PlanRecord, utc_now
from ..phases import (
    PHASE_ALLOWED_TOOLS,
    PHASE_LABELS,
    PHASE_SEQUENCE,
    PlanningPhase,
    can_transition,
    is_tool_allowed_in_phase,
    next_phase,
)
from ..utils.slug import generate_slug
from .events import (
    PhaseChanged,
    PlanCreated,
    PlanningDisabled,
    PlanningEnabled,
    PlanningEvent,
    PlanningListener,
    PlanUpdated,
)

LOGGER = logging.getLogger(__name__)

_PROTECTED_PLAN_FIELDS = frozenset({"id", "slug", "created_at"})


class PhaseTransitionError(ValueError):
    """Raised when a phase change would skip ahead or move backwards."""


class PlanningManager:
    """Tracks the current planning phase and enforces per-phase tool access."""

    def __init__(self) -> None:
        self._state = PlanningState.initial()
        self._listeners: List[PlanningListener] = []

    # ------------------------------------------------------------- observers
    def subscribe(self, listener: PlanningListener) -> Callable[[], None]:
        """Register ``listener`` and return a callable that removes it."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _emit(self, event: PlanningEvent) -> None:
        for listener in list(self._listeners):
            listener(event)

    # ------------------------------------------------------------------ views
    @property
    def state(self) -> PlanningState:
        """Return a detached copy of the planning state."""
        return self._state.model_copy(deep=True)

    @property
    def current_phase(self) -> PlanningPhase:
        return self._state.current_phase

    @property
    def plan_file(self) -> Optional[PlanRecord]:
        return self._state.plan_file

    @property
    def enabled(self) -> bool:
        return self._state.enabled

    def phase_label(self, phase: Optional[PlanningPhase] = None) -> str:
        return PHASE_LABELS[phase or self._state.current_phase]

    def all_phase_labels(self) -> List[str]:
        return [PHASE_LABELS[phase] for phase in PHASE_SEQUENCE]

    # ------------------------------------------------------------ lifecycle
    def enable(self) -> None:
        if self._state.enabled:
            return
        self._state.enabled = True
        self._state.current_phase = PlanningPhase.INITIAL_UNDERSTANDING
        LOGGER.debug("Planning mode enabled")
        self._emit(PlanningEnabled())

    def disable(self) -> None:
        if not self._state.enabled:
            return
        self._state = PlanningState.initial()
        LOGGER.debug("Planning mode disabled")
        self._emit(PlanningDisabled())

    def transition_to_next_phase(self) -> bool:
        """Complete the current phase and move one step forward.

        Returns ``False`` without touching state when planning is disabled or
        the workflow already sits at the terminal phase.
        """
        if not self._state.enabled:
            return False

        current = self._state.current_phase
        target = next_phase(current)
        if target is None:
            return False

        self._state.phase_progress[current].completed = True
        self._move_to(target)
        return True

    def set_phase(self, phase: PlanningPhase | str) -> None:
        """Set the phase directly; only the immediate successor is accepted."""
        if not self._state.enabled:
            return

        target = PlanningPhase(phase)
        current = self._state.current_phase
        if not can_transition(current, target):
            raise PhaseTransitionError(f"Cannot transition from {current.value} to {target.value}")
        self._move_to(target)

    def _move_to(self, phase: PlanningPhase) -> None:
        previous = self._state.current_phase
        self._state.current_phase = phase

        record = self._state.plan_file
        if record is not None:
            record.phase = phase
            record.updated_at = utc_now()
            self._emit(PlanUpdated(record))

        LOGGER.debug("Planning phase %s -> %s", previous.value, phase.value)
        self._emit(PhaseChanged(phase))

    # ------------------------------------------------------------ tool gate
    def is_tool_allowed(self, tool_name: str) -> bool:
        if not self._state.enabled:
            return True
        return is_tool_allowed_in_phase(tool_name, self._state.current_phase)

    def get_allowed_tools(self) -> Tuple[str, ...]:
        """Return the allow-list for the current phase.

        An empty tuple while planning is disabled means "no restriction", not
        "nothing allowed"; use :meth:`is_tool_allowed` for per-tool decisions.
        """
        if not self._state.enabled:
            return ()
        return PHASE_ALLOWED_TOOLS[self._state.current_phase]

    # -------------------------------------------------------------- progress
    def add_step(self, step: str) -> None:
        self._state.phase_progress[self._state.current_phase].steps.append(step)

    def set_notes(self, notes: str) -> None:
        self._state.phase_progress[self._state.current_phase].notes = notes

    # ------------------------------------------------------------ plan record
    def create_plan_file(self, user_request: str) -> PlanRecord:
        """Start a new in-memory plan for ``user_request``."""
        slug = generate_slug()
        now = utc_now()
        record = PlanRecord(
            id=slug,
            slug=slug,
            created_at=now,
            updated_at=now,
            phase=self._state.current_phase,
            user_request=user_request,
        )
        self._state.plan_file = record
        LOGGER.debug("Created plan %s", slug)
        self._emit(PlanCreated(record))
        return record

    def update_plan_file(self, **changes: Any) -> None:
        """Shallow-merge ``changes`` into the active plan."""
        record = self._state.plan_file
        if record is None:
            return

        protected = _PROTECTED_PLAN_FIELDS.intersection(changes)
        if protected:
            raise ValueError(f"Plan fields cannot be updated: {', '.join(sorted(protected))}")

        merged = {**record.model_dump(), **changes, "updated_at": utc_now()}
        updated = PlanRecord.model_validate(merged)
        self._state.plan_file = updated
        self._emit(PlanUpdated(updated))

    def add_clarification(self, key: str, value: Any) -> None:
        record = self._state.plan_file
        if record is None:
            return
        record.clarifications[key] = value
        record.updated_at = utc_now()
        self._emit(PlanUpdated(record))

    def clear_plan_file(self) -> None:
        self._state.plan_file = None
