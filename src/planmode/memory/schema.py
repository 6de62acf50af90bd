"""Typed records describing planning state and persisted plan artifacts."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel

from ..phases import PHASE_SEQUENCE, PlanningPhase


def utc_now() -> datetime:
    """Return a timezone-aware UTC timestamp."""
    return datetime.now(timezone.utc)


class RecordModel(BaseModel):
    """Base Pydantic model with strict field handling."""

    model_config = ConfigDict(extra="forbid", frozen=False)


class PersistedRecordModel(RecordModel):
    """Record whose JSON form uses camelCase keys."""

    model_config = ConfigDict(
        extra="forbid",
        frozen=False,
        alias_generator=to_camel,
        populate_by_name=True,
    )


class PlanRecord(PersistedRecordModel):
    """Durable plan artifact stored as ``{slug}.plan.json``."""

    id: str
    slug: str
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    phase: Union[PlanningPhase, Literal["completed"]] = PlanningPhase.INITIAL_UNDERSTANDING
    user_request: str
    clarifications: Dict[str, Any] = Field(default_factory=dict)
    implementation_plan: str = ""
    files_to_modify: List[str] = Field(default_factory=list)
    verification_steps: List[str] = Field(default_factory=list)

    @field_validator("created_at", "updated_at")
    @classmethod
    def assume_utc(cls, value: datetime) -> datetime:
        """Treat timestamps without an offset as UTC."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value

    def to_json(self) -> str:
        """Serialise the record in its on-disk (camelCase, indented) form."""
        return self.model_dump_json(by_alias=True, indent=2)


class PhaseProgress(RecordModel):
    """Append-only progress log for a single phase."""

    completed: bool = False
    steps: List[str] = Field(default_factory=list)
    notes: Optional[str] = None


class PlanningState(RecordModel):
    """Complete planning state owned by the planning manager."""

    current_phase: PlanningPhase = PlanningPhase.INITIAL_UNDERSTANDING
    plan_file: Optional[PlanRecord] = None
    phase_progress: Dict[PlanningPhase, PhaseProgress] = Field(default_factory=dict)
    enabled: bool = False

    @classmethod
    def initial(cls) -> "PlanningState":
        """Return the disabled starting state with an empty log for every phase."""
        return cls(phase_progress={phase: PhaseProgress() for phase in PHASE_SEQUENCE})
