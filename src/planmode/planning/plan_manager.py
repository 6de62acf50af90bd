"""High-level plan operations used by approval, review, and listing flows."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Dict, List, Optional

from ..memory.schema import PlanRecord, utc_now
from ..memory.store import (
    InvalidProjectDirectoryError,
    PlanFileStore,
    StoredPlan,
)
from ..phases import PLAN_COMPLETED, PlanningPhase
from ..tools.editor import launch_editor
from ..utils.slug import generate_slug

LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class PlanStats:
    """Aggregate view over every stored plan."""

    total_plans: int = 0
    phases: Dict[str, int] = field(default_factory=dict)
    oldest_plan: Optional[datetime] = None
    newest_plan: Optional[datetime] = None


@dataclass(slots=True)
class PlanWithMarkdown:
    record: PlanRecord
    markdown: str


class PlanManager:
    """Facade combining the plan store with slugs, editing, search, and statistics."""

    def __init__(self, store: PlanFileStore, *, editor: Optional[List[str]] = None) -> None:
        self.store = store
        self._editor = editor

    @property
    def plan_directory(self) -> Path:
        return self.store.directory

    def markdown_path(self, slug: str) -> Path:
        return self.store.markdown_path(slug)

    def json_path(self, slug: str) -> Path:
        return self.store.json_path(slug)

    def is_valid_directory(self) -> bool:
        return self.store.is_valid_directory()

    # ------------------------------------------------------------------ write
    def create_plan(self, user_request: str) -> PlanRecord:
        """Create and persist an empty plan for ``user_request``."""
        if not self.store.is_valid_directory():
            raise InvalidProjectDirectoryError(
                "Plan files can only be created in project directories, not in the home directory"
            )
        slug = generate_slug()
        now = utc_now()
        record = PlanRecord(
            id=slug,
            slug=slug,
            created_at=now,
            updated_at=now,
            phase=PlanningPhase.INITIAL_UNDERSTANDING,
            user_request=user_request,
        )
        self.store.save(record)
        return record

    def update_plan(self, record: PlanRecord) -> None:
        record.updated_at = utc_now()
        self.store.save(record)

    def save_markdown_content(self, slug: str, markdown: str) -> None:
        self.store.update_markdown(slug, markdown)

    def save_plan_with_markdown(self, record: PlanRecord, markdown: str) -> None:
        record.updated_at = utc_now()
        self.store.save(record, markdown)

    def mark_completed(self, record: PlanRecord) -> PlanRecord:
        """Persist a copy of ``record`` flagged as approved."""
        completed = record.model_copy(update={"phase": PLAN_COMPLETED})
        self.update_plan(completed)
        LOGGER.info("Plan %s marked completed", completed.slug)
        return completed

    def delete_plan(self, slug: str) -> None:
        self.store.delete(slug)

    # ------------------------------------------------------------------- read
    def load_plan(self, slug: str) -> Optional[PlanRecord]:
        return self.store.load(slug)

    def load_markdown(self, slug: str) -> Optional[str]:
        return self.store.load_markdown(slug)

    def load_plan_with_markdown(self, slug: str) -> Optional[PlanWithMarkdown]:
        record = self.store.load(slug)
        if record is None:
            return None
        return PlanWithMarkdown(record=record, markdown=self.store.load_markdown(slug) or "")

    def list_plans(self) -> List[StoredPlan]:
        return self.store.list()

    def search_plans(self, keyword: str) -> List[StoredPlan]:
        """Case-insensitive match over request, plan body, and clarifications."""
        needle = keyword.lower()

        def _matches(record: PlanRecord) -> bool:
            if needle in record.user_request.lower():
                return True
            if record.implementation_plan and needle in record.implementation_plan.lower():
                return True
            return any(
                needle in key.lower() or needle in str(value).lower()
                for key, value in record.clarifications.items()
            )

        return [item for item in self.list_plans() if _matches(item.record)]

    def get_plan_stats(self) -> PlanStats:
        plans = self.list_plans()
        if not plans:
            return PlanStats()

        phases: Dict[str, int] = {}
        for item in plans:
            phase = getattr(item.record.phase, "value", item.record.phase)
            phases[phase] = phases.get(phase, 0) + 1

        created = [item.record.created_at for item in plans]
        return PlanStats(
            total_plans=len(plans),
            phases=phases,
            oldest_plan=min(created),
            newest_plan=max(created),
        )

    # ----------------------------------------------------------------- editor
    def open_in_editor(self, slug: str) -> int:
        """Open the plan markdown in the external editor and return its exit code."""
        return launch_editor(self.markdown_path(slug), editor=self._editor)
