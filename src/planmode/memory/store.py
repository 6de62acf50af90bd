"""Durable storage for plan records as paired markdown and JSON files.

Each plan lives under ``{root}/{plan_dir}`` as two files:

``{slug}.plan.md``
    Human-readable, human-editable rendering of the plan.

``{slug}.plan.json``
    Pretty-printed metadata and the source of truth when re-loading a plan.

Writes are refused when the project root is the user's home directory or any
directory below it, so running the assistant outside a project never scatters
plan files across ``$HOME``.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..utils.slug import require_slug
from .schema import PlanRecord, utc_now

DEFAULT_PLAN_DIR = Path(".planmode") / "plans"
PLAN_MD_EXT = ".plan.md"
PLAN_JSON_EXT = ".plan.json"
LOGGER = logging.getLogger(__name__)


class InvalidProjectDirectoryError(RuntimeError):
    """Raised when plan files would be written into the home directory tree."""


class PlanFileCorruptError(ValueError):
    """Raised when an existing plan sidecar cannot be parsed."""


@dataclass(slots=True)
class StoredPlan:
    """Listing entry pairing a slug with its loaded record."""

    slug: str
    record: PlanRecord


def is_valid_project_directory(cwd: Path | str, home: Path | str | None = None) -> bool:
    """Return ``False`` when ``cwd`` is ``home`` or one of its subdirectories."""
    resolved_cwd = Path(cwd).expanduser().resolve()
    resolved_home = Path(home if home is not None else Path.home()).expanduser().resolve()
    if resolved_cwd == resolved_home:
        return False
    return resolved_home not in resolved_cwd.parents


def render_plan_markdown(record: PlanRecord) -> str:
    """Render the human-readable plan document for ``record``."""
    clarifications = "\n".join(
        f"**{key}**: {json.dumps(value, default=str)}" for key, value in record.clarifications.items()
    )
    files_list = "\n".join(f"- `{path}`" for path in record.files_to_modify)
    verification = "\n".join(
        f"{index}. {step}" for index, step in enumerate(record.verification_steps, start=1)
    )
    phase = getattr(record.phase, "value", record.phase)

    return (
        f"# Plan: {record.slug}\n"
        "\n"
        f"**Created:** {record.created_at.isoformat()}\n"
        f"**Updated:** {record.updated_at.isoformat()}\n"
        f"**Phase:** {phase}\n"
        "\n"
        "## User Request\n"
        f"{record.user_request}\n"
        "\n"
        "## Clarifications\n"
        f"{clarifications or 'None'}\n"
        "\n"
        "## Implementation Plan\n"
        f"{record.implementation_plan or 'To be determined...'}\n"
        "\n"
        "## Files to Modify\n"
        f"{files_list or 'None identified yet'}\n"
        "\n"
        "## Verification\n"
        f"{verification or 'To be determined...'}\n"
    )


class PlanFileStore:
    """Filesystem-backed persistence for plan records of a single project.

    No locking is performed; callers serialise operations against a slug.
    """

    def __init__(
        self,
        root: Path | str,
        *,
        plan_dir: Path | str = DEFAULT_PLAN_DIR,
        home: Path | str | None = None,
    ) -> None:
        self.root = Path(root)
        self.plan_dir = Path(plan_dir)
        self._home = Path(home) if home is not None else None

    @property
    def directory(self) -> Path:
        return self.root / self.plan_dir

    def markdown_path(self, slug: str) -> Path:
        return self.directory / f"{require_slug(slug)}{PLAN_MD_EXT}"

    def json_path(self, slug: str) -> Path:
        return self.directory / f"{require_slug(slug)}{PLAN_JSON_EXT}"

    def is_valid_directory(self) -> bool:
        return is_valid_project_directory(self.root, self._home)

    def ensure_directory(self) -> Path:
        """Create the plan directory after validating the project root."""
        if not self.is_valid_directory():
            raise InvalidProjectDirectoryError(
                "Plan files can only be created in project directories, "
                f"not in the home directory ({self.root})"
            )
        directory = self.directory
        directory.mkdir(parents=True, exist_ok=True)
        return directory

    def save(self, record: PlanRecord, markdown: Optional[str] = None) -> None:
        """Write the markdown rendering and the JSON sidecar for ``record``."""
        self.ensure_directory()
        md_path = self.markdown_path(record.slug)
        json_path = self.json_path(record.slug)

        content = markdown if markdown else render_plan_markdown(record)
        md_path.write_text(content, encoding="utf-8")
        json_path.write_text(record.to_json(), encoding="utf-8")
        LOGGER.info("Saved plan %s to %s", record.slug, self.directory)

    def load(self, slug: str) -> Optional[PlanRecord]:
        """Return the record stored under ``slug`` or ``None`` when absent."""
        json_path = self.json_path(slug)
        try:
            payload = json_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        try:
            return PlanRecord.model_validate_json(payload)
        except ValidationError as error:
            raise PlanFileCorruptError(f"Plan metadata {json_path} is corrupt: {error}") from error

    def load_markdown(self, slug: str) -> Optional[str]:
        """Return the markdown rendering for ``slug`` or ``None`` when absent."""
        try:
            return self.markdown_path(slug).read_text(encoding="utf-8")
        except FileNotFoundError:
            return None

    def update_markdown(self, slug: str, markdown: str) -> None:
        """Replace the markdown for ``slug`` and bump the sidecar timestamp."""
        self.ensure_directory()
        self.markdown_path(slug).write_text(markdown, encoding="utf-8")
        record = self.load(slug)
        if record is not None:
            record.updated_at = utc_now()
            self.json_path(slug).write_text(record.to_json(), encoding="utf-8")
        LOGGER.info("Updated markdown for plan %s", slug)

    def delete(self, slug: str) -> None:
        """Remove both files for ``slug``; either may already be missing."""
        for path in (self.markdown_path(slug), self.json_path(slug)):
            try:
                path.unlink()
            except FileNotFoundError:
                LOGGER.debug("Plan file %s already absent", path)
        LOGGER.info("Deleted plan %s", slug)

    def list(self) -> List[StoredPlan]:
        """Return every readable plan, newest first."""
        directory = self.directory
        if not directory.is_dir():
            return []

        plans: List[StoredPlan] = []
        for json_path in sorted(directory.glob(f"*{PLAN_JSON_EXT}")):
            slug = json_path.name[: -len(PLAN_JSON_EXT)]
            try:
                record = self.load(slug)
            except (PlanFileCorruptError, ValueError, OSError) as error:
                LOGGER.warning("Skipping unreadable plan %s: %s", json_path.name, error)
                continue
            if record is not None:
                plans.append(StoredPlan(slug=slug, record=record))

        plans.sort(key=lambda item: item.record.created_at, reverse=True)
        return plans
