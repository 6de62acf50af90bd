"""YAML configuration for plan mode."""

from __future__ import annotations

import copy
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

import yaml

from .memory.store import DEFAULT_PLAN_DIR

DEFAULT_CONFIG_NAME = "config.yaml"

DEFAULT_CONFIG_TEMPLATE: Dict[str, Any] = {
    "project": {
        "root": ".",
    },
    "plans": {
        "directory": DEFAULT_PLAN_DIR.as_posix(),
    },
    "questions": {
        "max_questions": 10,
        "allow_skip": True,
    },
    "editor": {
        "command": "",
    },
    "logging": {
        "level": "WARNING",
    },
}


class ConfigError(ValueError):
    """Raised when the configuration file cannot be used."""


@dataclass(slots=True)
class PlanModeConfig:
    """Resolved, typed view over the raw configuration mapping."""

    project_root: Path
    plan_dir: Path
    max_questions: int = 10
    allow_skip: bool = True
    editor: Optional[str] = None
    log_level: str = "WARNING"

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], *, base_dir: Path | str = ".") -> "PlanModeConfig":
        project_cfg = data.get("project") or {}
        plans_cfg = data.get("plans") or {}
        questions_cfg = data.get("questions") or {}
        editor_cfg = data.get("editor") or {}
        logging_cfg = data.get("logging") or {}

        root = Path(str(project_cfg.get("root") or "."))
        if not root.is_absolute():
            root = (Path(base_dir) / root).resolve()

        plan_dir_value = plans_cfg.get("directory")
        plan_dir = Path(plan_dir_value) if isinstance(plan_dir_value, str) and plan_dir_value.strip() else DEFAULT_PLAN_DIR

        max_questions = questions_cfg.get("max_questions", 10)
        if not isinstance(max_questions, int) or isinstance(max_questions, bool) or max_questions < 0:
            raise ConfigError(f"questions.max_questions must be a non-negative integer, got {max_questions!r}")

        editor_value = editor_cfg.get("command")
        editor = editor_value.strip() if isinstance(editor_value, str) and editor_value.strip() else None

        return cls(
            project_root=root,
            plan_dir=plan_dir,
            max_questions=max_questions,
            allow_skip=bool(questions_cfg.get("allow_skip", True)),
            editor=editor,
            log_level=str(logging_cfg.get("level") or "WARNING").upper(),
        )


def copy_config_template() -> Dict[str, Any]:
    """Return a deep copy of the default configuration template."""
    return copy.deepcopy(DEFAULT_CONFIG_TEMPLATE)


def write_config(config_path: Path, config_data: Mapping[str, Any]) -> None:
    """Persist configuration data to disk with stable formatting."""
    config_path.parent.mkdir(parents=True, exist_ok=True)
    with config_path.open("w", encoding="utf-8") as handle:
        yaml.safe_dump(dict(config_data), handle, sort_keys=False)


def load_config(config_path: Path) -> Dict[str, Any]:
    """Load YAML configuration, falling back to the template when the file is absent."""
    if not config_path.exists():
        return copy_config_template()

    try:
        with config_path.open("r", encoding="utf-8") as handle:
            data = yaml.safe_load(handle) or {}
    except yaml.YAMLError as error:
        raise ConfigError(f"Failed to parse config {config_path}: {error}") from error

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping at the top level.")

    return data
