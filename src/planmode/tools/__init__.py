"""Tool integrations used by plan mode."""

from .editor import EditorLaunchError, default_editor, launch_editor, resolve_editor

__all__ = [
    "EditorLaunchError",
    "default_editor",
    "launch_editor",
    "resolve_editor",
]
