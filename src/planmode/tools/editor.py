"""Launch an external editor on a plan's markdown file."""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import sys
from pathlib import Path
from typing import List, Mapping, Optional

LOGGER = logging.getLogger(__name__)


class EditorLaunchError(RuntimeError):
    """Raised when the configured editor cannot be started."""


def default_editor(platform: Optional[str] = None) -> str:
    """Return the fallback editor for ``platform`` (defaults to ``sys.platform``)."""
    if (platform or sys.platform).startswith("win"):
        return "notepad"
    return "vi"


def resolve_editor(environ: Optional[Mapping[str, str]] = None, *, override: Optional[str] = None) -> List[str]:
    """Return the editor command as an argument list.

    Precedence: ``override`` (from configuration), ``$VISUAL``, ``$EDITOR``,
    then the platform default.
    """
    env = os.environ if environ is None else environ
    for candidate in (override, env.get("VISUAL"), env.get("EDITOR")):
        if candidate and candidate.strip():
            return shlex.split(candidate.strip())
    return [default_editor()]


def launch_editor(
    path: Path | str,
    *,
    editor: Optional[List[str]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> int:
    """Open ``path`` in the editor, wait for it to exit, and return its exit code.

    The child inherits stdin/stdout/stderr so it takes over the terminal;
    restoring terminal modes afterwards is the caller's concern.
    """
    command = [*(editor or resolve_editor(environ)), str(path)]
    LOGGER.info("Opening %s with %s", path, command[0])
    try:
        process = subprocess.run(command, check=False)  # noqa: S603 - command from user configuration
    except OSError as error:
        raise EditorLaunchError(f"Failed to start editor {command[0]!r}: {error}") from error
    return process.returncode
