"""Utilities for generating and validating plan slugs."""

from __future__ import annotations

import re
import secrets
from typing import Pattern

_SLUG_PATTERN: Pattern[str] = re.compile(r"^[A-Za-z0-9_-]+$")

SLUG_BYTES = 6


def generate_slug(nbytes: int = SLUG_BYTES) -> str:
    """Return a short random hex token (12 characters by default)."""
    return secrets.token_hex(nbytes)


def is_valid_slug(value: str | None) -> bool:
    """Return ``True`` when ``value`` is safe to embed in a plan file name."""
    if not value:
        return False
    return bool(_SLUG_PATTERN.fullmatch(value))


def require_slug(value: str | None) -> str:
    """Return ``value`` unchanged or raise ``ValueError`` if it is not a safe slug."""
    if not is_valid_slug(value):
        raise ValueError(f"Invalid plan slug: {value!r}")
    return value  # type: ignore[return-value]
