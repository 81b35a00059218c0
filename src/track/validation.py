"""Shared validation functions for all entry points.

Pure functions: no MCP, FastAPI, or Click dependencies.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from track.db_base import VALID_STATUSES, Status

_MAX_TITLE_LENGTH = 500


def sanitize_title(value: Any) -> tuple[str, str | None]:
    """Validate and clean a track title.

    Returns (cleaned_title, None) on success or ("", error_message) on failure.
    """
    if not isinstance(value, str):
        return ("", "title must be a string")
    cleaned = value.strip()
    if not cleaned:
        return ("", "Title cannot be empty")
    if len(cleaned) > _MAX_TITLE_LENGTH:
        return ("", f"Title must be at most {_MAX_TITLE_LENGTH} characters")
    return (cleaned, None)


def validate_status(value: str) -> Status:
    """Return *value* as a Status or raise ValueError listing the valid ones."""
    if value not in VALID_STATUSES:
        msg = f"Invalid status '{value}'. Valid statuses: {', '.join(VALID_STATUSES)}"
        raise ValueError(msg)
    return value  # type: ignore[return-value]


def validate_statuses(values: Iterable[str]) -> list[Status]:
    return [validate_status(v) for v in values]


def validate_worktree_label(value: str) -> str:
    cleaned = value.strip()
    if not cleaned:
        msg = "Worktree label cannot be empty; clear it explicitly instead"
        raise ValueError(msg)
    return cleaned


def normalize_ids(values: Iterable[str] | None) -> list[str]:
    """Strip, drop blanks and de-duplicate while keeping first-seen order."""
    if not values:
        return []
    seen: dict[str, None] = {}
    for v in values:
        cleaned = v.strip()
        if cleaned:
            seen.setdefault(cleaned, None)
    return list(seen)
