"""Shared helpers for HTTP route modules."""

from __future__ import annotations

import json
import logging
from typing import TYPE_CHECKING, Any

from track.types.api import ErrorCode
from track.worktree import CLEARED, UNCHANGED, WorktreeUpdate

if TYPE_CHECKING:
    from fastapi.responses import JSONResponse
    from starlette.requests import Request

logger = logging.getLogger(__name__)

_BOOL_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_BOOL_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


def _error_response(
    message: str,
    code: ErrorCode,
    status_code: int,
    details: dict[str, Any] | None = None,
) -> JSONResponse:
    """Return a structured error response and log the error."""
    from fastapi.responses import JSONResponse

    logger.warning("API error [%s] %s: %s", status_code, code, message)
    return JSONResponse(
        {"error": {"message": message, "code": code, "details": details or {}}},
        status_code=status_code,
    )


async def _parse_json_body(request: Request) -> dict[str, Any] | JSONResponse:
    """Parse and validate a JSON object body, returning 400 on failure."""
    try:
        body = await request.json()
    except (json.JSONDecodeError, ValueError, UnicodeDecodeError):
        return _error_response("Invalid JSON body", "INVALID_JSON", 400)
    if not isinstance(body, dict):
        return _error_response("Request body must be a JSON object", "INVALID_JSON", 400)
    return body


def _parse_bool(value: str | None, name: str) -> bool | JSONResponse:
    if value is None:
        return False
    lowered = value.strip().lower()
    if lowered in _BOOL_TRUE_VALUES:
        return True
    if lowered in _BOOL_FALSE_VALUES:
        return False
    return _error_response(f'Invalid value for {name}: "{value}". Must be true or false.', "VALIDATION_ERROR", 400, {"param": name})


def _string_list(body: dict[str, Any], key: str) -> list[str] | JSONResponse:
    """Read an optional list-of-strings field from a request body."""
    value = body.get(key)
    if value is None:
        return []
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        return _error_response(f"{key} must be a list of strings", "VALIDATION_ERROR", 400, {"field": key})
    return value


def _optional_str(body: dict[str, Any], key: str) -> str | None | JSONResponse:
    value = body.get(key)
    if value is None or isinstance(value, str):
        return value
    return _error_response(f"{key} must be a string", "VALIDATION_ERROR", 400, {"field": key})


def _worktree_from_body(body: dict[str, Any]) -> WorktreeUpdate | JSONResponse:
    """Absent leaves the label alone, ``null`` clears it, a string sets it."""
    if "worktree" not in body:
        return UNCHANGED
    value = body["worktree"]
    if value is None:
        return CLEARED
    if isinstance(value, str):
        return value
    return _error_response("worktree must be a string or null", "VALIDATION_ERROR", 400, {"field": "worktree"})
