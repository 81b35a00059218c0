"""Result envelopes returned by engine operations and the HTTP/MCP surfaces."""

from __future__ import annotations

from typing import Any, Literal, NotRequired, TypedDict

ErrorCode = Literal["VALIDATION_ERROR", "NOT_FOUND", "DEPENDENCY_CYCLE", "INVALID_JSON"]


class UpdateResult(TypedDict):
    """Outcome of ``TrackDB.update_track``."""

    id: str
    status: str
    files_added: list[str]
    blocks_added: list[str]
    blocks_removed: list[str]
    unblocked_ids: list[str]


class DependencyChange(TypedDict):
    """Outcome of a single edge insertion or removal."""

    blocking_id: str
    blocked_id: str
    changed: bool
    blocked_status: str


class ErrorResponse(TypedDict):
    error: str
    code: ErrorCode
    details: NotRequired[dict[str, Any]]
