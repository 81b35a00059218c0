"""MCP tools for tracks and their blocking dependencies."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from mcp.types import TextContent, Tool

from track.db_base import ACTIVE_STATUSES, VALID_STATUSES, TrackNotFoundError
from track.graph import DependencyCycleError
from track.mcp_tools.common import _error, _string_list, _text
from track.worktree import CLEARED, UNCHANGED, WorktreeUpdate

_ID_LIST = {"type": "array", "items": {"type": "string"}}


def register() -> tuple[list[Tool], dict[str, Callable[..., Any]]]:
    """Return (tool_definitions, handler_map) for track tools."""
    tools = [
        Tool(
            name="get_status",
            description="All tracks with kind, children, files and blocking edges. Defaults to active tracks plus the root.",
            inputSchema={
                "type": "object",
                "properties": {
                    "all": {"type": "boolean", "default": False, "description": "Include done and superseded tracks"},
                    "statuses": {"type": "array", "items": {"type": "string", "enum": list(VALID_STATUSES)}},
                    "worktree": {"type": "string", "description": "Only tracks labelled with this worktree"},
                },
            },
        ),
        Tool(
            name="get_track",
            description="Get one track with its derived fields",
            inputSchema={
                "type": "object",
                "properties": {"id": {"type": "string", "description": "Track ID"}},
                "required": ["id"],
            },
        ),
        Tool(
            name="create_track",
            description="Create a track under a parent (default: the root). Tracks it blocks that are planned become blocked.",
            inputSchema={
                "type": "object",
                "properties": {
                    "title": {"type": "string"},
                    "parent_id": {"type": "string"},
                    "summary": {"type": "string", "default": ""},
                    "next_prompt": {"type": "string", "default": ""},
                    "files": _ID_LIST,
                    "blocks": {**_ID_LIST, "description": "Track IDs this track blocks"},
                    "blocked_by": {**_ID_LIST, "description": "Track IDs that block this track"},
                    "worktree": {"type": ["string", "null"], "description": "Omit to inherit from the parent, null for none"},
                },
                "required": ["title"],
            },
        ),
        Tool(
            name="update_track",
            description=(
                "Record progress on a track. status defaults to in_progress; marking done unblocks "
                "tracks whose blockers are now all done and reports them in unblocked_ids."
            ),
            inputSchema={
                "type": "object",
                "properties": {
                    "id": {"type": "string"},
                    "summary": {"type": "string"},
                    "next_prompt": {"type": "string"},
                    "status": {"type": "string", "enum": list(VALID_STATUSES)},
                    "files": _ID_LIST,
                    "blocks": {**_ID_LIST, "description": "Track IDs this track now blocks"},
                    "unblocks": {**_ID_LIST, "description": "Track IDs this track no longer blocks"},
                    "worktree": {"type": ["string", "null"], "description": "Omit to keep, null to clear"},
                },
                "required": ["id", "summary", "next_prompt"],
            },
        ),
        Tool(
            name="add_dependency",
            description="blocking_id blocks blocked_id. Rejected if it would create a cycle.",
            inputSchema={
                "type": "object",
                "properties": {
                    "blocking_id": {"type": "string", "description": "Track that blocks"},
                    "blocked_id": {"type": "string", "description": "Track that is blocked"},
                },
                "required": ["blocking_id", "blocked_id"],
            },
        ),
        Tool(
            name="remove_dependency",
            description="Remove a blocking edge. A blocked track left without blockers returns to planned.",
            inputSchema={
                "type": "object",
                "properties": {
                    "blocking_id": {"type": "string", "description": "Track that was blocking"},
                    "blocked_id": {"type": "string", "description": "Track that was blocked"},
                },
                "required": ["blocking_id", "blocked_id"],
            },
        ),
    ]

    handlers: dict[str, Callable[..., Any]] = {
        "get_status": _handle_get_status,
        "get_track": _handle_get_track,
        "create_track": _handle_create_track,
        "update_track": _handle_update_track,
        "add_dependency": _handle_add_dependency,
        "remove_dependency": _handle_remove_dependency,
    }

    return tools, handlers


def _worktree_argument(arguments: dict[str, Any]) -> WorktreeUpdate:
    if "worktree" not in arguments:
        return UNCHANGED
    value = arguments["worktree"]
    return CLEARED if value is None else str(value)


def _cycle_error(e: DependencyCycleError) -> list[TextContent]:
    return _error(str(e), "DEPENDENCY_CYCLE", blocking_id=e.blocking_id, blocked_id=e.blocked_id)


# ---------------------------------------------------------------------------
# Handlers
# ---------------------------------------------------------------------------


async def _handle_get_status(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    tracker = _get_db()
    statuses = _string_list(arguments, "statuses")
    if statuses is None:
        return _error("statuses must be a list of strings", "VALIDATION_ERROR")
    if not statuses and not arguments.get("all"):
        statuses = list(ACTIVE_STATUSES)
    try:
        tracks = tracker.get_status(statuses=statuses or None, worktree=arguments.get("worktree"), include_root=True)
    except ValueError as e:
        return _error(str(e), "VALIDATION_ERROR")
    return _text({"tracks": [t.to_dict() for t in tracks]})


async def _handle_get_track(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    try:
        track = _get_db().get_track_details(arguments["id"])
    except TrackNotFoundError as e:
        return _error(str(e), "NOT_FOUND", track_id=e.track_id)
    return _text(track.to_dict())


async def _handle_create_track(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    lists: dict[str, list[str]] = {}
    for key in ("files", "blocks", "blocked_by"):
        parsed = _string_list(arguments, key)
        if parsed is None:
            return _error(f"{key} must be a list of strings", "VALIDATION_ERROR")
        lists[key] = parsed
    try:
        track = _get_db().create_track(
            arguments.get("title", ""),
            parent_id=arguments.get("parent_id"),
            summary=arguments.get("summary") or "",
            next_prompt=arguments.get("next_prompt") or "",
            files=lists["files"],
            blocks=lists["blocks"],
            blocked_by=lists["blocked_by"],
            worktree=_worktree_argument(arguments),
        )
    except TrackNotFoundError as e:
        return _error(str(e), "NOT_FOUND", track_id=e.track_id)
    except DependencyCycleError as e:
        return _cycle_error(e)
    except ValueError as e:
        return _error(str(e), "VALIDATION_ERROR")
    return _text(track.to_dict())


async def _handle_update_track(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    lists: dict[str, list[str]] = {}
    for key in ("files", "blocks", "unblocks"):
        parsed = _string_list(arguments, key)
        if parsed is None:
            return _error(f"{key} must be a list of strings", "VALIDATION_ERROR")
        lists[key] = parsed
    try:
        result = _get_db().update_track(
            arguments["id"],
            summary=arguments.get("summary"),
            next_prompt=arguments.get("next_prompt"),
            status=arguments.get("status"),
            files=lists["files"],
            worktree=_worktree_argument(arguments),
            blocks=lists["blocks"],
            unblocks=lists["unblocks"],
        )
    except TrackNotFoundError as e:
        return _error(str(e), "NOT_FOUND", track_id=e.track_id)
    except DependencyCycleError as e:
        return _cycle_error(e)
    except ValueError as e:
        return _error(str(e), "VALIDATION_ERROR")
    return _text(result)


async def _handle_add_dependency(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    try:
        change = _get_db().add_dependency(arguments["blocking_id"], arguments["blocked_id"])
    except TrackNotFoundError as e:
        return _error(str(e), "NOT_FOUND", track_id=e.track_id)
    except DependencyCycleError as e:
        return _cycle_error(e)
    return _text(change)


async def _handle_remove_dependency(arguments: dict[str, Any]) -> list[TextContent]:
    from track.mcp_server import _get_db

    try:
        change = _get_db().remove_dependency(arguments["blocking_id"], arguments["blocked_id"])
    except TrackNotFoundError as e:
        return _error(str(e), "NOT_FOUND", track_id=e.track_id)
    return _text(change)
