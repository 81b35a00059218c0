"""Track, file and dependency route handlers."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi.responses import JSONResponse
from starlette.requests import Request

from track.core import TrackDB
from track.db_base import ACTIVE_STATUSES, TrackNotFoundError
from track.graph import DependencyCycleError
from track.web_routes.common import (
    _error_response,
    _optional_str,
    _parse_bool,
    _parse_json_body,
    _string_list,
    _worktree_from_body,
)

if TYPE_CHECKING:
    from fastapi import APIRouter


# ---------------------------------------------------------------------------
# Router factory
# ---------------------------------------------------------------------------


def create_router() -> APIRouter:
    """Build the APIRouter for track, file and dependency endpoints.

    Handlers are async and run on the event loop thread; each request gets
    its own ``TrackDB`` from ``_get_db`` and releases it afterwards.
    """
    from fastapi import APIRouter, Depends

    from track.web import _get_db

    router = APIRouter()

    @router.get("/status")
    async def api_status(
        status: str | None = None,
        worktree: str | None = None,
        active: str | None = None,
        db: TrackDB = Depends(_get_db),
    ) -> JSONResponse:
        """All tracks with derived fields; filter by ``status`` (comma separated), ``worktree`` or ``active``."""
        active_only = _parse_bool(active, "active")
        if isinstance(active_only, JSONResponse):
            return active_only
        statuses: list[str] | None = None
        if status:
            statuses = [s.strip() for s in status.split(",") if s.strip()]
        elif active_only:
            statuses = list(ACTIVE_STATUSES)
        try:
            tracks = db.get_status(statuses=statuses, worktree=worktree, include_root=active_only)
        except ValueError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400, {"param": "status"})
        return JSONResponse({"tracks": [t.to_dict() for t in tracks]})

    @router.get("/tracks/{track_id}")
    async def api_track_detail(track_id: str, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        try:
            track = db.get_track_details(track_id)
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        return JSONResponse(track.to_dict())

    @router.post("/tracks")
    async def api_create_track(request: Request, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        """Create a track under ``parent_id`` (default: the root)."""
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        if "title" not in body:
            return _error_response("title is required", "VALIDATION_ERROR", 400, {"field": "title"})
        text: dict[str, str | None] = {}
        for key in ("parent_id", "summary", "next_prompt"):
            value = _optional_str(body, key)
            if isinstance(value, JSONResponse):
                return value
            text[key] = value
        lists: dict[str, list[str]] = {}
        for key in ("files", "blocks", "blocked_by"):
            parsed = _string_list(body, key)
            if isinstance(parsed, JSONResponse):
                return parsed
            lists[key] = parsed
        worktree = _worktree_from_body(body)
        if isinstance(worktree, JSONResponse):
            return worktree
        try:
            track = db.create_track(
                body["title"],
                parent_id=text["parent_id"],
                summary=text["summary"] or "",
                next_prompt=text["next_prompt"] or "",
                files=lists["files"],
                blocks=lists["blocks"],
                blocked_by=lists["blocked_by"],
                worktree=worktree,
            )
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        except DependencyCycleError as e:
            return _error_response(str(e), "DEPENDENCY_CYCLE", 409, {"blocking_id": e.blocking_id, "blocked_id": e.blocked_id})
        except ValueError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400)
        return JSONResponse(track.to_dict(), status_code=201)

    @router.patch("/tracks/{track_id}")
    async def api_update_track(track_id: str, request: Request, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        """Record progress; ``status`` defaults to in_progress, ``summary`` and ``next_prompt`` keep their values when omitted."""
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        text: dict[str, str | None] = {}
        for key in ("status", "summary", "next_prompt"):
            value = _optional_str(body, key)
            if isinstance(value, JSONResponse):
                return value
            text[key] = value
        lists: dict[str, list[str]] = {}
        for key in ("files", "blocks", "unblocks"):
            parsed = _string_list(body, key)
            if isinstance(parsed, JSONResponse):
                return parsed
            lists[key] = parsed
        worktree = _worktree_from_body(body)
        if isinstance(worktree, JSONResponse):
            return worktree
        try:
            result = db.update_track(
                track_id,
                summary=text["summary"],
                next_prompt=text["next_prompt"],
                status=text["status"],
                files=lists["files"],
                worktree=worktree,
                blocks=lists["blocks"],
                unblocks=lists["unblocks"],
            )
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        except DependencyCycleError as e:
            return _error_response(str(e), "DEPENDENCY_CYCLE", 409, {"blocking_id": e.blocking_id, "blocked_id": e.blocked_id})
        except ValueError as e:
            return _error_response(str(e), "VALIDATION_ERROR", 400)
        return JSONResponse({**result, "track": db.get_track_details(track_id).to_dict()})

    @router.post("/tracks/{track_id}/files")
    async def api_add_files(track_id: str, request: Request, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        files = _string_list(body, "files")
        if isinstance(files, JSONResponse):
            return files
        if not files:
            return _error_response("files must be a non-empty list", "VALIDATION_ERROR", 400, {"field": "files"})
        try:
            added = db.add_files(track_id, files)
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        return JSONResponse({"track_id": track_id, "added": added, "files": db.get_files(track_id)})

    @router.post("/tracks/{track_id}/dependencies")
    async def api_add_dependency(track_id: str, request: Request, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        """Make ``blocking_id`` block this track."""
        body = await _parse_json_body(request)
        if isinstance(body, JSONResponse):
            return body
        blocking_id = body.get("blocking_id")
        if not isinstance(blocking_id, str) or not blocking_id.strip():
            return _error_response("blocking_id is required", "VALIDATION_ERROR", 400, {"field": "blocking_id"})
        try:
            change = db.add_dependency(blocking_id.strip(), track_id)
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        except DependencyCycleError as e:
            return _error_response(str(e), "DEPENDENCY_CYCLE", 409, {"blocking_id": e.blocking_id, "blocked_id": e.blocked_id})
        return JSONResponse(change, status_code=201)

    @router.delete("/tracks/{track_id}/dependencies/{blocking_id}")
    async def api_remove_dependency(track_id: str, blocking_id: str, db: TrackDB = Depends(_get_db)) -> JSONResponse:
        try:
            change = db.remove_dependency(blocking_id, track_id)
        except TrackNotFoundError as e:
            return _error_response(str(e), "NOT_FOUND", 404, {"track_id": e.track_id})
        return JSONResponse(change)

    return router
