"""HTTP API for track.

Run via ``track serve`` (defaults to http://127.0.0.1:8765). A module-level
``_track_dir`` is set at startup; every request opens its own ``TrackDB``
through ``Depends(_get_db)`` and closes it when the response is sent.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from pathlib import Path

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from track import __version__
from track.core import DB_FILENAME, TrackDB, find_track_root, read_config
from track.logging import setup_logging

logger = logging.getLogger(__name__)

_track_dir: Path | None = None


async def _get_db() -> AsyncIterator[TrackDB]:
    """Per-request database handle, released on every exit path."""
    if _track_dir is None:
        raise HTTPException(status_code=500, detail="Project not configured")
    config = read_config(_track_dir)
    db = TrackDB(_track_dir / DB_FILENAME, prefix=config.get("prefix", ""), check_same_thread=False)
    try:
        yield db
    finally:
        db.close()


def create_app() -> FastAPI:
    """Create the FastAPI application with all track endpoints under /api."""
    from track.web_routes.tracks import create_router

    app = FastAPI(title="track", version=__version__, docs_url=None, redoc_url=None)
    app.include_router(create_router(), prefix="/api")

    @app.get("/api/health")
    async def api_health() -> JSONResponse:
        return JSONResponse({"status": "ok", "version": __version__})

    return app


def main(*, host: str = "127.0.0.1", port: int = 8765, project_path: Path | None = None) -> None:
    """Start the API server for the project containing *project_path* (default cwd)."""
    import uvicorn

    global _track_dir

    _track_dir = find_track_root(project_path)
    setup_logging(_track_dir)
    with TrackDB(_track_dir / DB_FILENAME) as db:
        db.initialize()

    app = create_app()
    logger.info("Serving %s on %s:%d", _track_dir, host, port)
    print(f"track API: http://{host}:{port}/api/status")
    uvicorn.run(app, host=host, port=port, log_level="warning")
