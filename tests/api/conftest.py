"""Fixtures for HTTP API tests (FastAPI)."""

from __future__ import annotations

from collections.abc import AsyncIterator, Generator
from pathlib import Path

import pytest
from httpx import ASGITransport, AsyncClient

import track.web as web_module
from track.core import TRACK_DIR_NAME, TrackDB
from track.web import create_app


@pytest.fixture
def api_project(track_project: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the API module at a freshly initialized project."""
    monkeypatch.setattr(web_module, "_track_dir", track_project / TRACK_DIR_NAME)
    return track_project


@pytest.fixture
async def client(api_project: Path) -> AsyncIterator[AsyncClient]:
    app = create_app()
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as c:
        yield c


@pytest.fixture
def project_db(api_project: Path) -> Generator[TrackDB, None, None]:
    """Direct handle on the project database for arranging test data."""
    db = TrackDB.from_project(api_project)
    yield db
    db.close()
