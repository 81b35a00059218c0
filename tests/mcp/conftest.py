"""Fixtures for MCP server tests."""

from __future__ import annotations

from pathlib import Path

import pytest

import track.mcp_server as mcp_mod
from track.core import TRACK_DIR_NAME


@pytest.fixture
def mcp_project(track_project: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Point the MCP module globals at a freshly initialized project."""
    monkeypatch.setattr(mcp_mod, "_track_dir", track_project / TRACK_DIR_NAME)
    monkeypatch.setattr(mcp_mod, "_logger", None)
    return track_project
