"""Shared TrackDB factory for test fixtures.

Importable by any conftest.py or test file in the test suite.
"""

from __future__ import annotations

from pathlib import Path

from track.core import TrackDB


def make_db(
    tmp_path: Path,
    *,
    prefix: str = "test",
    root_title: str | None = "Project",
    check_same_thread: bool = True,
) -> TrackDB:
    """Factory for TrackDB instances in tests.

    Creates the root track unless *root_title* is None.
    """
    d = TrackDB(tmp_path / "track.db", prefix=prefix, check_same_thread=check_same_thread)
    d.initialize()
    if root_title is not None:
        d.create_root(root_title)
    return d


def status_of(db: TrackDB, track_id: str) -> str:
    """Current stored status of *track_id*."""
    return db.get_track(track_id).status
