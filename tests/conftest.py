"""Shared pytest fixtures for track tests."""

from __future__ import annotations

from collections.abc import Generator
from dataclasses import dataclass
from pathlib import Path

import pytest
from click.testing import CliRunner

from track.core import TrackDB, init_project
from tests._db_factory import make_db


@dataclass
class PopulatedDB:
    db: TrackDB
    ids: dict[str, str]


@pytest.fixture
def db(tmp_path: Path) -> Generator[TrackDB, None, None]:
    """Fresh TrackDB with a root track for each test."""
    d = make_db(tmp_path)
    yield d
    d.close()


@pytest.fixture
def populated_db(db: TrackDB) -> PopulatedDB:
    """TrackDB pre-populated with a small hierarchy and one dependency.

    Creates:
    - root (super)
    - feature F under root, with tasks T1 and T2
    - task B under root that blocks T2 (so T2 starts blocked)
    """
    root = db.get_root_track()
    assert root is not None
    feature = db.create_track("Feature F", summary="feature work")
    t1 = db.create_track("Task T1", parent_id=feature.id, files=["src/a.py"])
    t2 = db.create_track("Task T2", parent_id=feature.id)
    b = db.create_track("Blocker B", blocks=[t2.id])
    return PopulatedDB(db=db, ids={"root": root.id, "feature": feature.id, "t1": t1.id, "t2": t2.id, "b": b.id})


@pytest.fixture
def track_project(tmp_path: Path) -> Path:
    """A tmp directory set up as a track project (.track/ with config, db and root).

    Returns the project root (parent of .track/).
    """
    init_project(tmp_path, name="demo", prefix="proj")
    return tmp_path


@pytest.fixture
def cli_runner() -> CliRunner:
    """Click CLI test runner."""
    return CliRunner()
