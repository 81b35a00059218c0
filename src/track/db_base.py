"""Shared utilities, status vocabulary, errors and Protocol for DB mixins."""

from __future__ import annotations

import contextlib
import sqlite3
from collections.abc import Iterator
from datetime import UTC, datetime
from pathlib import Path
from typing import TYPE_CHECKING, Literal, Protocol

if TYPE_CHECKING:
    from track.core import Track

Status = Literal["planned", "in_progress", "done", "blocked", "superseded"]
Kind = Literal["super", "feature", "task"]

VALID_STATUSES: tuple[Status, ...] = ("planned", "in_progress", "done", "blocked", "superseded")
# Shown by ``track status`` unless --all is given.
ACTIVE_STATUSES: tuple[Status, ...] = ("planned", "in_progress", "blocked")


def _now_iso() -> str:
    return datetime.now(UTC).isoformat()


class TrackNotFoundError(KeyError):
    """A referenced track id does not exist.

    Subclasses KeyError so lookups read like dict access, but renders its
    message without KeyError's repr quoting.
    """

    def __init__(self, track_id: str) -> None:
        self.track_id = track_id
        super().__init__(f"Unknown track id: {track_id}")

    def __str__(self) -> str:
        return str(self.args[0])


class DBMixinProtocol(Protocol):
    """Shared attributes and methods that DB mixins access via self.

    Mixins inherit this Protocol so mypy can type-check self.conn,
    self.get_track(), etc. without ``type: ignore`` on every call.
    Actual implementations are provided by TrackDB at composition time.
    """

    db_path: Path
    prefix: str
    _conn: sqlite3.Connection | None

    @property
    def conn(self) -> sqlite3.Connection: ...

    def _transaction(self) -> contextlib.AbstractContextManager[sqlite3.Connection]: ...

    def get_track(self, track_id: str) -> Track: ...


def _in_clause(values: list[str]) -> str:
    return ",".join("?" * len(values))


@contextlib.contextmanager
def _immediate(conn: sqlite3.Connection) -> Iterator[sqlite3.Connection]:
    """Run a block inside ``BEGIN IMMEDIATE``; commit on success, roll back on error."""
    conn.execute("BEGIN IMMEDIATE")
    try:
        yield conn
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
