"""Upgrades for track stores created by older releases.

The schema version lives in ``PRAGMA user_version``. ``MIGRATIONS`` maps a
version to the step that lifts a store from it to the next one; the runner
walks the steps in order, each inside its own ``BEGIN IMMEDIATE`` so a failed
step leaves the store at the last good version. Steps only use idempotent DDL
(``IF NOT EXISTS`` or an explicit column check) and may be re-run.

Stores written before versioning existed report ``user_version = 0`` while
already holding a ``tracks`` table; ``stamp_legacy_store`` marks those as v1.
"""

from __future__ import annotations

import logging
import sqlite3
from typing import Protocol

logger = logging.getLogger(__name__)


class MigrationFn(Protocol):
    def __call__(self, conn: sqlite3.Connection) -> None: ...


# ---------------------------------------------------------------------------
# Steps, keyed by the version they upgrade from
# ---------------------------------------------------------------------------


def migrate_v1_to_v2(conn: sqlite3.Connection) -> None:
    """v1 → v2: nullable ``tracks.worktree`` label plus its index."""
    add_column(conn, "tracks", "worktree", "TEXT", "NULL")
    add_index(conn, "idx_tracks_worktree", "tracks", ["worktree"])


def migrate_v2_to_v3(conn: sqlite3.Connection) -> None:
    """v2 → v3: the ``track_dependencies`` edge table, indexed both ways."""
    # execute(), not executescript(): executescript commits implicitly.
    conn.execute("""\
        CREATE TABLE IF NOT EXISTS track_dependencies (
            blocking_track_id  TEXT NOT NULL REFERENCES tracks(id),
            blocked_track_id   TEXT NOT NULL REFERENCES tracks(id),
            PRIMARY KEY (blocking_track_id, blocked_track_id)
        )""")
    add_index(conn, "idx_dependencies_blocking", "track_dependencies", ["blocking_track_id"])
    add_index(conn, "idx_dependencies_blocked", "track_dependencies", ["blocked_track_id"])


MIGRATIONS: dict[int, MigrationFn] = {
    1: migrate_v1_to_v2,
    2: migrate_v2_to_v3,
}


class MigrationError(Exception):
    """A migration step failed; the store stays at ``from_version``."""

    def __init__(self, from_version: int, to_version: int, cause: Exception) -> None:
        self.from_version = from_version
        self.to_version = to_version
        self.cause = cause
        super().__init__(f"Migration v{from_version} → v{to_version} failed: {cause}")


def stamp_legacy_store(conn: sqlite3.Connection) -> bool:
    """Mark an unversioned store that already holds tracks as schema v1.

    Returns True when the store was stamped.
    """
    row = conn.execute("SELECT 1 FROM sqlite_master WHERE type = 'table' AND name = 'tracks'").fetchone()
    if row is None:
        return False
    logger.info("Unversioned track store found, treating it as schema v1")
    conn.execute("PRAGMA user_version = 1")
    return True


def _run_step(conn: sqlite3.Connection, version: int, step: MigrationFn) -> None:
    logger.info("Migrating track store v%d → v%d", version, version + 1)
    conn.execute("BEGIN IMMEDIATE")
    try:
        step(conn)
        conn.execute(f"PRAGMA user_version = {version + 1}")
    except Exception as exc:
        conn.rollback()
        raise MigrationError(version, version + 1, exc) from exc
    conn.commit()


def apply_pending_migrations(conn: sqlite3.Connection, target_version: int) -> int:
    """Bring the store up to *target_version* and return how many steps ran.

    Raises ``ValueError`` for a store newer than *target_version* and
    ``MigrationError`` when a step is missing or fails.
    """
    start: int = conn.execute("PRAGMA user_version").fetchone()[0]
    if start > target_version:
        msg = f"Database schema v{start} is newer than this version of track (expects v{target_version}). Downgrade is not supported."
        raise ValueError(msg)

    for version in range(start, target_version):
        step = MIGRATIONS.get(version)
        if step is None:
            msg = f"No migration registered for v{version} → v{version + 1}"
            raise MigrationError(version, version + 1, KeyError(msg))
        _run_step(conn, version, step)
    return target_version - start


# ---------------------------------------------------------------------------
# DDL helpers
# ---------------------------------------------------------------------------


def add_column(conn: sqlite3.Connection, table: str, column: str, col_type: str = "TEXT", default: str | None = "''") -> None:
    """``ALTER TABLE ... ADD COLUMN`` unless *column* is already there.

    *default* is a SQL literal such as ``"''"`` or ``"NULL"``; None leaves
    out the DEFAULT clause.
    """
    columns = {row[1] for row in conn.execute(f"PRAGMA table_info({table})").fetchall()}
    if column in columns:
        return
    suffix = f" DEFAULT {default}" if default is not None else ""
    conn.execute(f"ALTER TABLE {table} ADD COLUMN {column} {col_type}{suffix}")


def add_index(conn: sqlite3.Connection, index_name: str, table: str, columns: list[str]) -> None:
    conn.execute(f"CREATE INDEX IF NOT EXISTS {index_name} ON {table}({', '.join(columns)})")
