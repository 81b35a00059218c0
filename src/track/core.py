"""Core database operations for track.

Single source of truth for all SQLite operations. The CLI, the HTTP API and
the MCP server all import from this module; each opens a ``TrackDB`` for one
logical operation and closes it again.

Convention-based discovery: each project has a `.track/` directory containing
`track.db` (SQLite), `config.json` (project name, id prefix) and `track.log`.
"""

from __future__ import annotations

import contextlib
import json
import logging
import shutil
import sqlite3
import uuid
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from track.db_base import ACTIVE_STATUSES, Kind, Status, TrackNotFoundError, _immediate
from track.db_dependencies import DependenciesMixin
from track.db_lifecycle import LifecycleMixin
from track.db_schema import CURRENT_SCHEMA_VERSION, SCHEMA_SQL
from track.db_tracks import TracksMixin
from track.tree import derive_structure
from track.types.core import DependencyEdges, ProjectConfig, TrackDetailsDict, TrackDict
from track.validation import validate_statuses

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Convention-based discovery
# ---------------------------------------------------------------------------

TRACK_DIR_NAME = ".track"
DB_FILENAME = "track.db"
CONFIG_FILENAME = "config.json"


def find_track_root(start: Path | None = None) -> Path:
    """Walk up from start (default cwd) looking for .track/ directory.

    Returns the .track/ directory path (not the project root).
    """
    current = (start or Path.cwd()).resolve()
    for parent in [current, *current.parents]:
        candidate = parent / TRACK_DIR_NAME
        if candidate.is_dir():
            return candidate
    msg = f"No {TRACK_DIR_NAME}/ directory found in {current} or any parent. Run 'track init' first."
    raise FileNotFoundError(msg)


def read_config(track_dir: Path) -> ProjectConfig:
    """Read .track/config.json. Returns defaults if missing or corrupt."""
    defaults = ProjectConfig(name=track_dir.resolve().parent.name, prefix="", version=1)
    config_path = track_dir / CONFIG_FILENAME
    if not config_path.exists():
        return defaults
    try:
        result: ProjectConfig = json.loads(config_path.read_text())
    except (json.JSONDecodeError, OSError) as exc:
        logger.warning("Failed to read %s, using defaults: %s", config_path, exc)
        return defaults
    return result


def write_config(track_dir: Path, config: dict[str, Any] | ProjectConfig) -> None:
    """Write .track/config.json."""
    config_path = track_dir / CONFIG_FILENAME
    config_path.write_text(json.dumps(config, indent=2) + "\n")


def init_project(project_root: Path, *, name: str | None = None, prefix: str = "", force: bool = False) -> Path:
    """Create .track/ under *project_root* with a config, a database and the root track.

    Raises FileExistsError when the project is already initialized and
    *force* is not set; with *force* the existing directory is replaced.
    """
    track_dir = project_root / TRACK_DIR_NAME
    if track_dir.exists():
        if not force:
            msg = f"{track_dir} already exists. Use --force to reinitialize."
            raise FileExistsError(msg)
        shutil.rmtree(track_dir)
    track_dir.mkdir(parents=True)

    project_name = (name or "").strip() or project_root.resolve().name
    write_config(track_dir, ProjectConfig(name=project_name, prefix=prefix, version=1))
    with TrackDB(track_dir / DB_FILENAME, prefix=prefix) as db:
        db.initialize()
        db.create_root(project_name)
    return track_dir


# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass
class Track:
    id: str
    title: str
    parent_id: str | None = None
    summary: str = ""
    next_prompt: str = ""
    status: Status = "planned"
    worktree: str | None = None
    created_at: str = ""
    updated_at: str = ""

    def to_dict(self) -> TrackDict:
        return {
            "id": self.id,
            "title": self.title,
            "parent_id": self.parent_id,
            "summary": self.summary,
            "next_prompt": self.next_prompt,
            "status": self.status,
            "worktree": self.worktree,
            "created_at": self.created_at,  # type: ignore[typeddict-item]
            "updated_at": self.updated_at,  # type: ignore[typeddict-item]
        }


@dataclass
class TrackDetails(Track):
    # Computed on read from the full track and edge sets (never stored)
    kind: Kind = "task"
    children: list[str] = field(default_factory=list)
    files: list[str] = field(default_factory=list)
    blocks: list[str] = field(default_factory=list)
    blocked_by: list[str] = field(default_factory=list)

    def to_dict(self) -> TrackDetailsDict:  # type: ignore[override]
        base = super().to_dict()
        return {
            **base,
            "kind": self.kind,
            "children": self.children,
            "files": self.files,
            "blocks": self.blocks,
            "blocked_by": self.blocked_by,
        }


# ---------------------------------------------------------------------------
# TrackDB: the core
# ---------------------------------------------------------------------------


class TrackDB(LifecycleMixin, DependenciesMixin, TracksMixin):
    """Direct SQLite operations. No daemon, no cache. Importable by CLI, API and MCP."""

    def __init__(self, db_path: str | Path, *, prefix: str = "", check_same_thread: bool = True) -> None:
        self.db_path = Path(db_path)
        self.prefix = prefix
        self._conn: sqlite3.Connection | None = None
        self._check_same_thread = check_same_thread

    @classmethod
    def from_project(cls, project_path: Path | None = None) -> TrackDB:
        """Create a TrackDB by discovering .track/ from project_path (or cwd)."""
        track_dir = find_track_root(project_path)
        config = read_config(track_dir)
        db = cls(track_dir / DB_FILENAME, prefix=config.get("prefix", ""))
        db.initialize()
        return db

    def __enter__(self) -> TrackDB:
        return self

    def __exit__(self, *exc: object) -> None:
        self.close()

    @property
    def conn(self) -> sqlite3.Connection:
        if self._conn is None:
            self._conn = sqlite3.connect(
                str(self.db_path),
                isolation_level="DEFERRED",
                check_same_thread=self._check_same_thread,
            )
            self._conn.row_factory = sqlite3.Row
            self._conn.execute("PRAGMA journal_mode=WAL")
            self._conn.execute("PRAGMA foreign_keys=ON")
            self._conn.execute("PRAGMA busy_timeout=5000")
        return self._conn

    def initialize(self) -> None:
        """Create tables (if new) or migrate (if existing).

        A fresh database (user_version == 0, no tables) gets SCHEMA_SQL and the
        current version stamp. Older databases, including unversioned ones that
        already hold tracks, are brought up to CURRENT_SCHEMA_VERSION.
        """
        from track.migrations import apply_pending_migrations, stamp_legacy_store

        current_version = self.get_schema_version()
        if current_version == 0 and stamp_legacy_store(self.conn):
            current_version = 1

        if current_version == 0:
            self.conn.executescript(SCHEMA_SQL)
            self.conn.execute(f"PRAGMA user_version = {CURRENT_SCHEMA_VERSION}")
        elif current_version < CURRENT_SCHEMA_VERSION:
            apply_pending_migrations(self.conn, CURRENT_SCHEMA_VERSION)
        self.conn.commit()

    def get_schema_version(self) -> int:
        """Return the current schema version from PRAGMA user_version."""
        result: int = self.conn.execute("PRAGMA user_version").fetchone()[0]
        return result

    def close(self) -> None:
        if self._conn is not None:
            self._conn.close()
            self._conn = None

    @contextlib.contextmanager
    def _transaction(self) -> Iterator[sqlite3.Connection]:
        """Write scope for one logical operation.

        The outermost caller opens ``BEGIN IMMEDIATE`` and commits or rolls
        back; calls made while a transaction is open simply join it.
        """
        if self.conn.in_transaction:
            yield self.conn
            return
        with _immediate(self.conn) as conn:
            yield conn

    def _generate_unique_id(self, table: str) -> str:
        """Random 8-hex id, prefixed with ``<prefix>-`` when the project has one.

        Retries on a primary-key hit and widens to 16 hex digits as a last
        resort. *table* is a literal at every call site.
        """
        sep = "-" if self.prefix else ""
        for _ in range(10):
            candidate = f"{self.prefix}{sep}{uuid.uuid4().hex[:8]}"
            if self.conn.execute(f"SELECT 1 FROM {table} WHERE id = ?", (candidate,)).fetchone() is None:
                return candidate
        return f"{self.prefix}{sep}{uuid.uuid4().hex[:16]}"

    # -- Read paths ------------------------------------------------------------

    def _annotate(self, tracks: list[Track]) -> list[TrackDetails]:
        """Attach kind, children, files and edges, derived from the complete sets."""
        structure = derive_structure(tracks)
        files = self.get_all_files()
        deps = self.get_all_dependencies()
        empty: DependencyEdges = {"blocks": [], "blocked_by": []}
        details: list[TrackDetails] = []
        for t in tracks:
            kind, children = structure[t.id]
            edges = deps.get(t.id, empty)
            details.append(
                TrackDetails(
                    id=t.id,
                    title=t.title,
                    parent_id=t.parent_id,
                    summary=t.summary,
                    next_prompt=t.next_prompt,
                    status=t.status,
                    worktree=t.worktree,
                    created_at=t.created_at,
                    updated_at=t.updated_at,
                    kind=kind,
                    children=list(children),
                    files=files.get(t.id, []),
                    blocks=sorted(edges["blocks"]),
                    blocked_by=sorted(edges["blocked_by"]),
                )
            )
        return details

    def get_track_details(self, track_id: str) -> TrackDetails:
        for details in self._annotate(self.list_tracks()):
            if details.id == track_id:
                return details
        raise TrackNotFoundError(track_id)

    def get_status(
        self,
        *,
        statuses: Iterable[str] | None = None,
        worktree: str | None = None,
        include_root: bool = False,
    ) -> list[TrackDetails]:
        """Every track with derived fields, optionally filtered.

        Derivation always sees the whole track set, so a filtered view still
        reports each track's true kind and children. *include_root* keeps the
        root in the result even when the filters would exclude it.
        """
        wanted = validate_statuses(statuses) if statuses is not None else None
        result: list[TrackDetails] = []
        for details in self._annotate(self.list_tracks()):
            if include_root and details.parent_id is None:
                result.append(details)
                continue
            if wanted is not None and details.status not in wanted:
                continue
            if worktree is not None and details.worktree != worktree:
                continue
            result.append(details)
        return result

    def get_active_status(self, *, worktree: str | None = None) -> list[TrackDetails]:
        """The default ``track status`` view: active tracks plus the root."""
        return self.get_status(statuses=ACTIVE_STATUSES, worktree=worktree, include_root=True)
