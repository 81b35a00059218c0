"""TracksMixin: durable storage of track records and their files.

Plain CRUD with no status rules: the lifecycle mixin decides *what* to
write, this mixin only knows *how*. Composed into ``TrackDB`` and reached
through ``self.conn`` via the MRO.
"""

from __future__ import annotations

import sqlite3
from collections import defaultdict
from collections.abc import Iterable
from typing import TYPE_CHECKING

from track.db_base import DBMixinProtocol, Status, TrackNotFoundError, _in_clause, _now_iso
from track.worktree import CLEARED, UNCHANGED, WorktreeUpdate

if TYPE_CHECKING:
    from track.core import Track


_TRACK_ORDER = "ORDER BY created_at, rowid"


class TracksMixin(DBMixinProtocol):
    """Track records and file associations.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``TrackDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:
        def _generate_unique_id(self, table: str) -> str: ...

    # -- Build helpers -------------------------------------------------------

    def _build_track(self, row: sqlite3.Row) -> Track:
        from track.core import Track

        return Track(
            id=row["id"],
            title=row["title"],
            parent_id=row["parent_id"],
            summary=row["summary"] or "",
            next_prompt=row["next_prompt"] or "",
            status=row["status"],
            worktree=row["worktree"],
            created_at=row["created_at"],
            updated_at=row["updated_at"],
        )

    # -- Records -------------------------------------------------------------

    def insert_track(
        self,
        title: str,
        *,
        parent_id: str | None,
        summary: str = "",
        next_prompt: str = "",
        status: Status = "planned",
        worktree: str | None = None,
    ) -> Track:
        """Store a new track record. The caller validates the parent."""
        track_id = self._generate_unique_id("tracks")
        now = _now_iso()
        with self._transaction() as conn:
            conn.execute(
                "INSERT INTO tracks (id, title, parent_id, summary, next_prompt, status, worktree, created_at, updated_at) "
                "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (track_id, title, parent_id, summary, next_prompt, status, worktree, now, now),
            )
        return self.get_track(track_id)

    def track_exists(self, track_id: str) -> bool:
        return self.conn.execute("SELECT 1 FROM tracks WHERE id = ?", (track_id,)).fetchone() is not None

    def missing_track_ids(self, track_ids: list[str]) -> list[str]:
        """Return the ids in *track_ids* that have no record, in input order."""
        if not track_ids:
            return []
        rows = self.conn.execute(f"SELECT id FROM tracks WHERE id IN ({_in_clause(track_ids)})", track_ids).fetchall()
        found = {r["id"] for r in rows}
        return [t for t in track_ids if t not in found]

    def get_track(self, track_id: str) -> Track:
        row = self.conn.execute("SELECT * FROM tracks WHERE id = ?", (track_id,)).fetchone()
        if row is None:
            raise TrackNotFoundError(track_id)
        return self._build_track(row)

    def get_root_track(self) -> Track | None:
        row = self.conn.execute(f"SELECT * FROM tracks WHERE parent_id IS NULL {_TRACK_ORDER} LIMIT 1").fetchone()
        return self._build_track(row) if row is not None else None

    def update_track_fields(
        self,
        track_id: str,
        *,
        summary: str | None = None,
        next_prompt: str | None = None,
        status: Status | None = None,
        worktree: WorktreeUpdate = UNCHANGED,
    ) -> None:
        """Replace the mutable fields that were supplied and bump updated_at.

        ``None`` leaves a text field alone; *worktree* is tri-state.
        """
        sets: list[str] = []
        params: list[str | None] = []
        if summary is not None:
            sets.append("summary = ?")
            params.append(summary)
        if next_prompt is not None:
            sets.append("next_prompt = ?")
            params.append(next_prompt)
        if status is not None:
            sets.append("status = ?")
            params.append(status)
        if worktree is CLEARED:
            sets.append("worktree = NULL")
        elif worktree is not UNCHANGED:
            sets.append("worktree = ?")
            params.append(worktree)
        sets.append("updated_at = ?")
        params.append(_now_iso())

        with self._transaction() as conn:
            cursor = conn.execute(f"UPDATE tracks SET {', '.join(sets)} WHERE id = ?", [*params, track_id])
            if cursor.rowcount == 0:
                raise TrackNotFoundError(track_id)

    def set_status(self, track_id: str, status: Status) -> None:
        self.update_track_fields(track_id, status=status)

    def list_tracks(self) -> list[Track]:
        rows = self.conn.execute(f"SELECT * FROM tracks {_TRACK_ORDER}").fetchall()
        return [self._build_track(r) for r in rows]

    def list_tracks_by_status(self, statuses: list[Status]) -> list[Track]:
        if not statuses:
            return []
        rows = self.conn.execute(
            f"SELECT * FROM tracks WHERE status IN ({_in_clause(list(statuses))}) {_TRACK_ORDER}",
            list(statuses),
        ).fetchall()
        return [self._build_track(r) for r in rows]

    def list_tracks_by_worktree(self, worktree: str) -> list[Track]:
        rows = self.conn.execute(f"SELECT * FROM tracks WHERE worktree = ? {_TRACK_ORDER}", (worktree,)).fetchall()
        return [self._build_track(r) for r in rows]

    # -- Files ---------------------------------------------------------------

    def add_files(self, track_id: str, paths: Iterable[str]) -> list[str]:
        """Associate file paths with a track. Returns only the newly added paths."""
        if not self.track_exists(track_id):
            raise TrackNotFoundError(track_id)
        added: list[str] = []
        with self._transaction() as conn:
            for path in paths:
                cursor = conn.execute("INSERT OR IGNORE INTO track_files (track_id, file_path) VALUES (?, ?)", (track_id, path))
                if cursor.rowcount:
                    added.append(path)
        return added

    def get_files(self, track_id: str) -> list[str]:
        rows = self.conn.execute("SELECT file_path FROM track_files WHERE track_id = ? ORDER BY file_path", (track_id,)).fetchall()
        return [r["file_path"] for r in rows]

    def get_all_files(self) -> dict[str, list[str]]:
        files: dict[str, list[str]] = defaultdict(list)
        for r in self.conn.execute("SELECT track_id, file_path FROM track_files ORDER BY track_id, file_path").fetchall():
            files[r["track_id"]].append(r["file_path"])
        return dict(files)
