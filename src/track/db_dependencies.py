"""DependenciesMixin: the "blocks" edge set between tracks.

Edges are independent of the parent/child hierarchy. Insertion is
idempotent and the cycle check is exposed separately: callers ask
``would_create_cycle`` first and decide how to report a rejection.
"""

from __future__ import annotations

from track.db_base import DBMixinProtocol
from track.graph import Edge, group_edges, successor_map
from track.graph import would_create_cycle as _reaches
from track.types.core import DependencyEdges


class DependenciesMixin(DBMixinProtocol):
    """Edge storage and reachability queries.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``TrackDB`` at composition time via MRO.
    """

    def add_edge(self, blocking_id: str, blocked_id: str) -> bool:
        """Insert blocking_id -> blocked_id. Returns False if it already existed."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "INSERT OR IGNORE INTO track_dependencies (blocking_track_id, blocked_track_id) VALUES (?, ?)",
                (blocking_id, blocked_id),
            )
        return cursor.rowcount > 0

    def remove_edge(self, blocking_id: str, blocked_id: str) -> bool:
        """Delete blocking_id -> blocked_id. Returns False if there was nothing to remove."""
        with self._transaction() as conn:
            cursor = conn.execute(
                "DELETE FROM track_dependencies WHERE blocking_track_id = ? AND blocked_track_id = ?",
                (blocking_id, blocked_id),
            )
        return cursor.rowcount > 0

    def edges(self) -> list[Edge]:
        rows = self.conn.execute("SELECT blocking_track_id, blocked_track_id FROM track_dependencies").fetchall()
        return [(r["blocking_track_id"], r["blocked_track_id"]) for r in rows]

    def would_create_cycle(self, blocking_id: str, blocked_id: str) -> bool:
        return _reaches(successor_map(self.edges()), blocking_id, blocked_id)

    def blockers_of(self, track_id: str) -> list[str]:
        """Ids of the tracks that directly block *track_id*."""
        rows = self.conn.execute(
            "SELECT blocking_track_id FROM track_dependencies WHERE blocked_track_id = ? ORDER BY blocking_track_id",
            (track_id,),
        ).fetchall()
        return [r["blocking_track_id"] for r in rows]

    def blocked_by_track(self, track_id: str) -> list[str]:
        """Ids of the tracks that *track_id* directly blocks."""
        rows = self.conn.execute(
            "SELECT blocked_track_id FROM track_dependencies WHERE blocking_track_id = ? ORDER BY blocked_track_id",
            (track_id,),
        ).fetchall()
        return [r["blocked_track_id"] for r in rows]

    def has_blockers(self, track_id: str) -> bool:
        row = self.conn.execute("SELECT 1 FROM track_dependencies WHERE blocked_track_id = ? LIMIT 1", (track_id,)).fetchone()
        return row is not None

    def all_blockers_done(self, track_id: str) -> bool:
        """True when every direct blocker is done (vacuously true with none)."""
        row = self.conn.execute(
            "SELECT 1 FROM track_dependencies d JOIN tracks t ON t.id = d.blocking_track_id "
            "WHERE d.blocked_track_id = ? AND t.status != 'done' LIMIT 1",
            (track_id,),
        ).fetchone()
        return row is None

    def get_all_dependencies(self) -> dict[str, DependencyEdges]:
        return group_edges(self.edges())
