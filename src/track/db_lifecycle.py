"""LifecycleMixin: track creation, updates and the blocking cascade.

Every public operation here runs inside a single store transaction, so a
rejected edge or a missing id leaves nothing half-written. Three rules keep
``status`` in line with the dependency graph:

1. Adding blocking -> blocked moves a ``planned`` blocked track to ``blocked``.
2. Removing an edge moves a ``blocked`` track with no remaining blockers
   back to ``planned``.
3. Marking a track ``done`` moves each ``blocked`` track it blocks to
   ``planned`` once all of that track's blockers are done.

Tracks that were set to ``blocked`` by hand, with no edge behind them, are
never touched by rules 2 and 3.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from typing import TYPE_CHECKING

from track.db_base import DBMixinProtocol, Status, TrackNotFoundError
from track.graph import DependencyCycleError, Edge, successor_map, would_create_cycle
from track.types.api import DependencyChange, UpdateResult
from track.validation import normalize_ids, sanitize_title, validate_status, validate_worktree_label
from track.worktree import CLEARED, UNCHANGED, WorktreeUpdate

if TYPE_CHECKING:
    from track.core import Track, TrackDetails
    from track.types.core import DependencyEdges

logger = logging.getLogger(__name__)


class LifecycleMixin(DBMixinProtocol):
    """Status state machine over the track store and the edge set.

    Inherits ``DBMixinProtocol`` for type-safe access to shared attributes.
    Actual implementations provided by ``TrackDB`` at composition time via MRO.
    """

    if TYPE_CHECKING:
        # From TracksMixin
        def insert_track(
            self,
            title: str,
            *,
            parent_id: str | None,
            summary: str = "",
            next_prompt: str = "",
            status: Status = "planned",
            worktree: str | None = None,
        ) -> Track: ...
        def missing_track_ids(self, track_ids: list[str]) -> list[str]: ...
        def get_root_track(self) -> Track | None: ...
        def update_track_fields(
            self,
            track_id: str,
            *,
            summary: str | None = None,
            next_prompt: str | None = None,
            status: Status | None = None,
            worktree: WorktreeUpdate = UNCHANGED,
        ) -> None: ...
        def set_status(self, track_id: str, status: Status) -> None: ...
        def add_files(self, track_id: str, paths: Iterable[str]) -> list[str]: ...

        # From DependenciesMixin
        def add_edge(self, blocking_id: str, blocked_id: str) -> bool: ...
        def remove_edge(self, blocking_id: str, blocked_id: str) -> bool: ...
        def edges(self) -> list[Edge]: ...
        def blocked_by_track(self, track_id: str) -> list[str]: ...
        def has_blockers(self, track_id: str) -> bool: ...
        def all_blockers_done(self, track_id: str) -> bool: ...
        def get_all_dependencies(self) -> dict[str, DependencyEdges]: ...

        # From TrackDB
        def get_track_details(self, track_id: str) -> TrackDetails: ...

    # -- Validation helpers ----------------------------------------------------

    def _require_tracks(self, track_ids: list[str]) -> None:
        missing = self.missing_track_ids(track_ids)
        if missing:
            raise TrackNotFoundError(missing[0])

    def _check_new_edges(self, new_edges: list[Edge]) -> None:
        """Reject the batch if any edge, applied in order, would close a cycle."""
        if not new_edges:
            return
        successors = successor_map(self.edges())
        for blocking_id, blocked_id in new_edges:
            if would_create_cycle(successors, blocking_id, blocked_id):
                raise DependencyCycleError(blocking_id, blocked_id)
            successors.setdefault(blocking_id, []).append(blocked_id)

    @staticmethod
    def _resolve_worktree_value(worktree: WorktreeUpdate) -> WorktreeUpdate:
        if isinstance(worktree, str):
            return validate_worktree_label(worktree)
        return worktree

    # -- Cascade rules ---------------------------------------------------------

    def _link(self, blocking_id: str, blocked_id: str) -> bool:
        """Insert an edge and apply rule 1. Returns whether the edge is new."""
        added = self.add_edge(blocking_id, blocked_id)
        blocked = self.get_track(blocked_id)
        if blocked.status == "planned":
            self.set_status(blocked_id, "blocked")
            logger.info("Track %s blocked by %s", blocked_id, blocking_id, extra={"track_id": blocked_id})
        return added

    def _unlink(self, blocking_id: str, blocked_id: str) -> bool:
        """Remove an edge and apply rule 2. Returns whether an edge was removed."""
        removed = self.remove_edge(blocking_id, blocked_id)
        if not removed:
            return False
        blocked = self.get_track(blocked_id)
        if blocked.status == "blocked" and not self.has_blockers(blocked_id):
            self.set_status(blocked_id, "planned")
            logger.info("Track %s unblocked: last blocker %s removed", blocked_id, blocking_id, extra={"track_id": blocked_id})
        return True

    def _release_dependents(self, done_id: str) -> list[str]:
        """Apply rule 3 for a track that was just marked done."""
        unblocked: list[str] = []
        for dependent_id in self.blocked_by_track(done_id):
            dependent = self.get_track(dependent_id)
            if dependent.status != "blocked":
                continue
            if self.has_blockers(dependent_id) and self.all_blockers_done(dependent_id):
                self.set_status(dependent_id, "planned")
                unblocked.append(dependent_id)
                logger.info("Track %s unblocked: all blockers done", dependent_id, extra={"track_id": dependent_id})
        return unblocked

    # -- Operations ------------------------------------------------------------

    def create_root(self, title: str, *, summary: str = "", next_prompt: str = "", worktree: str | None = None) -> TrackDetails:
        """Create the project's single root track."""
        clean_title, err = sanitize_title(title)
        if err:
            raise ValueError(err)
        with self._transaction():
            existing = self.get_root_track()
            if existing is not None:
                msg = f"Project already has a root track: {existing.id}"
                raise ValueError(msg)
            root = self.insert_track(clean_title, parent_id=None, summary=summary, next_prompt=next_prompt, worktree=worktree)
        return self.get_track_details(root.id)

    def create_track(
        self,
        title: str,
        *,
        parent_id: str | None = None,
        summary: str = "",
        next_prompt: str = "",
        files: list[str] | None = None,
        blocks: list[str] | None = None,
        blocked_by: list[str] | None = None,
        worktree: WorktreeUpdate = UNCHANGED,
        detected_worktree: str | None = None,
    ) -> TrackDetails:
        """Create a child track, planned unless something blocks it.

        *parent_id* defaults to the root. *worktree* ``UNCHANGED`` inherits
        the parent's label, falling back to *detected_worktree*; ``CLEARED``
        creates the track without one.
        """
        clean_title, err = sanitize_title(title)
        if err:
            raise ValueError(err)
        blocks = normalize_ids(blocks)
        blocked_by = normalize_ids(blocked_by)
        worktree = self._resolve_worktree_value(worktree)

        with self._transaction():
            if parent_id is None:
                root = self.get_root_track()
                if root is None:
                    msg = "No root track found. Run 'track init' first."
                    raise ValueError(msg)
                parent = root
            else:
                parent = self.get_track(parent_id)
            self._require_tracks([*blocks, *blocked_by])

            if worktree is CLEARED:
                label = None
            elif worktree is UNCHANGED:
                label = parent.worktree or detected_worktree
            else:
                label = worktree

            created = self.insert_track(clean_title, parent_id=parent.id, summary=summary, next_prompt=next_prompt, worktree=label)
            new_edges = [(created.id, b) for b in blocks] + [(b, created.id) for b in blocked_by]
            self._check_new_edges(new_edges)

            if files:
                self.add_files(created.id, files)
            for blocking_id, blocked_id in new_edges:
                self._link(blocking_id, blocked_id)

        logger.info("Created track %s under %s", created.id, parent.id, extra={"track_id": created.id})
        return self.get_track_details(created.id)

    def update_track(
        self,
        track_id: str,
        *,
        summary: str | None = None,
        next_prompt: str | None = None,
        status: str | None = None,
        files: list[str] | None = None,
        worktree: WorktreeUpdate = UNCHANGED,
        blocks: list[str] | None = None,
        unblocks: list[str] | None = None,
    ) -> UpdateResult:
        """Record progress on a track.

        *status* defaults to ``in_progress``. New ``blocks`` edges apply rule 1,
        removed ``unblocks`` edges apply rule 2, and a ``done`` status applies
        rule 3; the ids released by rule 3 are returned in ``unblocked_ids``.
        """
        new_status = validate_status(status if status is not None else "in_progress")
        worktree = self._resolve_worktree_value(worktree)
        blocks = normalize_ids(blocks)
        unblocks = normalize_ids(unblocks)

        with self._transaction():
            self.get_track(track_id)
            self._require_tracks(blocks)
            self._check_new_edges([(track_id, b) for b in blocks])

            self.update_track_fields(track_id, summary=summary, next_prompt=next_prompt, status=new_status, worktree=worktree)
            files_added = self.add_files(track_id, files) if files else []
            blocks_added = [b for b in blocks if self._link(track_id, b)]
            blocks_removed = [u for u in unblocks if self._unlink(track_id, u)]
            unblocked_ids = self._release_dependents(track_id) if new_status == "done" else []

        return UpdateResult(
            id=track_id,
            status=new_status,
            files_added=files_added,
            blocks_added=blocks_added,
            blocks_removed=blocks_removed,
            unblocked_ids=unblocked_ids,
        )

    def add_dependency(self, blocking_id: str, blocked_id: str) -> DependencyChange:
        """Make *blocking_id* block *blocked_id* (rule 1)."""
        with self._transaction():
            self._require_tracks([blocking_id, blocked_id])
            self._check_new_edges([(blocking_id, blocked_id)])
            changed = self._link(blocking_id, blocked_id)
            blocked_status = self.get_track(blocked_id).status
        return DependencyChange(blocking_id=blocking_id, blocked_id=blocked_id, changed=changed, blocked_status=blocked_status)

    def remove_dependency(self, blocking_id: str, blocked_id: str) -> DependencyChange:
        """Drop the edge if present (rule 2); a missing edge is a no-op."""
        with self._transaction():
            self._require_tracks([blocking_id, blocked_id])
            changed = self._unlink(blocking_id, blocked_id)
            blocked_status = self.get_track(blocked_id).status
        return DependencyChange(blocking_id=blocking_id, blocked_id=blocked_id, changed=changed, blocked_status=blocked_status)
