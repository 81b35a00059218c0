"""Tests for track creation, updates and the blocking cascade."""

from __future__ import annotations

from pathlib import Path

import pytest

from track.core import TrackDB
from track.db_base import TrackNotFoundError
from track.graph import DependencyCycleError
from track.worktree import CLEARED
from tests._db_factory import make_db, status_of
from tests.conftest import PopulatedDB


class TestCreateRoot:
    def test_second_root_rejected(self, db: TrackDB) -> None:
        with pytest.raises(ValueError, match="already has a root"):
            db.create_root("Another")
        assert len([t for t in db.list_tracks() if t.parent_id is None]) == 1

    def test_empty_title_rejected(self, tmp_path: Path) -> None:
        d = make_db(tmp_path, root_title=None)
        with pytest.raises(ValueError, match="Title cannot be empty"):
            d.create_root("   ")
        d.close()


class TestCreateTrack:
    def test_defaults_to_root_parent(self, db: TrackDB) -> None:
        root = db.get_root_track()
        assert root is not None
        t = db.create_track("Child")
        assert t.parent_id == root.id
        assert t.status == "planned"
        assert t.kind == "task"

    def test_title_trimmed(self, db: TrackDB) -> None:
        assert db.create_track("  Spaced  ").title == "Spaced"

    def test_title_too_long(self, db: TrackDB) -> None:
        with pytest.raises(ValueError, match="500"):
            db.create_track("x" * 501)

    def test_without_root(self, tmp_path: Path) -> None:
        d = make_db(tmp_path, root_title=None)
        with pytest.raises(ValueError, match="No root track found"):
            d.create_track("Orphan")
        d.close()

    def test_unknown_parent(self, db: TrackDB) -> None:
        with pytest.raises(TrackNotFoundError):
            db.create_track("Child", parent_id="ghost")
        assert len(db.list_tracks()) == 1

    def test_with_files(self, db: TrackDB) -> None:
        t = db.create_track("Files", files=["a.py", "b.py", "a.py"])
        assert t.files == ["a.py", "b.py"]

    def test_blocked_by_existing_track(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocked_by=[a.id])
        assert b.status == "blocked"
        assert b.blocked_by == [a.id]

    def test_blocked_by_done_track_still_blocks(self, db: TrackDB) -> None:
        a = db.create_track("A")
        db.set_status(a.id, "done")
        b = db.create_track("B", blocked_by=[a.id])
        assert b.status == "blocked"

    def test_blocks_existing_track(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocks=[a.id])
        assert b.status == "planned"
        assert b.blocks == [a.id]
        assert status_of(db, a.id) == "blocked"

    def test_unknown_dependency_creates_nothing(self, db: TrackDB) -> None:
        with pytest.raises(TrackNotFoundError, match="ghost"):
            db.create_track("B", blocks=["ghost"])
        assert len(db.list_tracks()) == 1

    def test_cycle_through_new_track_rolls_back(self, db: TrackDB) -> None:
        a = db.create_track("A")
        with pytest.raises(DependencyCycleError):
            db.create_track("B", blocks=[a.id], blocked_by=[a.id])
        assert len(db.list_tracks()) == 2
        assert db.edges() == []
        assert status_of(db, a.id) == "planned"

    def test_parent_becomes_feature(self, db: TrackDB) -> None:
        parent = db.create_track("Parent")
        db.create_track("Child", parent_id=parent.id)
        assert db.get_track_details(parent.id).kind == "feature"

    def test_root_is_super(self, db: TrackDB) -> None:
        db.create_track("Child")
        root = db.get_root_track()
        assert root is not None
        assert db.get_track_details(root.id).kind == "super"


class TestCreateWorktree:
    def test_explicit_label(self, db: TrackDB) -> None:
        assert db.create_track("A", worktree="wt-a", detected_worktree="wt-d").worktree == "wt-a"

    def test_inherits_parent(self, db: TrackDB) -> None:
        parent = db.create_track("P", worktree="wt-p")
        child = db.create_track("C", parent_id=parent.id, detected_worktree="wt-d")
        assert child.worktree == "wt-p"

    def test_falls_back_to_detected(self, db: TrackDB) -> None:
        assert db.create_track("A", detected_worktree="wt-d").worktree == "wt-d"

    def test_cleared_ignores_parent(self, db: TrackDB) -> None:
        parent = db.create_track("P", worktree="wt-p")
        child = db.create_track("C", parent_id=parent.id, worktree=CLEARED, detected_worktree="wt-d")
        assert child.worktree is None

    def test_empty_label_rejected(self, db: TrackDB) -> None:
        with pytest.raises(ValueError, match="Worktree label cannot be empty"):
            db.create_track("A", worktree="  ")


class TestUpdateTrack:
    def test_status_defaults_to_in_progress(self, db: TrackDB) -> None:
        t = db.create_track("A")
        result = db.update_track(t.id, summary="s", next_prompt="n")
        assert result["status"] == "in_progress"
        assert status_of(db, t.id) == "in_progress"

    def test_invalid_status(self, db: TrackDB) -> None:
        t = db.create_track("A")
        with pytest.raises(ValueError, match="Invalid status 'finished'"):
            db.update_track(t.id, summary="s", next_prompt="n", status="finished")
        assert status_of(db, t.id) == "planned"

    def test_unknown_track(self, db: TrackDB) -> None:
        with pytest.raises(TrackNotFoundError):
            db.update_track("ghost", summary="s", next_prompt="n")

    def test_files_reported_once(self, db: TrackDB) -> None:
        t = db.create_track("A", files=["a.py"])
        result = db.update_track(t.id, summary="s", next_prompt="n", files=["a.py", "b.py"])
        assert result["files_added"] == ["b.py"]
        assert db.get_files(t.id) == ["a.py", "b.py"]

    def test_worktree_cleared(self, db: TrackDB) -> None:
        t = db.create_track("A", worktree="wt")
        db.update_track(t.id, summary="s", next_prompt="n", worktree=CLEARED)
        assert db.get_track(t.id).worktree is None

    def test_unknown_blocks_rolls_back(self, db: TrackDB) -> None:
        t = db.create_track("A")
        with pytest.raises(TrackNotFoundError):
            db.update_track(t.id, summary="changed", next_prompt="n", blocks=["ghost"])
        assert db.get_track(t.id).summary == ""

    def test_cycle_rolls_back(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocked_by=[a.id])
        with pytest.raises(DependencyCycleError):
            db.update_track(b.id, summary="changed", next_prompt="n", blocks=[a.id])
        assert db.get_track(b.id).summary == ""
        assert db.edges() == [(a.id, b.id)]

    def test_unblocks_unknown_id_is_noop(self, db: TrackDB) -> None:
        t = db.create_track("A")
        result = db.update_track(t.id, summary="s", next_prompt="n", unblocks=["ghost"])
        assert result["blocks_removed"] == []


class TestCascade:
    def test_done_releases_blocked_track(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocks=[a.id])
        assert status_of(db, a.id) == "blocked"
        result = db.update_track(b.id, summary="s", next_prompt="n", status="done")
        assert result["unblocked_ids"] == [a.id]
        assert status_of(db, a.id) == "planned"

    def test_blocks_planned_track_via_update(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B")
        result = db.update_track(b.id, summary="s", next_prompt="n", blocks=[a.id])
        assert result["blocks_added"] == [a.id]
        assert status_of(db, a.id) == "blocked"

    def test_blocks_in_progress_track_untouched(self, db: TrackDB) -> None:
        a = db.create_track("A")
        db.set_status(a.id, "in_progress")
        b = db.create_track("B")
        db.update_track(b.id, summary="s", next_prompt="n", blocks=[a.id])
        assert status_of(db, a.id) == "in_progress"

    def test_existing_edge_reblocks_planned_track(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocks=[a.id])
        db.set_status(a.id, "planned")
        result = db.update_track(b.id, summary="s", next_prompt="n", blocks=[a.id])
        assert result["blocks_added"] == []
        assert status_of(db, a.id) == "blocked"

    def test_unblock_returns_track_to_planned(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocks=[a.id])
        result = db.update_track(b.id, summary="s", next_prompt="n", unblocks=[a.id])
        assert result["blocks_removed"] == [a.id]
        assert status_of(db, a.id) == "planned"

    @pytest.mark.parametrize("first", [0, 1])
    def test_two_blockers_in_either_order(self, db: TrackDB, first: int) -> None:
        target = db.create_track("Target")
        blockers = [db.create_track("B1", blocks=[target.id]), db.create_track("B2", blocks=[target.id])]
        one, two = blockers[first], blockers[1 - first]

        result = db.update_track(one.id, summary="s", next_prompt="n", status="done")
        assert result["unblocked_ids"] == []
        assert status_of(db, target.id) == "blocked"

        result = db.update_track(two.id, summary="s", next_prompt="n", status="done")
        assert result["unblocked_ids"] == [target.id]
        assert status_of(db, target.id) == "planned"

    def test_manual_block_survives_done_and_unblock(self, db: TrackDB) -> None:
        manual = db.create_track("Manual")
        db.update_track(manual.id, summary="waiting on vendor", next_prompt="n", status="blocked")
        other = db.create_track("Other")
        db.update_track(other.id, summary="s", next_prompt="n", unblocks=[manual.id])
        db.update_track(other.id, summary="s", next_prompt="n", status="done")
        assert status_of(db, manual.id) == "blocked"

    def test_done_dependent_not_revived(self, db: TrackDB) -> None:
        a = db.create_track("A")
        b = db.create_track("B", blocks=[a.id])
        db.set_status(a.id, "superseded")
        result = db.update_track(b.id, summary="s", next_prompt="n", status="done")
        assert result["unblocked_ids"] == []
        assert status_of(db, a.id) == "superseded"

    def test_cascade_is_single_step(self, db: TrackDB) -> None:
        """Releasing A does not also release what A blocks."""
        c = db.create_track("C")
        a = db.create_track("A", blocks=[c.id])
        b = db.create_track("B", blocks=[a.id])
        result = db.update_track(b.id, summary="s", next_prompt="n", status="done")
        assert result["unblocked_ids"] == [a.id]
        assert status_of(db, c.id) == "blocked"

    def test_populated_fixture_cascade(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        assert status_of(db, ids["t2"]) == "blocked"
        result = db.update_track(ids["b"], summary="done", next_prompt="", status="done")
        assert result["unblocked_ids"] == [ids["t2"]]


class TestStatusView:
    def test_derived_fields_from_full_set(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.update_track(ids["t1"], summary="s", next_prompt="n", status="done")
        db.update_track(ids["t2"], summary="s", next_prompt="n", status="done")
        db.update_track(ids["feature"], summary="s", next_prompt="n", status="done")

        view = db.get_status(statuses=["done"])
        by_id = {t.id: t for t in view}
        assert by_id[ids["feature"]].kind == "feature"
        assert sorted(by_id[ids["feature"]].children) == sorted([ids["t1"], ids["t2"]])

    def test_edges_reported_both_ways(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        assert db.get_track_details(ids["b"]).blocks == [ids["t2"]]
        assert db.get_track_details(ids["t2"]).blocked_by == [ids["b"]]

    def test_active_view_keeps_root(self, populated_db: PopulatedDB) -> None:
        db, ids = populated_db.db, populated_db.ids
        db.update_track(ids["root"], summary="s", next_prompt="n", status="done")
        db.update_track(ids["t1"], summary="s", next_prompt="n", status="done")
        active = {t.id for t in db.get_active_status()}
        assert ids["root"] in active
        assert ids["t1"] not in active
        assert ids["t2"] in active

    def test_worktree_filter(self, db: TrackDB) -> None:
        a = db.create_track("A", worktree="wt-1")
        db.create_track("B", worktree="wt-2")
        assert [t.id for t in db.get_status(worktree="wt-1")] == [a.id]

    def test_invalid_status_filter(self, db: TrackDB) -> None:
        with pytest.raises(ValueError, match="Invalid status"):
            db.get_status(statuses=["bogus"])

    def test_to_dict_shape(self, populated_db: PopulatedDB) -> None:
        d = populated_db.db.get_track_details(populated_db.ids["feature"]).to_dict()
        assert d["kind"] == "feature"
        assert set(d) >= {"id", "title", "parent_id", "status", "worktree", "children", "files", "blocks", "blocked_by"}
