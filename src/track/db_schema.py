"""Database schema definitions for track.

Contains the canonical SQL schema, the legacy V1 schema (for migration tests),
and the current schema version constant.
"""

from __future__ import annotations

SCHEMA_SQL = """\
CREATE TABLE IF NOT EXISTS tracks (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    parent_id   TEXT REFERENCES tracks(id),
    summary     TEXT NOT NULL DEFAULT '',
    next_prompt TEXT NOT NULL DEFAULT '',
    status      TEXT NOT NULL DEFAULT 'planned',
    worktree    TEXT DEFAULT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL,

    CHECK (status IN ('planned', 'in_progress', 'done', 'blocked', 'superseded'))
);

CREATE INDEX IF NOT EXISTS idx_tracks_parent ON tracks(parent_id);
CREATE INDEX IF NOT EXISTS idx_tracks_status ON tracks(status);
CREATE INDEX IF NOT EXISTS idx_tracks_worktree ON tracks(worktree);

CREATE TABLE IF NOT EXISTS track_files (
    track_id   TEXT NOT NULL REFERENCES tracks(id),
    file_path  TEXT NOT NULL,
    PRIMARY KEY (track_id, file_path)
);

CREATE INDEX IF NOT EXISTS idx_track_files_track ON track_files(track_id);

CREATE TABLE IF NOT EXISTS track_dependencies (
    blocking_track_id  TEXT NOT NULL REFERENCES tracks(id),
    blocked_track_id   TEXT NOT NULL REFERENCES tracks(id),
    PRIMARY KEY (blocking_track_id, blocked_track_id)
);

CREATE INDEX IF NOT EXISTS idx_dependencies_blocking ON track_dependencies(blocking_track_id);
CREATE INDEX IF NOT EXISTS idx_dependencies_blocked ON track_dependencies(blocked_track_id);
"""

# Stores created before worktrees and dependencies existed. Kept for migration tests.
SCHEMA_V1_SQL = """\
CREATE TABLE IF NOT EXISTS tracks (
    id          TEXT PRIMARY KEY,
    title       TEXT NOT NULL,
    parent_id   TEXT REFERENCES tracks(id),
    summary     TEXT NOT NULL,
    next_prompt TEXT NOT NULL,
    status      TEXT NOT NULL,
    created_at  TEXT NOT NULL,
    updated_at  TEXT NOT NULL
);

CREATE TABLE IF NOT EXISTS track_files (
    track_id   TEXT NOT NULL REFERENCES tracks(id),
    file_path  TEXT NOT NULL,
    PRIMARY KEY (track_id, file_path)
);

CREATE INDEX IF NOT EXISTS idx_tracks_parent ON tracks(parent_id);
CREATE INDEX IF NOT EXISTS idx_tracks_status ON tracks(status);
CREATE INDEX IF NOT EXISTS idx_track_files_track ON track_files(track_id);
"""

CURRENT_SCHEMA_VERSION = 3
