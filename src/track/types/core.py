"""Foundational TypedDicts for dataclass to_dict() returns."""

from __future__ import annotations

from typing import NewType, TypedDict

ISOTimestamp = NewType("ISOTimestamp", str)


class ProjectConfig(TypedDict, total=False):
    """Shape of .track/config.json."""

    name: str
    prefix: str
    version: int


class DependencyEdges(TypedDict):
    """Direct outgoing and incoming "blocks" edges of one track."""

    blocks: list[str]
    blocked_by: list[str]


class TrackDict(TypedDict):
    id: str
    title: str
    parent_id: str | None
    summary: str
    next_prompt: str
    status: str
    worktree: str | None
    created_at: ISOTimestamp
    updated_at: ISOTimestamp


class TrackDetailsDict(TrackDict):
    kind: str
    children: list[str]
    files: list[str]
    blocks: list[str]
    blocked_by: list[str]
