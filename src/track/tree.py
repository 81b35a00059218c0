"""Structural classification of tracks from the parent/child hierarchy.

``kind`` and ``children`` are never stored. They are a view over the whole
track set and are rebuilt from scratch on every read.
"""

from __future__ import annotations

import logging
from collections import defaultdict
from collections.abc import Iterable
from typing import Protocol

from track.db_base import Kind

logger = logging.getLogger(__name__)


class TrackNode(Protocol):
    id: str
    parent_id: str | None


def derive_kind(parent_id: str | None, children: list[str]) -> Kind:
    if parent_id is None:
        return "super"
    return "feature" if children else "task"


def children_index(tracks: Iterable[TrackNode]) -> dict[str, list[str]]:
    """Map every track id to the ids of its direct children.

    Parent references that point at no known track are dropped (and logged)
    instead of producing entries for ids that do not exist.
    """
    nodes = list(tracks)
    index: dict[str, list[str]] = {node.id: [] for node in nodes}
    orphans: dict[str, list[str]] = defaultdict(list)
    for node in nodes:
        if node.parent_id is None:
            continue
        siblings = index.get(node.parent_id)
        if siblings is None:
            orphans[node.parent_id].append(node.id)
        else:
            siblings.append(node.id)
    for parent_id, child_ids in orphans.items():
        logger.warning("Tracks %s reference missing parent %s", ", ".join(child_ids), parent_id)
    return index


def derive_structure(tracks: Iterable[TrackNode]) -> dict[str, tuple[Kind, list[str]]]:
    """Compute (kind, children) for every track in one pass over the set."""
    nodes = list(tracks)
    index = children_index(nodes)
    return {node.id: (derive_kind(node.parent_id, index[node.id]), index[node.id]) for node in nodes}
