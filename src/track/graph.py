"""Pure helpers over the "blocks" edge set.

Nothing here touches the database: callers pass edges in, which keeps the
reachability check testable without a store.
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Iterable, Mapping

from track.types.core import DependencyEdges

Edge = tuple[str, str]


class DependencyCycleError(ValueError):
    """Raised when adding blocking_id -> blocked_id would close a cycle."""

    def __init__(self, blocking_id: str, blocked_id: str) -> None:
        self.blocking_id = blocking_id
        self.blocked_id = blocked_id
        super().__init__(f"Dependency {blocking_id} -> {blocked_id} would create a cycle: {blocked_id} already blocks {blocking_id}")


def successor_map(edges: Iterable[Edge]) -> dict[str, list[str]]:
    """Map each blocking id to the ids it directly blocks."""
    successors: dict[str, list[str]] = defaultdict(list)
    for blocking_id, blocked_id in edges:
        successors[blocking_id].append(blocked_id)
    return dict(successors)


def would_create_cycle(successors: Mapping[str, Iterable[str]], blocking_id: str, blocked_id: str) -> bool:
    """Check if adding blocking_id -> blocked_id would create a cycle.

    Depth-first walk from blocked_id along outgoing edges, using an explicit
    stack so long chains cannot exhaust the interpreter's recursion limit.
    If blocking_id is reachable, the new edge would close a loop. A self-edge
    (blocking_id == blocked_id) is reported as a cycle.
    """
    visited: set[str] = set()
    stack = [blocked_id]
    while stack:
        current = stack.pop()
        if current == blocking_id:
            return True
        if current in visited:
            continue
        visited.add(current)
        stack.extend(n for n in successors.get(current, ()) if n not in visited)
    return False


def group_edges(edges: Iterable[Edge]) -> dict[str, DependencyEdges]:
    """Index edges by track id in both directions in a single pass."""
    grouped: dict[str, DependencyEdges] = {}
    for blocking_id, blocked_id in edges:
        grouped.setdefault(blocking_id, {"blocks": [], "blocked_by": []})["blocks"].append(blocked_id)
        grouped.setdefault(blocked_id, {"blocks": [], "blocked_by": []})["blocked_by"].append(blocking_id)
    return grouped
