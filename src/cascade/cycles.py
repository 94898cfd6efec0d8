"""Cycle detection over the dependency graph."""

from __future__ import annotations

from collections.abc import Iterator

from .graph import DependencyGraph
from .models import DependencyEdge


def find_cycle(graph: DependencyGraph) -> list[str] | None:
    """Return the first cycle found as a closed path, or None if acyclic.

    Every node is tried as a root in first-seen order, so the reported path
    is deterministic for the same edge list. For edges A->B, B->C, C->A the
    result is ["A", "B", "C", "A"].
    """
    for root in graph.nodes():
        cycle = _find_cycle_from(graph, root)
        if cycle:
            return cycle
    return None


def _find_cycle_from(graph: DependencyGraph, root: str) -> list[str] | None:
    """Iterative depth-first search from a single root.

    The visited set belongs to this traversal only; a node reached twice
    through a diamond is a cycle only while it is still on the path.
    """
    visited = {root}
    path = [root]
    on_path = {root}
    stack: list[Iterator[DependencyEdge]] = [iter(graph.dependents_of(root))]

    while stack:
        edge = next(stack[-1], None)
        if edge is None:
            stack.pop()
            on_path.discard(path.pop())
            continue

        target = edge.dependent_id
        if target in on_path:
            return path[path.index(target) :] + [target]
        if target in visited:
            continue

        visited.add(target)
        on_path.add(target)
        path.append(target)
        stack.append(iter(graph.dependents_of(target)))

    return None
