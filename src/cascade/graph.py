"""Dependency graph and containment tree indices."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .exceptions import MissingReferenceError, ValidationError
from .models import DependencyEdge, NodeKind, PlanNode, PlanSnapshot


def _default_edge_index() -> dict[str, list[DependencyEdge]]:
    return {}


@dataclass
class DependencyGraph:
    """Edges indexed by origin (outgoing) and by dependent (incoming).

    Dicts and lists keep insertion order, so iteration is reproducible for
    the same input.
    """

    edges: list[DependencyEdge]
    outgoing: dict[str, list[DependencyEdge]] = field(default_factory=_default_edge_index)
    incoming: dict[str, list[DependencyEdge]] = field(default_factory=_default_edge_index)

    def nodes(self) -> list[str]:
        """Every task id mentioned by an edge, in first-seen order."""
        seen: dict[str, None] = {}
        for edge in self.edges:
            seen.setdefault(edge.origin_id)
            seen.setdefault(edge.dependent_id)
        return list(seen)

    def dependents_of(self, task_id: str) -> list[DependencyEdge]:
        """Edges whose origin is the given task."""
        return self.outgoing.get(task_id, [])

    def origins_of(self, task_id: str) -> list[DependencyEdge]:
        """Edges whose dependent is the given task."""
        return self.incoming.get(task_id, [])


def build_graph(edges: Iterable[DependencyEdge]) -> DependencyGraph:
    """Index a flat list of edges for O(1) neighbour lookup."""
    graph = DependencyGraph(edges=list(edges))
    for edge in graph.edges:
        graph.outgoing.setdefault(edge.origin_id, []).append(edge)
        graph.incoming.setdefault(edge.dependent_id, []).append(edge)
    return graph


class HierarchyIndex:
    """Parent/child lookups over a plan snapshot.

    Nodes only store their parent id; the children map is built once here
    and all traversal goes through it.
    """

    def __init__(self, plan: PlanSnapshot):
        self.plan = plan
        self._children: dict[str, list[str]] = {}
        for node in plan:
            self._check_parent(node)
            if node.parent_id is not None:
                self._children.setdefault(node.parent_id, []).append(node.id)

    def _check_parent(self, node: PlanNode) -> None:
        expected = node.kind.parent_kind
        if node.parent_id is None:
            if expected is not None:
                raise ValidationError(f"{node.kind.value.title()} {node.id} has no parent")
            return
        parent = self.plan.get(node.parent_id)
        if parent is None:
            raise MissingReferenceError(
                f"{node.kind.value.title()} {node.id} references unknown parent: {node.parent_id}"
            )
        if parent.kind != expected:
            raise ValidationError(
                f"{node.kind.value.title()} {node.id} must belong to a "
                f"{expected.value if expected else 'root'}, not {parent.kind.value} {parent.id}"
            )

    def children(self, node_id: str) -> list[str]:
        """Direct children in snapshot order."""
        return self._children.get(node_id, [])

    def parent(self, node_id: str) -> str | None:
        node = self.plan.get(node_id)
        return node.parent_id if node else None

    def ancestors(self, node_id: str) -> list[str]:
        """Containing nodes, nearest first (activity, EDT, phase for a task)."""
        result: list[str] = []
        parent_id = self.parent(node_id)
        while parent_id is not None:
            result.append(parent_id)
            parent_id = self.parent(parent_id)
        return result

    def siblings(self, node_id: str) -> list[str]:
        """Other children of the same parent, in snapshot order."""
        parent_id = self.parent(node_id)
        if parent_id is None:
            return []
        return [child for child in self.children(parent_id) if child != node_id]

    def containers_bottom_up(self) -> list[str]:
        """Ids of nodes with children, innermost level first."""
        order = [NodeKind.ACTIVITY, NodeKind.EDT, NodeKind.PHASE]
        return [
            node.id
            for kind in order
            for node in self.plan
            if node.kind == kind and node.id in self._children
        ]
