"""Data models for Cascade."""

from __future__ import annotations

import re
from collections.abc import Iterator
from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta
from enum import Enum
from typing import Any

from .exceptions import ParseError, ValidationError

# Lag unit conversion
LAG_UNITS = {
    "m": timedelta(minutes=1),
    "h": timedelta(hours=1),
    "d": timedelta(days=1),
    "w": timedelta(weeks=1),
}


class NodeKind(str, Enum):
    """Levels of the planning hierarchy, outermost first."""

    PHASE = "phase"
    EDT = "edt"  # Work-breakdown element
    ACTIVITY = "activity"
    TASK = "task"

    @property
    def parent_kind(self) -> NodeKind | None:
        """Kind of the node that directly contains this kind."""
        return _PARENT_KIND[self]


_PARENT_KIND: dict[NodeKind, NodeKind | None] = {
    NodeKind.PHASE: None,
    NodeKind.EDT: NodeKind.PHASE,
    NodeKind.ACTIVITY: NodeKind.EDT,
    NodeKind.TASK: NodeKind.ACTIVITY,
}


class RelationType(str, Enum):
    """The four precedence-diagram relations."""

    FINISH_TO_START = "finish_to_start"
    START_TO_START = "start_to_start"
    FINISH_TO_FINISH = "finish_to_finish"
    START_TO_FINISH = "start_to_finish"

    @property
    def code(self) -> str:
        """Two-letter code (FS, SS, FF, SF)."""
        return "".join(part[0].upper() for part in self.value.split("_to_"))

    @classmethod
    def parse(cls, value: str | RelationType) -> RelationType:
        """Parse a relation from its value ("finish_to_start") or code ("FS")."""
        if isinstance(value, RelationType):
            return value
        text = value.strip()
        for relation in cls:
            if text.lower() == relation.value or text.upper() == relation.code:
                return relation
        raise ParseError(f"Unknown dependency relation: {value!r}")


def parse_lag(lag_str: str) -> timedelta:
    """Parse a signed lag string into a timedelta.

    Supported formats:
    - "30m" - 30 minutes
    - "4h" - 4 hours
    - "+2d" - 2 days
    - "-1w" - 1 week of lead time
    - "1.5d" - 36 hours
    """
    match = re.match(r"^([+-])?\s*(\d+(?:\.\d+)?)\s*([mhdw])$", lag_str.strip().lower())
    if not match:
        raise ParseError(f"Invalid lag: {lag_str!r}")
    sign, value, unit = match.groups()
    lag = LAG_UNITS[unit] * float(value)
    return -lag if sign == "-" else lag


def format_lag(lag: timedelta) -> str:
    """Format a lag using the largest unit that represents it exactly."""
    if not lag:
        return "0m"
    sign = "-" if lag < timedelta(0) else "+"
    magnitude = abs(lag)
    for unit in ("w", "d", "h", "m"):
        count = magnitude / LAG_UNITS[unit]
        if count == int(count):
            return f"{sign}{int(count)}{unit}"
    return f"{sign}{magnitude.total_seconds() / 60:g}m"


@dataclass(frozen=True)
class DependencyEdge:
    """A dependency between two tasks.

    The dependent task's dates are driven by the origin task's dates according
    to the relation. A positive lag delays the dependent, a negative lag lets
    it overlap the origin (lead time).
    """

    origin_id: str
    dependent_id: str
    relation: RelationType = RelationType.FINISH_TO_START
    lag: timedelta = timedelta(0)

    def __post_init__(self) -> None:
        if self.origin_id == self.dependent_id:
            raise ValidationError(f"Task {self.origin_id} cannot depend on itself")

    @classmethod
    def parse(cls, edge_str: str) -> DependencyEdge:
        """Parse an edge string into a DependencyEdge.

        Supported formats:
        - "a -> b" - finish-to-start, no lag
        - "a -> b SS" - start-to-start
        - "a -> b FS + 2d" - finish-to-start with 2 days lag
        - "a -> b FF - 4h" - finish-to-finish with 4 hours lead
        """
        match = re.match(
            r"^\s*(\S+)\s*->\s*(\S+)(?:\s+([A-Za-z_]+))?(?:\s*([+-])\s*(\S+))?\s*$", edge_str
        )
        if not match:
            raise ParseError(f"Invalid dependency: {edge_str!r}")
        origin_id, dependent_id, relation, sign, lag = match.groups()
        return cls(
            origin_id=origin_id,
            dependent_id=dependent_id,
            relation=RelationType.parse(relation) if relation else RelationType.FINISH_TO_START,
            lag=parse_lag(f"{sign}{lag}") if lag else timedelta(0),
        )

    def __str__(self) -> str:
        text = f"{self.origin_id} -> {self.dependent_id} {self.relation.code}"
        if self.lag:
            lag = format_lag(self.lag)
            text += f" {lag[0]} {lag[1:]}"
        return text


@dataclass
class PlanNode:
    """A phase, EDT, activity or task in the planning hierarchy."""

    id: str
    kind: NodeKind
    name: str = ""
    start: datetime | None = None
    end: datetime | None = None
    estimated_hours: float | None = None  # Tasks only
    is_milestone: bool = False  # Tasks only
    parent_id: str | None = None  # None only for phases

    @property
    def is_task(self) -> bool:
        return self.kind == NodeKind.TASK

    @property
    def has_dates(self) -> bool:
        """True if both start and end are set."""
        return self.start is not None and self.end is not None

    @property
    def label(self) -> str:
        """Human-readable label used in change logs."""
        return f'{self.kind.value} "{self.name or self.id}"'


class ChangeReason(str, Enum):
    """Why the engine changed a field."""

    DEPENDENCY_APPLIED = "dependency applied"
    TRANSVERSAL_DEPENDENCY = "transversal dependency applied"
    SIBLING_RESEQUENCED = "re-sequenced by sibling"
    PARENT_SPAN_ADJUSTED = "parent span adjusted"
    MILESTONE_PINNED = "zero-duration task pinned"
    MILESTONE_IDENTIFIED = "milestone identified"


@dataclass(frozen=True)
class ChangeRecord:
    """A single field mutation produced during propagation."""

    node_id: str
    field: str  # "start", "end" or "is_milestone"
    old: Any
    new: Any
    reason: ChangeReason
    detail: str = ""  # e.g. "FS from A"
    label: str = ""  # PlanNode.label at the time of the change


@dataclass(frozen=True)
class Diagnostic:
    """A non-fatal problem: the subject was skipped this pass."""

    subject_id: str
    message: str


def _default_nodes() -> list[PlanNode]:
    return []


@dataclass
class PlanSnapshot:
    """Ordered collection of plan nodes addressed by id."""

    nodes: list[PlanNode] = field(default_factory=_default_nodes)
    _by_id: dict[str, PlanNode] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        self._by_id = {}
        for node in self.nodes:
            if node.id in self._by_id:
                raise ValidationError(f"Duplicate node id: {node.id}")
            self._by_id[node.id] = node

    def __iter__(self) -> Iterator[PlanNode]:
        return iter(self.nodes)

    def __len__(self) -> int:
        return len(self.nodes)

    def __contains__(self, node_id: object) -> bool:
        return node_id in self._by_id

    def get(self, node_id: str) -> PlanNode | None:
        """Get a node by its id."""
        return self._by_id.get(node_id)

    def tasks(self) -> list[PlanNode]:
        """All task nodes in snapshot order."""
        return [node for node in self.nodes if node.is_task]

    def copy(self) -> PlanSnapshot:
        """Independent working copy; node fields are immutable values."""
        return PlanSnapshot([replace(node) for node in self.nodes])

    def fingerprint(self) -> tuple[tuple[Any, ...], ...]:
        """Stable value describing every node field, for equality checks."""
        return tuple(
            (
                node.id,
                node.kind,
                node.name,
                node.start,
                node.end,
                node.estimated_hours,
                node.is_milestone,
                node.parent_id,
            )
            for node in self.nodes
        )
