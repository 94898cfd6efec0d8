"""Pydantic schemas for plan snapshots exchanged with the host.

The host's persistence layer hands the engine plain mappings (rows read
from its store, or a JSON/YAML document). These schemas validate them and
convert to the engine's dataclasses:

    nodes:
      - id: act-1
        kind: activity
        parent_id: edt-1
      - id: t-1
        kind: task
        parent_id: act-1
        start: 2025-03-03T08:00:00
        end: 2025-03-05T17:00:00
        estimated_hours: 24
    edges:
      - origin_id: t-1
        dependent_id: t-2
        relation: FS
        lag: +2d
"""

from __future__ import annotations

from datetime import datetime, timedelta
from pathlib import Path
from typing import Any

import pydantic
import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .exceptions import ParseError
from .models import DependencyEdge, NodeKind, PlanNode, PlanSnapshot, RelationType, parse_lag


class NodeSchema(BaseModel):
    """One phase, EDT, activity or task row."""

    id: str
    kind: NodeKind
    name: str = ""
    start: datetime | None = None
    end: datetime | None = None
    estimated_hours: float | None = None
    is_milestone: bool = False
    parent_id: str | None = None

    @model_validator(mode="after")
    def check_span(self) -> NodeSchema:
        if self.start is not None and self.end is not None and self.end < self.start:
            raise ValueError(f"Node {self.id} ends before it starts")
        return self

    def to_node(self) -> PlanNode:
        return PlanNode(
            id=self.id,
            kind=self.kind,
            name=self.name,
            start=self.start,
            end=self.end,
            estimated_hours=self.estimated_hours,
            is_milestone=self.is_milestone,
            parent_id=self.parent_id,
        )


class EdgeSchema(BaseModel):
    """One dependency row.

    The lag may be given as ``lag_minutes`` (as stored by the host) or as a
    lag string such as ``"+2d"``; not both.
    """

    origin_id: str
    dependent_id: str
    relation: RelationType = RelationType.FINISH_TO_START
    lag_minutes: float | None = None
    lag: str | None = None

    @field_validator("relation", mode="before")
    @classmethod
    def parse_relation(cls, v: Any) -> RelationType:
        """Accept "finish_to_start" as well as "FS"."""
        if not isinstance(v, str):
            raise ValueError(f"Invalid relation: {v!r}")
        try:
            return RelationType.parse(v)
        except ParseError as e:
            raise ValueError(str(e)) from e

    @field_validator("lag")
    @classmethod
    def check_lag_format(cls, v: str | None) -> str | None:
        if v is not None:
            try:
                parse_lag(v)
            except ParseError as e:
                raise ValueError(str(e)) from e
        return v

    @model_validator(mode="after")
    def check_lag(self) -> EdgeSchema:
        if self.lag_minutes is not None and self.lag is not None:
            raise ValueError("Specify either lag_minutes or lag, not both")
        return self

    def to_edge(self) -> DependencyEdge:
        if self.lag is not None:
            lag = parse_lag(self.lag)
        else:
            lag = timedelta(minutes=self.lag_minutes or 0)
        return DependencyEdge(
            origin_id=self.origin_id,
            dependent_id=self.dependent_id,
            relation=self.relation,
            lag=lag,
        )


class SnapshotSchema(BaseModel):
    """A full plan snapshot: ordered nodes plus ordered edges."""

    nodes: list[NodeSchema] = Field(default_factory=list[NodeSchema])
    edges: list[EdgeSchema] = Field(default_factory=list[EdgeSchema])


def load_snapshot(data: dict[str, Any]) -> tuple[PlanSnapshot, list[DependencyEdge]]:
    """Validate a snapshot mapping and convert it to engine types.

    Raises:
        ParseError: If the mapping does not match the schema
        ValidationError: If node ids repeat or an edge is a self-dependency
    """
    try:
        schema = SnapshotSchema.model_validate(data)
    except pydantic.ValidationError as e:
        raise ParseError(f"Invalid plan snapshot: {e}") from e

    plan = PlanSnapshot([node.to_node() for node in schema.nodes])
    edges = [edge.to_edge() for edge in schema.edges]
    return plan, edges


def load_snapshot_file(path: Path | str) -> tuple[PlanSnapshot, list[DependencyEdge]]:
    """Read a snapshot from a YAML (or JSON) file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ParseError: If the file is not a valid snapshot
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Snapshot file not found: {path}")

    with path.open(encoding="utf-8") as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ParseError("Snapshot must be a mapping at the root level")
    return load_snapshot(data)
