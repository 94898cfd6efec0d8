"""Cascade - hierarchical task-dependency propagation.

Given a plan tree (phase -> EDT -> activity -> task) and dependency edges
between tasks, recompute task dates so that every dependency, the working
calendar, and parent/child date containment hold at once.

Main entry points:
- propagate: Pure propagation over a copy of the plan
- HierarchicalPropagator: The underlying state machine
- audit_plan: Read-only consistency check

Configuration:
- load_config / EngineConfig: YAML configuration
- WorkingCalendar: Working days and shift hours
"""

# Consistency audit
from .audit import AuditFinding, AuditReport, Severity, audit_plan

# Change log
from .changelog import build_change_log

# Configuration
from .config import CalendarConfig, EngineConfig, PropagationConfig, load_config

# Exceptions
from .exceptions import (
    CascadeError,
    CyclicDependencyError,
    InvalidCalendarError,
    InvalidDurationError,
    MissingReferenceError,
    ParseError,
    ValidationError,
)

# Core dataclasses
from .models import (
    ChangeReason,
    ChangeRecord,
    DependencyEdge,
    Diagnostic,
    NodeKind,
    PlanNode,
    PlanSnapshot,
    RelationType,
)

# Propagation
from .propagator import HierarchicalPropagator, PropagationState

# Snapshot loading
from .schemas import load_snapshot, load_snapshot_file

# High-level service
from .service import PropagationResult, propagate, propagate_or_raise

# Working calendar
from .work_calendar import CalendarException, WorkingCalendar

__all__ = [
    "AuditFinding",
    "AuditReport",
    "CalendarConfig",
    "CalendarException",
    "CascadeError",
    "ChangeReason",
    "ChangeRecord",
    "CyclicDependencyError",
    "DependencyEdge",
    "Diagnostic",
    "EngineConfig",
    "HierarchicalPropagator",
    "InvalidCalendarError",
    "InvalidDurationError",
    "MissingReferenceError",
    "NodeKind",
    "ParseError",
    "PlanNode",
    "PlanSnapshot",
    "PropagationConfig",
    "PropagationResult",
    "PropagationState",
    "RelationType",
    "Severity",
    "ValidationError",
    "WorkingCalendar",
    "audit_plan",
    "build_change_log",
    "load_config",
    "load_snapshot",
    "load_snapshot_file",
    "propagate",
    "propagate_or_raise",
]
