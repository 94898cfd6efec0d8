"""High-level propagation entry points."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from .changelog import build_change_log
from .config import PropagationConfig
from .exceptions import ValidationError
from .models import ChangeRecord, DependencyEdge, Diagnostic, PlanSnapshot
from .propagator import HierarchicalPropagator, PropagationState
from .work_calendar import WorkingCalendar


@dataclass
class PropagationResult:
    """Outcome of one propagation call.

    On a fatal error ``plan`` is the unmodified input snapshot and
    ``changes`` is empty. Otherwise ``plan`` is a new snapshot carrying
    the propagated dates; the caller writes back the fields named in
    ``changes``.
    """

    plan: PlanSnapshot
    changes: list[ChangeRecord] = field(default_factory=list[ChangeRecord])
    diagnostics: list[Diagnostic] = field(default_factory=list[Diagnostic])
    error: ValidationError | None = None
    change_log: list[str] = field(default_factory=list[str])
    state: PropagationState = PropagationState.IDLE

    @property
    def ok(self) -> bool:
        """True if the run completed without a fatal error."""
        return self.error is None


def propagate(
    plan: PlanSnapshot,
    edges: Iterable[DependencyEdge],
    calendar: WorkingCalendar,
    config: PropagationConfig | None = None,
) -> PropagationResult:
    """Propagate dependency edges through a plan without touching the input.

    Cycles, invalid calendars and negative durations are returned in
    ``result.error``. Structural problems with the hierarchy (unknown or
    mismatched parents) are raised, since they indicate a malformed
    snapshot rather than a planning conflict.

    Raises:
        MissingReferenceError: If a node references an unknown parent
        ValidationError: If a node's parent is of the wrong kind
    """
    working = plan.copy()
    propagator = HierarchicalPropagator(working, list(edges), calendar, config)
    try:
        changes = propagator.run()
    except ValidationError as e:
        return PropagationResult(plan=plan, error=e, state=propagator.state)

    return PropagationResult(
        plan=working,
        changes=changes,
        diagnostics=propagator.diagnostics,
        change_log=build_change_log(changes, propagator.diagnostics),
        state=propagator.state,
    )


def propagate_or_raise(
    plan: PlanSnapshot,
    edges: Iterable[DependencyEdge],
    calendar: WorkingCalendar,
    config: PropagationConfig | None = None,
) -> PropagationResult:
    """Like propagate(), but raise the fatal error instead of returning it."""
    result = propagate(plan, edges, calendar, config)
    if result.error is not None:
        raise result.error
    return result
