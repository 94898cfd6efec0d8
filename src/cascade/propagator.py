"""Hierarchical propagation of date changes through a plan.

One run moves every task whose dependency requirement differs from its
current start, then cascades each move in three directions:

- up: containers are re-spanned to the union of their children
- down: siblings of a moved task are re-sequenced finish-to-start + 1 day
- across: tasks depending on a moved task have their edges re-enforced

Termination does not rely on dates converging. The edge graph is proven
acyclic before any mutation, each sibling is re-sequenced at most once per
run, and a task whose dates have not changed since it was last processed
is not processed again.
"""

from __future__ import annotations

from collections import deque
from datetime import datetime, time, timedelta
from enum import Enum

from cascade.logger import changes_enabled, checks_enabled, debug_enabled, get_logger

from .config import PropagationConfig
from .constraints import missing_dates, resolve_edge, task_hours
from .cycles import find_cycle
from .exceptions import CyclicDependencyError, InvalidDurationError
from .graph import HierarchyIndex, build_graph
from .milestones import classify_milestones, is_zero_duration
from .models import (
    ChangeReason,
    ChangeRecord,
    DependencyEdge,
    Diagnostic,
    PlanNode,
    PlanSnapshot,
)
from .work_calendar import WorkingCalendar

logger = get_logger()


class PropagationState(str, Enum):
    """States of a single propagation run."""

    IDLE = "idle"
    VALIDATING = "validating"
    RESOLVING = "resolving"
    PROPAGATING_UP = "propagating_up"
    PROPAGATING_DOWN = "propagating_down"
    PROPAGATING_ACROSS = "propagating_across"
    CLASSIFYING = "classifying"
    DONE = "done"
    ABORTED = "aborted"


class HierarchicalPropagator:
    """Applies dependency edges to a plan and cascades the resulting moves.

    The plan passed in is mutated in place; callers wanting the input left
    untouched should pass ``plan.copy()`` (``cascade.service.propagate``
    does this). An instance performs a single run.
    """

    def __init__(
        self,
        plan: PlanSnapshot,
        edges: list[DependencyEdge],
        calendar: WorkingCalendar,
        config: PropagationConfig | None = None,
    ):
        """Index the plan and edges.

        Args:
            plan: Working copy to mutate
            edges: Dependency edges in the order they should be resolved
            calendar: Working calendar for all date arithmetic
            config: Optional switches for the optional passes

        Raises:
            MissingReferenceError: If a node references an unknown parent
            ValidationError: If a node's parent is of the wrong kind
        """
        self.plan = plan
        self.calendar = calendar
        self.config = config or PropagationConfig()
        self.graph = build_graph(edges)
        self.hierarchy = HierarchyIndex(plan)

        self.state = PropagationState.IDLE
        self.changes: list[ChangeRecord] = []
        self.diagnostics: list[Diagnostic] = []
        self._seen_diagnostics: set[Diagnostic] = set()
        self._anchored: set[str] = set()  # Moved by an edge; never re-sequenced
        self._resequenced: set[str] = set()
        self._visited: dict[str, tuple[datetime | None, datetime | None]] = {}
        self._pending: deque[str] = deque()

    # ------------------------------------------------------------------
    # Entry points

    def validate(self) -> None:
        """Check every fatal condition before anything is mutated.

        Raises:
            InvalidCalendarError: If the calendar cannot be used
            InvalidDurationError: If a task has a negative estimate
            CyclicDependencyError: If the edges contain a cycle
        """
        self._transition(PropagationState.VALIDATING)
        try:
            self.calendar.validate()
            for task in self.plan.tasks():
                if task.estimated_hours is not None and task.estimated_hours < 0:
                    raise InvalidDurationError(
                        f"Task {task.id} has negative estimated hours: {task.estimated_hours}"
                    )
            cycle = find_cycle(self.graph)
            if cycle:
                raise CyclicDependencyError(cycle)
        except Exception:
            self._transition(PropagationState.ABORTED)
            raise

    def run(self) -> list[ChangeRecord]:
        """Validate, propagate and classify.

        Returns:
            ChangeRecords in the order the mutations happened
        """
        self.validate()

        self._transition(PropagationState.RESOLVING)
        self._pin_zero_duration_tasks()
        if self.config.reconcile_containers:
            self._reconcile_containers()
        self._resolve_all()

        while self._pending:
            task_id = self._pending.popleft()
            task = self.plan.get(task_id)
            if task is None or self._visited.get(task_id) == (task.start, task.end):
                continue
            self._visited[task_id] = (task.start, task.end)

            self._transition(PropagationState.PROPAGATING_UP)
            self._propagate_up(task_id)
            if self.config.resequence_siblings and task_id in self._anchored:
                self._transition(PropagationState.PROPAGATING_DOWN)
                self._propagate_down(task)
            self._transition(PropagationState.PROPAGATING_ACROSS)
            self._propagate_across(task_id)

        if self.config.classify_milestones:
            self._transition(PropagationState.CLASSIFYING)
            for record in classify_milestones(self.plan.tasks()):
                self._record(record)

        self._transition(PropagationState.DONE)
        return self.changes

    # ------------------------------------------------------------------
    # Resolving

    def _resolve_all(self) -> None:
        for edge in self.graph.edges:
            self._enforce(edge.dependent_id, ChangeReason.DEPENDENCY_APPLIED)

    def _enforce(self, task_id: str, reason: ChangeReason) -> bool:
        """Move a task to the start its incoming edges require.

        Returns:
            True if the task's dates changed
        """
        task = self.plan.get(task_id)
        if task is None or not task.is_task:
            self._diagnose(task_id, "dependent is not a task in this plan")
            return False

        binding = self._binding_requirement(task)
        if binding is None:
            return False
        required, edge = binding
        if required == task.start:
            return False

        self._anchored.add(task_id)
        detail = f"{edge.relation.code} from {edge.origin_id}"
        moved = self._move_task(task, required, reason, detail)
        if moved:
            self._pending.append(task_id)
        return moved

    def _binding_requirement(
        self, task: PlanNode
    ) -> tuple[datetime, DependencyEdge] | None:
        """Latest required start over all evaluable incoming edges."""
        binding: tuple[datetime, DependencyEdge] | None = None
        for edge in self.graph.origins_of(task.id):
            origin = self.plan.get(edge.origin_id)
            if origin is None or not origin.is_task:
                self._diagnose(str(edge), f"origin {edge.origin_id} is not a task in this plan")
                continue
            reason = missing_dates(origin)
            if reason:
                self._diagnose(str(edge), reason)
                continue
            required = resolve_edge(
                edge, origin, task, self.calendar, self.config.default_task_hours
            )
            if checks_enabled():
                logger.checks(f"  {edge}: {task.id} must start at {required.isoformat()}")
            if binding is None or required > binding[0]:
                binding = (required, edge)
        return binding

    def _move_task(
        self, task: PlanNode, start: datetime, reason: ChangeReason, detail: str
    ) -> bool:
        # Duration is read before the start changes
        end = self.calendar.add_working_hours(start, self._task_hours(task))
        return self._set_dates(task, start, end, reason, detail)

    def _task_hours(self, task: PlanNode) -> float:
        return task_hours(task, self.calendar, self.config.default_task_hours)

    def _pin_zero_duration_tasks(self) -> None:
        for task in self.plan.tasks():
            if is_zero_duration(task) and task.start is not None and task.end != task.start:
                self._set_dates(task, task.start, task.start, ChangeReason.MILESTONE_PINNED)

    # ------------------------------------------------------------------
    # Up

    def _reconcile_containers(self) -> None:
        for container_id in self.hierarchy.containers_bottom_up():
            self._roll_up(container_id)

    def _propagate_up(self, node_id: str) -> None:
        """Re-span each ancestor, stopping at the first that does not change."""
        for ancestor_id in self.hierarchy.ancestors(node_id):
            if not self._roll_up(ancestor_id):
                break

    def _roll_up(self, container_id: str) -> bool:
        container = self.plan.get(container_id)
        if container is None:
            return False
        children = [self.plan.get(child) for child in self.hierarchy.children(container_id)]
        dated = [child for child in children if child is not None and child.has_dates]
        if not dated:
            self._diagnose(container_id, "no child has dates")
            return False

        start = min(child.start for child in dated if child.start is not None)
        end = max(child.end for child in dated if child.end is not None)
        if checks_enabled():
            logger.checks(f"  {container.label} spans {start.isoformat()} - {end.isoformat()}")
        return self._set_dates(container, start, end, ChangeReason.PARENT_SPAN_ADJUSTED)

    # ------------------------------------------------------------------
    # Down

    def _propagate_down(self, task: PlanNode) -> None:
        """Re-sequence a moved task's siblings after it, one working day apart.

        Siblings are chained in order of their current start, each beginning
        the working day after the previous one ends. The task's own origins,
        siblings already moved by an edge, and siblings already re-sequenced
        this run keep their dates. Each re-sequenced sibling has its incoming
        edges re-enforced afterwards, so edges win over sequencing.
        """
        if task.start is None or task.end is None:
            return
        origins = {edge.origin_id for edge in self.graph.origins_of(task.id)}
        candidates: list[tuple[datetime, PlanNode]] = []
        for sibling_id in self.hierarchy.siblings(task.id):
            if sibling_id in self._anchored or sibling_id in self._resequenced:
                continue
            sibling = self.plan.get(sibling_id)
            if sibling is None or not sibling.is_task or sibling_id in origins:
                continue
            if sibling.start is None:
                self._diagnose(sibling_id, "no start date to re-sequence")
                continue
            candidates.append((sibling.start, sibling))
        if not candidates:
            return

        # sort() is stable, so ties keep snapshot order
        candidates.sort(key=lambda candidate: candidate[0])
        previous_end = task.end
        previous_id = task.id
        for _, sibling in candidates:
            self._resequenced.add(sibling.id)
            start = self.calendar.next_working_day(
                datetime.combine(
                    previous_end.date() + timedelta(days=1), time.min, tzinfo=previous_end.tzinfo
                )
            )
            end = self.calendar.add_working_hours(start, self._task_hours(sibling))
            detail = f"after {previous_id}"
            if self._set_dates(sibling, start, end, ChangeReason.SIBLING_RESEQUENCED, detail):
                self._propagate_up(sibling.id)
            previous_end = end
            previous_id = sibling.id

        for _, sibling in candidates:
            if not self._enforce(sibling.id, ChangeReason.DEPENDENCY_APPLIED):
                self._pending.append(sibling.id)

    # ------------------------------------------------------------------
    # Across

    def _propagate_across(self, task_id: str) -> None:
        for edge in self.graph.dependents_of(task_id):
            self._enforce(edge.dependent_id, ChangeReason.TRANSVERSAL_DEPENDENCY)

    # ------------------------------------------------------------------
    # Bookkeeping

    def _set_dates(
        self,
        node: PlanNode,
        start: datetime,
        end: datetime,
        reason: ChangeReason,
        detail: str = "",
    ) -> bool:
        """Assign dates, recording one ChangeRecord per field that changed."""
        changed = False
        for field_name, new in (("start", start), ("end", end)):
            old = getattr(node, field_name)
            if old == new:
                continue
            setattr(node, field_name, new)
            self._record(
                ChangeRecord(
                    node_id=node.id,
                    field=field_name,
                    old=old,
                    new=new,
                    reason=reason,
                    detail=detail,
                    label=node.label,
                )
            )
            changed = True
        return changed

    def _record(self, record: ChangeRecord) -> None:
        self.changes.append(record)
        if changes_enabled():
            logger.changes(
                f"{record.label or record.node_id} {record.field}: "
                f"{record.old} -> {record.new} ({record.reason.value})"
            )

    def _diagnose(self, subject_id: str, message: str) -> None:
        diagnostic = Diagnostic(subject_id, message)
        if diagnostic in self._seen_diagnostics:
            return
        self._seen_diagnostics.add(diagnostic)
        self.diagnostics.append(diagnostic)
        logger.warning(f"Skipped {subject_id}: {message}")

    def _transition(self, state: PropagationState) -> None:
        if state != self.state and debug_enabled():
            logger.debug(f"{self.state.value} -> {state.value}")
        self.state = state
