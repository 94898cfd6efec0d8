"""Read-only consistency audit of a plan.

Reports the same conditions propagation enforces (containment, dependency
requirements, working-time starts, milestone shape) without changing any
dates. Hosts run it to show a consistency dashboard before or after
propagation.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field
from enum import Enum

from .constraints import missing_dates, resolve_edge
from .graph import HierarchyIndex
from .milestones import is_zero_duration
from .models import DependencyEdge, PlanNode, PlanSnapshot
from .work_calendar import WorkingCalendar


class Severity(str, Enum):
    ERROR = "error"
    WARNING = "warning"


@dataclass(frozen=True)
class AuditFinding:
    """One inconsistency found in the plan."""

    severity: Severity
    node_id: str
    field: str
    message: str
    suggestion: str = ""


@dataclass
class AuditReport:
    """All findings for a plan, in the order they were found."""

    findings: list[AuditFinding] = field(default_factory=list[AuditFinding])
    nodes_checked: int = 0

    @property
    def errors(self) -> list[AuditFinding]:
        return [f for f in self.findings if f.severity == Severity.ERROR]

    @property
    def warnings(self) -> list[AuditFinding]:
        return [f for f in self.findings if f.severity == Severity.WARNING]

    @property
    def is_valid(self) -> bool:
        """True if there are no error-level findings."""
        return not self.errors

    @property
    def nodes_with_findings(self) -> set[str]:
        return {f.node_id for f in self.findings}


def audit_plan(
    plan: PlanSnapshot, edges: Iterable[DependencyEdge], calendar: WorkingCalendar
) -> AuditReport:
    """Check a plan for inconsistencies without modifying it.

    Args:
        plan: Snapshot to check
        edges: Dependency edges of the plan
        calendar: Working calendar used to evaluate requirements

    Returns:
        AuditReport listing every finding

    Raises:
        MissingReferenceError: If a node references an unknown parent
        InvalidCalendarError: If the calendar cannot be used
    """
    calendar.validate()
    hierarchy = HierarchyIndex(plan)
    report = AuditReport(nodes_checked=len(plan))

    for node in plan:
        _check_span(node, report)
        if node.is_task:
            _check_task(node, calendar, report)
        children = [plan.get(child) for child in hierarchy.children(node.id)]
        _check_containment(node, [c for c in children if c is not None and c.has_dates], report)

    for edge in edges:
        _check_edge(plan, edge, calendar, report)

    return report


def _check_span(node: PlanNode, report: AuditReport) -> None:
    if node.start is not None and node.end is not None and node.end < node.start:
        report.findings.append(
            AuditFinding(
                Severity.ERROR,
                node.id,
                "end",
                f"{node.label} ends before it starts",
                "Set the end date on or after the start date",
            )
        )


def _check_task(task: PlanNode, calendar: WorkingCalendar, report: AuditReport) -> None:
    if task.start is not None and calendar.next_working_day(task.start) != task.start:
        report.findings.append(
            AuditFinding(
                Severity.WARNING,
                task.id,
                "start",
                f"{task.label} starts outside working time",
                "Move the start to the next working day",
            )
        )
    if is_zero_duration(task) and task.has_dates and task.start != task.end:
        report.findings.append(
            AuditFinding(
                Severity.ERROR,
                task.id,
                "end",
                f"{task.label} has zero duration but a non-empty span",
                "Set the end date equal to the start date",
            )
        )
    if task.is_milestone and task.has_dates and task.start != task.end:
        report.findings.append(
            AuditFinding(
                Severity.WARNING,
                task.id,
                "is_milestone",
                f"{task.label} is a milestone but spans time",
                "Clear the milestone flag or collapse the span",
            )
        )


def _check_containment(node: PlanNode, children: list[PlanNode], report: AuditReport) -> None:
    if not children:
        return
    start = min(child.start for child in children if child.start is not None)
    end = max(child.end for child in children if child.end is not None)
    if node.start != start:
        report.findings.append(
            AuditFinding(
                Severity.WARNING,
                node.id,
                "start",
                f"{node.label} start does not match its earliest child ({start.isoformat()})",
                "Run propagation to re-span containers",
            )
        )
    if node.end != end:
        report.findings.append(
            AuditFinding(
                Severity.WARNING,
                node.id,
                "end",
                f"{node.label} end does not match its latest child ({end.isoformat()})",
                "Run propagation to re-span containers",
            )
        )


def _check_edge(
    plan: PlanSnapshot, edge: DependencyEdge, calendar: WorkingCalendar, report: AuditReport
) -> None:
    origin = plan.get(edge.origin_id)
    dependent = plan.get(edge.dependent_id)
    if origin is None or dependent is None or not origin.is_task or not dependent.is_task:
        report.findings.append(
            AuditFinding(
                Severity.ERROR,
                edge.dependent_id,
                "dependency",
                f"Dependency {edge} references a node that is not a task in this plan",
                "Remove the dependency",
            )
        )
        return
    if missing_dates(origin) or dependent.start is None:
        return
    required = resolve_edge(edge, origin, dependent, calendar)
    if dependent.start < required:
        report.findings.append(
            AuditFinding(
                Severity.WARNING,
                dependent.id,
                "start",
                f"Dependency {edge} violated: {dependent.label} starts before "
                f"{required.isoformat()}",
                "Adjust dates to respect the dependency",
            )
        )
