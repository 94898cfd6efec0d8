"""Constraint resolution for a single dependency edge."""

from __future__ import annotations

from datetime import datetime, timedelta

from .models import DependencyEdge, PlanNode, RelationType
from .work_calendar import WorkingCalendar


def resolve_required_start(  # noqa: PLR0913 - mirrors the relation formula inputs
    relation: RelationType,
    origin_start: datetime,
    origin_end: datetime,
    dependent_hours: float,
    lag: timedelta,
    calendar: WorkingCalendar,
) -> datetime:
    """Compute the dependent task's required start under one relation.

    - FS: origin_end + lag
    - SS: origin_start + lag
    - FF: (origin_end + lag) - dependent_hours of working time
    - SF: (origin_start + lag) - dependent_hours of working time

    The lag is wall-clock time applied before snapping to working time, so
    a 2-day lag from a Friday evening lands on Monday, not Tuesday. For FF
    and SF the dependent then finishes exactly at the required finish (or
    at the last shift end before it, if that falls outside working time).
    """
    if relation == RelationType.FINISH_TO_START:
        required = origin_end + lag
    elif relation == RelationType.START_TO_START:
        required = origin_start + lag
    elif relation == RelationType.FINISH_TO_FINISH:
        required = calendar.subtract_working_hours(origin_end + lag, dependent_hours)
    else:
        required = calendar.subtract_working_hours(origin_start + lag, dependent_hours)
    return calendar.next_working_day(required)


def task_hours(
    task: PlanNode, calendar: WorkingCalendar, default_hours: float | None = None
) -> float:
    """Working hours a task occupies.

    The estimate if there is one, else the working time of its current
    span, else default_hours, else one calendar day.
    """
    if task.estimated_hours is not None:
        return task.estimated_hours
    if task.start is not None and task.end is not None:
        return calendar.working_hours_between(task.start, task.end)
    if default_hours is not None:
        return default_hours
    return calendar.hours_per_day


def missing_dates(origin: PlanNode) -> str | None:
    """Describe why edges from origin cannot be evaluated, or None if they can."""
    if not origin.has_dates:
        return f"origin {origin.id} has no start/end dates"
    return None


def resolve_edge(
    edge: DependencyEdge,
    origin: PlanNode,
    dependent: PlanNode,
    calendar: WorkingCalendar,
    default_hours: float | None = None,
) -> datetime:
    """Required start of the dependent for one edge.

    Raises:
        ValueError: If the origin has no start/end dates
    """
    if origin.start is None or origin.end is None:
        raise ValueError(f"origin {origin.id} has no start/end dates")
    return resolve_required_start(
        edge.relation,
        origin.start,
        origin.end,
        task_hours(dependent, calendar, default_hours),
        edge.lag,
        calendar,
    )
