"""Pytest configuration and fixtures for cascade tests."""

from __future__ import annotations

from datetime import date, datetime, time, timedelta

import pytest

from cascade.logger import reset_logger
from cascade.models import NodeKind, PlanNode, PlanSnapshot
from cascade.work_calendar import WorkingCalendar

# Monday 3 March 2025; all test plans are laid out in this week and the next
MONDAY = date(2025, 3, 3)


@pytest.fixture
def calendar() -> WorkingCalendar:
    """Standard Monday-Friday, 08:00-12:00 / 13:00-17:00 calendar."""
    return WorkingCalendar.standard()


@pytest.fixture(autouse=True)
def silent_logger() -> None:
    """Reset the cascade logger before each test for isolation."""
    reset_logger()


def at(day: int, hour: int = 8, minute: int = 0) -> datetime:
    """Datetime `day` days after MONDAY at the given time.

    at(0) is Monday 08:00, at(2, 17) is Wednesday 17:00, at(7) is the next Monday.
    """
    return datetime.combine(MONDAY + timedelta(days=day), time(hour, minute))


def task(  # noqa: PLR0913 - mirrors PlanNode fields
    task_id: str,
    start: datetime | None = None,
    end: datetime | None = None,
    hours: float | None = None,
    parent: str = "act-1",
    *,
    milestone: bool = False,
) -> PlanNode:
    """Create a task node named after its id."""
    return PlanNode(
        id=task_id,
        kind=NodeKind.TASK,
        name=task_id,
        start=start,
        end=end,
        estimated_hours=hours,
        is_milestone=milestone,
        parent_id=parent,
    )


def build_plan(*tasks: PlanNode, activities: tuple[str, ...] = ("act-1",)) -> PlanSnapshot:
    """Wrap tasks in one phase, one EDT and the given (undated) activities."""
    nodes = [
        PlanNode(id="ph-1", kind=NodeKind.PHASE, name="Phase 1"),
        PlanNode(id="edt-1", kind=NodeKind.EDT, name="EDT 1", parent_id="ph-1"),
    ]
    nodes.extend(
        PlanNode(id=act, kind=NodeKind.ACTIVITY, name=act, parent_id="edt-1")
        for act in activities
    )
    nodes.extend(tasks)
    return PlanSnapshot(nodes)


def assert_containment(plan: PlanSnapshot) -> None:
    """Every container spans exactly the union of its dated children."""
    for node in plan:
        children = [c for c in plan if c.parent_id == node.id and c.has_dates]
        if not children:
            continue
        assert node.start == min(c.start for c in children if c.start is not None), node.id
        assert node.end == max(c.end for c in children if c.end is not None), node.id
