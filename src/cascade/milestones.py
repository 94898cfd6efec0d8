"""Milestone classification pass."""

from __future__ import annotations

from collections.abc import Iterable

from .models import ChangeReason, ChangeRecord, PlanNode


def is_zero_duration(task: PlanNode) -> bool:
    """True if the task is estimated at exactly zero hours."""
    return task.estimated_hours is not None and task.estimated_hours == 0


def classify_milestones(tasks: Iterable[PlanNode]) -> list[ChangeRecord]:
    """Flag tasks with zero duration or start == end as milestones.

    Only sets the is_milestone flag; a task already flagged is never
    un-marked by this pass.
    """
    changes: list[ChangeRecord] = []
    for task in tasks:
        if not task.is_task or task.is_milestone:
            continue
        instant = task.has_dates and task.start == task.end
        if is_zero_duration(task) or instant:
            task.is_milestone = True
            changes.append(
                ChangeRecord(
                    node_id=task.id,
                    field="is_milestone",
                    old=False,
                    new=True,
                    reason=ChangeReason.MILESTONE_IDENTIFIED,
                    label=task.label,
                )
            )
    return changes
