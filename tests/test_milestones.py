"""Tests for milestone classification."""

from cascade.milestones import classify_milestones
from cascade.models import ChangeReason, NodeKind, PlanNode
from tests.conftest import at, task


class TestClassifyMilestones:
    """Test the milestone flag pass."""

    def test_zero_hours_is_milestone(self) -> None:
        gate = task("gate", at(1), at(1), hours=0)
        records = classify_milestones([gate])
        assert gate.is_milestone
        assert len(records) == 1
        assert records[0].field == "is_milestone"
        assert records[0].old is False
        assert records[0].new is True
        assert records[0].reason == ChangeReason.MILESTONE_IDENTIFIED

    def test_zero_hours_without_dates_is_milestone(self) -> None:
        gate = task("gate", hours=0)
        classify_milestones([gate])
        assert gate.is_milestone

    def test_instant_span_is_milestone(self) -> None:
        gate = task("gate", at(1, 10), at(1, 10))
        classify_milestones([gate])
        assert gate.is_milestone

    def test_regular_task_unchanged(self) -> None:
        work = task("work", at(0), at(0, 17), hours=8)
        assert classify_milestones([work]) == []
        assert not work.is_milestone

    def test_never_unmarks(self) -> None:
        """An existing milestone flag survives even if the task now spans time."""
        flagged = task("flagged", at(0), at(0, 17), hours=8, milestone=True)
        assert classify_milestones([flagged]) == []
        assert flagged.is_milestone

    def test_ignores_containers(self) -> None:
        activity = PlanNode("act", NodeKind.ACTIVITY, start=at(0), end=at(0))
        assert classify_milestones([activity]) == []
        assert not activity.is_milestone
