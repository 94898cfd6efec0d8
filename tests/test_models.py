"""Tests for data models."""

from datetime import timedelta

import pytest

from cascade.exceptions import ParseError, ValidationError
from cascade.models import (
    DependencyEdge,
    NodeKind,
    PlanNode,
    PlanSnapshot,
    RelationType,
    format_lag,
    parse_lag,
)
from tests.conftest import at, build_plan, task


class TestRelationType:
    """Test relation codes and parsing."""

    @pytest.mark.parametrize(
        ("relation", "code"),
        [
            (RelationType.FINISH_TO_START, "FS"),
            (RelationType.START_TO_START, "SS"),
            (RelationType.FINISH_TO_FINISH, "FF"),
            (RelationType.START_TO_FINISH, "SF"),
        ],
    )
    def test_code(self, relation: RelationType, code: str) -> None:
        assert relation.code == code
        assert RelationType.parse(code) == relation
        assert RelationType.parse(relation.value) == relation

    def test_parse_is_case_insensitive(self) -> None:
        assert RelationType.parse("ss") == RelationType.START_TO_START
        assert RelationType.parse("Finish_To_Finish") == RelationType.FINISH_TO_FINISH

    def test_parse_unknown(self) -> None:
        with pytest.raises(ParseError, match="Unknown dependency relation"):
            RelationType.parse("XX")


class TestLag:
    """Test lag parsing and formatting."""

    def test_parse_units(self) -> None:
        assert parse_lag("30m") == timedelta(minutes=30)
        assert parse_lag("4h") == timedelta(hours=4)
        assert parse_lag("+2d") == timedelta(days=2)
        assert parse_lag("1w") == timedelta(weeks=1)
        assert parse_lag("1.5d") == timedelta(hours=36)

    def test_parse_negative_lead(self) -> None:
        assert parse_lag("-4h") == -timedelta(hours=4)

    def test_parse_invalid(self) -> None:
        with pytest.raises(ParseError):
            parse_lag("2y")

    def test_format_uses_largest_exact_unit(self) -> None:
        assert format_lag(timedelta(days=2)) == "+2d"
        assert format_lag(timedelta(weeks=1)) == "+1w"
        assert format_lag(timedelta(hours=36)) == "+36h"
        assert format_lag(-timedelta(hours=4)) == "-4h"
        assert format_lag(timedelta(0)) == "0m"


class TestDependencyEdge:
    """Test dependency edges."""

    def test_defaults_to_finish_to_start(self) -> None:
        edge = DependencyEdge("a", "b")
        assert edge.relation == RelationType.FINISH_TO_START
        assert edge.lag == timedelta(0)

    def test_self_dependency_rejected(self) -> None:
        with pytest.raises(ValidationError, match="cannot depend on itself"):
            DependencyEdge("a", "a")

    def test_parse_with_relation_and_lag(self) -> None:
        edge = DependencyEdge.parse("a -> b FS + 2d")
        assert edge == DependencyEdge("a", "b", RelationType.FINISH_TO_START, timedelta(days=2))
        assert str(edge) == "a -> b FS + 2d"

    def test_parse_lead(self) -> None:
        edge = DependencyEdge.parse("a -> b FF - 4h")
        assert edge.relation == RelationType.FINISH_TO_FINISH
        assert edge.lag == -timedelta(hours=4)

    def test_parse_plain(self) -> None:
        edge = DependencyEdge.parse("a -> b")
        assert edge == DependencyEdge("a", "b")
        assert str(edge) == "a -> b FS"

    def test_parse_invalid(self) -> None:
        with pytest.raises(ParseError, match="Invalid dependency"):
            DependencyEdge.parse("a depends on b")


class TestPlanNode:
    """Test plan node helpers."""

    def test_parent_kinds(self) -> None:
        assert NodeKind.TASK.parent_kind == NodeKind.ACTIVITY
        assert NodeKind.ACTIVITY.parent_kind == NodeKind.EDT
        assert NodeKind.EDT.parent_kind == NodeKind.PHASE
        assert NodeKind.PHASE.parent_kind is None

    def test_label(self) -> None:
        node = PlanNode("t1", NodeKind.TASK, name="Pour slab", start=at(0), end=at(0, 17))
        assert node.label == 'task "Pour slab"'
        assert node.is_task
        assert node.has_dates

    def test_label_falls_back_to_id(self) -> None:
        assert PlanNode("a1", NodeKind.ACTIVITY).label == 'activity "a1"'

    def test_undated_node(self) -> None:
        node = PlanNode("t1", NodeKind.TASK, start=at(0))
        assert not node.has_dates


class TestPlanSnapshot:
    """Test the plan snapshot container."""

    def test_lookup(self) -> None:
        plan = build_plan(task("A", at(0), at(0, 17)))
        assert "A" in plan
        assert "missing" not in plan
        assert plan.get("A") is not None
        assert plan.get("missing") is None
        assert [node.id for node in plan.tasks()] == ["A"]
        assert len(plan) == 4

    def test_duplicate_ids_rejected(self) -> None:
        with pytest.raises(ValidationError, match="Duplicate node id"):
            PlanSnapshot([task("A"), task("A")])

    def test_copy_is_independent(self) -> None:
        plan = build_plan(task("A", at(0), at(0, 17)))
        before = plan.fingerprint()
        working = plan.copy()
        assert working.fingerprint() == before

        copied = working.get("A")
        assert copied is not None
        copied.start = at(1)
        assert plan.fingerprint() == before
        assert working.fingerprint() != before
