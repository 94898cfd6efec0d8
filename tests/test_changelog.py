"""Tests for change log rendering."""

from cascade.changelog import build_change_log, format_value
from cascade.models import ChangeReason, ChangeRecord, Diagnostic
from tests.conftest import at


def test_format_value() -> None:
    assert format_value(None) == "(none)"
    assert format_value(at(3)) == "2025-03-06 08:00"
    assert format_value(True) == "yes"
    assert format_value(8.0) == "8.0"


def test_change_with_detail() -> None:
    record = ChangeRecord(
        node_id="B",
        field="start",
        old=at(0),
        new=at(3),
        reason=ChangeReason.DEPENDENCY_APPLIED,
        detail="FS from A",
        label='task "B"',
    )
    assert build_change_log([record]) == [
        'task "B" start: 2025-03-03 08:00 -> 2025-03-06 08:00 (dependency applied: FS from A)'
    ]


def test_falls_back_to_node_id() -> None:
    record = ChangeRecord("act-1", "end", None, at(4, 17), ChangeReason.PARENT_SPAN_ADJUSTED)
    assert build_change_log([record]) == [
        "act-1 end: (none) -> 2025-03-07 17:00 (parent span adjusted)"
    ]


def test_preserves_production_order() -> None:
    """Lines follow the order records were produced, not node or time order."""
    records = [
        ChangeRecord("Z", "start", at(0), at(1), ChangeReason.DEPENDENCY_APPLIED),
        ChangeRecord("A", "start", at(0), at(2), ChangeReason.SIBLING_RESEQUENCED),
        ChangeRecord("M", "is_milestone", False, True, ChangeReason.MILESTONE_IDENTIFIED),
    ]
    lines = build_change_log(records)
    assert [line.split(" ")[0] for line in lines] == ["Z", "A", "M"]
    assert lines[2] == "M is_milestone: no -> yes (milestone identified)"


def test_diagnostics_follow_changes() -> None:
    record = ChangeRecord("B", "start", at(0), at(3), ChangeReason.DEPENDENCY_APPLIED)
    diagnostic = Diagnostic("A -> B FS", "origin A has no start/end dates")
    lines = build_change_log([record], [diagnostic])
    assert len(lines) == 2
    assert lines[1] == "skipped A -> B FS: origin A has no start/end dates"
