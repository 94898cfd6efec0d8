"""Human-readable change log."""

from __future__ import annotations

from collections.abc import Iterable
from datetime import datetime
from typing import Any

from .models import ChangeRecord, Diagnostic


def format_value(value: Any) -> str:
    """Render a field value for display."""
    if value is None:
        return "(none)"
    if isinstance(value, datetime):
        return value.strftime("%Y-%m-%d %H:%M")
    if isinstance(value, bool):
        return "yes" if value else "no"
    return str(value)


def format_change(record: ChangeRecord) -> str:
    """Describe one change, e.g. 'task "Pour slab" start: ... -> ... (dependency applied: FS from A)'."""
    reason = record.reason.value
    if record.detail:
        reason += f": {record.detail}"
    label = record.label or record.node_id
    return (
        f"{label} {record.field}: {format_value(record.old)} -> "
        f"{format_value(record.new)} ({reason})"
    )


def build_change_log(
    records: Iterable[ChangeRecord], diagnostics: Iterable[Diagnostic] = ()
) -> list[str]:
    """Render records in the order they were produced.

    The order documents causal propagation order and is never re-sorted.
    Diagnostics for skipped edges and containers follow the changes.
    """
    lines = [format_change(record) for record in records]
    lines.extend(f"skipped {diag.subject_id}: {diag.message}" for diag in diagnostics)
    return lines
