"""Text rendering helpers for exported tables and comparison lines."""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

from task_analytics.application.reporting.metrics import fmt_change, fmt_count_pct, fmt_hours
from task_analytics.domain.models import ColumnSpec, ComparisonRow, TableRow


def cell_text(row: TableRow, column: ColumnSpec) -> Any:
    if column.kind == "label":
        return row.label
    if column.key == "total":
        return row.count
    if column.key == "totalHours":
        return row.hours
    if column.key in row.extra:
        return row.extra[column.key]
    cell = row.cells.get(column.key)
    if cell is None:
        return ""
    return fmt_count_pct(cell.count, cell.percentage)


def table_records(rows: Sequence[TableRow], columns: Sequence[ColumnSpec]) -> List[Dict[str, Any]]:
    """Flatten rows into header-keyed records, e.g. ``{"Market": "RO", "RO": "2 (67%)"}``."""
    records: List[Dict[str, Any]] = []
    for row in rows:
        records.append({column.header: cell_text(row, column) for column in columns})
    return records


def comparison_line(row: ComparisonRow, labels: Sequence[str]) -> str:
    values = [row.period1, row.period2]
    if row.period3 is not None:
        values.append(row.period3)
    rendered = [fmt_hours(value) if "Hours" in row.metric else f"{value:g}" for value in values]
    periods = " -> ".join(f"{label} {value}" for label, value in zip(labels, rendered))
    return f"{row.metric}: {periods} ({fmt_change(row.change_percent)})"


def comparison_summary(rows: Sequence[ComparisonRow], labels: Sequence[str]) -> str:
    if not rows:
        return "No comparison data."
    return " | ".join(comparison_line(row, labels) for row in rows)
