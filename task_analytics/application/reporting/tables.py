"""Table rows, grand totals and column specs built from aggregation buckets."""

from __future__ import annotations

from typing import Any, Callable, Dict, Hashable, List, Mapping, Optional, Sequence

from task_analytics.application.reporting.metrics import round_hours
from task_analytics.application.reporting.percentages import allocate_percentages
from task_analytics.domain.models import AggregationBucket, ColumnSpec, TableCell, TableRow

NO_DATA_LABEL = "No data"
GRAND_TOTAL_LABEL = "Grand Total"


def _row_value(key: Any) -> Hashable:
    if isinstance(key, tuple):
        return key[0]
    return key


def column_universe(cell_buckets: Mapping[tuple, AggregationBucket]) -> List[str]:
    return sorted({key[1] for key in cell_buckets})


def build_cells(counts: Mapping[str, int], columns: Sequence[str]) -> Dict[str, TableCell]:
    """One cell per column; percentages share the row's summed cell counts."""
    ordered = [(column, int(counts.get(column, 0))) for column in columns]
    percentages = allocate_percentages(ordered, sum(count for _, count in ordered))
    return {column: TableCell(count=count, percentage=percentages[column]) for column, count in ordered}


def no_data_row(columns: Sequence[str] = (), label: str = NO_DATA_LABEL) -> TableRow:
    cells = {column: TableCell(count=0, percentage=0) for column in columns}
    return TableRow(label=label, count=0, hours=0.0, cells=cells, no_data=True)


def build_table(
    cell_buckets: Mapping[tuple, AggregationBucket],
    row_totals: Mapping[Any, AggregationBucket],
    *,
    columns: Optional[Sequence[str]] = None,
    label_for: Callable[[Any], str] = str,
    include_grand_total: bool = True,
) -> List[TableRow]:
    """Rows keyed by the first bucket dimension, one cell per second-dimension value.

    ``row_totals`` holds the distinct-task count/hours per row and is the only
    source of a row's ``count``/``hours``; cell counts never add up into it.
    """
    universe = list(columns) if columns is not None else column_universe(cell_buckets)

    counts_by_row: Dict[Hashable, Dict[str, int]] = {}
    for key, bucket in cell_buckets.items():
        counts_by_row.setdefault(key[0], {})[key[1]] = bucket.task_count

    totals_by_row: Dict[Hashable, AggregationBucket] = {}
    for key, bucket in row_totals.items():
        totals_by_row[_row_value(key)] = bucket

    row_values = list(dict.fromkeys([*totals_by_row, *counts_by_row]))
    if not row_values:
        return [no_data_row(universe)]

    rows: List[TableRow] = []
    for value in row_values:
        total = totals_by_row.get(value)
        rows.append(
            TableRow(
                label=label_for(value),
                count=total.task_count if total else 0,
                hours=round_hours(total.hours) if total else 0.0,
                cells=build_cells(counts_by_row.get(value, {}), universe),
                key=value,
            )
        )
    rows = sort_rows(rows)
    if include_grand_total:
        rows.append(build_grand_total(rows))
    return rows


def sort_rows(rows: Sequence[TableRow]) -> List[TableRow]:
    return sorted(rows, key=lambda row: (-row.count, -row.hours, row.label))


def build_grand_total(
    rows: Sequence[TableRow],
    *,
    sum_extra: Sequence[str] = (),
    label: str = GRAND_TOTAL_LABEL,
) -> TableRow:
    """Sum of all data rows; cells carry counts only.

    Total rows and breakdown rows (those with a ``parent``) are skipped.
    """
    counted = [row for row in rows if not row.is_total and row.parent is None]
    cell_counts: Dict[str, int] = {}
    for row in counted:
        for column, cell in row.cells.items():
            cell_counts[column] = cell_counts.get(column, 0) + cell.count
    extra: Dict[str, Any] = {}
    for name in sum_extra:
        value = sum(row.extra.get(name, 0) or 0 for row in counted)
        extra[name] = round_hours(value) if isinstance(value, float) else value
    return TableRow(
        label=label,
        count=sum(row.count for row in counted),
        hours=round_hours(sum(row.hours for row in counted)),
        cells={column: TableCell(count=count) for column, count in cell_counts.items()},
        is_total=True,
        extra=extra,
    )


def build_columns(
    label_header: str,
    columns: Sequence[str],
    *,
    include_hours: bool,
    extra_columns: Sequence[ColumnSpec] = (),
    column_header: Callable[[str], str] = str,
) -> List[ColumnSpec]:
    specs = [
        ColumnSpec(key="label", header=label_header, align="left", kind="label"),
        ColumnSpec(key="total", header="Total Tasks", highlight=True, kind="count"),
    ]
    if include_hours:
        specs.append(ColumnSpec(key="totalHours", header="Total Hours", highlight=True, kind="hours"))
    specs.extend(extra_columns)
    specs.extend(ColumnSpec(key=column, header=column_header(column)) for column in columns)
    return specs
