"""Group normalized tasks into count/hour buckets by one or two dimensions."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Callable, Dict, Iterable, List, Mapping, Optional, Sequence, Tuple

import polars as pl

from task_analytics.domain.fields import normalize
from task_analytics.domain.models import AggregationBucket, NormalizedTask, Totals

logger = logging.getLogger(__name__)

TASK_COLUMN = "_task"
HOURS_COLUMN = "_hours"

Measure = Callable[[NormalizedTask], float]


@dataclass(frozen=True)
class Dimension:
    """A grouping axis. ``extractor`` returns one value, a list of values, or None."""

    name: str
    extractor: Callable[[NormalizedTask], Any]
    multi_valued: bool = False

    def values(self, task: NormalizedTask) -> List[str]:
        raw = self.extractor(task)
        if raw is None:
            return []
        items = raw if self.multi_valued and isinstance(raw, (list, tuple)) else [raw]
        seen: Dict[str, None] = {}
        for item in items:
            if item is None:
                continue
            text = str(item)
            if not text.strip():
                continue
            seen.setdefault(text, None)
        return list(seen)


def reporter_key(task: NormalizedTask) -> Optional[str]:
    """Reporters group by case-insensitive name, falling back to their id."""
    if task.reporter_name:
        return task.reporter_name.strip().lower()
    return task.reporter_id


MARKET = Dimension("market", lambda task: task.markets, multi_valued=True)
USER = Dimension("user", lambda task: task.user_id)
CATEGORY = Dimension("category", lambda task: task.category)
SUBCATEGORY = Dimension("subcategory", lambda task: task.subcategory if task.products else None)
PRODUCT = Dimension("product", lambda task: task.products)
AI_MODEL = Dimension("aiModel", lambda task: task.ai_models, multi_valued=True)
REPORTER = Dimension("reporter", reporter_key)
MONTH = Dimension("month", lambda task: task.month)


def task_hours(task: NormalizedTask) -> float:
    return task.hours


def ai_hours(task: NormalizedTask) -> float:
    return task.ai_hours


def normalize_tasks(tasks: Any) -> List[NormalizedTask]:
    """Normalize every record once; already-normalized tasks pass through."""
    if not isinstance(tasks, (list, tuple)):
        raise TypeError(f"tasks must be a list or tuple of task records, got {type(tasks).__name__}")
    normalized: List[NormalizedTask] = []
    for index, task in enumerate(tasks):
        if isinstance(task, NormalizedTask):
            normalized.append(task)
        else:
            normalized.append(normalize(task, index=index))
    return normalized


def _check_dimensions(dimensions: Sequence[Dimension], allow_empty: bool = False) -> Tuple[Dimension, ...]:
    if isinstance(dimensions, Dimension):
        dimensions = (dimensions,)
    selected = tuple(dimensions)
    if not allow_empty and not selected:
        raise ValueError("At least one dimension is required")
    if len(selected) > 2:
        raise ValueError(f"At most two dimensions are supported, got {len(selected)}")
    for dimension in selected:
        if not isinstance(dimension, Dimension):
            raise ValueError(f"Unsupported dimension selector: {dimension!r}")
    return selected


def _dimension_column(position: int) -> str:
    return f"_d{position}"


def task_frame(
    tasks: Sequence[NormalizedTask],
    dimensions: Sequence[Dimension],
    measure: Optional[Measure] = None,
) -> pl.DataFrame:
    """One row per task: its position in ``tasks``, measured hours and a list column per dimension.

    Identity is the position in this call, so concatenated or mixed lists of
    normalized tasks never share a task id.
    """
    measure_fn = measure or task_hours
    columns: Dict[str, List[Any]] = {
        TASK_COLUMN: list(range(len(tasks))),
        HOURS_COLUMN: [float(measure_fn(task)) for task in tasks],
    }
    schema: Dict[str, Any] = {TASK_COLUMN: pl.Int64, HOURS_COLUMN: pl.Float64}
    for position, dimension in enumerate(dimensions):
        name = _dimension_column(position)
        columns[name] = [dimension.values(task) for task in tasks]
        schema[name] = pl.List(pl.Utf8)
    return pl.DataFrame(columns, schema=schema)


def aggregate(
    tasks: Any,
    dimensions: Sequence[Dimension],
    *,
    measure: Optional[Measure] = None,
) -> Dict[Tuple[str, ...], AggregationBucket]:
    """Count distinct tasks and sum hours per bucket.

    A multi-valued dimension contributes a task once per value, so bucket
    counts may add up to more than the number of tasks. Tasks without a value
    for any selected dimension are left out of the breakdown.
    """
    selected = _check_dimensions(dimensions)
    normalized = normalize_tasks(tasks)
    key_columns = [_dimension_column(position) for position in range(len(selected))]

    frame = task_frame(normalized, selected, measure)
    for column in key_columns:
        frame = frame.explode(column)
    grouped = (
        frame.drop_nulls(subset=key_columns)
        .group_by(key_columns, maintain_order=True)
        .agg(
            pl.col(TASK_COLUMN).n_unique().alias("task_count"),
            pl.col(HOURS_COLUMN).sum().alias("hours"),
        )
    )

    buckets: Dict[Tuple[str, ...], AggregationBucket] = {}
    for row in grouped.to_dicts():
        key = tuple(str(row[column]) for column in key_columns)
        buckets[key] = AggregationBucket(key=key, task_count=int(row["task_count"]), hours=float(row["hours"] or 0.0))

    logger.debug(
        "Aggregated %d tasks into %d buckets by %s",
        len(normalized),
        len(buckets),
        "x".join(dimension.name for dimension in selected),
    )
    return buckets


def distinct_totals(
    tasks: Any,
    dimensions: Sequence[Dimension] = (),
    *,
    measure: Optional[Measure] = None,
) -> Totals:
    """Totals over the distinct task set, optionally restricted to tasks having every dimension."""
    selected = _check_dimensions(dimensions, allow_empty=True)
    normalized = normalize_tasks(tasks)
    frame = task_frame(normalized, selected, measure)
    for position in range(len(selected)):
        frame = frame.filter(pl.col(_dimension_column(position)).list.len() > 0)
    summary = frame.select(
        pl.col(TASK_COLUMN).n_unique().alias("task_count"),
        pl.col(HOURS_COLUMN).sum().alias("hours"),
    ).to_dicts()[0]
    return Totals(task_count=int(summary["task_count"] or 0), hours=float(summary["hours"] or 0.0))


def bucket_sort_key(bucket: AggregationBucket, label: Optional[str] = None) -> Tuple[int, float, str]:
    return (-bucket.task_count, -bucket.hours, label if label is not None else bucket.label)


def sort_buckets(
    buckets: Mapping[Any, AggregationBucket] | Iterable[AggregationBucket],
    label_for: Optional[Callable[[AggregationBucket], str]] = None,
) -> List[AggregationBucket]:
    """Order by task count desc, hours desc, then label asc."""
    items = list(buckets.values()) if isinstance(buckets, Mapping) else list(buckets)
    if label_for is None:
        return sorted(items, key=bucket_sort_key)
    return sorted(items, key=lambda bucket: bucket_sort_key(bucket, label_for(bucket)))

