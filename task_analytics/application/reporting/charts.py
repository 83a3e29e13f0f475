"""Chart point series with deterministic colors."""

from __future__ import annotations

from typing import Callable, Dict, Iterable, List, Mapping, Optional, Sequence

from task_analytics.application.aggregation import sort_buckets
from task_analytics.application.reporting.metrics import round_hours
from task_analytics.domain.models import AggregationBucket, ChartPoint
from task_analytics.domain.palette import color_for

VALUE_MODES = ("tasks", "hours", "both")


def build_chart_series(
    buckets: Mapping[tuple, AggregationBucket] | Iterable[AggregationBucket],
    data_type: str,
    *,
    value: str = "tasks",
    label_for: Optional[Callable[[AggregationBucket], str]] = None,
    limit: Optional[int] = None,
) -> List[ChartPoint]:
    """Sorted points for the non-empty buckets; ``limit`` only trims the output."""
    if value not in VALUE_MODES:
        raise ValueError(f"Unknown chart value mode: {value}")
    name_of = label_for or (lambda bucket: bucket.label)
    ordered = sort_buckets(buckets, label_for=name_of)

    points: List[ChartPoint] = []
    for bucket in ordered:
        if bucket.task_count == 0 and bucket.hours == 0:
            continue
        name = name_of(bucket)
        color = color_for(name, data_type)
        hours = round_hours(bucket.hours)
        if value == "tasks":
            points.append(ChartPoint(name=name, color=color, value=bucket.task_count))
        elif value == "hours":
            points.append(ChartPoint(name=name, color=color, value=hours))
        else:
            points.append(ChartPoint(name=name, color=color, tasks=bucket.task_count, hours=hours))
    if limit is not None:
        points = points[: max(limit, 0)]
    return points


def build_period_series(
    values_by_name: Mapping[str, Sequence[float]],
    labels: Sequence[str],
    data_type: str,
    *,
    limit: Optional[int] = None,
) -> List[ChartPoint]:
    """One point per name carrying a value per period label.

    Names with no value above zero in any period are dropped; the rest are
    ordered by their summed value, then name.
    """
    kept: Dict[str, Sequence[float]] = {
        name: values for name, values in values_by_name.items() if any(value > 0 for value in values)
    }
    ordered = sorted(kept, key=lambda name: (-sum(kept[name]), name))
    if limit is not None:
        ordered = ordered[: max(limit, 0)]
    return [
        ChartPoint(
            name=name,
            color=color_for(name, data_type),
            series={label: value for label, value in zip(labels, kept[name])},
        )
        for name in ordered
    ]
