"""Period-over-period comparison of task metrics."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from task_analytics.application.aggregation import (
    CATEGORY,
    MARKET,
    SUBCATEGORY,
    USER,
    aggregate,
    distinct_totals,
    normalize_tasks,
)
from task_analytics.application.reporting.charts import build_period_series
from task_analytics.application.reporting.metrics import change_percent, round_hours
from task_analytics.application.reporting.selectors import directory_index, user_label
from task_analytics.domain import palette
from task_analytics.domain.classification import (
    ACQUISITION,
    CATEGORIES,
    MARKETING,
    MISC,
    PRODUCT,
    SUBCATEGORIES,
    category_label,
)
from task_analytics.domain.models import ChartPoint, ComparisonRow, NormalizedTask

logger = logging.getLogger(__name__)

DEFAULT_LABELS = ("Period 1", "Period 2", "Period 3")
DEFAULT_TOP_N = 15


@dataclass(frozen=True)
class PeriodSnapshot:
    """Everything one period contributes to a comparison, aggregated in isolation."""

    metrics: Dict[str, float]
    markets: Dict[str, int]
    categories: Dict[str, int]
    subcategories: Dict[str, int]
    users: Dict[str, int]
    marketing_markets: Dict[str, int]
    acquisition_markets: Dict[str, int]


@dataclass(frozen=True)
class ComparisonResult:
    labels: List[str]
    metrics: List[ComparisonRow]
    market_series: List[ChartPoint] = field(default_factory=list)
    category_series: List[ChartPoint] = field(default_factory=list)
    product_series: List[ChartPoint] = field(default_factory=list)
    user_series: List[ChartPoint] = field(default_factory=list)
    marketing_market_series: List[ChartPoint] = field(default_factory=list)
    acquisition_market_series: List[ChartPoint] = field(default_factory=list)

    def metric(self, name: str) -> ComparisonRow:
        for row in self.metrics:
            if row.metric == name:
                return row
        raise ValueError(f"Unknown comparison metric: {name}")

    def to_dict(self) -> Dict[str, Any]:
        def _points(points: List[ChartPoint]) -> List[Dict[str, Any]]:
            return [point.to_dict() for point in points]

        return {
            "labels": list(self.labels),
            "metrics": [row.to_dict() for row in self.metrics],
            "marketSeries": _points(self.market_series),
            "categorySeries": _points(self.category_series),
            "productSeries": _points(self.product_series),
            "userSeries": _points(self.user_series),
            "marketingMarketSeries": _points(self.marketing_market_series),
            "acquisitionMarketSeries": _points(self.acquisition_market_series),
        }


def _has_token(token: str) -> Callable[[NormalizedTask], bool]:
    return lambda task: bool(task.products) and token in task.products


def _acquisition_with(token: str) -> Callable[[NormalizedTask], bool]:
    return lambda task: task.category == ACQUISITION and bool(task.products) and token in task.products


def _in_category(category: str) -> Callable[[NormalizedTask], bool]:
    return lambda task: task.category == category


# (metric name, task filter, value) in display order.
_METRIC_RULES: tuple[tuple[str, Optional[Callable[[NormalizedTask], bool]], str], ...] = (
    ("Total Tasks", None, "tasks"),
    ("Total Hours", None, "hours"),
    ("Casino Tasks", _has_token("casino"), "tasks"),
    ("Casino Hours", _has_token("casino"), "hours"),
    ("Sport Tasks", _has_token("sport"), "tasks"),
    ("Sport Hours", _has_token("sport"), "hours"),
    ("Casino Acquisition Tasks", _acquisition_with("casino"), "tasks"),
    ("Casino Acquisition Hours", _acquisition_with("casino"), "hours"),
    ("Sport Acquisition Tasks", _acquisition_with("sport"), "tasks"),
    ("Sport Acquisition Hours", _acquisition_with("sport"), "hours"),
    ("Marketing Tasks", _in_category(MARKETING), "tasks"),
    ("Product Tasks", _in_category(PRODUCT), "tasks"),
    ("Acquisition Tasks", _in_category(ACQUISITION), "tasks"),
    ("Misc Tasks", _in_category(MISC), "tasks"),
)

METRIC_NAMES: tuple[str, ...] = tuple(name for name, _, _ in _METRIC_RULES)


def _counts(tasks: Sequence[NormalizedTask], dimension: Any) -> Dict[str, int]:
    return {key[0]: bucket.task_count for key, bucket in aggregate(list(tasks), [dimension]).items()}


def _user_counts(tasks: Sequence[NormalizedTask], index: Mapping[str, Mapping[str, Any]]) -> Dict[str, int]:
    counts: Dict[str, int] = {}
    for user_id, count in _counts(tasks, USER).items():
        label = user_label(user_id, index)
        counts[label] = counts.get(label, 0) + count
    return counts


def snapshot_period(tasks: Any, users: Sequence[Any] = ()) -> PeriodSnapshot:
    normalized = normalize_tasks(tasks)
    metrics: Dict[str, float] = {}
    for name, keep, value in _METRIC_RULES:
        scoped = normalized if keep is None else [task for task in normalized if keep(task)]
        totals = distinct_totals(scoped)
        metrics[name] = totals.task_count if value == "tasks" else round_hours(totals.hours)

    return PeriodSnapshot(
        metrics=metrics,
        markets=_counts(normalized, MARKET),
        categories=_counts(normalized, CATEGORY),
        subcategories=_counts(normalized, SUBCATEGORY),
        users=_user_counts(normalized, directory_index(users)),
        marketing_markets=_counts([task for task in normalized if task.category == MARKETING], MARKET),
        acquisition_markets=_counts([task for task in normalized if task.category == ACQUISITION], MARKET),
    )


def _union(counts: Sequence[Mapping[str, int]]) -> List[str]:
    names: set[str] = set()
    for item in counts:
        names.update(item)
    return sorted(names)


def _zero_filled(snapshots: Sequence[PeriodSnapshot], attr: str, names: Sequence[str]) -> Dict[str, List[float]]:
    return {name: [getattr(snapshot, attr).get(name, 0) for snapshot in snapshots] for name in names}


def _series(
    snapshots: Sequence[PeriodSnapshot],
    attr: str,
    labels: Sequence[str],
    data_type: str,
    limit: Optional[int] = None,
) -> List[ChartPoint]:
    names = _union([getattr(snapshot, attr) for snapshot in snapshots])
    return build_period_series(_zero_filled(snapshots, attr, names), labels, data_type, limit=limit)


def _fixed_series(
    snapshots: Sequence[PeriodSnapshot],
    attr: str,
    names: Sequence[str],
    labels: Sequence[str],
    data_type: str,
) -> List[ChartPoint]:
    values = {category_label(name): [getattr(snapshot, attr).get(name, 0) for snapshot in snapshots] for name in names}
    points = build_period_series(values, labels, data_type)
    order = [category_label(name) for name in names]
    return sorted(points, key=lambda point: order.index(point.name))


def compare_periods(
    period1: Any,
    period2: Any,
    period3: Any = None,
    *,
    labels: Optional[Sequence[str]] = None,
    users: Sequence[Any] = (),
    top_n: Optional[int] = DEFAULT_TOP_N,
    metrics: Sequence[str] = METRIC_NAMES,
) -> ComparisonResult:
    """Compare two or three periods; change is always period 2 against period 1.

    Every period is aggregated on its own. Series universes are the union of
    all periods with missing values filled with zero; ``top_n`` only trims the
    market and user series.
    """
    unknown = [name for name in metrics if name not in METRIC_NAMES]
    if unknown:
        raise ValueError(f"Unknown comparison metrics: {', '.join(unknown)}")

    periods = [period1, period2] if period3 is None else [period1, period2, period3]
    period_labels = list(labels) if labels is not None else list(DEFAULT_LABELS[: len(periods)])
    if len(period_labels) < len(periods):
        raise ValueError(f"Expected {len(periods)} period labels, got {len(period_labels)}")
    period_labels = period_labels[: len(periods)]

    snapshots = [snapshot_period(tasks, users) for tasks in periods]

    rows: List[ComparisonRow] = []
    for name in metrics:
        values = [snapshot.metrics[name] for snapshot in snapshots]
        rows.append(
            ComparisonRow(
                metric=name,
                period1=values[0],
                period2=values[1],
                change_percent=change_percent(values[0], values[1]),
                period3=values[2] if len(values) > 2 else None,
            )
        )

    logger.debug("Compared %d periods (%s)", len(periods), ", ".join(period_labels))
    return ComparisonResult(
        labels=period_labels,
        metrics=rows,
        market_series=_series(snapshots, "markets", period_labels, palette.MARKET, limit=top_n),
        category_series=_fixed_series(snapshots, "categories", CATEGORIES, period_labels, palette.CATEGORY),
        product_series=_fixed_series(snapshots, "subcategories", SUBCATEGORIES, period_labels, palette.SUBCATEGORY),
        user_series=_series(snapshots, "users", period_labels, palette.USER, limit=top_n),
        marketing_market_series=_series(snapshots, "marketing_markets", period_labels, palette.MARKET),
        acquisition_market_series=_series(snapshots, "acquisition_markets", period_labels, palette.MARKET),
    )
