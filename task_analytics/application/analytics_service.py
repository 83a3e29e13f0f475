"""Application service wiring aggregation, tables and charts into dashboard views."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence, Tuple

from task_analytics.application.aggregation import (
    AI_MODEL,
    CATEGORY,
    MARKET,
    MONTH,
    PRODUCT,
    REPORTER,
    SUBCATEGORY,
    USER,
    Dimension,
    Measure,
    ai_hours,
    aggregate,
    distinct_totals,
    normalize_tasks,
    sort_buckets,
)
from task_analytics.application.reporting.charts import build_chart_series, build_period_series
from task_analytics.application.reporting.metrics import round_hours, usage_percent
from task_analytics.application.reporting.selectors import directory_index, reporter_labels, user_label
from task_analytics.application.reporting.tables import (
    build_columns,
    build_grand_total,
    build_table,
    column_universe,
    no_data_row,
    sort_rows,
)
from task_analytics.domain import palette
from task_analytics.domain.classification import CATEGORIES, category_label
from task_analytics.domain.models import (
    AggregationBucket,
    AnalyticsOptions,
    AnalyticsResult,
    ChartPoint,
    ColumnSpec,
    NormalizedTask,
    TableRow,
    Totals,
)

logger = logging.getLogger(__name__)

DEFAULT_OPTIONS = AnalyticsOptions()
EXTERNAL_ASSET_EMPTY_LABEL = "No data available"

Buckets = Dict[Tuple[str, ...], AggregationBucket]


@dataclass(frozen=True)
class Breakdown:
    """Row x column aggregation shared by the table views."""

    eligible: List[NormalizedTask]
    cell_buckets: Buckets
    row_totals: Buckets
    columns: List[str]
    totals: Totals


def _has_values(task: NormalizedTask, dimensions: Sequence[Dimension]) -> bool:
    return all(dimension.values(task) for dimension in dimensions)


def breakdown(
    tasks: Sequence[NormalizedTask],
    row_dimension: Dimension,
    column_dimension: Dimension,
    *,
    measure: Optional[Measure] = None,
    keep_rows_without_columns: bool = False,
) -> Breakdown:
    """Aggregate rows x columns plus distinct row totals.

    By default a task needs a value on both axes to appear at all. With
    ``keep_rows_without_columns`` it still counts toward its row total.
    """
    row_scope = [task for task in tasks if _has_values(task, [row_dimension])]
    cell_scope = [task for task in row_scope if _has_values(task, [column_dimension])]
    eligible = row_scope if keep_rows_without_columns else cell_scope

    cell_buckets = aggregate(cell_scope, [row_dimension, column_dimension], measure=measure)
    row_totals = aggregate(eligible, [row_dimension], measure=measure)
    return Breakdown(
        eligible=eligible,
        cell_buckets=cell_buckets,
        row_totals=row_totals,
        columns=column_universe(cell_buckets),
        totals=distinct_totals(eligible, measure=measure),
    )


def _table(
    view: Breakdown,
    options: AnalyticsOptions,
    *,
    label_header: str,
    label_for: Callable[[Any], str] = str,
    column_header: Callable[[str], str] = str,
    extra_columns: Sequence[ColumnSpec] = (),
) -> Tuple[List[TableRow], List[ColumnSpec]]:
    if not options.include_table:
        return [], []
    rows = build_table(
        view.cell_buckets,
        view.row_totals,
        columns=view.columns,
        label_for=label_for,
        include_grand_total=options.include_grand_total,
    )
    columns = build_columns(
        label_header,
        view.columns,
        include_hours=options.include_hours,
        extra_columns=extra_columns,
        column_header=column_header,
    )
    return rows, columns


def _charts(options: AnalyticsOptions, build: Callable[[], Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]]):
    if not options.include_charts:
        return [], {}
    return build()


def _first_key_label(label_for: Callable[[str], str]) -> Callable[[AggregationBucket], str]:
    return lambda bucket: label_for(bucket.key[0])


def _value_mode(options: AnalyticsOptions) -> str:
    return "both" if options.include_hours else "tasks"


def _user_labeler(users: Sequence[Any]) -> Callable[[str], str]:
    index = directory_index(users)
    return lambda user_id: user_label(user_id, index)


def _joined(values: Sequence[str]) -> str:
    return ", ".join(dict.fromkeys(value for value in values if value))


def category_market_analytics(
    tasks: Any,
    category: str,
    users: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> AnalyticsResult:
    """Subcategories of one category against markets."""
    if category not in CATEGORIES:
        raise ValueError(f"Unknown category: {category}. Expected one of: {', '.join(CATEGORIES)}")
    normalized = normalize_tasks(tasks)
    scoped = [task for task in normalized if task.category == category]
    view = breakdown(scoped, SUBCATEGORY, MARKET)
    rows, columns = _table(
        view,
        options,
        label_header=f"{category_label(category)} Category",
        label_for=category_label,
    )

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        markets = aggregate(view.eligible, [MARKET])
        primary = build_chart_series(markets, palette.MARKET, value="tasks", limit=options.top_n)
        charts: Dict[str, List[ChartPoint]] = {
            "marketsBiaxial": build_chart_series(markets, palette.MARKET, value="both", limit=options.top_n),
        }
        for (subcategory,), _ in sorted(view.row_totals.items()):
            sub_tasks = [task for task in view.eligible if task.subcategory == subcategory]
            charts[f"{subcategory}Markets"] = build_chart_series(
                aggregate(sub_tasks, [MARKET]), palette.MARKET, value="both", limit=options.top_n
            )
        label_for_user = _user_labeler(users)
        charts["users"] = build_chart_series(
            aggregate(scoped, [USER]),
            palette.USER,
            value=_value_mode(options),
            label_for=_first_key_label(label_for_user),
            limit=options.top_n,
        )
        return primary, charts

    chart_series, charts = _charts(options, _build)
    logger.debug("%s analytics: %d rows, %d markets", category, len(rows), len(view.columns))
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


def total_analytics(tasks: Any, users: Sequence[Any] = (), options: AnalyticsOptions = DEFAULT_OPTIONS) -> AnalyticsResult:
    """Categories with their subcategory breakdown rows."""
    normalized = normalize_tasks(tasks)
    categorized = [task for task in normalized if task.category]
    category_totals = aggregate(categorized, [CATEGORY])
    children = aggregate(categorized, [CATEGORY, SUBCATEGORY])
    totals = distinct_totals(categorized)

    rows: List[TableRow] = []
    columns: List[ColumnSpec] = []
    if options.include_table:
        parents = sort_rows(
            [
                TableRow(
                    label=category_label(key[0]),
                    count=bucket.task_count,
                    hours=round_hours(bucket.hours),
                    key=key[0],
                )
                for key, bucket in category_totals.items()
            ]
        )
        for parent in parents:
            rows.append(parent)
            child_buckets = sort_buckets(
                [bucket for key, bucket in children.items() if key[0] == parent.key],
                label_for=lambda bucket: category_label(bucket.key[1]),
            )
            for bucket in child_buckets:
                rows.append(
                    TableRow(
                        label=category_label(bucket.key[1]),
                        count=bucket.task_count,
                        hours=round_hours(bucket.hours),
                        key=bucket.key,
                        parent=parent.label,
                        extra={"isSubtotalChild": True},
                    )
                )
        if not rows:
            rows = [no_data_row()]
        elif options.include_grand_total:
            rows.append(build_grand_total(rows))
        columns = build_columns("Category", [], include_hours=options.include_hours)

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        label_for = _first_key_label(category_label)
        primary = build_chart_series(category_totals, palette.CATEGORY, value="tasks", label_for=label_for)
        charts = {
            "hours": build_chart_series(category_totals, palette.CATEGORY, value="hours", label_for=label_for),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, totals, charts)


def user_market_analytics(
    tasks: Any,
    users: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> AnalyticsResult:
    normalized = normalize_tasks(tasks)
    view = breakdown(normalized, USER, MARKET)
    label_for_user = _user_labeler(users)
    rows, columns = _table(view, options, label_header="User", label_for=label_for_user)

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        primary = build_chart_series(
            view.row_totals,
            palette.USER,
            value=_value_mode(options),
            label_for=_first_key_label(label_for_user),
            limit=options.top_n,
        )
        charts = {
            "markets": build_chart_series(
                aggregate(view.eligible, [MARKET]), palette.MARKET, value="tasks", limit=options.top_n
            ),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


AI_EXTRA_COLUMNS: Tuple[ColumnSpec, ...] = (
    ColumnSpec(key="aiUsedTasks", header="AI Used Tasks", kind="count"),
    ColumnSpec(key="aiTime", header="AI Time (hrs)", kind="hours"),
    ColumnSpec(key="aiUsagePercentage", header="AI Usage %", kind="percent"),
    ColumnSpec(key="aiModels", header="AI Models Used", align="left", kind="text"),
)


def _ai_row_extra(tasks: Sequence[NormalizedTask]) -> Dict[str, Any]:
    entries = sum(len(task.ai_usage) for task in tasks)
    return {
        "aiUsedTasks": entries,
        "aiTime": round_hours(sum(task.ai_hours for task in tasks)),
        "aiUsagePercentage": usage_percent(entries, len(tasks)),
        "aiModels": _joined([model for task in tasks for model in task.ai_models]),
    }


def ai_analytics(tasks: Any, users: Sequence[Any] = (), options: AnalyticsOptions = DEFAULT_OPTIONS) -> AnalyticsResult:
    """Per-user AI usage; row hours are AI hours, columns are AI models.

    Model hours credit a task's full AI time to every model it used.
    """
    normalized = normalize_tasks(tasks)
    ai_tasks = [task for task in normalized if task.user_id and task.ai_usage]
    view = breakdown(ai_tasks, USER, AI_MODEL, measure=ai_hours, keep_rows_without_columns=True)
    label_for_user = _user_labeler(users)
    rows, columns = _table(
        view,
        options,
        label_header="User",
        label_for=label_for_user,
        extra_columns=AI_EXTRA_COLUMNS,
    )

    by_user: Dict[str, List[NormalizedTask]] = {}
    for task in view.eligible:
        by_user.setdefault(task.user_id, []).append(task)
    enriched: List[TableRow] = []
    for row in rows:
        if row.no_data:
            enriched.append(row)
        elif row.is_total:
            total = build_grand_total(enriched, sum_extra=("aiUsedTasks", "aiTime"))
            extra = dict(total.extra)
            extra["aiUsagePercentage"] = usage_percent(extra.get("aiUsedTasks", 0), total.count)
            extra["aiModels"] = _joined([model for task in view.eligible for model in task.ai_models])
            enriched.append(replace(total, extra=extra))
        else:
            enriched.append(replace(row, extra=_ai_row_extra(by_user.get(row.key, []))))

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        models = aggregate(view.eligible, [AI_MODEL], measure=ai_hours)
        primary = build_chart_series(models, palette.AI_MODEL, value="tasks", limit=options.top_n)
        user_label_for = _first_key_label(label_for_user)
        charts = {
            "aiModelsBiaxial": build_chart_series(models, palette.AI_MODEL, value="both", limit=options.top_n),
            "users": build_chart_series(
                view.row_totals, palette.USER, value="hours", label_for=user_label_for, limit=options.top_n
            ),
            "usersBiaxial": build_chart_series(
                view.row_totals, palette.USER, value="both", label_for=user_label_for, limit=options.top_n
            ),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(enriched, columns, chart_series, view.totals, charts)


def reporter_analytics(
    tasks: Any,
    reporters: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> AnalyticsResult:
    """Reporters against markets; tasks without markets still count for their reporter."""
    normalized = normalize_tasks(tasks)
    view = breakdown(normalized, REPORTER, MARKET, keep_rows_without_columns=True)
    labels = reporter_labels(view.eligible, directory_index(reporters))

    def label_for(key: str) -> str:
        return labels.get(key) or f"Reporter {key[:8]}"

    products_column = ColumnSpec(key="products", header="Products", align="left", kind="text")
    rows, columns = _table(view, options, label_header="Reporter", label_for=label_for, extra_columns=(products_column,))
    products_by_reporter: Dict[str, List[str]] = {}
    for task in view.eligible:
        products_by_reporter.setdefault(REPORTER.values(task)[0], []).append(task.products or "")
    rows = [
        replace(row, extra={"products": _joined(products_by_reporter.get(row.key, []))})
        if not (row.is_total or row.no_data)
        else row
        for row in rows
    ]

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        primary = build_chart_series(
            view.row_totals,
            palette.REPORTER,
            value=_value_mode(options),
            label_for=_first_key_label(label_for),
            limit=options.top_n,
        )
        charts = {
            "markets": build_chart_series(
                aggregate(view.eligible, [MARKET]), palette.MARKET, value="tasks", limit=options.top_n
            ),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


def external_asset_analytics(
    tasks: Any,
    users: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> AnalyticsResult:
    """Tasks that used an external asset library, users against markets."""
    normalized = normalize_tasks(tasks)
    scoped = [task for task in normalized if task.use_external_asset]
    view = breakdown(scoped, USER, MARKET)
    label_for_user = _user_labeler(users)
    rows, columns = _table(view, options, label_header="User", label_for=label_for_user)
    if options.include_table and not view.eligible:
        rows = [no_data_row(label=EXTERNAL_ASSET_EMPTY_LABEL)]

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        primary = build_chart_series(
            aggregate(view.eligible, [MARKET]), palette.MARKET, value=_value_mode(options), limit=options.top_n
        )
        charts = {
            "users": build_chart_series(
                view.row_totals,
                palette.USER,
                value=_value_mode(options),
                label_for=_first_key_label(label_for_user),
                limit=options.top_n,
            ),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


def monthly_analytics(tasks: Any, users: Sequence[Any] = (), options: AnalyticsOptions = DEFAULT_OPTIONS) -> AnalyticsResult:
    """Calendar months against categories; months stay in chronological order."""
    normalized = normalize_tasks(tasks)
    view = breakdown(normalized, MONTH, CATEGORY)
    rows, columns = _table(view, options, label_header="Month", column_header=category_label)
    data_rows = sorted((row for row in rows if not row.is_total and not row.no_data), key=lambda row: str(row.key))
    rows = data_rows + [row for row in rows if row.is_total or row.no_data]

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        primary = build_chart_series(
            aggregate(view.eligible, [CATEGORY]),
            palette.CATEGORY,
            value=_value_mode(options),
            label_for=_first_key_label(category_label),
        )
        months = sorted(key[0] for key in view.row_totals)
        per_category: Mapping[str, List[float]] = {
            category_label(category): [
                view.cell_buckets[(month, category)].task_count if (month, category) in view.cell_buckets else 0
                for month in months
            ]
            for category in CATEGORIES
        }
        charts = {"categoriesByMonth": build_period_series(per_category, months, palette.CATEGORY)}
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


def product_market_analytics(
    tasks: Any,
    users: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> AnalyticsResult:
    """Full product strings against markets."""
    normalized = normalize_tasks(tasks)
    view = breakdown(normalized, PRODUCT, MARKET)
    rows, columns = _table(view, options, label_header="Product")

    def _build() -> Tuple[List[ChartPoint], Dict[str, List[ChartPoint]]]:
        primary = build_chart_series(
            view.row_totals, palette.PRODUCT, value=_value_mode(options), limit=options.top_n
        )
        charts = {
            "markets": build_chart_series(
                aggregate(view.eligible, [MARKET]), palette.MARKET, value="tasks", limit=options.top_n
            ),
        }
        return primary, charts

    chart_series, charts = _charts(options, _build)
    return AnalyticsResult(rows, columns, chart_series, view.totals, charts)


VIEWS: Mapping[str, Callable[..., AnalyticsResult]] = {
    "total": total_analytics,
    "users": user_market_analytics,
    "ai": ai_analytics,
    "externalAssets": external_asset_analytics,
    "monthly": monthly_analytics,
    "products": product_market_analytics,
}


def run_all_views(
    tasks: Any,
    users: Sequence[Any] = (),
    reporters: Sequence[Any] = (),
    options: AnalyticsOptions = DEFAULT_OPTIONS,
) -> Dict[str, AnalyticsResult]:
    """Every dashboard view over one task list, normalized once."""
    normalized = normalize_tasks(tasks)
    results: Dict[str, AnalyticsResult] = {}
    for category in CATEGORIES:
        results[category] = category_market_analytics(normalized, category, users, options)
    for name, view in VIEWS.items():
        results[name] = view(normalized, users, options)
    results["reporters"] = reporter_analytics(normalized, reporters, options)
    return results
