"""Batch reporting pipeline: load tasks, run every view, export JSON and Excel."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from time import perf_counter
from typing import Any, Dict, List, Sequence

import polars as pl

from task_analytics.application.aggregation import MONTH, aggregate, normalize_tasks
from task_analytics.application.analytics_service import run_all_views
from task_analytics.application.cache import ResultCache, cache_key
from task_analytics.application.comparison_service import ComparisonResult, compare_periods
from task_analytics.application.reporting.rendering import comparison_summary, table_records
from task_analytics.config import Settings
from task_analytics.domain.models import AnalyticsOptions, AnalyticsResult, NormalizedTask
from task_analytics.infrastructure.report_exporter import save_output_workbook, save_summary_json
from task_analytics.infrastructure.task_repository import load_directory, load_task_records

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PipelineResult:
    task_count: int
    views: Dict[str, AnalyticsResult]
    comparison: ComparisonResult | None
    summary: Dict[str, Any]
    excel_saved: bool
    excel_error: str


def recent_months(tasks: Sequence[NormalizedTask], count: int) -> List[str]:
    """The last ``count`` calendar months that have tasks, oldest first."""
    months = sorted(key[0] for key in aggregate(list(tasks), [MONTH]))
    return months[-count:]


def split_by_month(tasks: Sequence[NormalizedTask], months: Sequence[str]) -> List[List[NormalizedTask]]:
    return [[task for task in tasks if task.month == month] for month in months]


def compare_recent_months(
    tasks: Sequence[NormalizedTask],
    users: Sequence[Any],
    *,
    months: int,
    top_n: int,
    cache: ResultCache | None = None,
) -> ComparisonResult | None:
    labels = recent_months(tasks, months)
    if len(labels) < 2:
        logger.info("Month comparison skipped: %d month(s) with tasks", len(labels))
        return None
    periods = split_by_month(tasks, labels)

    def _compute() -> ComparisonResult:
        return compare_periods(*periods, labels=labels, users=users, top_n=top_n)

    if cache is None:
        return _compute()
    return cache.get_or_compute(cache_key(tasks, ["month"], labels), _compute)


def _sheet_frame(result: AnalyticsResult) -> pl.DataFrame:
    records = table_records(result.table_data, result.table_columns)
    headers = [column.header for column in result.table_columns]
    if not records:
        return pl.DataFrame({header: [] for header in headers})
    # Cells mix counts and "count (pct%)" text.
    rows = [
        {header: None if record.get(header) is None else str(record[header]) for header in headers}
        for record in records
    ]
    return pl.DataFrame(rows, schema={header: pl.Utf8 for header in headers})


def _comparison_frame(comparison: ComparisonResult) -> pl.DataFrame:
    rows = []
    for row in comparison.metrics:
        item: Dict[str, Any] = {"Metric": row.metric}
        values = [row.period1, row.period2] + ([row.period3] if row.period3 is not None else [])
        for label, value in zip(comparison.labels, values):
            item[label] = float(value)
        item["Change %"] = float(row.change_percent)
        rows.append(item)
    return pl.DataFrame(rows)


def build_summary(
    task_count: int,
    views: Dict[str, AnalyticsResult],
    comparison: ComparisonResult | None,
) -> Dict[str, Any]:
    summary: Dict[str, Any] = {
        "task_count": task_count,
        "views": {name: result.to_dict() for name, result in views.items()},
    }
    if comparison is not None:
        summary["month_comparison"] = comparison.to_dict()
        summary["month_comparison_text"] = comparison_summary(comparison.metrics, comparison.labels)
    return summary


def build_excel_frames(views: Dict[str, AnalyticsResult], comparison: ComparisonResult | None) -> Dict[str, pl.DataFrame]:
    sheets = {name: _sheet_frame(result) for name, result in views.items() if result.table_columns}
    if comparison is not None:
        sheets["month_comparison"] = _comparison_frame(comparison)
    return sheets


def run_reporting_pipeline(settings: Settings | None = None) -> PipelineResult:
    settings = settings or Settings.from_env()
    pipeline_start = perf_counter()
    stage_start = pipeline_start
    stage_timings: list[tuple[str, float]] = []

    def _mark(stage_name: str) -> None:
        nonlocal stage_start
        now = perf_counter()
        stage_timings.append((stage_name, now - stage_start))
        stage_start = now

    records = load_task_records(settings.input_path)
    users = load_directory(settings.users_path, key="users")
    reporters = load_directory(settings.reporters_path, key="reporters")
    _mark("load_inputs")

    tasks = normalize_tasks(records)
    _mark("normalize_tasks")

    options = AnalyticsOptions(top_n=settings.top_n)
    views = run_all_views(tasks, users=users, reporters=reporters, options=options)
    _mark("run_views")

    comparison = compare_recent_months(
        tasks,
        users,
        months=settings.compare_months,
        top_n=settings.top_n,
        cache=ResultCache(),
    )
    _mark("compare_months")

    summary = build_summary(len(tasks), views, comparison)
    save_summary_json(settings.summary_json_path, summary)
    _mark("save_json")

    excel_saved, excel_error_message = save_output_workbook(
        settings.summary_excel_path,
        build_excel_frames(views, comparison),
    )
    _mark("save_excel")
    total_elapsed = perf_counter() - pipeline_start

    logger.info("Summary prepared: tasks=%d, views=%d, compared=%s", len(tasks), len(views), comparison is not None)
    logger.info("Stage Timing: %s", ", ".join(f"{name}={seconds:.3f}s" for name, seconds in stage_timings))
    logger.info("Total Elapsed: %.3fs", total_elapsed)
    logger.info("Saved JSON: %s", settings.summary_json_path)
    if excel_saved:
        logger.info("Saved Excel: %s", settings.summary_excel_path)
    else:
        logger.warning("Excel save skipped (file may be open/locked): %s", excel_error_message)

    return PipelineResult(
        task_count=len(tasks),
        views=views,
        comparison=comparison,
        summary=summary,
        excel_saved=excel_saved,
        excel_error=excel_error_message,
    )
