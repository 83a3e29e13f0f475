"""Task analytics aggregation package."""

from .application import (
    ComparisonResult,
    ResultCache,
    aggregate,
    cache_key,
    compare_periods,
    distinct_totals,
    run_all_views,
    run_reporting_pipeline,
)
from .config import Settings
from .domain import AnalyticsOptions, AnalyticsResult, classify, color_for, normalize, normalize_market
from .infrastructure import load_task_records, save_output_workbook, save_summary_json

__all__ = [
    "normalize",
    "classify",
    "normalize_market",
    "color_for",
    "aggregate",
    "distinct_totals",
    "compare_periods",
    "ComparisonResult",
    "ResultCache",
    "cache_key",
    "run_all_views",
    "AnalyticsOptions",
    "AnalyticsResult",
    "Settings",
    "load_task_records",
    "save_summary_json",
    "save_output_workbook",
    "run_reporting_pipeline",
]
