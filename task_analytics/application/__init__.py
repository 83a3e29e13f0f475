"""Application layer package."""

from .aggregation import Dimension, aggregate, distinct_totals, sort_buckets
from .analytics_service import (
    ai_analytics,
    category_market_analytics,
    external_asset_analytics,
    monthly_analytics,
    product_market_analytics,
    reporter_analytics,
    run_all_views,
    total_analytics,
    user_market_analytics,
)
from .cache import ResultCache, cache_key
from .comparison_service import ComparisonResult, compare_periods
from .report_service import run_reporting_pipeline

__all__ = [
    "Dimension",
    "aggregate",
    "distinct_totals",
    "sort_buckets",
    "category_market_analytics",
    "total_analytics",
    "user_market_analytics",
    "ai_analytics",
    "reporter_analytics",
    "external_asset_analytics",
    "monthly_analytics",
    "product_market_analytics",
    "run_all_views",
    "ResultCache",
    "cache_key",
    "ComparisonResult",
    "compare_periods",
    "run_reporting_pipeline",
]
