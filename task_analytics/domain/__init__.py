"""Domain layer package."""

from .classification import Classification, category_label, classify, normalize_market
from .fields import normalize
from .models import AggregationBucket, AnalyticsOptions, AnalyticsResult, NormalizedTask, TableCell, TableRow, Totals
from .palette import color_for

__all__ = [
    "Classification",
    "classify",
    "category_label",
    "normalize_market",
    "normalize",
    "NormalizedTask",
    "AggregationBucket",
    "TableCell",
    "TableRow",
    "Totals",
    "AnalyticsOptions",
    "AnalyticsResult",
    "color_for",
]
