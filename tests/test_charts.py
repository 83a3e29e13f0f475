"""
Tests for chart series and color resolution.
"""

import pytest

from task_analytics.application.aggregation import MARKET, aggregate
from task_analytics.application.analytics_service import category_market_analytics, user_market_analytics
from task_analytics.application.reporting.charts import build_chart_series, build_period_series
from task_analytics.domain import palette
from task_analytics.domain.models import AggregationBucket
from task_analytics.domain.palette import BASE_COLORS, USER_COLORS, color_for, js_string_hash


class TestChartSeries:
    def test_points_sorted_and_colored(self):
        tasks = [{"markets": ["ro", "bg"], "timeInHours": 1}, {"markets": ["ro"], "timeInHours": 2}]
        points = build_chart_series(aggregate(tasks, [MARKET]), palette.MARKET)
        assert [(point.name, point.value) for point in points] == [("RO", 2), ("BG", 1)]
        assert points[0].color == "#e11d48"

    def test_zero_buckets_are_excluded(self):
        buckets = [
            AggregationBucket(key=("RO",), task_count=0, hours=0.0),
            AggregationBucket(key=("BG",), task_count=1, hours=0.0),
        ]
        points = build_chart_series(buckets, palette.MARKET)
        assert [point.name for point in points] == ["BG"]

    def test_both_mode_carries_tasks_and_hours(self):
        buckets = [AggregationBucket(key=("UK",), task_count=2, hours=1.005)]
        point = build_chart_series(buckets, palette.MARKET, value="both")[0]
        assert point.tasks == 2
        assert point.hours == 1.01
        assert point.to_dict() == {"name": "UK", "tasks": 2, "hours": 1.01, "color": "#f97316"}

    def test_hours_mode(self):
        buckets = [AggregationBucket(key=("UK",), task_count=2, hours=1.5)]
        assert build_chart_series(buckets, palette.MARKET, value="hours")[0].value == 1.5

    def test_limit_trims_after_sorting(self):
        buckets = [AggregationBucket(key=(code,), task_count=count, hours=0.0) for code, count in (("A", 1), ("B", 3), ("C", 2))]
        points = build_chart_series(buckets, palette.MARKET, limit=2)
        assert [point.name for point in points] == ["B", "C"]

    def test_unknown_value_mode_raises(self):
        with pytest.raises(ValueError):
            build_chart_series([], palette.MARKET, value="median")


class TestPeriodSeries:
    def test_drops_all_zero_names_and_orders_by_sum(self):
        points = build_period_series(
            {"RO": [1, 2], "BG": [0, 0], "UK": [4, 0]},
            ["Jan", "Feb"],
            palette.MARKET,
        )
        assert [point.name for point in points] == ["UK", "RO"]
        assert points[1].series == {"Jan": 1, "Feb": 2}

    def test_limit(self):
        points = build_period_series({"a": [1], "b": [2], "c": [3]}, ["P1"], palette.USER, limit=1)
        assert [point.name for point in points] == ["c"]


class TestColors:
    """Colors are pure functions of (name, data type)."""

    def test_pinned_colors(self):
        assert color_for("RO", "market") == "#e11d48"
        assert color_for(" ro ", "market") == "#e11d48"
        assert color_for("ChatGpt", "aiModel") == "#7c3aed"
        assert color_for("Casino", "subcategory") == "#DC143C"
        assert color_for("Marketing", "category") == "#e11d48"

    def test_fallback_uses_palette(self):
        assert color_for("ZZ", "market") in BASE_COLORS
        assert color_for("Ana Pop", "user") in USER_COLORS
        assert color_for("Ana Pop", "user") == color_for("Ana Pop", "user")

    def test_same_name_same_color_across_views_and_call_order(self):
        tasks = [
            {"products": "marketing casino", "markets": ["zz", "ro"], "userUID": "u1", "timeInHours": 1},
            {"products": "marketing sport", "markets": ["zz"], "userUID": "u2", "timeInHours": 2},
        ]

        def _zz_color(points):
            return next(point.color for point in points if point.name == "ZZ")

        category_first = _zz_color(category_market_analytics(tasks, "marketing").chart_series)
        users_second = _zz_color(user_market_analytics(tasks).charts["markets"])
        users_first = _zz_color(user_market_analytics(list(reversed(tasks))).charts["markets"])
        category_second = _zz_color(category_market_analytics(list(reversed(tasks)), "marketing").chart_series)

        assert category_first == users_second == users_first == category_second
        assert category_first in BASE_COLORS
        assert category_first == color_for("ZZ", "market")

    def test_empty_name_gets_first_slot(self):
        assert color_for("", "reporter") == BASE_COLORS[0]

    def test_unknown_data_type_raises(self):
        with pytest.raises(ValueError):
            color_for("RO", "country")

    @pytest.mark.parametrize(
        "text, expected",
        [
            ("", 0),
            ("a", 97),
            ("ab", 3105),
            ("hello", 99162322),
            ("polygenelubricants", -2147483648),
        ],
    )
    def test_string_hash(self, text, expected):
        assert js_string_hash(text) == expected
