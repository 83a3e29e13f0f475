"""
Tests for task field accessors and normalization.
"""

import copy

from task_analytics.domain.fields import (
    normalize,
    task_ai_usage,
    task_hours,
    task_markets,
    task_month,
    task_products,
    task_reporter_id,
    task_user_id,
    task_uses_external_asset,
)
from task_analytics.domain.models import NormalizedTask


class TestLocationPriority:
    """Detail object first, then top level; first non-missing value wins."""

    def test_detail_value_wins_over_top_level(self):
        task = {"timeInHours": 5, "data_task": {"timeInHours": 2}}
        assert task_hours(task) == 2.0

    def test_top_level_used_when_detail_missing(self):
        assert task_hours({"timeInHours": 1.5}) == 1.5

    def test_blank_string_counts_as_missing(self):
        task = {"products": "Marketing Casino", "data_task": {"products": "   "}}
        assert task_products(task) == "marketing casino"

    def test_user_id_key_order(self):
        task = {"createbyUID": "top", "data_task": {"createbyUID": "inner"}}
        assert task_user_id(task) == "inner"

    def test_user_id_last_resort_key(self):
        assert task_user_id({"userId": "u-9"}) == "u-9"

    def test_reporter_id_from_single_element_list(self):
        assert task_reporter_id({"reporters": ["r1"]}) == "r1"


class TestHours:
    """Hours fall back to zero for anything unusable."""

    def test_numeric_string_is_parsed(self):
        assert task_hours({"timeInHours": "2.25"}) == 2.25

    def test_invalid_values_become_zero(self):
        for value in (None, "abc", -3, float("nan"), float("inf"), True, [1]):
            assert task_hours({"timeInHours": value}) == 0.0

    def test_zero_is_a_present_value(self):
        task = {"timeInHours": 4, "data_task": {"timeInHours": 0}}
        assert task_hours(task) == 0.0


class TestMarkets:
    """Markets are normalized, deduplicated and never raise."""

    def test_non_list_becomes_empty(self):
        assert task_markets({"markets": "RO"}) == ()
        assert task_markets({"markets": None}) == ()

    def test_codes_are_trimmed_uppercased_and_deduplicated(self):
        task = {"markets": [" ro ", None, 3, "RO", "bg", ""]}
        assert task_markets(task) == ("RO", "BG")


class TestOtherFields:
    def test_ai_usage_entries(self):
        task = {
            "data_task": {
                "aiUsed": [
                    {"aiTime": 2, "aiModels": ["ChatGpt", "Photoshop"]},
                    {"aiTime": "bad", "aiModels": ["ChatGpt"]},
                    "junk",
                ]
            }
        }
        usage = task_ai_usage(task)
        assert len(usage) == 2
        assert usage[0].hours == 2.0
        assert usage[1].hours == 0.0
        normalized = normalize(task)
        assert normalized.ai_hours == 2.0
        assert normalized.ai_models == ("ChatGpt", "Photoshop")

    def test_external_asset_requires_true(self):
        assert task_uses_external_asset({"useShutterstock": True}) is True
        assert task_uses_external_asset({"useShutterstock": "true"}) is False
        assert task_uses_external_asset({}) is False

    def test_month_from_month_id_or_created_at(self):
        assert task_month({"monthId": "2024-03"}) == "2024-03"
        assert task_month({"createdAt": "2024-05-10T12:00:00Z"}) == "2024-05"
        assert task_month({"createdAt": "yesterday"}) is None


class TestNormalize:
    """normalize() never raises and never mutates its input."""

    def test_non_mapping_is_an_empty_task(self):
        assert normalize(None) == NormalizedTask(index=0)
        assert normalize("task", index=4) == NormalizedTask(index=4)

    def test_classification_is_precomputed(self):
        task = normalize({"products": " Acquisition Poker ", "markets": ["uk"]}, index=1)
        assert task.category == "acquisition"
        assert task.subcategory == "poker"
        assert task.markets == ("UK",)
        assert task.index == 1

    def test_input_is_not_mutated(self):
        task = {"data_task": {"markets": [" ro "], "products": "Marketing Sport", "timeInHours": "1"}}
        snapshot = copy.deepcopy(task)
        normalize(task)
        assert task == snapshot
