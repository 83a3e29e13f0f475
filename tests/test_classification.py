"""
Tests for product classification and market normalization.
"""

import pytest

from task_analytics.domain.classification import category_label, classify, normalize_market


class TestClassify:
    """Category by ordered prefix rules, subcategory by substring."""

    @pytest.mark.parametrize(
        "products, category, subcategory",
        [
            ("marketing casino", "marketing", "casino"),
            ("  Product Sport ", "product", "sport"),
            ("misc", "misc", "other"),
            ("acquisition lotto", "acquisition", "lotto"),
            ("casino acquisition", "acquisition", "casino"),
            ("marketing poker", "marketing", "poker"),
        ],
    )
    def test_known_products(self, products, category, subcategory):
        result = classify(products)
        assert result.category == category
        assert result.subcategory == subcategory

    def test_first_match_wins_for_ambiguous_strings(self):
        assert classify("marketing casino acquisition").category == "marketing"
        assert classify("misc acquisition").category == "misc"

    def test_unmatched_category_is_none(self):
        result = classify("crm casino")
        assert result.category is None
        assert result.subcategory == "casino"

    def test_missing_products(self):
        for value in (None, "", 12):
            result = classify(value)
            assert result.category is None
            assert result.subcategory == "other"

    def test_subcategory_token_order(self):
        assert classify("product sport casino").subcategory == "casino"


class TestNormalizeMarket:
    def test_variants_collapse(self):
        assert {normalize_market(code) for code in (" ro ", "RO", "Ro")} == {"RO"}

    def test_idempotent(self):
        for code in (" ro ", "gR", "", "  ", "com\t", "ÿx"):
            once = normalize_market(code)
            assert normalize_market(once) == once

    def test_non_string_is_empty(self):
        assert normalize_market(None) == ""
        assert normalize_market(7) == ""


class TestCategoryLabel:
    def test_labels(self):
        assert category_label("marketing") == "Marketing"
        assert category_label(None) == "Uncategorized"
