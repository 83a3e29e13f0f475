"""Domain policies for product category classification and market codes."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

MARKETING = "marketing"
PRODUCT = "product"
MISC = "misc"
ACQUISITION = "acquisition"

CATEGORIES: tuple[str, ...] = (MARKETING, PRODUCT, ACQUISITION, MISC)
SUBCATEGORIES: tuple[str, ...] = ("casino", "sport", "poker", "lotto", "other")

# Checked in order; first match wins. Acquisition is substring-matched
# because it appears embedded, e.g. "casino acquisition".
_PREFIX_RULES: tuple[tuple[str, str], ...] = (
    ("marketing", MARKETING),
    ("product", PRODUCT),
    ("misc", MISC),
)
_SUBSTRING_RULES: tuple[tuple[str, str], ...] = (("acquisition", ACQUISITION),)
_SUBCATEGORY_TOKENS: tuple[str, ...] = ("casino", "sport", "poker", "lotto")


@dataclass(frozen=True)
class Classification:
    category: Optional[str]
    subcategory: str


def normalize_products(products: Any) -> str:
    if not isinstance(products, str):
        return ""
    return products.strip().lower()


def product_category(products: Any) -> Optional[str]:
    text = normalize_products(products)
    if not text:
        return None
    for prefix, category in _PREFIX_RULES:
        if text.startswith(prefix):
            return category
    for token, category in _SUBSTRING_RULES:
        if token in text:
            return category
    return None


def product_subcategory(products: Any) -> str:
    text = normalize_products(products)
    for token in _SUBCATEGORY_TOKENS:
        if token in text:
            return token
    return "other"


def classify(products: Any) -> Classification:
    """Map a free-text product string to (category, subcategory)."""
    return Classification(category=product_category(products), subcategory=product_subcategory(products))


def normalize_market(code: Any) -> str:
    if not isinstance(code, str):
        return ""
    return code.strip().upper()


def category_label(category: Optional[str]) -> str:
    if not category:
        return "Uncategorized"
    return category[:1].upper() + category[1:]
