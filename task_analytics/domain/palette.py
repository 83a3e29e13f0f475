"""Deterministic chart colors per data type.

Fixed dimension values (markets, products, AI models, departments, categories)
have pinned colors. Anything else falls back to a palette slot picked by a
stable string hash, so the same name always gets the same color.
"""

from __future__ import annotations

from types import MappingProxyType
from typing import Mapping, Tuple

MARKET = "market"
PRODUCT = "product"
AI_MODEL = "aiModel"
DEPARTMENT = "department"
USER = "user"
REPORTER = "reporter"
CATEGORY = "category"
SUBCATEGORY = "subcategory"

DATA_TYPES: Tuple[str, ...] = (MARKET, PRODUCT, AI_MODEL, DEPARTMENT, USER, REPORTER, CATEGORY, SUBCATEGORY)

BASE_COLORS: Tuple[str, ...] = (
    "#00d54d",
    "#1177ff",
    "#0fc9ce",
    "#DC143C",
    "#ff9e08",
    "#E50046",
    "#EF4444",
    "#d3c300",
    "#64748B",
    "#F25912",
)

USER_COLORS: Tuple[str, ...] = (
    "#2563eb",
    "#10b981",
    "#84cc16",
    "#f59e0b",
    "#8b5cf6",
    "#db2777",
    "#06b6d4",
    "#f97316",
    "#10b981",
    "#e11d48",
)

MARKET_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "RO": "#e11d48",
        "COM": "#2563eb",
        "UK": "#f97316",
        "IE": "#22c55e",
        "FI": "#7c3aed",
        "DK": "#f59e0b",
        "DE": "#10b981",
        "AT": "#ef4444",
        "IT": "#06b6d4",
        "GR": "#db2777",
        "FR": "#84cc16",
    }
)

PRODUCT_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "marketing casino": "#e11d48",
        "marketing sport": "#2563eb",
        "marketing poker": "#7c3aed",
        "marketing lotto": "#22c55e",
        "acquisition casino": "#f59e0b",
        "acquisition sport": "#06b6d4",
        "acquisition poker": "#db2777",
        "acquisition lotto": "#84cc16",
        "product casino": "#f59e0b",
        "product sport": "#22c55e",
        "product poker": "#ef4444",
        "product lotto": "#10b981",
        "misc": "#8C00FF",
    }
)

AI_MODEL_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "Photoshop": "#e11d48",
        "FireFly": "#2563eb",
        "ChatGpt": "#7c3aed",
        "ShutterStock": "#22c55e",
        "MidJourney": "#f59e0b",
        "NightCafe": "#06b6d4",
        "FreePick": "#db2777",
        "Cursor": "#84cc16",
        "run diffusion": "#22c55e",
    }
)

DEPARTMENT_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "video": "#e11d48",
        "design": "#2563eb",
        "developer": "#7c3aed",
        "acquisition": "#22c55e",
        "customer_relationship_management": "#f59e0b",
        "games_team": "#06b6d4",
        "other": "#db2777",
        "product": "#84cc16",
        "vip": "#dc2626",
        "content": "#ca8a04",
        "performance_marketing_local": "#ef4444",
        "miscellaneous": "#8C00FF",
        "human_resources": "#10b981",
    }
)

CATEGORY_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "marketing": "#e11d48",
        "acquisition": "#2563eb",
        "product": "#f59e0b",
        "misc": "#8C00FF",
    }
)

SUBCATEGORY_COLORS: Mapping[str, str] = MappingProxyType(
    {
        "casino": "#DC143C",
        "sport": "#00d54d",
        "poker": "#0fc9ce",
        "lotto": "#1177ff",
        "other": "#64748B",
    }
)


def js_string_hash(text: str) -> int:
    """``hash = hash * 31 + code`` folded to a signed 32-bit int, per UTF-16 code unit."""
    value = 0
    encoded = text.encode("utf-16-le")
    for offset in range(0, len(encoded), 2):
        code = encoded[offset] | (encoded[offset + 1] << 8)
        value = ((value << 5) - value + code) & 0xFFFFFFFF
    if value >= 0x80000000:
        value -= 0x100000000
    return value


def hashed_color(name: str, palette: Tuple[str, ...]) -> str:
    if not name:
        return palette[0]
    return palette[abs(js_string_hash(name)) % len(palette)]


def _lookup(name: str, data_type: str) -> str | None:
    if data_type == MARKET:
        return MARKET_COLORS.get(name.strip().upper())
    if data_type == PRODUCT:
        return PRODUCT_COLORS.get(name.strip().lower())
    if data_type == AI_MODEL:
        return AI_MODEL_COLORS.get(name.strip())
    if data_type == DEPARTMENT:
        return DEPARTMENT_COLORS.get(name.strip().lower())
    if data_type == CATEGORY:
        return CATEGORY_COLORS.get(name.strip().lower())
    if data_type == SUBCATEGORY:
        return SUBCATEGORY_COLORS.get(name.strip().lower())
    return None


def palette_for(data_type: str) -> Tuple[str, ...]:
    if data_type == USER:
        return USER_COLORS
    return BASE_COLORS


def color_for(name: str, data_type: str) -> str:
    """Color for a dimension value; a pure function of its arguments."""
    if data_type not in DATA_TYPES:
        raise ValueError(f"Unknown chart data type: {data_type}")
    text = str(name or "")
    pinned = _lookup(text, data_type) if text else None
    if pinned is not None:
        return pinned
    return hashed_color(text, palette_for(data_type))
