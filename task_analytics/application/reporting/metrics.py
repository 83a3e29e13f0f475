"""Shared numeric/formatting utilities for reporting."""

from __future__ import annotations

import math
from decimal import ROUND_HALF_UP, Decimal
from typing import Any


def to_float(value: Any, default: float = 0.0) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        return default
    if math.isnan(number):
        return default
    return number


def round_half_up(value: float, digits: int = 0) -> float:
    quantum = Decimal(1).scaleb(-digits)
    return float(Decimal(str(value)).quantize(quantum, rounding=ROUND_HALF_UP))


def round_hours(value: float) -> float:
    return round_half_up(to_float(value), 2)


def change_percent(prev: float, curr: float) -> float:
    """Period-over-period change in percent, one decimal."""
    if prev == 0 and curr == 0:
        return 0.0
    if prev == 0:
        return 100.0 if curr > 0 else -100.0
    return round_half_up((curr - prev) / prev * 100, 1)


def usage_percent(part: int, whole: int) -> int:
    if whole <= 0:
        return 0
    return min(int(round_half_up(part / whole * 100)), 100)


def fmt_hours(value: float | None) -> str:
    if value is None:
        return "0h"
    hours = round_hours(value)
    if hours == int(hours):
        return f"{int(hours)}h"
    return f"{hours:.2f}".rstrip("0") + "h"


def fmt_count_pct(count: int, percentage: int | None) -> str:
    if percentage is None:
        return str(count)
    return f"{count} ({percentage}%)"


def fmt_change(value: float | None) -> str:
    if value is None:
        return "N/A"
    return f"{value:+.1f}%"
