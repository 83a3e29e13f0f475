"""Field accessors for raw task records.

A task record may hold any field either on the top level or nested under its
``data_task`` detail object. Every logical field has exactly one accessor here
that tries a fixed list of locations and returns the first non-missing value.
Call sites never read raw records directly.
"""

from __future__ import annotations

import math
import re
from typing import Any, Mapping, Optional, Sequence

from task_analytics.domain.classification import classify, normalize_market, normalize_products
from task_analytics.domain.models import AIUsage, NormalizedTask

DETAIL_KEY = "data_task"

MARKETS_KEYS: tuple[str, ...] = ("markets",)
HOURS_KEYS: tuple[str, ...] = ("timeInHours", "hours")
USER_KEYS: tuple[str, ...] = ("userUID", "createbyUID")
USER_FALLBACK_KEYS: tuple[str, ...] = ("userId",)
PRODUCTS_KEYS: tuple[str, ...] = ("products",)
REPORTER_ID_KEYS: tuple[str, ...] = ("reporterUID", "reporters")
REPORTER_NAME_KEYS: tuple[str, ...] = ("reporterName",)
AI_USAGE_KEYS: tuple[str, ...] = ("aiUsed",)
EXTERNAL_ASSET_KEYS: tuple[str, ...] = ("useShutterstock", "useExternalAsset")
MONTH_KEYS: tuple[str, ...] = ("monthId",)
CREATED_AT_KEYS: tuple[str, ...] = ("createdAt",)

_MONTH_PATTERN = re.compile(r"^(\d{4})-(\d{2})")


def _is_missing(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, str) and not value.strip():
        return True
    return False


def _detail(task: Mapping[str, Any]) -> Mapping[str, Any]:
    detail = task.get(DETAIL_KEY)
    if isinstance(detail, Mapping):
        return detail
    return {}


def read_field(task: Any, keys: Sequence[str], fallback_keys: Sequence[str] = ()) -> Any:
    """Return the first non-missing value: detail keys, then top-level keys, then fallbacks."""
    if not isinstance(task, Mapping):
        return None
    detail = _detail(task)
    for source in (detail, task):
        for key in keys:
            value = source.get(key)
            if not _is_missing(value):
                return value
    for key in fallback_keys:
        value = task.get(key)
        if not _is_missing(value):
            return value
    return None


def _to_hours(value: Any) -> float:
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        hours = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(hours) or math.isinf(hours) or hours < 0:
        return 0.0
    return hours


def _to_optional_text(value: Any) -> Optional[str]:
    if _is_missing(value):
        return None
    if isinstance(value, (list, tuple)):
        # Reporter pickers sometimes store a single-element list.
        for item in value:
            text = _to_optional_text(item)
            if text is not None:
                return text
        return None
    if isinstance(value, (str, int)) and not isinstance(value, bool):
        return str(value).strip()
    return None


def task_markets(task: Any) -> tuple[str, ...]:
    raw = read_field(task, MARKETS_KEYS)
    if not isinstance(raw, (list, tuple)):
        return ()
    markets: dict[str, None] = {}
    for item in raw:
        code = normalize_market(item)
        if code:
            markets.setdefault(code, None)
    return tuple(markets)


def task_hours(task: Any) -> float:
    return _to_hours(read_field(task, HOURS_KEYS))


def task_user_id(task: Any) -> Optional[str]:
    return _to_optional_text(read_field(task, USER_KEYS, fallback_keys=USER_FALLBACK_KEYS))


def task_products(task: Any) -> Optional[str]:
    text = normalize_products(read_field(task, PRODUCTS_KEYS))
    return text or None


def task_reporter_id(task: Any) -> Optional[str]:
    return _to_optional_text(read_field(task, REPORTER_ID_KEYS))


def task_reporter_name(task: Any) -> Optional[str]:
    return _to_optional_text(read_field(task, REPORTER_NAME_KEYS))


def _ai_entry(entry: Any) -> Optional[AIUsage]:
    if not isinstance(entry, Mapping):
        return None
    hours_value = entry.get("aiTime")
    if _is_missing(hours_value):
        hours_value = entry.get("hours")
    models_value = entry.get("aiModels")
    if models_value is None:
        models_value = entry.get("models")
    if not isinstance(models_value, (list, tuple)):
        models_value = []
    models = tuple(str(model).strip() for model in models_value if isinstance(model, str) and model.strip())
    return AIUsage(hours=_to_hours(hours_value), models=models)


def task_ai_usage(task: Any) -> tuple[AIUsage, ...]:
    raw = read_field(task, AI_USAGE_KEYS)
    if not isinstance(raw, (list, tuple)):
        return ()
    entries = (_ai_entry(item) for item in raw)
    return tuple(entry for entry in entries if entry is not None)


def task_uses_external_asset(task: Any) -> bool:
    return read_field(task, EXTERNAL_ASSET_KEYS) is True


def task_month(task: Any) -> Optional[str]:
    for keys in (MONTH_KEYS, CREATED_AT_KEYS):
        value = read_field(task, keys)
        if isinstance(value, str):
            match = _MONTH_PATTERN.match(value.strip())
            if match:
                return f"{match.group(1)}-{match.group(2)}"
    return None


def normalize(task: Any, index: int = 0) -> NormalizedTask:
    """Project a raw record onto a NormalizedTask. Never raises, never mutates ``task``."""
    products = task_products(task)
    classification = classify(products)
    return NormalizedTask(
        index=index,
        markets=task_markets(task),
        hours=task_hours(task),
        user_id=task_user_id(task),
        products=products,
        category=classification.category,
        subcategory=classification.subcategory,
        reporter_id=task_reporter_id(task),
        reporter_name=task_reporter_name(task),
        ai_usage=task_ai_usage(task),
        use_external_asset=task_uses_external_asset(task),
        month=task_month(task),
    )
