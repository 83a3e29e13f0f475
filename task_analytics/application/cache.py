"""Caller-owned memoization for analytics results."""

from __future__ import annotations

import hashlib
import json
import logging
from typing import Any, Callable, Dict, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")


def cache_key(tasks: Sequence[Any], dimension_names: Sequence[str] = (), period_labels: Sequence[str] = ()) -> str:
    """Stable key from the task list identity/length, dimension names and period labels."""
    payload = {
        "task_count": len(tasks),
        "task_list_id": id(tasks),
        "dimensions": [str(name) for name in dimension_names],
        "periods": [str(label) for label in period_labels],
    }
    encoded = json.dumps(payload, sort_keys=True, ensure_ascii=False).encode("utf-8")
    return hashlib.sha1(encoded).hexdigest()


class ResultCache:
    """Plain key -> result store; the engine never consults it on its own."""

    def __init__(self) -> None:
        self._entries: Dict[str, Any] = {}
        self.hits = 0
        self.misses = 0

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, key: object) -> bool:
        return key in self._entries

    def get(self, key: str, default: Any = None) -> Any:
        return self._entries.get(key, default)

    def get_or_compute(self, key: str, compute: Callable[[], T]) -> T:
        if key in self._entries:
            self.hits += 1
            return self._entries[key]
        self.misses += 1
        value = compute()
        self._entries[key] = value
        logger.debug("Cached result %s", key[:12])
        return value

    def invalidate(self, key: Optional[str] = None) -> None:
        if key is None:
            self._entries.clear()
            return
        self._entries.pop(key, None)
