"""Integer percentage allocation that always sums to exactly 100."""

from __future__ import annotations

import math
from typing import Any, Dict, Hashable, Iterable, List, Mapping, Tuple


def _pairs(counts: Mapping[Hashable, int] | Iterable[Tuple[Hashable, int]]) -> List[Tuple[Hashable, int]]:
    if isinstance(counts, Mapping):
        return list(counts.items())
    return [(key, count) for key, count in counts]


def allocate_percentages(
    counts: Mapping[Hashable, int] | Iterable[Tuple[Hashable, int]],
    total: Any,
) -> Dict[Hashable, int]:
    """Largest-remainder allocation of ``count / total`` shares.

    Each item gets the floor of its share; the missing points up to 100 go to
    the items with the largest remainders, ties keeping input order. With
    ``total == 0`` every item gets 0.
    """
    items = _pairs(counts)
    for key, count in items:
        if count < 0:
            raise ValueError(f"Negative count for {key!r}: {count}")
    if total < 0:
        raise ValueError(f"Negative total: {total}")
    if total == 0 or not items:
        return {key: 0 for key, _ in items}

    floors: Dict[Hashable, int] = {}
    remainders: List[Tuple[float, int, Hashable]] = []
    for position, (key, count) in enumerate(items):
        raw = count / total * 100
        floor = math.floor(raw)
        floors[key] = floor
        remainders.append((raw - floor, position, key))

    deficit = 100 - sum(floors.values())
    deficit = max(0, min(deficit, len(items)))
    ordered = sorted(remainders, key=lambda item: (-item[0], item[1]))
    for _, _, key in ordered[:deficit]:
        floors[key] += 1
    return floors
