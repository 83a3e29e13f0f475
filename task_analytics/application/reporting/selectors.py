"""Label resolution helpers for users and reporters."""

from __future__ import annotations

from typing import Any, Dict, Mapping, Optional, Sequence

from task_analytics.domain.models import NormalizedTask

DIRECTORY_ID_KEYS = ("id", "uid", "userUID")


def directory_index(entries: Sequence[Any]) -> Dict[str, Mapping[str, Any]]:
    """Map every id-like key of a user/reporter entry to the entry."""
    index: Dict[str, Mapping[str, Any]] = {}
    for entry in entries or ():
        if not isinstance(entry, Mapping):
            continue
        for key in DIRECTORY_ID_KEYS:
            value = entry.get(key)
            if value is None or str(value).strip() == "":
                continue
            index.setdefault(str(value).strip(), entry)
    return index


def _entry_text(entry: Optional[Mapping[str, Any]], key: str) -> str:
    if entry is None:
        return ""
    value = entry.get(key)
    if not isinstance(value, str):
        return ""
    return value.strip()


def user_label(user_id: str, index: Mapping[str, Mapping[str, Any]]) -> str:
    entry = index.get(user_id)
    name = _entry_text(entry, "name") or _entry_text(entry, "email")
    if name:
        return name
    return f"User {user_id[:8]}"


def reporter_labels(
    tasks: Sequence[NormalizedTask],
    index: Mapping[str, Mapping[str, Any]],
) -> Dict[str, str]:
    """Display label per reporter grouping key, first spelling seen wins."""
    labels: Dict[str, str] = {}
    for task in tasks:
        if task.reporter_name:
            labels.setdefault(task.reporter_name.strip().lower(), task.reporter_name.strip())
        elif task.reporter_id and task.reporter_id not in labels:
            entry = index.get(task.reporter_id)
            labels[task.reporter_id] = _entry_text(entry, "name") or f"Reporter {task.reporter_id[:8]}"
    return labels
