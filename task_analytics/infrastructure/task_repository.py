"""Infrastructure adapter loading task records from JSON or Excel exports."""

from __future__ import annotations

import json
import logging
from datetime import date, datetime
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence

import polars as pl

logger = logging.getLogger(__name__)

EXCEL_SUFFIXES: tuple[str, ...] = (".xlsx", ".xlsm", ".xls")
PREFERRED_SHEET = "tasks"
LIST_COLUMNS: tuple[str, ...] = ("markets", "aiModels")
AI_COLUMNS: tuple[str, ...] = ("aiModels", "aiTime")
TRUE_TEXT: frozenset[str] = frozenset({"true", "yes", "y", "1"})
BOOL_COLUMNS: tuple[str, ...] = ("useShutterstock", "useExternalAsset")


def _import_openpyxl() -> Any:
    try:
        from openpyxl import load_workbook
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required to read task sheets without polars Excel support.") from exc
    return load_workbook


def _normalize_headers(raw_headers: Sequence[Any]) -> list[str]:
    headers: list[str] = []
    seen: dict[str, int] = {}
    for idx, value in enumerate(raw_headers):
        base = str(value).strip() if value not in (None, "") else f"column_{idx + 1}"
        count = seen.get(base, 0)
        headers.append(base if count == 0 else f"{base}_{count + 1}")
        seen[base] = count + 1
    return headers


def _read_with_polars(path: Path, sheet_name: str) -> pl.DataFrame:
    if not hasattr(pl, "read_excel"):
        raise RuntimeError("polars.read_excel is not available in this environment.")
    try:
        frame = pl.read_excel(path, sheet_name=sheet_name)
    except Exception:
        frame = pl.read_excel(path)
    if isinstance(frame, dict):
        return next(iter(frame.values()), pl.DataFrame())
    return frame


def _read_with_openpyxl(path: Path, sheet_name: str) -> pl.DataFrame:
    load_workbook = _import_openpyxl()
    workbook = load_workbook(path, read_only=True, data_only=True)
    if not workbook.sheetnames:
        workbook.close()
        raise ValueError(f"No sheets found in {path}")
    target = sheet_name if sheet_name in workbook.sheetnames else workbook.sheetnames[0]

    row_iter = workbook[target].iter_rows(values_only=True)
    header_row = next(row_iter, None)
    if header_row is None:
        workbook.close()
        return pl.DataFrame()

    headers = _normalize_headers(header_row)
    records: list[dict[str, Any]] = []
    for values in row_iter:
        if values is None or all(value is None for value in values):
            continue
        records.append({name: values[idx] if idx < len(values) else None for idx, name in enumerate(headers)})
    workbook.close()
    if not records:
        return pl.DataFrame({name: [] for name in headers})
    # Mixed-type sheet columns would fail strict inference.
    return pl.DataFrame(records, strict=False, infer_schema_length=None)


def _split_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, (list, tuple)):
        return [str(item).strip() for item in value if str(item).strip()]
    return [part.strip() for part in str(value).split(",") if part.strip()]


def _cell(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, float) and value != value:
        return None
    return value


def _flag(value: Any) -> Optional[bool]:
    if value is None:
        return None
    if isinstance(value, bool):
        return value
    if isinstance(value, (int, float)):
        return value == 1
    return str(value).strip().lower() in TRUE_TEXT


def record_from_row(row: Dict[str, Any]) -> Dict[str, Any]:
    """Turn one flat sheet row into a task record shaped like the JSON export."""
    record: Dict[str, Any] = {}
    for key, value in row.items():
        if key in AI_COLUMNS:
            continue
        if key in LIST_COLUMNS:
            record[key] = _split_list(value)
        elif key in BOOL_COLUMNS:
            record[key] = _flag(value)
        else:
            record[key] = _cell(value)

    models = _split_list(row.get("aiModels"))
    ai_time = _cell(row.get("aiTime"))
    if models or ai_time not in (None, "", 0):
        record["aiUsed"] = [{"aiTime": ai_time, "aiModels": models}]
    return record


def _read_excel_records(path: Path) -> List[Dict[str, Any]]:
    try:
        frame = _read_with_polars(path, PREFERRED_SHEET)
    except Exception:
        frame = _read_with_openpyxl(path, PREFERRED_SHEET)
    return [record_from_row(row) for row in frame.to_dicts()]


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Invalid JSON in {path}: {exc}") from exc


def _unwrap_list(payload: Any, keys: Sequence[str], path: Path) -> List[Any]:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        for key in keys:
            value = payload.get(key)
            if isinstance(value, list):
                return value
    raise ValueError(f"Expected a list or an object with one of {list(keys)} in {path}")


def load_task_records(path: str | Path) -> List[Dict[str, Any]]:
    """Read task records from a JSON export or an Excel sheet."""
    input_path = Path(path)
    if not input_path.exists():
        raise FileNotFoundError(f"Input task file not found: {input_path}")

    if input_path.suffix.lower() in EXCEL_SUFFIXES:
        records = _read_excel_records(input_path)
    else:
        records = _unwrap_list(_read_json(input_path), ("tasks", "data"), input_path)
    logger.info("Loaded %d task records from %s", len(records), input_path)
    return records


def load_directory(path: str | Path | None, key: str = "users") -> List[Dict[str, Any]]:
    """Read a user/reporter directory; a missing path yields an empty directory."""
    if path is None:
        return []
    directory_path = Path(path)
    if not directory_path.exists():
        raise FileNotFoundError(f"Directory file not found: {directory_path}")
    entries = _unwrap_list(_read_json(directory_path), (key, "data"), directory_path)
    return [entry for entry in entries if isinstance(entry, dict)]
