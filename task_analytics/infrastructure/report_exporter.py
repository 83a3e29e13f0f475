"""Infrastructure adapter writing the analytics summary as JSON and as a workbook."""

from __future__ import annotations

import json
import logging
import re
from pathlib import Path
from typing import Any, Dict, Iterable

import polars as pl

logger = logging.getLogger(__name__)

SHEET_NAME_LIMIT = 31
MAX_COLUMN_WIDTH = 48
EMPTY_SHEET_NAME = "summary"
_INVALID_SHEET_CHARS = re.compile(r"[\[\]:*?/\\]")
_INT_TEXT = re.compile(r"^-?\d+$")
_FLOAT_TEXT = re.compile(r"^-?\d+\.\d+$")


def _import_openpyxl() -> tuple[Any, Any, Any]:
    try:
        from openpyxl import Workbook
        from openpyxl.styles import Font
        from openpyxl.utils import get_column_letter
    except Exception as exc:  # pragma: no cover
        raise RuntimeError("openpyxl is required to write the summary workbook.") from exc
    return Workbook, Font, get_column_letter


def save_summary_json(path: Path, summary: dict[str, Any]) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(summary, indent=2, ensure_ascii=False), encoding="utf-8")


def sheet_title(name: str, taken: Iterable[str] = ()) -> str:
    """Excel-safe worksheet title, unique among ``taken`` (case-insensitive)."""
    base = _INVALID_SHEET_CHARS.sub("_", str(name)).strip() or EMPTY_SHEET_NAME
    base = base[:SHEET_NAME_LIMIT]
    used = {title.lower() for title in taken}
    title = base
    suffix = 2
    while title.lower() in used:
        tail = f"_{suffix}"
        title = f"{base[: SHEET_NAME_LIMIT - len(tail)]}{tail}"
        suffix += 1
    return title


def _sheet_value(value: Any) -> Any:
    """Plain counts stored as text go back to numbers; "2 (67%)" cells stay text."""
    if isinstance(value, str):
        text = value.strip()
        if _INT_TEXT.match(text):
            return int(text)
        if _FLOAT_TEXT.match(text):
            return float(text)
        return value
    if isinstance(value, float) and (value != value or value in (float("inf"), float("-inf"))):
        return None
    if isinstance(value, (list, dict)):
        return json.dumps(value, ensure_ascii=False)
    return value


def _write_with_polars(path: Path, sheets: Dict[str, pl.DataFrame]) -> bool:
    # polars writes one worksheet per call; multi-sheet books go through openpyxl.
    if len(sheets) != 1:
        return False
    sheet_name, frame = next(iter(sheets.items()))
    try:
        frame.write_excel(path, worksheet=sheet_title(sheet_name), autofit=True)
    except Exception:
        return False
    return True


def _write_with_openpyxl(path: Path, sheets: Dict[str, pl.DataFrame]) -> None:
    Workbook, Font, get_column_letter = _import_openpyxl()
    workbook = Workbook()
    workbook.remove(workbook.active)

    header_font = Font(bold=True)
    for sheet_name, frame in sheets.items():
        worksheet = workbook.create_sheet(title=sheet_title(sheet_name, workbook.sheetnames))
        worksheet.append(frame.columns)
        for cell in worksheet[1]:
            cell.font = header_font
        worksheet.freeze_panes = "A2"

        widths = [len(str(header)) for header in frame.columns]
        for row in frame.iter_rows(named=False):
            values = [_sheet_value(value) for value in row]
            worksheet.append(values)
            for idx, value in enumerate(values):
                widths[idx] = max(widths[idx], len(str(value)) if value is not None else 0)
        for idx, width in enumerate(widths, start=1):
            worksheet.column_dimensions[get_column_letter(idx)].width = min(width + 2, MAX_COLUMN_WIDTH)
    workbook.save(path)


def write_output_excel(path: str | Path, sheets: Dict[str, pl.DataFrame]) -> None:
    """One worksheet per view; an empty summary still produces a readable workbook."""
    excel_path = Path(path)
    excel_path.parent.mkdir(parents=True, exist_ok=True)
    if not sheets:
        sheets = {EMPTY_SHEET_NAME: pl.DataFrame({"message": ["No data"]})}
    if _write_with_polars(excel_path, sheets):
        logger.debug("Workbook written with polars: %s", excel_path)
        return
    _write_with_openpyxl(excel_path, sheets)
    logger.debug("Workbook written with openpyxl: %s (%d sheets)", excel_path, len(sheets))


def save_output_workbook(path: Path, sheets: dict[str, pl.DataFrame]) -> tuple[bool, str]:
    """Write the workbook; a locked file is reported instead of raised."""
    try:
        write_output_excel(path, sheets)
    except PermissionError as exc:
        logger.warning("Could not write workbook %s: %s", path, exc)
        return False, str(exc)
    return True, ""
