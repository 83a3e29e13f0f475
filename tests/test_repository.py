"""
Tests for task loading, summary export and the batch pipeline.
"""

import json

import polars as pl
import pytest
from openpyxl import Workbook, load_workbook

from task_analytics.application.aggregation import normalize_tasks
from task_analytics.application.report_service import recent_months, run_reporting_pipeline
from task_analytics.config import Settings
from task_analytics.infrastructure.report_exporter import save_output_workbook, save_summary_json, sheet_title
from task_analytics.infrastructure.task_repository import load_directory, load_task_records, record_from_row

TASKS = [
    {"monthId": "2024-01", "products": "marketing casino", "markets": ["ro"], "timeInHours": 2, "userUID": "u1"},
    {"monthId": "2024-02", "products": "marketing casino", "markets": ["ro", "bg"], "timeInHours": 1, "userUID": "u1"},
    {"monthId": "2024-02", "products": "acquisition sport", "markets": ["uk"], "timeInHours": 3, "userUID": "u2"},
]


class TestLoadTaskRecords:
    def test_json_list(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps(TASKS), encoding="utf-8")
        assert load_task_records(path) == TASKS

    def test_json_wrapped_in_object(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"tasks": TASKS[:1]}), encoding="utf-8")
        assert load_task_records(path) == TASKS[:1]

    def test_invalid_json(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text("{not json", encoding="utf-8")
        with pytest.raises(ValueError, match="Invalid JSON"):
            load_task_records(path)

    def test_unexpected_shape(self, tmp_path):
        path = tmp_path / "tasks.json"
        path.write_text(json.dumps({"items": []}), encoding="utf-8")
        with pytest.raises(ValueError):
            load_task_records(path)

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_task_records(tmp_path / "missing.json")

    def test_excel_sheet(self, tmp_path):
        path = tmp_path / "tasks.xlsx"
        workbook = Workbook()
        sheet = workbook.active
        sheet.title = "tasks"
        sheet.append(["products", "markets", "timeInHours", "userUID", "aiModels", "aiTime", "useShutterstock"])
        sheet.append(["Marketing Casino", "ro, bg", 2, "u1", "ChatGpt, Photoshop", 1.5, "yes"])
        sheet.append(["Product Sport", "uk", 1, "u2", None, None, None])
        workbook.save(path)

        records = load_task_records(path)
        assert len(records) == 2
        first = records[0]
        assert first["markets"] == ["ro", "bg"]
        assert first["aiUsed"] == [{"aiTime": 1.5, "aiModels": ["ChatGpt", "Photoshop"]}]
        assert first["useShutterstock"] is True
        assert "aiUsed" not in records[1]
        tasks = normalize_tasks(records)
        assert tasks[0].markets == ("RO", "BG")
        assert tasks[0].hours == 2.0
        assert tasks[0].category == "marketing"


class TestRecordFromRow:
    def test_flat_row(self):
        record = record_from_row({"markets": "ro,,bg", "aiModels": None, "aiTime": 0, "useExternalAsset": 1})
        assert record == {"markets": ["ro", "bg"], "useExternalAsset": True}


class TestLoadDirectory:
    def test_none_path(self):
        assert load_directory(None) == []

    def test_users_key(self, tmp_path):
        path = tmp_path / "users.json"
        path.write_text(json.dumps({"users": [{"id": "u1", "name": "Ana"}, "junk"]}), encoding="utf-8")
        assert load_directory(path) == [{"id": "u1", "name": "Ana"}]


class TestExport:
    def test_summary_json(self, tmp_path):
        path = tmp_path / "nested" / "summary.json"
        save_summary_json(path, {"label": "Piață", "total": 1})
        assert json.loads(path.read_text(encoding="utf-8")) == {"label": "Piață", "total": 1}
        assert "Piață" in path.read_text(encoding="utf-8")

    def test_workbook_sheets(self, tmp_path):
        path = tmp_path / "summary.xlsx"
        sheets = {
            "users": pl.DataFrame({"User": ["Ana"], "Total Tasks": [2]}),
            "month_comparison": pl.DataFrame({"Metric": ["Total Tasks"], "Change %": [50.0]}),
        }
        saved, error = save_output_workbook(path, sheets)
        assert (saved, error) == (True, "")
        workbook = load_workbook(path)
        assert workbook.sheetnames == ["users", "month_comparison"]
        assert workbook["users"]["A2"].value == "Ana"

    def test_count_text_becomes_numbers(self, tmp_path):
        path = tmp_path / "summary.xlsx"
        sheets = {
            "marketing": pl.DataFrame({"Marketing Category": ["Casino"], "Total Tasks": ["3"], "RO": ["2 (67%)"]}),
            "users": pl.DataFrame({"User": ["Ana"], "Total Hours": ["1.5"]}),
        }
        save_output_workbook(path, sheets)
        workbook = load_workbook(path)
        assert workbook["marketing"]["B2"].value == 3
        assert workbook["marketing"]["C2"].value == "2 (67%)"
        assert workbook["users"]["B2"].value == 1.5
        assert workbook["users"]["A1"].font.bold

    def test_sheet_titles_are_excel_safe(self):
        assert sheet_title("a/b:c") == "a_b_c"
        assert len(sheet_title("x" * 40)) == 31
        assert sheet_title("Users", ["users"]) == "Users_2"
        assert sheet_title("") == "summary"

    def test_empty_workbook_gets_summary_sheet(self, tmp_path):
        path = tmp_path / "empty.xlsx"
        saved, _ = save_output_workbook(path, {})
        assert saved
        assert load_workbook(path).sheetnames == ["summary"]


class TestPipeline:
    def test_recent_months(self):
        assert recent_months(normalize_tasks(TASKS), 2) == ["2024-01", "2024-02"]
        assert recent_months(normalize_tasks(TASKS), 1) == ["2024-02"]

    def test_end_to_end(self, tmp_path):
        input_path = tmp_path / "tasks.json"
        input_path.write_text(json.dumps(TASKS), encoding="utf-8")
        users_path = tmp_path / "users.json"
        users_path.write_text(json.dumps([{"id": "u1", "name": "Ana"}]), encoding="utf-8")
        settings = Settings(input_path=input_path, users_path=users_path, output_dir=tmp_path / "out")

        result = run_reporting_pipeline(settings)

        assert result.task_count == 3
        assert result.excel_saved
        assert result.comparison is not None
        assert result.comparison.labels == ["2024-01", "2024-02"]
        total = result.comparison.metric("Total Tasks")
        assert (total.period1, total.period2, total.change_percent) == (1, 2, 100.0)

        summary = json.loads(settings.summary_json_path.read_text(encoding="utf-8"))
        assert summary["task_count"] == 3
        assert summary["views"]["marketing"]["totals"] == {"taskCount": 2, "hours": 3.0}
        assert summary["month_comparison_text"].startswith("Total Tasks: 2024-01 1 -> 2024-02 2 (+100.0%)")

        sheetnames = load_workbook(settings.summary_excel_path).sheetnames
        assert "users" in sheetnames
        assert "month_comparison" in sheetnames

    def test_single_month_skips_comparison(self, tmp_path):
        input_path = tmp_path / "tasks.json"
        input_path.write_text(json.dumps(TASKS[1:]), encoding="utf-8")
        result = run_reporting_pipeline(Settings(input_path=input_path, output_dir=tmp_path / "out"))
        assert result.comparison is None
        assert "month_comparison" not in result.summary
