"""Infrastructure layer package."""

from .report_exporter import save_output_workbook, save_summary_json, write_output_excel
from .task_repository import load_directory, load_task_records

__all__ = ["load_task_records", "load_directory", "save_output_workbook", "save_summary_json", "write_output_excel"]
