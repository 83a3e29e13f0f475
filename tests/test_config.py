"""
Tests for environment-driven settings.
"""

from pathlib import Path

import pytest

from task_analytics.config import Settings


class TestSettingsFromEnv:
    def test_defaults(self):
        settings = Settings.from_env({})
        assert settings.input_path == Path("data") / "tasks.json"
        assert settings.users_path is None
        assert settings.top_n == 15
        assert settings.log_level == "INFO"
        assert settings.compare_months == 2
        assert settings.summary_json_path == Path("output") / "summary.json"
        assert settings.summary_excel_path == Path("output") / "summary.xlsx"

    def test_overrides(self):
        settings = Settings.from_env(
            {
                "TASK_ANALYTICS_INPUT": "exports/tasks.xlsx",
                "TASK_ANALYTICS_USERS": "exports/users.json",
                "TASK_ANALYTICS_OUTPUT_DIR": "out",
                "TASK_ANALYTICS_TOP_N": " 5 ",
                "TASK_ANALYTICS_LOG_LEVEL": "debug",
                "TASK_ANALYTICS_COMPARE_MONTHS": "3",
            }
        )
        assert settings.input_path == Path("exports/tasks.xlsx")
        assert settings.users_path == Path("exports/users.json")
        assert settings.summary_json_path == Path("out") / "summary.json"
        assert settings.top_n == 5
        assert settings.log_level == "DEBUG"
        assert settings.compare_months == 3

    def test_blank_values_use_defaults(self):
        settings = Settings.from_env({"TASK_ANALYTICS_TOP_N": "  ", "TASK_ANALYTICS_INPUT": ""})
        assert settings.top_n == 15
        assert settings.input_path == Path("data") / "tasks.json"

    @pytest.mark.parametrize(
        "name, value, message",
        [
            ("TASK_ANALYTICS_TOP_N", "many", "Invalid TASK_ANALYTICS_TOP_N"),
            ("TASK_ANALYTICS_TOP_N", "0", "TASK_ANALYTICS_TOP_N must be >= 1"),
            ("TASK_ANALYTICS_COMPARE_MONTHS", "4", "TASK_ANALYTICS_COMPARE_MONTHS must be one of"),
            ("TASK_ANALYTICS_LOG_LEVEL", "chatty", "Invalid TASK_ANALYTICS_LOG_LEVEL"),
        ],
    )
    def test_invalid_values_raise(self, name, value, message):
        with pytest.raises(ValueError, match=message):
            Settings.from_env({name: value})
