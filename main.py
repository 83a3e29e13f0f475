"""Task Analytics entrypoint."""

from __future__ import annotations

import logging

from task_analytics.application.report_service import run_reporting_pipeline
from task_analytics.config import Settings


def main() -> None:
    settings = Settings.from_env()
    logging.basicConfig(
        level=settings.log_level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    result = run_reporting_pipeline(settings)
    if result.comparison is not None:
        logging.getLogger(__name__).info(
            "Month comparison: %s", result.summary.get("month_comparison_text", "")
        )


if __name__ == "__main__":
    main()
