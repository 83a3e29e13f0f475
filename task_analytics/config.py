"""Environment-driven settings for the batch reporting pipeline."""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

ENV_PREFIX = "TASK_ANALYTICS_"
DEFAULT_INPUT = Path("data") / "tasks.json"
DEFAULT_OUTPUT_DIR = Path("output")
DEFAULT_TOP_N = 15
DEFAULT_LOG_LEVEL = "INFO"
DEFAULT_COMPARE_MONTHS = 2
ALLOWED_COMPARE_MONTHS: tuple[int, ...] = (2, 3)


def _env(environ: Mapping[str, str], name: str) -> Optional[str]:
    raw = environ.get(f"{ENV_PREFIX}{name}")
    if raw is None or not raw.strip():
        return None
    return raw.strip()


def _parse_int(environ: Mapping[str, str], name: str, default: int) -> int:
    raw = _env(environ, name)
    if raw is None:
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ValueError(f"Invalid {ENV_PREFIX}{name}: {raw}") from exc


def _parse_top_n(environ: Mapping[str, str]) -> int:
    top_n = _parse_int(environ, "TOP_N", DEFAULT_TOP_N)
    if top_n < 1:
        raise ValueError(f"{ENV_PREFIX}TOP_N must be >= 1, got {top_n}")
    return top_n


def _parse_compare_months(environ: Mapping[str, str]) -> int:
    months = _parse_int(environ, "COMPARE_MONTHS", DEFAULT_COMPARE_MONTHS)
    if months not in ALLOWED_COMPARE_MONTHS:
        raise ValueError(f"{ENV_PREFIX}COMPARE_MONTHS must be one of {list(ALLOWED_COMPARE_MONTHS)}, got {months}")
    return months


def _parse_log_level(environ: Mapping[str, str]) -> str:
    level = (_env(environ, "LOG_LEVEL") or DEFAULT_LOG_LEVEL).upper()
    if not isinstance(logging.getLevelName(level), int):
        raise ValueError(f"Invalid {ENV_PREFIX}LOG_LEVEL: {level}")
    return level


def _optional_path(environ: Mapping[str, str], name: str) -> Optional[Path]:
    raw = _env(environ, name)
    return Path(raw) if raw is not None else None


@dataclass(frozen=True)
class Settings:
    input_path: Path = DEFAULT_INPUT
    users_path: Optional[Path] = None
    reporters_path: Optional[Path] = None
    output_dir: Path = DEFAULT_OUTPUT_DIR
    top_n: int = DEFAULT_TOP_N
    log_level: str = DEFAULT_LOG_LEVEL
    compare_months: int = DEFAULT_COMPARE_MONTHS

    @property
    def summary_json_path(self) -> Path:
        return self.output_dir / "summary.json"

    @property
    def summary_excel_path(self) -> Path:
        return self.output_dir / "summary.xlsx"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Settings":
        """Read ``TASK_ANALYTICS_*`` variables; invalid values raise ``ValueError``."""
        env = os.environ if environ is None else environ
        return cls(
            input_path=_optional_path(env, "INPUT") or DEFAULT_INPUT,
            users_path=_optional_path(env, "USERS"),
            reporters_path=_optional_path(env, "REPORTERS"),
            output_dir=_optional_path(env, "OUTPUT_DIR") or DEFAULT_OUTPUT_DIR,
            top_n=_parse_top_n(env),
            log_level=_parse_log_level(env),
            compare_months=_parse_compare_months(env),
        )
