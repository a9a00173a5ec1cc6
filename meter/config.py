"""
meter/config.py

Environment-driven configuration for the activity meter.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]


ENV_FILES: tuple[str, ...] = (".env", ".env.local")


def _parse_env_line(raw_line: str) -> tuple[str, str] | None:
    line = raw_line.strip()
    if line.startswith("export "):
        line = line[len("export "):].lstrip()
    if not line or line.startswith("#") or "=" not in line:
        return None
    key, value = line.split("=", 1)
    key = key.strip()
    if not key:
        return None
    return key, value.strip().strip('"').strip("'")


def load_env_files(root: Path = PROJECT_ROOT) -> None:
    """
    Load KEY=VALUE pairs (optionally prefixed with `export`) from the
    `.env` files under ``root``. Process variables win over file values.
    """

    for filename in ENV_FILES:
        env_path = root / filename
        if not env_path.is_file():
            continue
        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            parsed = _parse_env_line(raw_line)
            if parsed is not None:
                os.environ.setdefault(*parsed)


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_csv_env(name: str, default: tuple[str, ...]) -> tuple[str, ...]:
    """
    Read a comma-separated list from environment variables.
    """

    raw_value = _get_str_env(name, "")
    if not raw_value:
        return default
    items = tuple(item.strip().lower() for item in raw_value.split(",") if item.strip())
    return items or default


@dataclass(frozen=True)
class MeterSettings:
    """
    Runtime settings for spreadsheet decoding, sanitation and export.

    Keywords are matched case-insensitively against trimmed cell values.
    Template paths are resolved against the project root when relative.
    """

    max_upload_bytes: int = 10 * 1024 * 1024
    allowed_extensions: tuple[str, ...] = (".xlsx",)
    non_program_keyword: str = "nieprogramowe"
    site_visit_keyword: str = "wizytacja"
    warning_row_preview: int = 5
    report_sheet_name: str = "Miernik"
    template_path: Path = PROJECT_ROOT / "templates" / "zalnr1.xlsx"
    cumulative_template_path: Path = PROJECT_ROOT / "templates" / "zalnr2.xlsx"
    log_row_warnings: bool = True


def _resolve_path(raw: str) -> Path:
    path = Path(raw)
    return path if path.is_absolute() else PROJECT_ROOT / path


@lru_cache(maxsize=1)
def get_meter_settings() -> MeterSettings:
    """
    Return cached meter settings from environment variables.
    """

    defaults = MeterSettings()
    return MeterSettings(
        max_upload_bytes=max(1, _get_int_env("METER_MAX_UPLOAD_BYTES", defaults.max_upload_bytes)),
        allowed_extensions=_get_csv_env("METER_ALLOWED_EXTENSIONS", defaults.allowed_extensions),
        non_program_keyword=_get_str_env("METER_NON_PROGRAM_KEYWORD", defaults.non_program_keyword).lower(),
        site_visit_keyword=_get_str_env("METER_SITE_VISIT_KEYWORD", defaults.site_visit_keyword).lower(),
        warning_row_preview=max(1, _get_int_env("METER_WARNING_ROW_PREVIEW", defaults.warning_row_preview)),
        report_sheet_name=_get_str_env("METER_REPORT_SHEET_NAME", defaults.report_sheet_name),
        template_path=_resolve_path(_get_str_env("METER_TEMPLATE_PATH", "templates/zalnr1.xlsx")),
        cumulative_template_path=_resolve_path(
            _get_str_env("METER_CUMULATIVE_TEMPLATE_PATH", "templates/zalnr2.xlsx")
        ),
        log_row_warnings=_get_bool_env("METER_LOG_ROW_WARNINGS", True),
    )
