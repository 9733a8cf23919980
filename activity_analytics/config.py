"""
activity_analytics/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

AS_OF_NOW = "now"
AS_OF_LATEST_DATA = "latest_data"

_ALLOWED_AS_OF_MODES = {AS_OF_NOW, AS_OF_LATEST_DATA}


def load_env_files() -> None:
    """
    Load simple KEY=VALUE pairs from `.env` and `.env.local` (if present).
    Existing process environment variables are not overwritten.
    """

    project_root = Path(__file__).resolve().parents[1]
    for filename in (".env", ".env.local"):
        env_path = project_root / filename
        if not env_path.exists():
            continue

        for raw_line in env_path.read_text(encoding="utf-8").splitlines():
            line = raw_line.strip()
            if not line or line.startswith("#") or "=" not in line:
                continue

            key, value = line.split("=", 1)
            key = key.strip()
            value = value.strip().strip('"').strip("'")
            if key and key not in os.environ:
                os.environ[key] = value


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


def _get_float_env(name: str, default: float) -> float:
    """
    Read a float from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return float(raw_value)
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


def configure_logging() -> None:
    """
    Configure root logging once for the reporting process.
    """

    _load_env_once()
    log_level = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    logging.basicConfig(
        level=getattr(logging, log_level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


@dataclass(frozen=True)
class CSVValidationSettings:
    """
    Runtime settings for CSV parsing and validation.
    """

    encoding: str = "utf-8-sig"
    log_validation_errors: bool = True


@dataclass(frozen=True)
class TrendSettings:
    """
    Runtime settings for trend tables and momentum tags.
    """

    momentum_threshold_pct: float = 10.0
    as_of_mode: str = AS_OF_NOW


@lru_cache(maxsize=1)
def get_csv_validation_settings() -> CSVValidationSettings:
    """
    Return cached CSV validation settings from environment variables.
    """

    return CSVValidationSettings(
        encoding=_get_str_env("CSV_ENCODING", "utf-8-sig"),
        log_validation_errors=_get_bool_env("CSV_LOG_VALIDATION_ERRORS", True),
    )


@lru_cache(maxsize=1)
def get_trend_settings() -> TrendSettings:
    """
    Return cached trend settings from environment variables.

    An unknown TREND_AS_OF_MODE falls back to ``"now"``.
    """

    mode = _get_str_env("TREND_AS_OF_MODE", AS_OF_NOW).lower()
    if mode not in _ALLOWED_AS_OF_MODES:
        mode = AS_OF_NOW
    return TrendSettings(
        momentum_threshold_pct=max(0.0, _get_float_env("TREND_MOMENTUM_THRESHOLD_PCT", 10.0)),
        as_of_mode=mode,
    )
