# src/taskdeck/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- Nothing is required at import time; every value has a default.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKDECK"

load_dotenv(override=False)


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    try:
        return float(raw)
    except ValueError:
        return default


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


def _env_path(name: str, default: Path) -> Path:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return default
    return Path(raw).expanduser()


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    store_path: Path

    # ---- List view defaults ----
    completed_retention_days: int
    sort_field: str
    sort_direction: str
    page_size: int

    # ---- Limits ----
    max_categories: int
    max_tags: int

    # ---- Recurrence ----
    recurrence_interval_seconds: float
    recurrence_on_start: bool

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdeck") or "taskdeck"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdeck"))
        store_path = _env_path(_k("STORE_PATH"), data_dir / "taskdeck.sqlite3")

        completed_retention_days = _env_int(_k("COMPLETED_RETENTION_DAYS"), 30)
        sort_field = _env(_k("SORT_FIELD"), "createdAt")
        sort_direction = _env(_k("SORT_DIRECTION"), "desc")
        page_size = _env_int(_k("PAGE_SIZE"), 25)

        max_categories = _env_int(_k("MAX_CATEGORIES"), 5)
        max_tags = _env_int(_k("MAX_TAGS"), 5)

        recurrence_interval_seconds = _env_float(_k("RECURRENCE_INTERVAL_SECONDS"), 3600.0)
        recurrence_on_start = _env_bool(_k("RECURRENCE_ON_START"), True)

        return Settings(
            app_name=app_name,
            log_level=log_level,
            data_dir=data_dir,
            store_path=store_path,
            completed_retention_days=completed_retention_days,
            sort_field=sort_field,
            sort_direction=sort_direction,
            page_size=page_size,
            max_categories=max_categories,
            max_tags=max_tags,
            recurrence_interval_seconds=recurrence_interval_seconds,
            recurrence_on_start=recurrence_on_start,
        )


SETTINGS = Settings.from_env()


def get_settings() -> Settings:
    return SETTINGS
