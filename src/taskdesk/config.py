# src/taskdesk/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app (normal "settings layer").
- No secrets required at import time.
- Every path lives under one local data dir unless overridden.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from functools import lru_cache
from pathlib import Path

from dotenv import load_dotenv

ENV_PREFIX = "TASKDESK"

DEFAULT_API_BASE_URL = "https://dummyjson.com"


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv() -> None:
    """Load .env from the working directory. Real environment variables win."""
    load_dotenv(override=False)


_load_dotenv()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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

    # ---- Remote API ----
    api_base_url: str
    http_connect_timeout_seconds: float
    http_read_timeout_seconds: float
    session_expires_mins: int
    persistent_session_expires_mins: int

    # ---- Inactivity policy ----
    inactivity_timeout_minutes: int
    warning_seconds: int
    activity_coalesce_seconds: float
    clear_policy_on_logout: bool

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    credentials_path: Path
    preferences_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "taskdesk").strip() or "taskdesk"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        api_base_url = _env(_k("API_BASE_URL"), DEFAULT_API_BASE_URL).strip().rstrip("/")
        if not api_base_url:
            api_base_url = DEFAULT_API_BASE_URL

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/taskdesk"))

        return Settings(
            app_name=app_name,
            log_level=log_level,
            api_base_url=api_base_url,
            http_connect_timeout_seconds=_env_float(_k("HTTP_CONNECT_TIMEOUT_SECONDS"), 5.0),
            http_read_timeout_seconds=_env_float(_k("HTTP_READ_TIMEOUT_SECONDS"), 15.0),
            session_expires_mins=_env_int(_k("SESSION_EXPIRES_MINS"), 60),
            persistent_session_expires_mins=_env_int(_k("PERSISTENT_SESSION_EXPIRES_MINS"), 43200),
            inactivity_timeout_minutes=_env_int(_k("INACTIVITY_TIMEOUT"), 10),
            warning_seconds=max(1, _env_int(_k("WARNING_SECONDS"), 60)),
            activity_coalesce_seconds=max(0.0, _env_float(_k("ACTIVITY_COALESCE_SECONDS"), 0.0)),
            clear_policy_on_logout=_env_bool(_k("CLEAR_POLICY_ON_LOGOUT"), False),
            data_dir=data_dir,
            credentials_path=_env_path(_k("CREDENTIALS_PATH"), data_dir / "credentials.json"),
            preferences_path=_env_path(_k("PREFERENCES_PATH"), data_dir / "preferences.json"),
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return Settings.from_env()
