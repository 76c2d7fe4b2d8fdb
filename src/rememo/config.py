# src/rememo/config.py

"""Centralized settings loaded from environment variables (+ optional .env).

Design goals:
- One Settings object for the whole app.
- Nothing is required at import time; every value has a local default.
- Local safe overrides may live in a gitignored config_local.py.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

ENV_PREFIX = "REMEMO"

PERMISSION_CHOICES = ("granted", "denied", "undetermined")


def _k(suffix: str) -> str:
    """Build env var name with the project prefix."""
    return f"{ENV_PREFIX}_{suffix}"


def _load_dotenv_if_available() -> None:
    """Load .env locally if python-dotenv is installed. Safe no-op otherwise."""
    try:
        from dotenv import load_dotenv  # type: ignore
    except Exception:
        return
    load_dotenv(override=False)


_load_dotenv_if_available()


def _env(name: str, default: str = "") -> str:
    v = os.getenv(name)
    return default if v is None else v


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "y", "on"}


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


def _env_choice(name: str, choices: tuple[str, ...], default: str) -> str:
    raw = (os.getenv(name) or "").strip().lower()
    return raw if raw in choices else default


@dataclass(frozen=True, slots=True)
class Settings:
    # ---- App / logging ----
    app_name: str
    log_level: str

    # ---- Connector flags ----
    console_enabled: bool
    notifications_enabled: bool

    # ---- Local notification platform ----
    notification_permission: str
    auto_grant_permission: bool
    notification_channel_id: str
    dispatch_interval_seconds: float

    # ---- Local data paths (ignored by git) ----
    data_dir: Path
    kv_db_path: Path

    @staticmethod
    def from_env() -> "Settings":
        app_name = _env(_k("APP_NAME"), "rememo").strip() or "rememo"
        log_level = _env(_k("LOG_LEVEL"), "INFO")

        console_enabled = _env_bool(_k("CONSOLE_ENABLED"), True)
        notifications_enabled = _env_bool(_k("NOTIFICATIONS_ENABLED"), True)

        notification_permission = _env_choice(
            _k("NOTIFICATION_PERMISSION"), PERMISSION_CHOICES, "undetermined"
        )
        auto_grant_permission = _env_bool(_k("AUTO_GRANT_PERMISSION"), True)
        notification_channel_id = _env(_k("NOTIFICATION_CHANNEL_ID"), "default").strip() or "default"
        dispatch_interval_seconds = max(0.5, _env_float(_k("DISPATCH_INTERVAL_SECONDS"), 15.0))

        data_dir = _env_path(_k("DATA_DIR"), Path(".local/rememo"))
        kv_db_path = _env_path(_k("KV_DB_PATH"), data_dir / "storage.sqlite3")

        return Settings(
            app_name=app_name,
            log_level=log_level,
            console_enabled=console_enabled,
            notifications_enabled=notifications_enabled,
            notification_permission=notification_permission,
            auto_grant_permission=auto_grant_permission,
            notification_channel_id=notification_channel_id,
            dispatch_interval_seconds=dispatch_interval_seconds,
            data_dir=data_dir,
            kv_db_path=kv_db_path,
        )


SETTINGS = Settings.from_env()

# ---- Optional local overrides (never committed) ----
# Prefer .env; use config_local.py only for safe overrides.
try:
    import config_local as _config_local  # type: ignore

    if hasattr(_config_local, "CONSOLE_ENABLED"):
        object.__setattr__(SETTINGS, "console_enabled", bool(_config_local.CONSOLE_ENABLED))  # type: ignore[misc]
    if hasattr(_config_local, "NOTIFICATIONS_ENABLED"):
        object.__setattr__(
            SETTINGS, "notifications_enabled", bool(_config_local.NOTIFICATIONS_ENABLED)
        )  # type: ignore[misc]
    if hasattr(_config_local, "DATA_DIR"):
        data_dir = Path(_config_local.DATA_DIR).expanduser()
        object.__setattr__(SETTINGS, "data_dir", data_dir)  # type: ignore[misc]
        object.__setattr__(SETTINGS, "kv_db_path", data_dir / "storage.sqlite3")  # type: ignore[misc]
except Exception:
    pass


def get_settings() -> Settings:
    return SETTINGS
