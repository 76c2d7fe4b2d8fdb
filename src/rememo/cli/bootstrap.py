# src/rememo/cli/bootstrap.py

"""
CLI bootstrap helpers.

This module is the "composition root":
- loads settings once,
- ensures local (gitignored) directories exist,
- wires concrete implementations into AppState (key-value storage, task store,
  local notification platform, reminder scheduler).
"""

from __future__ import annotations

import logging

from ..config import get_settings
from ..core.ports import NotificationPlatform
from ..core.state import AppState
from ..reminders.local_platform import LocalNotificationCenter
from ..reminders.notification_models import PermissionStatus
from ..reminders.reminder_scheduler import initialize_notifications
from ..storage.kv_store import SqliteKeyValueStore
from ..tasks.task_store import TaskStore

logger = logging.getLogger(__name__)


def _ensure_local_dirs(settings) -> None:
    settings.data_dir.mkdir(parents=True, exist_ok=True)
    settings.kv_db_path.parent.mkdir(parents=True, exist_ok=True)


def create_initial_state(*, settings=None, platform: NotificationPlatform | None = None) -> AppState:
    """
    Create AppState from the provided settings.

    Keeping settings (and the platform) injectable makes the app easier to test
    and avoids hidden global config reads. If settings is None, falls back to get_settings().
    """
    if settings is None:
        settings = get_settings()

    _ensure_local_dirs(settings)

    if platform is None:
        platform = LocalNotificationCenter(
            PermissionStatus.parse(settings.notification_permission),
            auto_grant=settings.auto_grant_permission,
        )

    reminders = initialize_notifications(platform, channel_id=settings.notification_channel_id)

    state = AppState(
        settings=settings,
        task_store=TaskStore(SqliteKeyValueStore(settings.kv_db_path)),
        reminders=reminders,
        platform=platform,
    )
    logger.info("State ready storage=%s", settings.kv_db_path)
    return state
