# tests/conftest.py

from __future__ import annotations

from datetime import datetime
from pathlib import Path
from types import SimpleNamespace

import pytest

from rememo.cli.background import start_background_loop
from rememo.core.state import AppState
from rememo.reminders.local_platform import LocalNotificationCenter
from rememo.reminders.notification_models import PermissionStatus
from rememo.reminders.reminder_scheduler import initialize_notifications
from rememo.storage.kv_store import SqliteKeyValueStore
from rememo.tasks.task_store import TaskStore

from .fakes import FakeKeyValueStore

# Monday morning; every daily trigger below is computed against this clock.
FIXED_NOW = datetime(2026, 10, 19, 8, 0, 0)


@pytest.fixture()
def settings(tmp_path: Path) -> SimpleNamespace:
    """
    Minimal settings object compatible with AppState and the CLI modules.

    We intentionally use a SimpleNamespace rather than importing real config,
    to keep unit tests isolated and deterministic.
    """
    return SimpleNamespace(
        app_name="rememo-test",
        data_dir=tmp_path,
        kv_db_path=tmp_path / "storage.sqlite3",
        notifications_enabled=False,
        notification_permission="granted",
        auto_grant_permission=True,
        notification_channel_id="default",
        dispatch_interval_seconds=0.01,
    )


@pytest.fixture()
def kv() -> FakeKeyValueStore:
    return FakeKeyValueStore()


@pytest.fixture()
def store(kv: FakeKeyValueStore) -> TaskStore:
    return TaskStore(kv)


@pytest.fixture()
def center() -> LocalNotificationCenter:
    return LocalNotificationCenter(PermissionStatus.GRANTED, clock=lambda: FIXED_NOW)


@pytest.fixture()
def state(settings: SimpleNamespace, store: TaskStore, center: LocalNotificationCenter) -> AppState:
    """AppState over the in-memory fakes (no background loop attached)."""
    return AppState(
        settings=settings,
        task_store=store,
        reminders=initialize_notifications(center),
        platform=center,
    )


@pytest.fixture()
def running_state(settings: SimpleNamespace):
    """
    AppState wired like the CLI: real SQLite key-value store and a background loop.

    NOTE: we keep the real SQLite store here because its correctness is part of
    what we want to test end-to-end.
    """
    center = LocalNotificationCenter(PermissionStatus.GRANTED, clock=lambda: FIXED_NOW)
    st = AppState(
        settings=settings,
        task_store=TaskStore(SqliteKeyValueStore(settings.kv_db_path)),
        reminders=initialize_notifications(center),
        platform=center,
    )
    runner = start_background_loop(st)
    assert runner is not None
    try:
        yield st
    finally:
        runner.stop()
        runner.join(timeout=5.0)
        st.loop = None
