# src/rememo/core/state.py

from __future__ import annotations

import asyncio
from collections.abc import Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from ..core.ports import NotificationPlatform
from ..reminders.reminder_scheduler import ReminderScheduler
from ..tasks.task_store import TaskStore

T = TypeVar("T")


@dataclass
class AppState:
    # Store Settings on the state for easy access in other modules later.
    settings: Any

    task_store: TaskStore
    reminders: ReminderScheduler
    platform: NotificationPlatform

    # Event loop that owns the store/platform (set by the background runner in the CLI).
    loop: asyncio.AbstractEventLoop | None = None

    def run(self, coro: Coroutine[Any, Any, T], timeout: float | None = None) -> T:
        """
        Run a coroutine on the app loop from synchronous code (console commands).

        Falls back to asyncio.run() when no background loop is attached.
        """
        loop = self.loop
        if loop is None or not loop.is_running():
            return asyncio.run(coro)
        fut = asyncio.run_coroutine_threadsafe(coro, loop)
        return fut.result(timeout=timeout)
