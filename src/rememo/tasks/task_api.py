# src/rememo/tasks/task_api.py

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, replace
from datetime import date, datetime

from ..core.state import AppState
from ..reminders.reminder_scheduler import ReminderOutcome
from .task_models import (
    EffortOutcome,
    Task,
    new_id,
    now_iso,
    parse_time_of_day,
)

logger = logging.getLogger(__name__)

TASK_COLORS = ("#4CAF50", "#2196F3", "#FF9800", "#E91E63", "#9C27B0")

__all__ = [
    "DailyProgress",
    "TASK_COLORS",
    "build_task",
    "create_task",
    "daily_progress",
    "edit_task",
    "log_effort",
    "new_id",
    "remove_task",
    "resync_reminders",
    "toggle_task_completed",
]


@dataclass(slots=True, frozen=True)
class DailyProgress:
    total: int
    completed: int

    @property
    def fraction(self) -> float:
        if self.total <= 0:
            return 0.0
        return min(1.0, self.completed / self.total)


def build_task(
    name: str,
    times: list[str] | None = None,
    *,
    start_date: str | None = None,
    reminder_enabled: bool = True,
    current_supply: int | None = None,
    energy_at: int | None = None,
    energy_reminder: bool = False,
    color: str | None = None,
    rng: random.Random | None = None,
) -> Task:
    """
    Validate form input and build a new Task with a fresh id.

    Raises ValueError for an empty name, a malformed "HH:MM" entry or a negative supply.
    """
    clean_name = (name or "").strip()
    if not clean_name:
        raise ValueError("Task name is required")

    clean_times: list[str] = []
    for t in times or []:
        hour, minute = parse_time_of_day(t)
        clean_times.append(f"{hour:02d}:{minute:02d}")

    if current_supply is not None and current_supply < 0:
        raise ValueError("Supply cannot be negative")

    picker = rng or random
    return Task(
        id=new_id(),
        name=clean_name,
        times=clean_times,
        start_date=start_date or now_iso(),
        color=color or picker.choice(TASK_COLORS),
        reminder_enabled=reminder_enabled,
        completed=False,
        current_supply=current_supply,
        energy_at=energy_at,
        energy_reminder=energy_reminder,
    )


async def create_task(state: AppState, task: Task) -> ReminderOutcome:
    """
    Persist the task, then register its reminders.

    A storage failure propagates (nothing is scheduled); reminder failures are
    reported in the returned outcome.
    """
    await state.task_store.add_task(task)
    logger.info("Task created id=%s name=%s", task.id, task.name)
    if not task.reminder_enabled:
        return ReminderOutcome()
    return await state.reminders.schedule_task_reminder(task)


async def edit_task(state: AppState, task: Task) -> ReminderOutcome | None:
    """Replace the stored task and refresh its reminders. None if the task does not exist."""
    found = await state.task_store.update_task(task)
    if not found:
        return None
    return await state.reminders.update_task_reminders(task)


async def remove_task(state: AppState, task_id: str) -> bool:
    """Cancel reminders first, then delete. Returns False if no such task was stored."""
    await state.reminders.cancel_task_reminders(task_id)
    return await state.task_store.delete_task(task_id)


async def toggle_task_completed(state: AppState, task_id: str) -> Task | None:
    task = await state.task_store.get_task(task_id)
    if task is None:
        return None
    updated = replace(task, completed=not task.completed)
    if not await state.task_store.update_task(updated):
        # Deleted between read and write.
        return None
    return updated


async def log_effort(
    state: AppState,
    task_id: str,
    completed: bool,
    timestamp: str | None = None,
) -> tuple[EffortOutcome, ReminderOutcome]:
    """
    Record effort for a task; if that lowered the supply, re-run the low-supply check.
    """
    outcome = await state.task_store.record_effort(task_id, completed, timestamp or now_iso())
    reminder = ReminderOutcome()
    if outcome.updated_task is not None:
        reminder = await state.reminders.schedule_energy_reminder(outcome.updated_task)
    return outcome, reminder


async def daily_progress(state: AppState, today: datetime | None = None) -> DailyProgress:
    """
    How many scheduled doses today vs how many were completed today.

    total: sum of len(times) over tasks whose startDate is on/before today.
    completed: today's history entries with Completed=true.
    """
    now = today or datetime.now()
    day: date = now.date() if now.tzinfo is None else now.astimezone().date()

    tasks = await state.task_store.list_tasks()
    total = sum(len(t.times) for t in tasks if t.started_on_or_before(day))

    todays = await state.task_store.list_todays_history(now=now)
    done = sum(1 for h in todays if h.completed)
    return DailyProgress(total=total, completed=done)


async def resync_reminders(state: AppState) -> ReminderOutcome:
    """Rebuild platform reminders for every stored task (cancel + reschedule each)."""
    out = ReminderOutcome()
    tasks = await state.task_store.list_tasks()
    for task in tasks:
        out.merge(await state.reminders.update_task_reminders(task))
    logger.info(
        "Reminders resynced tasks=%d scheduled=%d failures=%d",
        len(tasks),
        len(out.scheduled),
        len(out.failures),
    )
    return out
