# tests/test_task_api.py

from __future__ import annotations

import random
from dataclasses import replace
from datetime import datetime

import pytest

from rememo.core.state import AppState
from rememo.reminders.local_platform import LocalNotificationCenter
from rememo.tasks import task_api
from rememo.tasks.task_api import TASK_COLORS, build_task


def test_build_task_validates_and_normalizes() -> None:
    with pytest.raises(ValueError, match="Task name is required"):
        build_task("   ", ["09:00"])
    with pytest.raises(ValueError):
        build_task("Tea", ["9am"])
    with pytest.raises(ValueError):
        build_task("Tea", [], current_supply=-1)

    task = build_task("  Tea ", ["9:05", "21:30"], rng=random.Random(0))

    assert task.name == "Tea"
    assert task.times == ["09:05", "21:30"]
    assert task.color in TASK_COLORS
    assert len(task.id) == 9 and task.id.isalnum()
    assert task.reminder_enabled is True and task.completed is False
    assert task.start_date


def test_new_ids_are_distinct() -> None:
    ids = {task_api.new_id() for _ in range(200)}
    assert len(ids) == 200


@pytest.mark.asyncio
async def test_create_task_persists_then_schedules(state: AppState, center: LocalNotificationCenter) -> None:
    task = build_task("Tea", ["09:00", "21:00"])

    outcome = await task_api.create_task(state, task)

    assert await state.task_store.list_tasks() == [task]
    assert len(outcome.scheduled) == 2
    assert len(await center.list_scheduled_notifications()) == 2


@pytest.mark.asyncio
async def test_create_task_without_reminders_schedules_nothing(
    state: AppState, center: LocalNotificationCenter
) -> None:
    outcome = await task_api.create_task(state, build_task("Tea", ["09:00"], reminder_enabled=False))

    assert outcome.scheduled == []
    assert await center.list_scheduled_notifications() == []


@pytest.mark.asyncio
async def test_create_task_write_failure_schedules_nothing(state: AppState, kv, center) -> None:
    kv.fail_writes = True

    with pytest.raises(OSError):
        await task_api.create_task(state, build_task("Tea", ["09:00"]))
    assert await center.list_scheduled_notifications() == []


@pytest.mark.asyncio
async def test_log_effort_triggers_low_supply_reminder(state: AppState, center: LocalNotificationCenter) -> None:
    task = build_task("Pills", ["10:00"], current_supply=4, energy_at=3, energy_reminder=True)
    await task_api.create_task(state, task)

    outcome, reminder = await task_api.log_effort(state, task.id, True)

    assert outcome.updated_task is not None and outcome.updated_task.current_supply == 3
    assert len(reminder.scheduled) == 1
    (delivery,) = center.collect_due()
    assert "Current supply: 3" in delivery.content.body


@pytest.mark.asyncio
async def test_log_effort_skip_does_not_touch_supply(state: AppState) -> None:
    task = build_task("Pills", ["08:00"], current_supply=1, energy_at=3, energy_reminder=True)
    await task_api.create_task(state, task)

    outcome, reminder = await task_api.log_effort(state, task.id, False)

    assert outcome.updated_task is None
    assert reminder.scheduled == []
    assert (await state.task_store.get_task(task.id)).current_supply == 1


@pytest.mark.asyncio
async def test_remove_task_cancels_reminders(state: AppState, center: LocalNotificationCenter) -> None:
    keep = build_task("Keep", ["10:00"])
    drop = build_task("Drop", ["11:00", "12:00"])
    await task_api.create_task(state, keep)
    await task_api.create_task(state, drop)

    assert await task_api.remove_task(state, drop.id) is True
    assert await task_api.remove_task(state, drop.id) is False

    remaining = await center.list_scheduled_notifications()
    assert [n.content.data["taskId"] for n in remaining] == [keep.id]
    assert [t.id for t in await state.task_store.list_tasks()] == [keep.id]


@pytest.mark.asyncio
async def test_edit_task_refreshes_reminders(state: AppState, center: LocalNotificationCenter) -> None:
    task = build_task("Tea", ["09:00", "21:00"])
    await task_api.create_task(state, task)

    outcome = await task_api.edit_task(state, replace(task, times=["10:00"]))

    assert outcome is not None and len(outcome.cancelled) == 2
    (only,) = await center.list_scheduled_notifications()
    assert (only.trigger.hour, only.trigger.minute) == (10, 0)

    assert await task_api.edit_task(state, replace(task, id="missing")) is None


@pytest.mark.asyncio
async def test_toggle_task_completed(state: AppState) -> None:
    task = build_task("Tea", [])
    await task_api.create_task(state, task)

    first = await task_api.toggle_task_completed(state, task.id)
    second = await task_api.toggle_task_completed(state, task.id)

    assert first is not None and first.completed is True
    assert second is not None and second.completed is False
    assert await task_api.toggle_task_completed(state, "missing") is None


@pytest.mark.asyncio
async def test_daily_progress_counts_started_tasks_and_todays_completions(state: AppState) -> None:
    now = datetime(2026, 10, 19, 12, 0)
    started = build_task("A", ["08:00", "20:00"], start_date="2026-10-01T00:00:00")
    later = build_task("B", ["09:00"], start_date="2026-11-01T00:00:00")
    await task_api.create_task(state, started)
    await task_api.create_task(state, later)

    await task_api.log_effort(state, started.id, True, "2026-10-19T08:05:00")
    await task_api.log_effort(state, started.id, False, "2026-10-19T20:05:00")
    await task_api.log_effort(state, started.id, True, "2026-10-18T08:05:00")

    progress = await task_api.daily_progress(state, today=now)

    assert progress.total == 2
    assert progress.completed == 1
    assert progress.fraction == pytest.approx(0.5)


@pytest.mark.asyncio
async def test_daily_progress_empty(state: AppState) -> None:
    progress = await task_api.daily_progress(state)
    assert (progress.total, progress.completed, progress.fraction) == (0, 0, 0.0)


@pytest.mark.asyncio
async def test_resync_rebuilds_reminders_from_tasks(state: AppState, center: LocalNotificationCenter) -> None:
    await state.task_store.add_task(build_task("A", ["08:00", "20:00"]))
    await state.task_store.add_task(build_task("B", ["09:00"], reminder_enabled=False))

    first = await task_api.resync_reminders(state)
    second = await task_api.resync_reminders(state)

    assert len(first.scheduled) == 2
    assert len(second.cancelled) == 2
    assert len(await center.list_scheduled_notifications()) == 2
