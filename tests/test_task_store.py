# tests/test_task_store.py

from __future__ import annotations

import asyncio
import random
from dataclasses import replace
from datetime import datetime

import pytest

from rememo.tasks.task_models import Task
from rememo.tasks.task_store import EFFORT_HISTORY_KEY, TASKS_KEY, TaskStore

from .fakes import FakeKeyValueStore


def make_task(task_id: str, **kw) -> Task:
    base = dict(
        id=task_id,
        name=f"task {task_id}",
        times=["09:00"],
        start_date="2026-10-01T08:00:00.000Z",
        color="#4CAF50",
        reminder_enabled=True,
        completed=False,
    )
    base.update(kw)
    return Task(**base)


@pytest.mark.asyncio
async def test_add_then_list_contains_exactly_one_new_entry(store: TaskStore) -> None:
    await store.add_task(make_task("a"))
    before = len(await store.list_tasks())

    task = make_task("b", name="Vitamin D", times=["09:00", "21:00"], current_supply=10, energy_at=3)
    await store.add_task(task)

    tasks = await store.list_tasks()
    assert len(tasks) == before + 1
    matches = [t for t in tasks if t.id == "b"]
    assert matches == [task]


@pytest.mark.asyncio
async def test_list_is_empty_without_blob(store: TaskStore) -> None:
    assert await store.list_tasks() == []
    assert await store.list_history() == []


@pytest.mark.asyncio
async def test_update_replaces_whole_task_and_reports_found(store: TaskStore) -> None:
    await store.add_task(make_task("a"))
    updated = make_task("a", name="renamed", times=[], completed=True)

    assert await store.update_task(updated) is True
    assert await store.list_tasks() == [updated]


@pytest.mark.asyncio
async def test_update_missing_id_is_noop_without_write(store: TaskStore, kv: FakeKeyValueStore) -> None:
    await store.add_task(make_task("a"))
    writes = kv.writes

    assert await store.update_task(make_task("nope")) is False
    assert kv.writes == writes
    assert [t.id for t in await store.list_tasks()] == ["a"]


@pytest.mark.asyncio
async def test_delete_missing_id_leaves_list_unchanged(store: TaskStore, kv: FakeKeyValueStore) -> None:
    await store.add_task(make_task("a"))
    await store.add_task(make_task("b"))
    before = await store.list_tasks()
    writes = kv.writes

    assert await store.delete_task("zzz") is False
    assert await store.list_tasks() == before
    assert kv.writes == writes

    assert await store.delete_task("a") is True
    assert [t.id for t in await store.list_tasks()] == ["b"]


@pytest.mark.asyncio
async def test_sequential_mutations_match_reference_model(store: TaskStore) -> None:
    rng = random.Random(1234)
    model: dict[str, Task] = {}
    ids = [f"t{i}" for i in range(6)]

    for step in range(60):
        op = rng.choice(["add", "update", "delete"])
        tid = rng.choice(ids)
        if op == "add" and tid not in model:
            t = make_task(tid, name=f"n{step}")
            await store.add_task(t)
            model[tid] = t
        elif op == "update":
            t = make_task(tid, name=f"u{step}", completed=bool(step % 2))
            found = await store.update_task(t)
            assert found == (tid in model)
            if found:
                model[tid] = t
        elif op == "delete":
            found = await store.delete_task(tid)
            assert found == (tid in model)
            model.pop(tid, None)

    stored = await store.list_tasks()
    assert {t.id: t for t in stored} == model
    assert len(stored) == len(model)


@pytest.mark.asyncio
async def test_overlapping_adds_on_one_store_are_not_lost(store: TaskStore) -> None:
    await asyncio.gather(*(store.add_task(make_task(f"c{i}")) for i in range(10)))

    ids = sorted(t.id for t in await store.list_tasks())
    assert ids == sorted(f"c{i}" for i in range(10))


@pytest.mark.asyncio
async def test_record_effort_with_zero_supply_saturates(store: TaskStore) -> None:
    await store.add_task(make_task("a", current_supply=0))

    outcome = await store.record_effort("a", True, "2026-10-19T09:00:00")

    assert outcome.updated_task is None
    assert (await store.get_task("a")).current_supply == 0
    history = await store.list_history()
    assert len(history) == 1
    assert history[0].completed is True
    assert history[0].task_id == "a"
    assert history[0] == outcome.entry


@pytest.mark.asyncio
async def test_record_effort_decrements_supply_by_one(store: TaskStore) -> None:
    await store.add_task(make_task("a", current_supply=5))

    outcome = await store.record_effort("a", True, "2026-10-19T09:00:00")

    assert (await store.get_task("a")).current_supply == 4
    assert outcome.updated_task is not None and outcome.updated_task.current_supply == 4
    assert len(await store.list_history()) == 1


@pytest.mark.asyncio
async def test_record_effort_not_completed_leaves_supply(store: TaskStore) -> None:
    await store.add_task(make_task("a", current_supply=5))

    outcome = await store.record_effort("a", False, "2026-10-19T09:00:00")

    assert outcome.entry.completed is False
    assert (await store.get_task("a")).current_supply == 5


@pytest.mark.asyncio
async def test_record_effort_tolerates_dangling_task_id(store: TaskStore) -> None:
    outcome = await store.record_effort("ghost", True, "2026-10-19T09:00:00")

    assert outcome.updated_task is None
    assert [h.task_id for h in await store.list_history()] == ["ghost"]


@pytest.mark.asyncio
async def test_record_effort_task_write_failure_keeps_history(
    store: TaskStore, kv: FakeKeyValueStore
) -> None:
    await store.add_task(make_task("a", current_supply=3))
    kv.fail_write_keys.add(TASKS_KEY)

    with pytest.raises(OSError):
        await store.record_effort("a", True, "2026-10-19T09:00:00")

    # Not atomic: the history entry stays, the supply does not move.
    assert len(await store.list_history()) == 1
    assert (await store.get_task("a")).current_supply == 3


@pytest.mark.asyncio
async def test_todays_history_partitions_around_midnight(store: TaskStore) -> None:
    now = datetime(2026, 10, 19, 12, 0)
    yesterday_late = datetime(2026, 10, 18, 23, 59).astimezone().isoformat()
    today_early = datetime(2026, 10, 19, 0, 1).astimezone().isoformat()

    await store.record_effort("a", True, yesterday_late)
    await store.record_effort("a", False, today_early)
    await store.record_effort("a", True, "not a timestamp")

    todays = await store.list_todays_history(now=now)

    assert [h.timestamp for h in todays] == [today_early]
    assert len(await store.list_history()) == 3


@pytest.mark.asyncio
async def test_clear_all_empties_both_collections(store: TaskStore, kv: FakeKeyValueStore) -> None:
    await store.add_task(make_task("a"))
    await store.record_effort("a", True, "2026-10-19T09:00:00")

    await store.clear_all()

    assert await store.list_tasks() == []
    assert await store.list_history() == []
    assert TASKS_KEY not in kv.data and EFFORT_HISTORY_KEY not in kv.data


@pytest.mark.asyncio
async def test_garbled_blob_reads_as_empty(store: TaskStore, kv: FakeKeyValueStore) -> None:
    kv.data[TASKS_KEY] = "{not json"
    kv.data[EFFORT_HISTORY_KEY] = '"just a string"'

    assert await store.list_tasks() == []
    assert await store.list_history() == []


@pytest.mark.asyncio
async def test_write_failure_propagates(store: TaskStore, kv: FakeKeyValueStore) -> None:
    kv.fail_writes = True

    with pytest.raises(OSError):
        await store.add_task(make_task("a"))
    with pytest.raises(OSError):
        await store.clear_all()


@pytest.mark.asyncio
async def test_read_failure_is_empty_for_queries_but_blocks_mutations(
    store: TaskStore, kv: FakeKeyValueStore
) -> None:
    await store.add_task(make_task("a"))
    kv.fail_reads = True

    assert await store.list_tasks() == []
    with pytest.raises(OSError):
        await store.add_task(make_task("b"))

    kv.fail_reads = False
    assert [t.id for t in await store.list_tasks()] == ["a"]


@pytest.mark.asyncio
async def test_legacy_unversioned_blob_is_readable_and_rewritten(
    store: TaskStore, kv: FakeKeyValueStore
) -> None:
    kv.data[TASKS_KEY] = (
        '[{"id":"x1","name":"Old","times":["08:00"],"startDate":"2025-01-01T00:00:00.000Z",'
        '"color":"#2196F3","reminderEnabled":true,"completed":false,"notes":"keep me"}]'
    )

    old = await store.get_task("x1")
    assert old is not None and old.extra == {"notes": "keep me"}

    await store.update_task(replace(old, completed=True))

    assert kv.data[TASKS_KEY].startswith('{"version":1,')
    again = await store.get_task("x1")
    assert again.completed is True
    assert again.extra == {"notes": "keep me"}
