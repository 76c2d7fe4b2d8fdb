# src/rememo/tasks/task_store.py

from __future__ import annotations

import asyncio
import logging
from dataclasses import replace
from datetime import datetime

from ..core.ports import KeyValueStorage
from .task_codec import CodecError, decode_collection, encode_collection
from .task_models import (
    EffortHistory,
    EffortOutcome,
    Task,
    local_date_of,
    new_id,
    parse_timestamp,
)

logger = logging.getLogger(__name__)

TASKS_KEY = "@tasks"
EFFORT_HISTORY_KEY = "@Effort_history"


class TaskStore:
    """
    Task list + append-only effort history on top of a key-value store.

    Each collection lives as one serialized blob under a fixed key, and every
    operation is a full read-decode-mutate-encode-write of that blob.

    Read path: a missing or undecodable blob reads as an empty collection.
    Write path: storage errors propagate to the caller.

    Concurrency:
    - mutations on one TaskStore instance are serialized by an asyncio.Lock
    - two instances (or processes) over the same storage still race, last writer wins
    """

    def __init__(self, storage: KeyValueStorage) -> None:
        self._storage = storage
        self._write_lock = asyncio.Lock()

    # ---- low-level helpers ----

    async def _load(self, key: str, build, label: str, *, strict: bool) -> list:
        """
        Read + decode one collection.

        An undecodable blob always reads as empty. A storage read error reads as
        empty for plain queries, but propagates when strict=True (mutations), so
        a transient read failure cannot turn into overwriting the whole blob.
        """
        try:
            raw = await self._storage.get_item(key)
        except Exception:
            if strict:
                raise
            logger.exception("Error getting %s", label)
            return []

        if raw is None:
            return []
        try:
            return decode_collection(raw, build, label=label)
        except CodecError as e:
            logger.warning("Stored %s is unreadable; treating as empty: %s", label, e)
            return []

    async def _read_tasks(self, *, strict: bool = False) -> list[Task]:
        return await self._load(TASKS_KEY, Task.from_dict, "tasks", strict=strict)

    async def _read_history(self, *, strict: bool = False) -> list[EffortHistory]:
        return await self._load(EFFORT_HISTORY_KEY, EffortHistory.from_dict, "effort history", strict=strict)

    async def _write_tasks(self, tasks: list[Task]) -> None:
        await self._storage.set_item(TASKS_KEY, encode_collection(t.to_dict() for t in tasks))

    async def _update_task_unlocked(self, task: Task) -> bool:
        tasks = await self._read_tasks(strict=True)
        for idx, existing in enumerate(tasks):
            if existing.id == task.id:
                tasks[idx] = task
                await self._write_tasks(tasks)
                return True
        return False

    # ---- tasks ----

    async def list_tasks(self) -> list[Task]:
        return await self._read_tasks()

    async def get_task(self, task_id: str) -> Task | None:
        for t in await self._read_tasks():
            if t.id == task_id:
                return t
        return None

    async def add_task(self, task: Task) -> None:
        async with self._write_lock:
            tasks = await self._read_tasks(strict=True)
            tasks.append(task)
            await self._write_tasks(tasks)
        logger.debug("Task added id=%s name=%s times=%s", task.id, task.name, task.times)

    async def update_task(self, task: Task) -> bool:
        """
        Full replace of the task with the same id.

        Returns False (and writes nothing) when no such task exists.
        """
        async with self._write_lock:
            found = await self._update_task_unlocked(task)
        if not found:
            logger.info("update_task: no task with id=%s; nothing written", task.id)
        return found

    async def delete_task(self, task_id: str) -> bool:
        """Remove the task; returns False (no write) when it does not exist."""
        async with self._write_lock:
            tasks = await self._read_tasks(strict=True)
            kept = [t for t in tasks if t.id != task_id]
            if len(kept) == len(tasks):
                logger.info("delete_task: no task with id=%s; nothing written", task_id)
                return False
            await self._write_tasks(kept)
        logger.debug("Task deleted id=%s", task_id)
        return True

    # ---- effort history ----

    async def list_history(self) -> list[EffortHistory]:
        return await self._read_history()

    async def list_todays_history(self, now: datetime | None = None) -> list[EffortHistory]:
        """Entries whose timestamp falls on today's local calendar date."""
        today = local_date_of(now) if now is not None else datetime.now().date()
        out: list[EffortHistory] = []
        for entry in await self.list_history():
            ts = parse_timestamp(entry.timestamp)
            if ts is None:
                logger.debug("Skipping history id=%s: bad timestamp %r", entry.id, entry.timestamp)
                continue
            if local_date_of(ts) == today:
                out.append(entry)
        return out

    async def record_effort(self, task_id: str, completed: bool, timestamp: str) -> EffortOutcome:
        """
        Append a history entry; on completion also decrement the task's supply.

        The decrement saturates at 0. The history write and the task write are
        separate: if the second fails, the entry stays recorded.
        """
        entry = EffortHistory(id=new_id(), task_id=task_id, timestamp=timestamp, completed=bool(completed))

        async with self._write_lock:
            history = await self._read_history(strict=True)
            history.append(entry)
            await self._storage.set_item(
                EFFORT_HISTORY_KEY, encode_collection(h.to_dict() for h in history)
            )
            logger.debug("Effort recorded id=%s task_id=%s completed=%s", entry.id, task_id, entry.completed)

            if not entry.completed:
                return EffortOutcome(entry=entry)

            task = next((t for t in await self._read_tasks(strict=True) if t.id == task_id), None)
            if task is None:
                logger.info("record_effort: task id=%s not found; history kept without supply update", task_id)
                return EffortOutcome(entry=entry)

            if task.current_supply is None or task.current_supply <= 0:
                return EffortOutcome(entry=entry)

            updated = replace(task, current_supply=task.current_supply - 1)
            await self._update_task_unlocked(updated)
            logger.debug("Supply decremented task_id=%s supply=%s", task_id, updated.current_supply)
            return EffortOutcome(entry=entry, updated_task=updated)

    # ---- maintenance ----

    async def clear_all(self) -> None:
        async with self._write_lock:
            await self._storage.multi_remove([TASKS_KEY, EFFORT_HISTORY_KEY])
        logger.info("TaskStore cleared (tasks + effort history)")
