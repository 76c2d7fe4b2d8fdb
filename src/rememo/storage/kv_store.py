# src/rememo/storage/kv_store.py

from __future__ import annotations

import asyncio
import contextlib
import logging
import sqlite3
import time
from collections.abc import Iterable
from pathlib import Path

logger = logging.getLogger(__name__)


class SqliteKeyValueStore:
    """
    SQLite-backed key-value store holding one text blob per key.

    Thread-safety:
    - each method opens its own SQLite connection
    - async methods run the blocking calls via asyncio.to_thread
    """

    def __init__(self, db_path: str | Path = "storage.sqlite3") -> None:
        self._db_path = Path(db_path)
        self._db_path.parent.mkdir(parents=True, exist_ok=True)
        self._ensure_schema()
        try:
            total = self.count_keys()
        except Exception:
            total = -1
        logger.info("SqliteKeyValueStore ready db=%s keys=%s", self._db_path, total)

    def close(self) -> None:
        """Compatibility hook for shutdown (no persistent connections to close)."""
        return

    # ---- low-level helpers ----

    def _get_conn(self) -> sqlite3.Connection:
        conn = sqlite3.connect(str(self._db_path), timeout=30.0)
        self._configure_conn(conn)
        return conn

    @staticmethod
    def _configure_conn(conn: sqlite3.Connection) -> None:
        with contextlib.suppress(Exception):
            conn.execute("PRAGMA journal_mode=WAL")

    def _ensure_schema(self) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS kv (
                    key TEXT PRIMARY KEY,
                    value TEXT NOT NULL,
                    updated_at REAL NOT NULL
                )
                """
            )
            conn.commit()
        finally:
            conn.close()

    # ---- sync API ----

    def count_keys(self) -> int:
        conn = self._get_conn()
        try:
            (n,) = conn.execute("SELECT COUNT(*) FROM kv").fetchone()
            return int(n)
        finally:
            conn.close()

    def get_item_sync(self, key: str) -> str | None:
        conn = self._get_conn()
        try:
            row = conn.execute("SELECT value FROM kv WHERE key = ?", (key,)).fetchone()
            return None if row is None else str(row[0])
        finally:
            conn.close()

    def set_item_sync(self, key: str, value: str) -> None:
        conn = self._get_conn()
        try:
            conn.execute(
                """
                INSERT INTO kv(key, value, updated_at) VALUES (?, ?, ?)
                ON CONFLICT(key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at
                """,
                (key, value, time.time()),
            )
            conn.commit()
            logger.debug("kv set key=%s bytes=%d", key, len(value))
        finally:
            conn.close()

    def multi_remove_sync(self, keys: Iterable[str]) -> None:
        ks = list(keys)
        if not ks:
            return
        conn = self._get_conn()
        try:
            # One transaction: either every key goes or none does.
            with conn:
                conn.executemany("DELETE FROM kv WHERE key = ?", [(k,) for k in ks])
            logger.debug("kv removed keys=%s", ks)
        finally:
            conn.close()

    # ---- async API (KeyValueStorage port) ----

    async def get_item(self, key: str) -> str | None:
        return await asyncio.to_thread(self.get_item_sync, key)

    async def set_item(self, key: str, value: str) -> None:
        await asyncio.to_thread(self.set_item_sync, key, value)

    async def remove_item(self, key: str) -> None:
        await asyncio.to_thread(self.multi_remove_sync, [key])

    async def multi_remove(self, keys: Iterable[str]) -> None:
        await asyncio.to_thread(self.multi_remove_sync, list(keys))
