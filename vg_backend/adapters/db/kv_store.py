"""
Embedded key-value store backed by SQLite (aiosqlite).

Keys are `(namespace, key)` tuples; values are JSON documents. The store keeps
a small pool of connections so concurrent readers never queue behind each
other; SQLite (WAL mode) serializes writers on its own.

Critical guarantee:
- The adapter never raises to callers once opened; it returns `Result(...)`.
"""

from __future__ import annotations

import asyncio
import json
import sqlite3
import time
from contextlib import asynccontextmanager
from pathlib import Path
from typing import Any, AsyncIterator, Optional

import aiosqlite

from ...config import DB_MAX_CONNECTIONS, DB_TIMEOUT
from ...shared import ErrorCode, Result, get_logger

logger = get_logger(__name__)

SQLITE_BUSY_TIMEOUT_MS = max(1000, int(float(DB_TIMEOUT) * 1000))

_SCHEMA = """
CREATE TABLE IF NOT EXISTS kv (
    namespace TEXT NOT NULL,
    key TEXT NOT NULL,
    value TEXT NOT NULL,
    updated_at REAL NOT NULL,
    PRIMARY KEY (namespace, key)
) WITHOUT ROWID;
"""


def _is_locked_error(exc: Exception) -> bool:
    msg = str(exc).lower()
    return "database is locked" in msg or "database is busy" in msg


class KVStore:
    """
    Namespaced JSON key-value store.

    Lifecycle: `await store.open()` once at startup, `await store.aclose()` once
    at shutdown. Operations before `open()` or after `aclose()` return
    `SERVICE_UNAVAILABLE` errors.
    """

    def __init__(self, db_path: str | Path, max_connections: Optional[int] = None, timeout: float = DB_TIMEOUT):
        self.db_path = Path(db_path)
        self._max_conn = max(1, int(max_connections if max_connections is not None else DB_MAX_CONNECTIONS))
        self._timeout = float(timeout)
        self._pool: "asyncio.Queue[aiosqlite.Connection]" = asyncio.Queue()
        self._all_conns: set[aiosqlite.Connection] = set()
        self._sem: Optional[asyncio.Semaphore] = None
        self._open = False
        self._lock_retry_attempts = 5
        self._lock_retry_base_seconds = 0.05

    @property
    def is_open(self) -> bool:
        return self._open

    async def open(self) -> Result[bool]:
        """Create the database file and schema. Idempotent."""
        if self._open:
            return Result.Ok(True)
        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self._sem = asyncio.Semaphore(self._max_conn)
            conn = await self._create_connection()
            await conn.executescript(_SCHEMA)
            await self._pool.put(conn)
        except (OSError, sqlite3.Error) as exc:
            logger.error("Failed to open key-value store %s: %s", self.db_path, exc)
            return Result.Err(ErrorCode.DB_ERROR, f"Failed to open key-value store: {exc}")
        self._open = True
        logger.info("Key-value store opened: %s", self.db_path)
        return Result.Ok(True)

    async def aclose(self) -> None:
        """Close every pooled connection."""
        self._open = False
        conns = list(self._all_conns)
        self._all_conns.clear()
        while not self._pool.empty():
            self._pool.get_nowait()
        for conn in conns:
            try:
                await conn.close()
            except sqlite3.Error as exc:
                logger.debug("Error closing connection: %s", exc)
        logger.info("Key-value store closed: %s", self.db_path)

    async def _create_connection(self) -> aiosqlite.Connection:
        # Autocommit mode; delete_prefix manages its own transaction.
        conn = await aiosqlite.connect(str(self.db_path), timeout=self._timeout, isolation_level=None)
        await conn.execute("PRAGMA journal_mode=WAL")
        await conn.execute("PRAGMA synchronous=NORMAL")
        await conn.execute(f"PRAGMA busy_timeout = {SQLITE_BUSY_TIMEOUT_MS}")
        self._all_conns.add(conn)
        return conn

    @asynccontextmanager
    async def _connection(self) -> AsyncIterator[aiosqlite.Connection]:
        if not self._open or self._sem is None:
            raise RuntimeError("Key-value store is not open")
        async with self._sem:
            try:
                conn = self._pool.get_nowait()
            except asyncio.QueueEmpty:
                conn = await self._create_connection()
            try:
                yield conn
            finally:
                if self._open:
                    self._pool.put_nowait(conn)
                else:
                    await conn.close()

    async def _run(self, op: str, fn) -> Result[Any]:
        if not self._open:
            return Result.Err(ErrorCode.SERVICE_UNAVAILABLE, "Key-value store is not open")
        for attempt in range(self._lock_retry_attempts):
            try:
                async with self._connection() as conn:
                    return Result.Ok(await fn(conn))
            except sqlite3.OperationalError as exc:
                if _is_locked_error(exc) and attempt < self._lock_retry_attempts - 1:
                    await asyncio.sleep(self._lock_retry_base_seconds * (2 ** attempt))
                    continue
                logger.warning("KV %s failed: %s", op, exc)
                return Result.Err(ErrorCode.DB_ERROR, str(exc))
            except (sqlite3.Error, RuntimeError, ValueError, TypeError) as exc:
                logger.warning("KV %s failed: %s", op, exc)
                return Result.Err(ErrorCode.DB_ERROR, str(exc))
        return Result.Err(ErrorCode.DB_ERROR, f"KV {op} failed: database is locked")

    async def get(self, namespace: str, key: str) -> Result[Any]:
        """
        Read a value.

        Returns:
            Result whose data is the decoded value, or `None` when the key is
            absent (`meta["found"]` tells the two apart). A value that is not
            valid JSON is returned as `PARSE_ERROR`.
        """
        async def _get(conn: aiosqlite.Connection):
            async with conn.execute("SELECT value FROM kv WHERE namespace = ? AND key = ?", (namespace, key)) as cur:
                return await cur.fetchone()

        res = await self._run("get", _get)
        if not res.ok:
            return res
        row = res.data
        if row is None:
            return Result.Ok(None, found=False)
        try:
            return Result.Ok(json.loads(row[0]), found=True)
        except (TypeError, ValueError) as exc:
            return Result.Err(ErrorCode.PARSE_ERROR, f"Invalid JSON for {namespace}/{key}: {exc}")

    async def set(self, namespace: str, key: str, value: Any) -> Result[bool]:
        try:
            payload = json.dumps(value, ensure_ascii=False)
        except (TypeError, ValueError) as exc:
            return Result.Err(ErrorCode.INVALID_INPUT, f"Value is not JSON serializable: {exc}")

        async def _set(conn: aiosqlite.Connection):
            await conn.execute(
                "INSERT INTO kv(namespace, key, value, updated_at) VALUES (?, ?, ?, ?) "
                "ON CONFLICT(namespace, key) DO UPDATE SET value = excluded.value, updated_at = excluded.updated_at",
                (namespace, key, payload, time.time()),
            )
            return True

        return await self._run("set", _set)

    async def delete(self, namespace: str, key: str) -> Result[bool]:
        async def _delete(conn: aiosqlite.Connection):
            cur = await conn.execute("DELETE FROM kv WHERE namespace = ? AND key = ?", (namespace, key))
            return cur.rowcount > 0

        return await self._run("delete", _delete)

    async def delete_prefix(self, namespace: str) -> Result[int]:
        """Delete every key in `namespace` in a single transaction."""
        async def _delete_prefix(conn: aiosqlite.Connection):
            await conn.execute("BEGIN IMMEDIATE")
            try:
                cur = await conn.execute("DELETE FROM kv WHERE namespace = ?", (namespace,))
                count = cur.rowcount
                await conn.execute("COMMIT")
            except sqlite3.Error:
                await conn.execute("ROLLBACK")
                raise
            return count

        return await self._run("delete_prefix", _delete_prefix)
