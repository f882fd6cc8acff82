"""
Store adapter for the ToDo table.

The service talks to the store only through the small ``Store`` /
``Connection`` / ``Statement`` protocols below, so it can run against the
pooled SQLite implementation in production and against a fake in tests.
"""
from __future__ import annotations

import asyncio
import logging
import os
import sqlite3
from contextlib import asynccontextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import (
    Any,
    AsyncContextManager,
    AsyncIterator,
    Awaitable,
    List,
    Optional,
    Protocol,
    Sequence,
    Tuple,
    TypeVar,
)

import aiosqlite

from .errors import ConnectionFailureError

logger = logging.getLogger(__name__)

Row = Tuple[Any, ...]
T = TypeVar("T")

_SCHEMA = """
CREATE TABLE IF NOT EXISTS ToDo (
    ID INTEGER PRIMARY KEY AUTOINCREMENT,
    Title TEXT NOT NULL,
    Description TEXT NOT NULL DEFAULT '',
    Reminder TIMESTAMP NOT NULL
)
"""


class StoreError(Exception):
    """A statement was rejected by, or failed in, the underlying database."""


@dataclass(frozen=True)
class ExecResult:
    last_insert_id: Optional[int]
    rows_affected: int


# PUBLIC_INTERFACE
class Statement(Protocol):
    """A prepared statement bound to one connection."""

    async def execute(self, *params: Any) -> ExecResult:
        """Run a statement that returns no rows."""
        ...

    async def query(self, *params: Any) -> List[Row]:
        """Run a statement and return every result row."""
        ...


# PUBLIC_INTERFACE
class Connection(Protocol):
    async def prepare(self, query: str) -> Statement:
        """Compile ``query``; raise StoreError if the store rejects it."""
        ...


# PUBLIC_INTERFACE
class Store(Protocol):
    def connection(self) -> AsyncContextManager[Connection]:
        """
        Acquire a connection for the duration of an ``async with`` block.

        Raises ConnectionFailureError if none can be supplied. The connection is
        released on every exit path.
        """
        ...


def _adapt(params: Sequence[Any]) -> Tuple[Any, ...]:
    # Timestamps are stored as ISO 8601 text in UTC.
    out = []
    for p in params:
        if isinstance(p, datetime):
            if p.tzinfo is None:
                p = p.replace(tzinfo=timezone.utc)
            p = p.astimezone(timezone.utc).isoformat()
        out.append(p)
    return tuple(out)


class SQLiteStatement:
    def __init__(self, conn: aiosqlite.Connection, query: str, timeout: float) -> None:
        self._conn = conn
        self._query = query
        self._timeout = timeout

    async def _guard(self, op: Awaitable[T]) -> T:
        try:
            return await asyncio.wait_for(op, self._timeout)
        except asyncio.TimeoutError as exc:
            # The statement keeps running on the driver thread until interrupted.
            await self._conn.interrupt()
            raise StoreError(f"statement timed out after {self._timeout}s") from exc
        except asyncio.CancelledError:
            await self._conn.interrupt()
            raise
        except (sqlite3.Error, OverflowError, ValueError) as exc:
            # OverflowError: integer outside int64. ValueError: text the driver cannot encode.
            raise StoreError(str(exc)) from exc

    async def execute(self, *params: Any) -> ExecResult:
        async def run() -> ExecResult:
            async with self._conn.execute(self._query, _adapt(params)) as cur:
                return ExecResult(cur.lastrowid, max(cur.rowcount, 0))

        return await self._guard(run())

    async def query(self, *params: Any) -> List[Row]:
        async def run() -> List[Row]:
            async with self._conn.execute(self._query, _adapt(params)) as cur:
                return [tuple(r) for r in await cur.fetchall()]

        return await self._guard(run())


class SQLiteConnection:
    def __init__(self, conn: aiosqlite.Connection, statement_timeout: float) -> None:
        self._conn = conn
        self._timeout = statement_timeout

    async def prepare(self, query: str) -> SQLiteStatement:
        """
        Compile ``query`` without running it.

        Only positional ``?`` placeholders are supported; they are bound to NULL
        for the compile step.
        """
        explain = SQLiteStatement(self._conn, "EXPLAIN " + query, self._timeout)
        try:
            await explain.query(*([None] * query.count("?")))
        except StoreError as exc:
            raise StoreError(f"cannot prepare statement: {exc}") from exc
        return SQLiteStatement(self._conn, query, self._timeout)


# PUBLIC_INTERFACE
class SQLiteStore:
    """
    Pooled SQLite store.

    Connections are opened lazily, up to ``pool_size``, in autocommit mode so
    every statement is applied atomically on its own. Create one instance at
    startup, ``open()`` it, and ``close()`` it at shutdown.
    """

    def __init__(
        self,
        db_path: str,
        pool_size: int = 10,
        acquire_timeout: float = 5.0,
        statement_timeout: float = 30.0,
    ) -> None:
        self._db_path = db_path
        self._pool_size = pool_size
        self._acquire_timeout = acquire_timeout
        self._statement_timeout = statement_timeout
        self._slots: Optional[asyncio.Semaphore] = None
        self._idle: List[aiosqlite.Connection] = []
        self._closed = True

    @property
    def path(self) -> str:
        return self._db_path

    async def __aenter__(self) -> "SQLiteStore":
        return await self.open()

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    async def _connect(self) -> aiosqlite.Connection:
        return await aiosqlite.connect(
            self._db_path, timeout=self._statement_timeout, isolation_level=None
        )

    async def open(self) -> "SQLiteStore":
        os.makedirs(os.path.dirname(self._db_path) or ".", exist_ok=True)
        conn = await self._connect()
        try:
            await conn.execute(_SCHEMA)
        except sqlite3.Error:
            await conn.close()
            raise
        self._idle = [conn]
        self._slots = asyncio.Semaphore(self._pool_size)
        self._closed = False
        logger.info("SQLiteStore ready db=%s pool_size=%s", self._db_path, self._pool_size)
        return self

    async def close(self) -> None:
        self._closed = True
        idle, self._idle = self._idle, []
        for conn in idle:
            await conn.close()
        logger.info("SQLiteStore closed db=%s", self._db_path)

    async def _acquire(self) -> aiosqlite.Connection:
        if self._closed or self._slots is None:
            raise ConnectionFailureError("cannot connect to database: store is closed")
        try:
            await asyncio.wait_for(self._slots.acquire(), self._acquire_timeout)
        except asyncio.TimeoutError as exc:
            raise ConnectionFailureError(
                f"cannot connect to database: no connection available within {self._acquire_timeout}s"
            ) from exc
        if self._idle:
            return self._idle.pop()
        try:
            return await self._connect()
        except (sqlite3.Error, OSError) as exc:
            self._slots.release()
            raise ConnectionFailureError(f"cannot connect to database: {exc}") from exc
        except BaseException:
            self._slots.release()
            raise

    async def _release(self, conn: aiosqlite.Connection) -> None:
        if self._closed or self._slots is None:
            await conn.close()
            return
        self._idle.append(conn)
        self._slots.release()

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[SQLiteConnection]:
        conn = await self._acquire()
        try:
            yield SQLiteConnection(conn, self._statement_timeout)
        finally:
            await self._release(conn)
