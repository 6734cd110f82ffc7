# manages connections to the store db, provides the transaction helper used by services
from __future__ import annotations

import asyncio
import os
import sqlite3
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncIterator, Awaitable, Callable, Optional

import aiosqlite

from utils import config
from utils.logger import get_logger

_logger = get_logger(__name__)

SCHEMA_SCRIPT = Path(__file__).with_name("schema.sql")

Seeder = Callable[[aiosqlite.Connection], Awaitable[None]]


class Database:
    """Explicit storage handle passed to every service.

    Each ``connect()`` opens a fresh aiosqlite connection, so concurrent
    requests get independent connections and SQLite does the locking.
    The schema (and optional seed data) is created on first use. That
    rules out in-memory databases, where every connection would see its
    own empty store; use a file (a temporary one in tests) instead.
    """

    def __init__(
        self,
        path: str = config.DB_PATH,
        busy_timeout: float = config.BUSY_TIMEOUT,
        seeder: Optional[Seeder] = None,
    ) -> None:
        if _is_memory_path(path):
            raise ValueError(f"In-memory databases are not supported: {path!r}")
        self.path = path
        self.busy_timeout = busy_timeout
        self._seeder = seeder
        self._initialized = False
        self._init_lock = asyncio.Lock()

    def __repr__(self) -> str:
        return f"Database(path={self.path!r})"

    async def _init_db(self, conn: aiosqlite.Connection) -> None:
        _logger.info(f"Initializing database schema at {self.path}...")
        await conn.executescript(SCHEMA_SCRIPT.read_text(encoding="utf-8"))
        await conn.commit()
        if self._seeder is not None:
            _logger.info("Seeding demo data...")
            await self._seeder(conn)
            await conn.commit()

    async def _open(self) -> aiosqlite.Connection:
        parent = os.path.dirname(self.path)
        if parent:
            os.makedirs(parent, exist_ok=True)
        # autocommit mode; transactions are opened explicitly with BEGIN IMMEDIATE
        conn = await aiosqlite.connect(
            self.path, timeout=self.busy_timeout, isolation_level=None
        )
        conn.row_factory = sqlite3.Row
        await conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    @asynccontextmanager
    async def connect(self) -> AsyncIterator[aiosqlite.Connection]:
        """Async context manager yielding an aiosqlite connection with FK enabled.

        Ensures the database is initialized (tables and seed data) on first use.
        """
        conn = await self._open()
        try:
            if not self._initialized:
                async with self._init_lock:
                    if not self._initialized:
                        if not await _table_exists(conn, "users"):
                            await self._init_db(conn)
                        self._initialized = True
            yield conn
        finally:
            await conn.close()

    @asynccontextmanager
    async def transaction(self) -> AsyncIterator[aiosqlite.Connection]:
        """Connection inside a ``BEGIN IMMEDIATE`` transaction.

        The write lock is taken up front, so read-check-write sequences
        (stock checks, status changes) are serialized against other writers.
        Any exception rolls the whole unit back. Lock acquisition failures
        surface as ``sqlite3.OperationalError`` for the caller to translate.
        """
        async with self.connect() as conn:
            await conn.execute("BEGIN IMMEDIATE;")
            try:
                yield conn
            except BaseException:
                await conn.rollback()
                raise
            else:
                await conn.commit()


def _is_memory_path(path: str) -> bool:
    path = str(path).strip()
    return path in ("", ":memory:") or "mode=memory" in path or path.startswith("file::memory:")


async def _table_exists(conn: aiosqlite.Connection, table_name: str) -> bool:
    cur = await conn.execute(
        """
        SELECT name
        FROM sqlite_master
        WHERE type = 'table'
          AND name = ?;
        """,
        (table_name,),
    )
    row = await cur.fetchone()
    await cur.close()
    return row is not None


def is_lock_error(exc: BaseException) -> bool:
    """True for SQLite's 'database is locked/busy' errors."""
    if not isinstance(exc, sqlite3.OperationalError):
        return False
    msg = str(exc).lower()
    return "locked" in msg or "busy" in msg
