"""Shared plumbing for the SQLite monitoring stores.

Every store owns one table family in a database file that the request,
system, error and alert stores share. File databases run in WAL mode and
open a short-lived connection per operation, so concurrent writers from
separate stores wait on ``busy_timeout`` rather than failing. A
``:memory:`` database only lives as long as its connection, so each store
keeps one open for its whole lifetime.
"""

import asyncio
import json
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import aiosqlite

MEMORY_DB = ":memory:"
BUSY_TIMEOUT_MS = 5000


def load_metadata(raw: str | None) -> dict[str, Any]:
    """Decode a stored metadata column. Anything but a JSON object is {}."""
    if not raw:
        return {}
    try:
        value = json.loads(raw)
    except json.JSONDecodeError:
        return {}
    return value if isinstance(value, dict) else {}


def dump_metadata(metadata: dict[str, Any]) -> str:
    """Encode metadata for storage, stringifying non-JSON values."""
    return json.dumps(metadata, default=str)


class SQLiteStorageBase:
    """Base class for the SQLite stores.

    Subclasses pass their DDL; it runs once, on first use, under a lock.

    Args:
        db_path: Database file path, or ``":memory:"``.
        schema: DDL script creating the store's tables and indexes.
    """

    def __init__(self, db_path: str, schema: str) -> None:
        self._db_path = db_path
        self._schema = schema
        self._schema_ready = False
        self._schema_lock: asyncio.Lock | None = None
        self._shared: aiosqlite.Connection | None = None

    @property
    def in_memory(self) -> bool:
        return self._db_path == MEMORY_DB

    async def _open(self) -> aiosqlite.Connection:
        db = await aiosqlite.connect(self._db_path)
        if not self.in_memory:
            await db.execute(f"PRAGMA busy_timeout={BUSY_TIMEOUT_MS}")
        return db

    async def _prepare(self) -> None:
        # Created lazily so the lock binds to the loop that first uses it.
        if self._schema_lock is None:
            self._schema_lock = asyncio.Lock()
        async with self._schema_lock:
            if self._schema_ready:
                return
            db = await self._open()
            try:
                if not self.in_memory:
                    await db.execute("PRAGMA journal_mode=WAL")
                await db.executescript(self._schema)
            except BaseException:
                await db.close()
                raise
            if self.in_memory:
                self._shared = db
            else:
                await db.close()
            self._schema_ready = True

    @asynccontextmanager
    async def connection(self) -> AsyncIterator[aiosqlite.Connection]:
        """Yield a connection with the schema in place."""
        if not self._schema_ready:
            await self._prepare()
        if self._shared is not None:
            yield self._shared
            return
        db = await self._open()
        try:
            yield db
        finally:
            await db.close()

    async def close(self) -> None:
        """Release the in-memory connection. Its data is gone afterwards."""
        shared, self._shared = self._shared, None
        if shared is not None:
            await shared.close()
            self._schema_ready = False

    async def _execute_write(self, query: str, params: tuple[Any, ...]) -> int:
        """Run a write statement and commit, returning the affected row count."""
        async with self.connection() as db:
            cursor = await db.execute(query, params)
            affected = cursor.rowcount
            await db.commit()
            return affected

    async def _scalar(self, query: str, params: tuple[Any, ...] = ()) -> int:
        """Run a single-value query, returning 0 when it yields no row."""
        async with self.connection() as db:
            async with db.execute(query, params) as cursor:
                row = await cursor.fetchone()
                return row[0] if row else 0


class SQLiteTimeSeriesStorage(SQLiteStorageBase):
    """Append-only, timestamp-indexed SQLite storage.

    Subclasses configure the schema, queries and row mapping. The select
    query takes ``(start, end)`` and must order by timestamp ascending.
    """

    _schema: str
    _insert_query: str
    _select_query: str
    _count_query: str
    _delete_before_query: str
    _clear_query: str

    def __init__(self, db_path: str) -> None:
        super().__init__(db_path, self._schema)

    def _to_row(self, item: Any) -> tuple[Any, ...]:
        """Convert domain model to database row tuple."""
        raise NotImplementedError

    def _from_row(self, row: aiosqlite.Row) -> Any:
        """Convert database row to domain model."""
        raise NotImplementedError

    async def write(self, item: Any) -> None:
        """Append an item to storage."""
        await self._execute_write(self._insert_query, self._to_row(item))

    async def _read_range(
        self, query: str, params: tuple[Any, ...]
    ) -> AsyncIterator[Any]:
        async with self.connection() as db:
            async with db.execute(query, params) as cursor:
                async for row in cursor:
                    yield self._from_row(row)

    async def read(self, start: float, end: float) -> AsyncIterator[Any]:
        """Read items with start <= timestamp <= end, oldest first."""
        async for item in self._read_range(self._select_query, (start, end)):
            yield item

    async def count(self) -> int:
        """Return total number of items in storage."""
        return await self._scalar(self._count_query)

    async def delete_before(self, timestamp: float) -> int:
        """Delete items with timestamp < given value."""
        return await self._execute_write(self._delete_before_query, (timestamp,))

    async def clear(self) -> None:
        """Clear all items from storage."""
        await self._execute_write(self._clear_query, ())
