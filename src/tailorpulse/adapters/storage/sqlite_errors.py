"""SQLite storage adapter for error records."""

from collections.abc import AsyncIterator

import aiosqlite

from tailorpulse.adapters.storage.sqlite_base import (
    SQLiteTimeSeriesStorage,
    dump_metadata,
    load_metadata,
)
from tailorpulse.core.models import ErrorRecord

_ERRORS_SCHEMA = """
CREATE TABLE IF NOT EXISTS error_records (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    type TEXT NOT NULL,
    message TEXT NOT NULL,
    component TEXT NOT NULL,
    timestamp REAL NOT NULL,
    stack TEXT,
    user_id TEXT,
    request_id TEXT,
    metadata TEXT NOT NULL DEFAULT '{}'
);
CREATE INDEX IF NOT EXISTS idx_error_records_timestamp
    ON error_records(timestamp);
CREATE INDEX IF NOT EXISTS idx_error_records_component
    ON error_records(component, timestamp);
"""

_COLUMNS = """
    type, message, component, timestamp, stack, user_id, request_id, metadata
"""


class SQLiteErrorStorage(SQLiteTimeSeriesStorage):
    """SQLite implementation of ErrorStoragePort."""

    _schema = _ERRORS_SCHEMA
    _insert_query = f"""
        INSERT INTO error_records ({_COLUMNS}) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
    """
    _select_query = f"""
        SELECT {_COLUMNS} FROM error_records
        WHERE timestamp >= ? AND timestamp <= ?
        ORDER BY timestamp ASC, id ASC
    """
    _select_component_query = f"""
        SELECT {_COLUMNS} FROM error_records
        WHERE timestamp >= ? AND timestamp <= ? AND component = ?
        ORDER BY timestamp ASC, id ASC
    """
    _count_query = "SELECT COUNT(*) FROM error_records"
    _delete_before_query = "DELETE FROM error_records WHERE timestamp < ?"
    _clear_query = "DELETE FROM error_records"

    def _to_row(self, item: ErrorRecord) -> tuple:
        return (
            item.type,
            item.message,
            item.component,
            item.timestamp,
            item.stack,
            item.user_id,
            item.request_id,
            dump_metadata(item.metadata),
        )

    def _from_row(self, row: aiosqlite.Row) -> ErrorRecord:
        return ErrorRecord(
            type=row[0],
            message=row[1],
            component=row[2],
            timestamp=row[3],
            stack=row[4],
            user_id=row[5],
            request_id=row[6],
            metadata=load_metadata(row[7]),
        )

    async def read(
        self, start: float, end: float, component: str | None = None
    ) -> AsyncIterator[ErrorRecord]:
        """Read records in the range, optionally for a single component."""
        if component is None:
            query, params = self._select_query, (start, end)
        else:
            query, params = self._select_component_query, (start, end, component)
        async for record in self._read_range(query, params):
            yield record
