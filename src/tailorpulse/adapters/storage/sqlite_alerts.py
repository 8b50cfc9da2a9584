"""SQLite storage adapter for alerts.

A partial unique index on ``type WHERE status = 'active'`` guarantees at
most one active alert per type. The upsert targets that index, so the
create-or-bump decision happens inside a single SQL statement.
"""

from collections.abc import AsyncIterator
from typing import Any

import aiosqlite

from tailorpulse.adapters.storage.sqlite_base import (
    SQLiteStorageBase,
    dump_metadata,
    load_metadata,
)
from tailorpulse.core.models import (
    Alert,
    AlertOccurrence,
    AlertStatus,
    Severity,
)

_ALERTS_SCHEMA = """
CREATE TABLE IF NOT EXISTS alerts (
    id TEXT PRIMARY KEY,
    type TEXT NOT NULL,
    title TEXT NOT NULL,
    severity TEXT NOT NULL,
    severity_rank INTEGER NOT NULL,
    component TEXT NOT NULL,
    message TEXT NOT NULL,
    status TEXT NOT NULL,
    count INTEGER NOT NULL,
    first_occurrence REAL NOT NULL,
    last_occurrence REAL NOT NULL,
    resolved_at REAL,
    resolved_by TEXT,
    metadata TEXT NOT NULL DEFAULT '{}'
);
CREATE UNIQUE INDEX IF NOT EXISTS idx_alerts_active_type
    ON alerts(type) WHERE status = 'active';
CREATE INDEX IF NOT EXISTS idx_alerts_last_occurrence
    ON alerts(last_occurrence);
"""

_COLUMNS = """
    id, type, title, severity, component, message, status, count,
    first_occurrence, last_occurrence, resolved_at, resolved_by, metadata
"""

_UPSERT_ACTIVE = """
INSERT INTO alerts (
    id, type, title, severity, severity_rank, component, message, status,
    count, first_occurrence, last_occurrence, metadata
)
VALUES (?, ?, ?, ?, ?, ?, ?, 'active', 1, ?, ?, ?)
ON CONFLICT(type) WHERE status = 'active' DO UPDATE SET
    count = count + 1,
    last_occurrence = MAX(last_occurrence, excluded.last_occurrence),
    severity = CASE
        WHEN excluded.severity_rank > severity_rank THEN excluded.severity
        ELSE severity
    END,
    severity_rank = MAX(severity_rank, excluded.severity_rank),
    title = CASE
        WHEN excluded.severity_rank >= severity_rank THEN excluded.title
        ELSE title
    END,
    message = excluded.message,
    metadata = CASE
        WHEN excluded.severity_rank >= severity_rank THEN excluded.metadata
        ELSE metadata
    END
"""

_SELECT_ACTIVE_BY_TYPE = f"""
SELECT {_COLUMNS} FROM alerts WHERE type = ? AND status = 'active'
"""

_SELECT_BY_ID = f"""
SELECT {_COLUMNS} FROM alerts WHERE id = ?
"""

_RESOLVE = """
UPDATE alerts SET status = 'resolved', resolved_at = ?, resolved_by = ?
WHERE id = ? AND status = 'active'
"""

_COUNT_ACTIVE = """
SELECT COUNT(*) FROM alerts WHERE status = 'active'
"""


def _from_row(row: aiosqlite.Row) -> Alert:
    return Alert(
        id=row[0],
        type=row[1],
        title=row[2],
        severity=Severity(row[3]),
        component=row[4],
        message=row[5],
        status=AlertStatus(row[6]),
        count=row[7],
        first_occurrence=row[8],
        last_occurrence=row[9],
        resolved_at=row[10],
        resolved_by=row[11],
        metadata=load_metadata(row[12]),
    )


class SQLiteAlertStorage(SQLiteStorageBase):
    """SQLite implementation of AlertStoragePort."""

    def __init__(self, db_path: str) -> None:
        super().__init__(db_path, _ALERTS_SCHEMA)

    async def upsert_active(
        self, occurrence: AlertOccurrence, alert_id: str
    ) -> Alert:
        """Create the active alert for the occurrence's type or bump it."""
        params = (
            alert_id,
            occurrence.type,
            occurrence.title,
            occurrence.severity.value,
            occurrence.severity.rank,
            occurrence.component,
            occurrence.message,
            occurrence.timestamp,
            occurrence.timestamp,
            dump_metadata(occurrence.metadata),
        )
        async with self.connection() as db:
            await db.execute(_UPSERT_ACTIVE, params)
            await db.commit()
            cursor = await db.execute(_SELECT_ACTIVE_BY_TYPE, (occurrence.type,))
            row = await cursor.fetchone()
            await cursor.close()
        if row is None:
            raise RuntimeError(f"Active alert for {occurrence.type!r} vanished")
        return _from_row(row)

    async def get(self, alert_id: str) -> Alert | None:
        async with self.connection() as db:
            async with db.execute(_SELECT_BY_ID, (alert_id,)) as cursor:
                row = await cursor.fetchone()
        return _from_row(row) if row else None

    async def resolve(
        self, alert_id: str, resolved_at: float, resolved_by: str | None = None
    ) -> Alert | None:
        """Mark an active alert resolved. Returns None if none matched."""
        updated = await self._execute_write(
            _RESOLVE, (resolved_at, resolved_by, alert_id)
        )
        if not updated:
            return None
        return await self.get(alert_id)

    async def read(
        self,
        start: float,
        end: float,
        status: AlertStatus | None = None,
        severity: Severity | None = None,
        component: str | None = None,
    ) -> AsyncIterator[Alert]:
        """Read alerts whose lifetime overlaps the range, newest first."""
        clauses = ["first_occurrence <= ?", "last_occurrence >= ?"]
        params: list[Any] = [end, start]
        if status is not None:
            clauses.append("status = ?")
            params.append(status.value)
        if severity is not None:
            clauses.append("severity = ?")
            params.append(severity.value)
        if component is not None:
            clauses.append("component = ?")
            params.append(component)
        query = (
            f"SELECT {_COLUMNS} FROM alerts WHERE {' AND '.join(clauses)} "
            "ORDER BY last_occurrence DESC"
        )
        async with self.connection() as db:
            async with db.execute(query, tuple(params)) as cursor:
                async for row in cursor:
                    yield _from_row(row)

    async def count_active(self) -> int:
        return await self._scalar(_COUNT_ACTIVE)

    async def clear(self) -> None:
        await self._execute_write("DELETE FROM alerts", ())
