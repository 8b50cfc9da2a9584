"""SQLite storage adapters for request and system samples."""

import aiosqlite

from tailorpulse.adapters.storage.sqlite_base import SQLiteTimeSeriesStorage
from tailorpulse.core.models import RequestSample, SystemSample

_REQUEST_SCHEMA = """
CREATE TABLE IF NOT EXISTS request_samples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    path TEXT NOT NULL,
    method TEXT NOT NULL,
    status_code INTEGER NOT NULL,
    response_time_ms REAL NOT NULL,
    timestamp REAL NOT NULL,
    user_id TEXT,
    ip_address TEXT
);
CREATE INDEX IF NOT EXISTS idx_request_samples_timestamp
    ON request_samples(timestamp);
"""

_SYSTEM_SCHEMA = """
CREATE TABLE IF NOT EXISTS system_samples (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    cpu_percent REAL NOT NULL,
    memory_percent REAL NOT NULL,
    timestamp REAL NOT NULL,
    disk_percent REAL,
    active_connections INTEGER
);
CREATE INDEX IF NOT EXISTS idx_system_samples_timestamp
    ON system_samples(timestamp);
"""


class SQLiteRequestSampleStorage(SQLiteTimeSeriesStorage):
    """SQLite implementation of RequestSampleStoragePort.

    Uses aiosqlite for non-blocking access and WAL mode for file databases.
    """

    _schema = _REQUEST_SCHEMA
    _insert_query = """
        INSERT INTO request_samples
            (path, method, status_code, response_time_ms, timestamp,
             user_id, ip_address)
        VALUES (?, ?, ?, ?, ?, ?, ?)
    """
    _select_query = """
        SELECT path, method, status_code, response_time_ms, timestamp,
               user_id, ip_address
        FROM request_samples
        WHERE timestamp >= ? AND timestamp <= ?
        ORDER BY timestamp ASC, id ASC
    """
    _count_query = "SELECT COUNT(*) FROM request_samples"
    _delete_before_query = "DELETE FROM request_samples WHERE timestamp < ?"
    _clear_query = "DELETE FROM request_samples"

    def _to_row(self, item: RequestSample) -> tuple:
        return (
            item.path,
            item.method,
            item.status_code,
            item.response_time_ms,
            item.timestamp,
            item.user_id,
            item.ip_address,
        )

    def _from_row(self, row: aiosqlite.Row) -> RequestSample:
        return RequestSample(
            path=row[0],
            method=row[1],
            status_code=row[2],
            response_time_ms=row[3],
            timestamp=row[4],
            user_id=row[5],
            ip_address=row[6],
        )


class SQLiteSystemSampleStorage(SQLiteTimeSeriesStorage):
    """SQLite implementation of SystemSampleStoragePort."""

    _schema = _SYSTEM_SCHEMA
    _insert_query = """
        INSERT INTO system_samples
            (cpu_percent, memory_percent, timestamp, disk_percent,
             active_connections)
        VALUES (?, ?, ?, ?, ?)
    """
    _select_query = """
        SELECT cpu_percent, memory_percent, timestamp, disk_percent,
               active_connections
        FROM system_samples
        WHERE timestamp >= ? AND timestamp <= ?
        ORDER BY timestamp ASC, id ASC
    """
    _count_query = "SELECT COUNT(*) FROM system_samples"
    _delete_before_query = "DELETE FROM system_samples WHERE timestamp < ?"
    _clear_query = "DELETE FROM system_samples"

    def _to_row(self, item: SystemSample) -> tuple:
        return (
            item.cpu_percent,
            item.memory_percent,
            item.timestamp,
            item.disk_percent,
            item.active_connections,
        )

    def _from_row(self, row: aiosqlite.Row) -> SystemSample:
        return SystemSample(
            cpu_percent=row[0],
            memory_percent=row[1],
            timestamp=row[2],
            disk_percent=row[3],
            active_connections=row[4],
        )
