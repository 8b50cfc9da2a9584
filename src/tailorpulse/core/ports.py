"""Port interfaces for storage, cache and host adapters.

These protocols define the contracts that adapters must implement.
The core domain depends only on these interfaces, not concrete implementations.
"""

from collections.abc import AsyncIterable
from typing import Protocol, runtime_checkable

from tailorpulse.core.models import (
    Alert,
    AlertOccurrence,
    AlertStatus,
    ErrorRecord,
    RequestSample,
    Severity,
    SystemSample,
)


@runtime_checkable
class RequestSampleStoragePort(Protocol):
    """Port for API request sample storage.

    Examples: InMemoryRequestSampleStorage, SQLiteRequestSampleStorage.
    """

    async def write(self, sample: RequestSample) -> None:
        """Append a request sample."""
        ...

    def read(self, start: float, end: float) -> AsyncIterable[RequestSample]:
        """Read samples with start <= timestamp <= end, oldest first."""
        ...

    async def count(self) -> int:
        """Return the total number of stored samples."""
        ...

    async def delete_before(self, timestamp: float) -> int:
        """Delete samples older than timestamp, returning how many went."""
        ...


@runtime_checkable
class SystemSampleStoragePort(Protocol):
    """Port for host resource sample storage."""

    async def write(self, sample: SystemSample) -> None:
        """Append a system sample."""
        ...

    def read(self, start: float, end: float) -> AsyncIterable[SystemSample]:
        """Read samples with start <= timestamp <= end, oldest first."""
        ...

    async def count(self) -> int:
        """Return the total number of stored samples."""
        ...

    async def delete_before(self, timestamp: float) -> int:
        """Delete samples older than timestamp, returning how many went."""
        ...


@runtime_checkable
class ErrorStoragePort(Protocol):
    """Port for error record storage."""

    async def write(self, record: ErrorRecord) -> None:
        """Append an error record."""
        ...

    def read(
        self, start: float, end: float, component: str | None = None
    ) -> AsyncIterable[ErrorRecord]:
        """Read records in the range, optionally for a single component."""
        ...

    async def count(self) -> int:
        """Return the total number of stored records."""
        ...

    async def delete_before(self, timestamp: float) -> int:
        """Delete records older than timestamp, returning how many went."""
        ...


@runtime_checkable
class AlertStoragePort(Protocol):
    """Port for alert storage.

    ``upsert_active`` must be atomic with respect to other upserts of the
    same type: two concurrent breaches may never produce two active rows.
    """

    async def upsert_active(self, occurrence: AlertOccurrence, alert_id: str) -> Alert:
        """Create the active alert for occurrence.type, or bump the existing one.

        Args:
            occurrence: The observed breach.
            alert_id: Id to use if a new alert gets created.

        Returns:
            The alert as stored after the write.
        """
        ...

    async def get(self, alert_id: str) -> Alert | None:
        """Return the alert with the given id, if any."""
        ...

    async def resolve(
        self, alert_id: str, resolved_at: float, resolved_by: str | None = None
    ) -> Alert | None:
        """Mark an active alert resolved. Returns None if no active alert matched."""
        ...

    def read(
        self,
        start: float,
        end: float,
        status: AlertStatus | None = None,
        severity: Severity | None = None,
        component: str | None = None,
    ) -> AsyncIterable[Alert]:
        """Read alerts whose lifetime overlaps the range, newest first."""
        ...

    async def count_active(self) -> int:
        """Return the number of active alerts."""
        ...


@runtime_checkable
class CachePort(Protocol):
    """Port for the key-value and sorted-set cache.

    Values are opaque strings. Sorted sets hold members scored by timestamp.
    """

    async def get(self, key: str) -> str | None:
        """Return the value for key, or None if missing or expired."""
        ...

    async def set(self, key: str, value: str, ttl: float) -> None:
        """Store value under key for ttl seconds."""
        ...

    async def delete(self, key: str) -> None:
        """Remove key if present."""
        ...

    async def zadd(
        self, key: str, member: str, score: float, max_len: int | None = None
    ) -> None:
        """Add member to the sorted set, keeping at most max_len highest scores."""
        ...

    async def zrangebyscore(self, key: str, low: float, high: float) -> list[str]:
        """Members with low <= score <= high, lowest score first."""
        ...

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        """Members by descending score, ranks start..stop inclusive."""
        ...

    async def ping(self) -> bool:
        """Return True if the cache is reachable."""
        ...


@runtime_checkable
class HostMetricsPort(Protocol):
    """Port for reading host resource usage. Calls are synchronous."""

    def cpu_percent(self) -> float:
        """Current CPU usage, 0-100."""
        ...

    def memory(self) -> tuple[float, int, int]:
        """Return (usage percent, total bytes, available bytes)."""
        ...

    def disk_percent(self) -> float | None:
        """Root filesystem usage, 0-100, or None if unavailable."""
        ...

    def cpu_count(self) -> int:
        """Number of logical CPUs."""
        ...

    def uptime(self) -> float:
        """Host uptime in seconds."""
        ...
