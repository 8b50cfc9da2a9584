"""In-memory storage adapters for samples, errors and alerts."""

import dataclasses
from collections.abc import AsyncIterable
from typing import Generic, TypeVar

from tailorpulse.core.models import (
    Alert,
    AlertOccurrence,
    AlertStatus,
    ErrorRecord,
    RequestSample,
    Severity,
    SystemSample,
)

T = TypeVar("T", RequestSample, SystemSample, ErrorRecord)


class _InMemorySampleStorage(Generic[T]):
    """List-backed append-only store keyed on ``timestamp``."""

    def __init__(self) -> None:
        self._items: list[T] = []

    async def write(self, item: T) -> None:
        self._items.append(item)

    async def read(self, start: float, end: float) -> AsyncIterable[T]:
        """Read items with start <= timestamp <= end, oldest first."""
        selected = [i for i in self._items if start <= i.timestamp <= end]
        for item in sorted(selected, key=lambda i: i.timestamp):
            yield item

    async def count(self) -> int:
        return len(self._items)

    async def delete_before(self, timestamp: float) -> int:
        kept = [i for i in self._items if i.timestamp >= timestamp]
        deleted = len(self._items) - len(kept)
        self._items = kept
        return deleted

    async def clear(self) -> None:
        self._items = []


class InMemoryRequestSampleStorage(_InMemorySampleStorage[RequestSample]):
    """In-memory implementation of RequestSampleStoragePort.

    Suitable for testing and single-process deployments where persistence
    is not required.
    """


class InMemorySystemSampleStorage(_InMemorySampleStorage[SystemSample]):
    """In-memory implementation of SystemSampleStoragePort."""


class InMemoryErrorStorage(_InMemorySampleStorage[ErrorRecord]):
    """In-memory implementation of ErrorStoragePort."""

    async def read(
        self, start: float, end: float, component: str | None = None
    ) -> AsyncIterable[ErrorRecord]:
        """Read records in the range, optionally for a single component."""
        async for record in super().read(start, end):
            if component is None or record.component == component:
                yield record


class InMemoryAlertStorage:
    """In-memory implementation of AlertStoragePort.

    ``upsert_active`` looks up and writes the active alert without any
    suspension point in between, so concurrent upserts on one event loop
    cannot create two active alerts of the same type.
    """

    def __init__(self) -> None:
        self._alerts: dict[str, Alert] = {}
        self._active_by_type: dict[str, str] = {}

    async def upsert_active(
        self, occurrence: AlertOccurrence, alert_id: str
    ) -> Alert:
        existing_id = self._active_by_type.get(occurrence.type)
        if existing_id is None:
            alert = Alert(
                id=alert_id,
                type=occurrence.type,
                title=occurrence.title,
                severity=occurrence.severity,
                component=occurrence.component,
                message=occurrence.message,
                status=AlertStatus.ACTIVE,
                count=1,
                first_occurrence=occurrence.timestamp,
                last_occurrence=occurrence.timestamp,
                metadata=dict(occurrence.metadata),
            )
            self._active_by_type[occurrence.type] = alert_id
        else:
            current = self._alerts[existing_id]
            # Title and metadata describe the severity the alert carries.
            escalated = occurrence.severity.rank >= current.severity.rank
            alert = dataclasses.replace(
                current,
                count=current.count + 1,
                last_occurrence=max(
                    current.last_occurrence, occurrence.timestamp
                ),
                severity=Severity.highest(current.severity, occurrence.severity),
                title=occurrence.title if escalated else current.title,
                message=occurrence.message,
                metadata=(
                    dict(occurrence.metadata) if escalated else current.metadata
                ),
            )
        self._alerts[alert.id] = alert
        return alert

    async def get(self, alert_id: str) -> Alert | None:
        return self._alerts.get(alert_id)

    async def resolve(
        self, alert_id: str, resolved_at: float, resolved_by: str | None = None
    ) -> Alert | None:
        current = self._alerts.get(alert_id)
        if current is None or not current.is_active:
            return None
        alert = dataclasses.replace(
            current,
            status=AlertStatus.RESOLVED,
            resolved_at=resolved_at,
            resolved_by=resolved_by,
        )
        self._alerts[alert_id] = alert
        del self._active_by_type[alert.type]
        return alert

    async def read(
        self,
        start: float,
        end: float,
        status: AlertStatus | None = None,
        severity: Severity | None = None,
        component: str | None = None,
    ) -> AsyncIterable[Alert]:
        """Read alerts whose lifetime overlaps the range, newest first."""
        selected = [
            a
            for a in self._alerts.values()
            if a.first_occurrence <= end
            and a.last_occurrence >= start
            and (status is None or a.status is status)
            and (severity is None or a.severity is severity)
            and (component is None or a.component == component)
        ]
        selected.sort(key=lambda a: a.last_occurrence, reverse=True)
        for alert in selected:
            yield alert

    async def count_active(self) -> int:
        return len(self._active_by_type)

    async def clear(self) -> None:
        self._alerts = {}
        self._active_by_type = {}
