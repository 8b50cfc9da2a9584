"""Tests for in-memory storage adapters."""

import asyncio

import pytest

from tailorpulse.adapters.storage.in_memory import (
    InMemoryAlertStorage,
    InMemoryErrorStorage,
    InMemoryRequestSampleStorage,
    InMemorySystemSampleStorage,
)
from tailorpulse.core.models import (
    AlertOccurrence,
    AlertStatus,
    ErrorRecord,
    Severity,
    SystemSample,
)

from support import START, make_request

pytestmark = [pytest.mark.storage, pytest.mark.tier(1)]


def occurrence(
    type: str = "system-cpu",
    severity: Severity = Severity.MEDIUM,
    timestamp: float = START,
    component: str = "system",
) -> AlertOccurrence:
    return AlertOccurrence(
        type=type,
        severity=severity,
        title=f"{type} breach",
        message=f"{type} at {timestamp}",
        component=component,
        timestamp=timestamp,
    )


class TestInMemoryRequestSampleStorage:
    """Tests for the request sample store."""

    async def test_read_is_inclusive_and_ordered(self) -> None:
        """Both bounds are inclusive and results come oldest first."""
        storage = InMemoryRequestSampleStorage()
        for ts in (30.0, 10.0, 20.0, 40.0):
            await storage.write(make_request(timestamp=ts))
        result = [s.timestamp async for s in storage.read(10.0, 30.0)]
        assert result == [10.0, 20.0, 30.0]

    async def test_count(self) -> None:
        """count reports every stored sample."""
        storage = InMemoryRequestSampleStorage()
        await storage.write(make_request())
        await storage.write(make_request())
        assert await storage.count() == 2

    async def test_delete_before(self) -> None:
        """Samples strictly older than the cutoff are removed."""
        storage = InMemoryRequestSampleStorage()
        for ts in (10.0, 20.0, 30.0):
            await storage.write(make_request(timestamp=ts))
        assert await storage.delete_before(20.0) == 1
        assert [s.timestamp async for s in storage.read(0, 100)] == [20.0, 30.0]

    async def test_clear(self) -> None:
        """clear empties the store."""
        storage = InMemoryRequestSampleStorage()
        await storage.write(make_request())
        await storage.clear()
        assert await storage.count() == 0


class TestInMemorySystemSampleStorage:
    """Tests for the system sample store."""

    async def test_write_and_read(self) -> None:
        """Written samples read back unchanged."""
        storage = InMemorySystemSampleStorage()
        sample = SystemSample(
            cpu_percent=12.5, memory_percent=40.0, timestamp=START, disk_percent=70.0
        )
        await storage.write(sample)
        assert [s async for s in storage.read(START, START)] == [sample]


class TestInMemoryErrorStorage:
    """Tests for the error record store."""

    async def test_component_filter(self) -> None:
        """Reads can be narrowed to one component."""
        storage = InMemoryErrorStorage()
        for component in ("orders", "billing", "orders"):
            await storage.write(
                ErrorRecord(
                    type="ValueError",
                    message="bad",
                    component=component,
                    timestamp=START,
                )
            )
        orders = [r async for r in storage.read(0, START, component="orders")]
        everything = [r async for r in storage.read(0, START)]
        assert len(orders) == 2
        assert len(everything) == 3


class TestInMemoryAlertStorage:
    """Tests for the alert store."""

    async def test_first_occurrence_creates_active_alert(self) -> None:
        """A new type creates an alert with count 1 and the given id."""
        storage = InMemoryAlertStorage()
        alert = await storage.upsert_active(occurrence(), "a1")
        assert alert.id == "a1"
        assert alert.status is AlertStatus.ACTIVE
        assert alert.count == 1
        assert alert.first_occurrence == alert.last_occurrence == START

    async def test_repeat_bumps_count_and_keeps_id(self) -> None:
        """A second occurrence updates the active alert in place."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence(), "a1")
        alert = await storage.upsert_active(occurrence(timestamp=START + 5), "a2")
        assert alert.id == "a1"
        assert alert.count == 2
        assert alert.last_occurrence == START + 5
        assert alert.message == f"system-cpu at {START + 5}"

    async def test_last_occurrence_never_moves_back(self) -> None:
        """An out-of-order occurrence keeps the later timestamp."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence(timestamp=START + 5), "a1")
        alert = await storage.upsert_active(occurrence(timestamp=START), "a2")
        assert alert.last_occurrence == START + 5

    async def test_severity_is_the_maximum_seen(self) -> None:
        """Severity only moves up."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence(severity=Severity.CRITICAL), "a1")
        alert = await storage.upsert_active(occurrence(severity=Severity.LOW), "a2")
        assert alert.severity is Severity.CRITICAL

    async def test_types_are_independent(self) -> None:
        """Each type has its own active alert."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence("system-cpu"), "a1")
        await storage.upsert_active(occurrence("system-memory"), "a2")
        assert await storage.count_active() == 2

    async def test_concurrent_upserts_share_one_alert(self) -> None:
        """Concurrent occurrences of a type end up on a single alert."""
        storage = InMemoryAlertStorage()
        alerts = await asyncio.gather(
            *(storage.upsert_active(occurrence(), f"a{i}") for i in range(20))
        )
        assert {a.id for a in alerts} == {"a0"}
        assert (await storage.get("a0")).count == 20
        assert await storage.count_active() == 1

    async def test_resolve_then_new_alert(self) -> None:
        """After resolution the next occurrence creates a fresh alert."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence(), "a1")
        resolved = await storage.resolve("a1", START + 10, "ops")
        assert resolved is not None
        assert resolved.resolved_at == START + 10
        fresh = await storage.upsert_active(occurrence(), "a2")
        assert fresh.id == "a2"
        assert fresh.count == 1

    async def test_resolve_unknown_or_resolved(self) -> None:
        """Only active alerts resolve."""
        storage = InMemoryAlertStorage()
        assert await storage.resolve("missing", START) is None
        await storage.upsert_active(occurrence(), "a1")
        await storage.resolve("a1", START)
        assert await storage.resolve("a1", START) is None

    async def test_read_uses_overlap_and_newest_first(self) -> None:
        """Alerts whose lifetime overlaps the window are returned."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(occurrence("old", timestamp=100.0), "a1")
        await storage.upsert_active(occurrence("old", timestamp=200.0), "a1x")
        await storage.upsert_active(occurrence("new", timestamp=300.0), "a2")
        await storage.upsert_active(occurrence("later", timestamp=900.0), "a3")
        ids = [a.id async for a in storage.read(150.0, 400.0)]
        assert ids == ["a2", "a1"]

    async def test_read_filters(self) -> None:
        """Status, severity and component filters combine."""
        storage = InMemoryAlertStorage()
        await storage.upsert_active(
            occurrence("cpu", Severity.CRITICAL, component="system"), "a1"
        )
        await storage.upsert_active(
            occurrence("api", Severity.HIGH, component="api"), "a2"
        )
        await storage.resolve("a2", START)
        by_status = [
            a.id async for a in storage.read(0, START, status=AlertStatus.RESOLVED)
        ]
        by_component = [a.id async for a in storage.read(0, START, component="system")]
        by_severity = [
            a.id async for a in storage.read(0, START, severity=Severity.HIGH)
        ]
        assert (by_status, by_component, by_severity) == (["a2"], ["a1"], ["a2"])
