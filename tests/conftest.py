"""Shared test fixtures for all test modules."""

from collections.abc import AsyncGenerator
from pathlib import Path

import httpx
import pytest

from tailorpulse.adapters.cache.in_memory import InMemoryCache
from tailorpulse.adapters.storage.in_memory import (
    InMemoryAlertStorage,
    InMemoryErrorStorage,
    InMemoryRequestSampleStorage,
    InMemorySystemSampleStorage,
)
from tailorpulse.config import MonitoringSettings
from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.query import QueryFacade
from tailorpulse.core.queues import QueueStatsRecorder

from support import FakeClock, StubHost


@pytest.fixture
def clock() -> FakeClock:
    """Provide a fake clock starting at a fixed instant."""
    return FakeClock()


@pytest.fixture
def host() -> StubHost:
    """Provide a host metrics stub with healthy readings."""
    return StubHost()


@pytest.fixture
def settings() -> MonitoringSettings:
    """Provide default settings, independent of the environment."""
    return MonitoringSettings(database_path=":memory:")


@pytest.fixture
def request_storage() -> InMemoryRequestSampleStorage:
    return InMemoryRequestSampleStorage()


@pytest.fixture
def system_storage() -> InMemorySystemSampleStorage:
    return InMemorySystemSampleStorage()


@pytest.fixture
def error_storage() -> InMemoryErrorStorage:
    return InMemoryErrorStorage()


@pytest.fixture
def alert_storage() -> InMemoryAlertStorage:
    return InMemoryAlertStorage()


@pytest.fixture
def cache(clock: FakeClock) -> InMemoryCache:
    """In-memory cache whose TTLs run on the fake clock."""
    return InMemoryCache(clock=clock)


@pytest.fixture
def engine(
    alert_storage: InMemoryAlertStorage,
    cache: InMemoryCache,
    settings: MonitoringSettings,
    clock: FakeClock,
) -> AlertEngine:
    """Alert engine with sequential ids alert-1, alert-2, ..."""
    counter = iter(range(1, 1_000_000))
    return AlertEngine(
        alert_storage,
        cache,
        settings.thresholds,
        clock=clock,
        id_factory=lambda: f"alert-{next(counter)}",
    )


@pytest.fixture
def reporter(
    error_storage: InMemoryErrorStorage, cache: InMemoryCache, clock: FakeClock
) -> ErrorReporter:
    return ErrorReporter(error_storage, cache, clock=clock)


@pytest.fixture
def queue_recorder(cache: InMemoryCache, clock: FakeClock) -> QueueStatsRecorder:
    return QueueStatsRecorder(cache, clock=clock)


@pytest.fixture
def facade(
    request_storage: InMemoryRequestSampleStorage,
    system_storage: InMemorySystemSampleStorage,
    error_storage: InMemoryErrorStorage,
    alert_storage: InMemoryAlertStorage,
    cache: InMemoryCache,
    host: StubHost,
    settings: MonitoringSettings,
    clock: FakeClock,
) -> QueryFacade:
    """Query facade over in-memory stores and cache."""
    return QueryFacade(
        request_storage,
        system_storage,
        error_storage,
        alert_storage,
        cache=cache,
        host=host,
        settings=settings,
        clock=clock,
    )


@pytest.fixture
def monitoring_db_path(tmp_path: Path) -> str:
    """Provide a temporary database path for SQLite storage tests."""
    return str(tmp_path / "monitoring.db")


# === ASGI Test Fixtures ===


@pytest.fixture
def asgi_test_client():
    """Factory fixture that creates an httpx.AsyncClient for ASGI testing.

    Usage:
        async def test_something(asgi_test_client):
            async with asgi_test_client(app) as client:
                response = await client.get("/monitoring/health")
    """

    def _get_client(app):
        """Return an AsyncClient context manager for the given app."""
        return httpx.AsyncClient(
            transport=httpx.ASGITransport(app=app), base_url="http://test"
        )

    return _get_client


@pytest.fixture
async def memory_sqlite_alerts() -> AsyncGenerator:
    """In-memory SQLite alert storage with proper cleanup."""
    from tailorpulse.adapters.storage.sqlite_alerts import SQLiteAlertStorage

    storage = SQLiteAlertStorage(":memory:")
    yield storage
    await storage.close()
