"""Tests that adapters satisfy the core port protocols."""

import pytest

from tailorpulse.adapters.cache import InMemoryCache, RedisCache
from tailorpulse.adapters.host import PsutilHostMetrics
from tailorpulse.adapters.storage import (
    InMemoryAlertStorage,
    InMemoryErrorStorage,
    InMemoryRequestSampleStorage,
    InMemorySystemSampleStorage,
    SQLiteAlertStorage,
    SQLiteErrorStorage,
    SQLiteRequestSampleStorage,
    SQLiteSystemSampleStorage,
)
from tailorpulse.core.ports import (
    AlertStoragePort,
    CachePort,
    ErrorStoragePort,
    HostMetricsPort,
    RequestSampleStoragePort,
    SystemSampleStoragePort,
)

from support import StubHost

pytestmark = [pytest.mark.core, pytest.mark.tier(1)]


class TestStoragePorts:
    """Storage adapters implement their ports."""

    @pytest.mark.parametrize(
        "storage",
        [InMemoryRequestSampleStorage(), SQLiteRequestSampleStorage(":memory:")],
    )
    def test_request_sample_storage(self, storage: object) -> None:
        """Request sample stores satisfy RequestSampleStoragePort."""
        assert isinstance(storage, RequestSampleStoragePort)

    @pytest.mark.parametrize(
        "storage",
        [InMemorySystemSampleStorage(), SQLiteSystemSampleStorage(":memory:")],
    )
    def test_system_sample_storage(self, storage: object) -> None:
        """System sample stores satisfy SystemSampleStoragePort."""
        assert isinstance(storage, SystemSampleStoragePort)

    @pytest.mark.parametrize(
        "storage", [InMemoryErrorStorage(), SQLiteErrorStorage(":memory:")]
    )
    def test_error_storage(self, storage: object) -> None:
        """Error stores satisfy ErrorStoragePort."""
        assert isinstance(storage, ErrorStoragePort)

    @pytest.mark.parametrize(
        "storage", [InMemoryAlertStorage(), SQLiteAlertStorage(":memory:")]
    )
    def test_alert_storage(self, storage: object) -> None:
        """Alert stores satisfy AlertStoragePort."""
        assert isinstance(storage, AlertStoragePort)


class TestOtherPorts:
    """Cache and host adapters implement their ports."""

    def test_in_memory_cache(self) -> None:
        assert isinstance(InMemoryCache(), CachePort)

    def test_redis_cache(self) -> None:
        assert isinstance(RedisCache(client=object()), CachePort)

    def test_psutil_host(self) -> None:
        assert isinstance(PsutilHostMetrics(), HostMetricsPort)

    def test_stub_host(self) -> None:
        assert isinstance(StubHost(), HostMetricsPort)
