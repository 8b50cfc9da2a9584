"""Integration tests for the FastAPI monitoring router."""

import pytest
from fastapi import FastAPI

from tailorpulse.adapters.frameworks.fastapi import create_monitoring_router
from tailorpulse.adapters.storage.in_memory import InMemoryRequestSampleStorage
from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.models import SystemSample
from tailorpulse.core.query import QueryFacade
from tailorpulse.core.queues import QueueStatsRecorder

from support import START, make_request

pytestmark = [pytest.mark.integration, pytest.mark.asgi, pytest.mark.tier(2)]


@pytest.fixture
def app(facade: QueryFacade, engine: AlertEngine) -> FastAPI:
    app = FastAPI()
    app.include_router(create_monitoring_router(facade, engine))
    return app


async def raise_cpu_alert(engine: AlertEngine) -> str:
    [alert] = await engine.evaluate_system(
        SystemSample(cpu_percent=95.0, memory_percent=10.0, timestamp=START)
    )
    return alert.id


class TestMetricsEndpoints:
    """Tests for /metrics/*."""

    async def test_summary(self, app, asgi_test_client) -> None:
        """The summary nests camelCase metrics under a status."""
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/metrics/summary")
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["metrics"]) == {
            "requestCount",
            "averageResponseTime",
            "errorRate",
            "activeAlerts",
        }

    async def test_api_metrics_camel_case(
        self,
        app,
        asgi_test_client,
        request_storage: InMemoryRequestSampleStorage,
    ) -> None:
        """API metrics are served with camelCase keys."""
        await request_storage.write(make_request(START - 5, status_code=500))
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/metrics/api", params={"timeframe": "24h"}
            )
        body = response.json()
        assert body["requestCount"] == 1
        assert body["errorRate"] == 100.0
        assert body["topEndpoints"][0]["averageResponseTime"] == 100.0
        assert body["timeRange"] == {"start": START - 86_400, "end": START}

    async def test_explicit_range_in_unix_seconds_and_iso(
        self,
        app,
        asgi_test_client,
        request_storage: InMemoryRequestSampleStorage,
    ) -> None:
        """startTime and endTime accept Unix seconds and ISO 8601."""
        await request_storage.write(make_request(START))
        params = {"startTime": str(START - 10), "endTime": "2023-11-14T22:13:20Z"}
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/metrics/api", params=params)
        assert response.status_code == 200
        assert response.json()["requestCount"] == 1

    async def test_unparseable_time_is_400(self, app, asgi_test_client) -> None:
        """A malformed startTime is a client error."""
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/metrics/api", params={"startTime": "last tuesday"}
            )
        assert response.status_code == 400
        assert "startTime" in response.json()["detail"]

    async def test_reversed_range_is_400(self, app, asgi_test_client) -> None:
        """startTime after endTime is a client error."""
        params = {"startTime": str(START), "endTime": str(START - 60)}
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/metrics/errors", params=params)
        assert response.status_code == 400

    async def test_error_metrics(
        self, app, asgi_test_client, reporter: ErrorReporter
    ) -> None:
        """Errors are grouped per component."""
        await reporter.report("ValueError", "bad size", "orders")
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/metrics/errors", params={"component": "orders"}
            )
        body = response.json()
        assert body["total"] == 1
        assert body["byComponent"] == {"orders": 1}
        assert body["byType"][0]["recentErrors"][0]["message"] == "bad size"


class TestAlertEndpoints:
    """Tests for /alerts."""

    async def test_overview(
        self, app, asgi_test_client, engine: AlertEngine
    ) -> None:
        """Counts by status and severity are keyed by their wire names."""
        await raise_cpu_alert(engine)
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/alerts", params={"status": "active"}
            )
        body = response.json()
        assert body["total"] == 1
        assert body["byStatus"] == {"active": 1, "resolved": 0}
        assert body["bySeverity"]["critical"] == 1
        assert body["recent"][0]["firstOccurrence"] == START

    async def test_invalid_enum_and_limit_are_rejected(
        self, app, asgi_test_client
    ) -> None:
        """Unknown statuses and out-of-range limits fail validation."""
        async with asgi_test_client(app) as client:
            bad_status = await client.get(
                "/monitoring/alerts", params={"status": "sleeping"}
            )
            bad_limit = await client.get("/monitoring/alerts", params={"limit": 0})
        assert bad_status.status_code == 422
        assert bad_limit.status_code == 422

    async def test_resolve(self, app, asgi_test_client, engine: AlertEngine) -> None:
        """PUT resolve marks the alert resolved."""
        alert_id = await raise_cpu_alert(engine)
        async with asgi_test_client(app) as client:
            response = await client.put(
                f"/monitoring/alerts/{alert_id}/resolve",
                params={"resolvedBy": "ops"},
            )
        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "resolved"
        assert body["resolvedBy"] == "ops"
        assert body["resolvedAt"] == START

    async def test_resolve_unknown_is_404(self, app, asgi_test_client) -> None:
        """Resolving an id with no active alert is not found."""
        async with asgi_test_client(app) as client:
            response = await client.put("/monitoring/alerts/nope/resolve")
        assert response.status_code == 404

    async def test_recent_alerts(
        self, app, asgi_test_client, engine: AlertEngine
    ) -> None:
        """The recent feed lists raised alerts."""
        await raise_cpu_alert(engine)
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/alerts/recent")
        [alert] = response.json()
        assert alert["type"] == "system-cpu"


class TestOtherEndpoints:
    """Tests for /errors/recent, /health, /performance and /queues."""

    async def test_recent_errors(
        self, app, asgi_test_client, reporter: ErrorReporter
    ) -> None:
        await reporter.report("KeyError", "no customer", "billing", request_id="r-1")
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/errors/recent", params={"limit": 5}
            )
        [error] = response.json()
        assert error["requestId"] == "r-1"

    async def test_health(self, app, asgi_test_client) -> None:
        """Health lists every component."""
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/health")
        body = response.json()
        assert body["status"] == "healthy"
        assert set(body["components"]) == {"cpu", "memory", "database", "cache"}
        assert body["components"]["cpu"]["cores"] == 8

    async def test_performance(self, app, asgi_test_client) -> None:
        """Performance reports current usage even without history."""
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/performance", params={"timeframe": "7d"}
            )
        body = response.json()
        assert body["current"] == {"cpu": 20.0, "memory": 30.0, "uptime": 3600.0}
        assert body["historical"] == []
        assert body["timeRange"]["end"] - body["timeRange"]["start"] == 604_800

    async def test_queues(
        self, app, asgi_test_client, queue_recorder: QueueStatsRecorder
    ) -> None:
        """Queue totals are served with a camelCase per-queue breakdown."""
        await queue_recorder.record_queue_stats("email", waiting=3, failed=1)
        async with asgi_test_client(app) as client:
            response = await client.get(
                "/monitoring/queues", params={"timeframe": "1h"}
            )
        assert response.status_code == 200
        body = response.json()
        assert (body["waiting"], body["failed"]) == (3, 1)
        assert body["byQueue"]["email"] == {
            "waiting": 3,
            "processing": 0,
            "completed": 0,
            "failed": 1,
        }
        assert body["timeRange"] == {"start": START - 3600, "end": START}

    async def test_queues_reversed_range_is_400(self, app, asgi_test_client) -> None:
        params = {"startTime": str(START), "endTime": str(START - 60)}
        async with asgi_test_client(app) as client:
            response = await client.get("/monitoring/queues", params=params)
        assert response.status_code == 400
