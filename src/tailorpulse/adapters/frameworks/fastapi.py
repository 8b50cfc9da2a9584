"""FastAPI adapter exposing the monitoring read API."""

from collections.abc import Awaitable
from typing import Annotated, TypeVar

from fastapi import APIRouter, Depends, HTTPException, Query

from tailorpulse.adapters.frameworks.query_params import _parse_time_param
from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.exceptions import AlertNotFoundError, InvalidTimeRangeError
from tailorpulse.core.models import AlertStatus, Severity
from tailorpulse.core.query import DEFAULT_RECENT_LIMIT, QueryFacade
from tailorpulse.core.summaries import (
    AlertsOverview,
    AlertView,
    ApiMetrics,
    ErrorMetrics,
    ErrorRecordView,
    HealthReport,
    MetricsSummary,
    PerformanceReport,
    QueueMetrics,
)

T = TypeVar("T")

MAX_LIMIT = 100


class WindowParams:
    """Timeframe token and explicit range shared by the windowed endpoints."""

    def __init__(
        self,
        timeframe: Annotated[str | None, Query()] = None,
        start_time: Annotated[str | None, Query(alias="startTime")] = None,
        end_time: Annotated[str | None, Query(alias="endTime")] = None,
    ) -> None:
        try:
            self.start = _parse_time_param("startTime", start_time)
            self.end = _parse_time_param("endTime", end_time)
        except InvalidTimeRangeError as e:
            raise HTTPException(status_code=400, detail=str(e)) from e
        self.timeframe = timeframe


async def _answer(call: Awaitable[T]) -> T:
    """Await a facade call, mapping client errors to HTTP statuses."""
    try:
        return await call
    except InvalidTimeRangeError as e:
        raise HTTPException(status_code=400, detail=str(e)) from e
    except AlertNotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e)) from e


def create_monitoring_router(
    facade: QueryFacade,
    engine: AlertEngine,
    prefix: str = "/monitoring",
) -> APIRouter:
    """Create a FastAPI router with the monitoring endpoints.

    Args:
        facade: Query facade answering the read endpoints.
        engine: Alert engine performing explicit resolution.
        prefix: Path prefix for all endpoints.

    Returns:
        APIRouter with the monitoring endpoints configured.
    """
    router = APIRouter(prefix=prefix, tags=["monitoring"])
    Window = Annotated[WindowParams, Depends()]
    Limit = Annotated[int, Query(ge=1, le=MAX_LIMIT)]

    @router.get("/metrics/summary")
    async def get_metrics_summary() -> MetricsSummary:
        """Return request totals and active alerts over the last hour."""
        return await facade.metrics_summary()

    @router.get("/metrics/api")
    async def get_api_metrics(
        window: Window,
        path: str | None = None,
        method: str | None = None,
    ) -> ApiMetrics:
        """Return request metrics for the window, optionally for one endpoint."""
        return await _answer(
            facade.api_metrics(
                window.timeframe, window.start, window.end, path=path, method=method
            )
        )

    @router.get("/metrics/errors")
    async def get_error_metrics(
        window: Window, component: str | None = None
    ) -> ErrorMetrics:
        """Return error counts by component and type."""
        return await _answer(
            facade.error_metrics(component, window.timeframe, window.start, window.end)
        )

    @router.get("/alerts")
    async def get_alerts(
        window: Window,
        status: AlertStatus | None = None,
        severity: Severity | None = None,
        component: str | None = None,
        limit: Limit = DEFAULT_RECENT_LIMIT,
    ) -> AlertsOverview:
        """Return alerts overlapping the window with status and severity counts."""
        return await _answer(
            facade.alerts(
                status,
                severity,
                component,
                limit,
                window.timeframe,
                window.start,
                window.end,
            )
        )

    @router.get("/alerts/recent")
    async def get_recent_alerts(limit: Limit = DEFAULT_RECENT_LIMIT) -> list[AlertView]:
        """Return the most recently raised alerts, newest first."""
        return await facade.recent_alerts(limit)

    @router.put("/alerts/{alert_id}/resolve")
    async def resolve_alert(
        alert_id: str,
        resolved_by: Annotated[str | None, Query(alias="resolvedBy")] = None,
    ) -> AlertView:
        """Resolve an active alert. Responds 404 if no active alert has the id."""
        alert = await _answer(engine.resolve(alert_id, resolved_by))
        return AlertView.of(alert)

    @router.get("/errors/recent")
    async def get_recent_errors(
        limit: Limit = DEFAULT_RECENT_LIMIT,
    ) -> list[ErrorRecordView]:
        """Return the most recently reported errors, newest first."""
        return await facade.recent_errors(limit)

    @router.get("/queues")
    async def get_queue_metrics(window: Window) -> QueueMetrics:
        """Return waiting, processing, completed and failed job counts."""
        return await _answer(
            facade.queue_metrics(window.timeframe, window.start, window.end)
        )

    @router.get("/health")
    async def get_health() -> HealthReport:
        """Return host, database and cache health."""
        return await facade.health()

    @router.get("/performance")
    async def get_performance(window: Window) -> PerformanceReport:
        """Return current usage and hourly CPU and memory averages."""
        return await _answer(
            facade.performance(window.timeframe, window.start, window.end)
        )

    return router
