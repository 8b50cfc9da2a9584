"""Read API over stored samples and alerts, fronted by a short-TTL cache.

Every operation returns a typed model. Invalid explicit time ranges raise
``InvalidTimeRangeError`` before any I/O. Any other failure, including a
read that exceeds the query timeout, is logged and answered with the
zero-filled shape of the same model, which is never cached.
"""

import asyncio
import logging
import time
from collections.abc import AsyncIterable, Awaitable, Callable
from typing import TypeVar

from pydantic import BaseModel

from tailorpulse.config import MonitoringSettings
from tailorpulse.core.aggregation import (
    group_errors,
    summarize_requests,
    time_bucket,
    total_queue_stats,
)
from tailorpulse.core.alerts import ALERT_FEED_KIND, ALERTS_FEED
from tailorpulse.core.encoding.cache import (
    decode_envelope,
    decode_many,
    encode_envelope,
)
from tailorpulse.core.errors import ERROR_FEED_KIND, ERRORS_FEED
from tailorpulse.core.models import AlertStatus, Severity, TimeRange
from tailorpulse.core.ports import (
    AlertStoragePort,
    CachePort,
    ErrorStoragePort,
    HostMetricsPort,
    RequestSampleStoragePort,
    SystemSampleStoragePort,
)
from tailorpulse.core.queues import QUEUE_FEED_KIND, QUEUES_FEED
from tailorpulse.core.summaries import (
    AlertsOverview,
    AlertView,
    ApiMetrics,
    CpuHealth,
    CurrentUsage,
    ErrorMetrics,
    ErrorRecordView,
    HealthComponents,
    HealthReport,
    HealthStatus,
    MemoryHealth,
    MetricsSummary,
    PerformanceReport,
    QueueMetrics,
    QueueStatsView,
    ServiceHealth,
    SummaryMetrics,
    TimeRangeSchema,
    worst_status,
)
from tailorpulse.core.timeframes import HOUR, Clock, resolve_time_range

logger = logging.getLogger(__name__)

CACHE_PREFIX = "monitoring"
DEFAULT_RECENT_LIMIT = 10

ModelT = TypeVar("ModelT", bound=BaseModel)
T = TypeVar("T")


async def collect(iterable: AsyncIterable[T]) -> list[T]:
    """Drain an async iterable into a list."""
    return [item async for item in iterable]


def cache_key(
    kind: str,
    timeframe: str | None,
    start: float | None,
    end: float | None,
    **filters: object,
) -> str:
    """Build the cache key of a windowed query.

    The window part is the explicit range when one is given, else the
    timeframe token, so repeated relative queries share an entry for the
    lifetime of its TTL.
    """
    if start is not None or end is not None:
        lower = "" if start is None else start
        upper = "now" if end is None else end
        window = f"range:{lower}:{upper}"
    else:
        window = f"tf:{(timeframe or 'default').strip().lower()}"
    parts = [CACHE_PREFIX, kind, window]
    parts.extend(
        f"{name}={value}"
        for name, value in sorted(filters.items())
        if value is not None
    )
    return ":".join(parts)


class QueryFacade:
    """Read API for the monitoring dashboard.

    Args:
        requests: Request sample store.
        system: System sample store.
        errors: Error record store.
        alerts: Alert store.
        cache: Optional cache for query results and recent feeds.
        host: Optional host metrics source for current usage and health.
        settings: Cache TTLs, timeouts and health thresholds.
        clock: Returns the current Unix time in seconds.
    """

    def __init__(
        self,
        requests: RequestSampleStoragePort,
        system: SystemSampleStoragePort,
        errors: ErrorStoragePort,
        alerts: AlertStoragePort,
        cache: CachePort | None = None,
        host: HostMetricsPort | None = None,
        settings: MonitoringSettings | None = None,
        clock: Clock = time.time,
    ) -> None:
        self._requests = requests
        self._system = system
        self._errors = errors
        self._alerts = alerts
        self._cache = cache
        self._host = host
        self._settings = settings if settings is not None else MonitoringSettings()
        self._clock = clock

    # --- Public operations ---

    async def metrics_summary(self) -> MetricsSummary:
        """Request totals and active alert count over the last hour."""
        now = self._clock()
        time_range = TimeRange(start=now - HOUR, end=now)

        async def compute() -> MetricsSummary:
            samples = await collect(
                self._requests.read(time_range.start, time_range.end)
            )
            summary = summarize_requests(samples, self._settings.top_endpoints)
            active = await self._alerts.count_active()
            return MetricsSummary(
                status=self._host_status(),
                metrics=SummaryMetrics(
                    request_count=summary.request_count,
                    average_response_time=summary.average_response_time,
                    error_rate=summary.error_rate,
                    active_alerts=active,
                ),
                timestamp=now,
            )

        return await self._cached(
            f"{CACHE_PREFIX}:summary",
            "summary",
            MetricsSummary,
            self._settings.cache_ttl.summary,
            compute,
            lambda: MetricsSummary.empty(now),
        )

    async def api_metrics(
        self,
        timeframe: str | None = None,
        start: float | None = None,
        end: float | None = None,
        path: str | None = None,
        method: str | None = None,
    ) -> ApiMetrics:
        """Request count, latency, error rate and busiest endpoints."""
        time_range = resolve_time_range(timeframe, start, end, "1h", self._clock)
        method = method.upper() if method else None

        async def compute() -> ApiMetrics:
            samples = [
                s
                for s in await collect(
                    self._requests.read(time_range.start, time_range.end)
                )
                if (path is None or s.path == path)
                and (method is None or s.method == method)
            ]
            summary = summarize_requests(samples, self._settings.top_endpoints)
            return ApiMetrics(
                **summary.model_dump(), time_range=TimeRangeSchema.of(time_range)
            )

        return await self._cached(
            cache_key("api", timeframe, start, end, path=path, method=method),
            "api_metrics",
            ApiMetrics,
            self._settings.cache_ttl.api,
            compute,
            lambda: ApiMetrics.empty(time_range),
        )

    async def error_metrics(
        self,
        component: str | None = None,
        timeframe: str | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> ErrorMetrics:
        """Error counts by component and by type."""
        time_range = resolve_time_range(timeframe, start, end, "24h", self._clock)

        async def compute() -> ErrorMetrics:
            records = await collect(
                self._errors.read(time_range.start, time_range.end, component)
            )
            groups = group_errors(records, component)
            return ErrorMetrics(
                **groups.model_dump(), time_range=TimeRangeSchema.of(time_range)
            )

        return await self._cached(
            cache_key("errors", timeframe, start, end, component=component),
            "error_metrics",
            ErrorMetrics,
            self._settings.cache_ttl.errors,
            compute,
            lambda: ErrorMetrics.empty(time_range),
        )

    async def alerts(
        self,
        status: AlertStatus | None = None,
        severity: Severity | None = None,
        component: str | None = None,
        limit: int = DEFAULT_RECENT_LIMIT,
        timeframe: str | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> AlertsOverview:
        """Alerts overlapping the window, counted by status and severity."""
        time_range = resolve_time_range(timeframe, start, end, "24h", self._clock)
        limit = max(0, limit)

        async def compute() -> AlertsOverview:
            alerts = await collect(
                self._alerts.read(
                    time_range.start, time_range.end, status, severity, component
                )
            )
            overview = AlertsOverview.empty(time_range)
            by_status = dict(overview.by_status)
            by_severity = dict(overview.by_severity)
            for alert in alerts:
                by_status[alert.status.value] += 1
                by_severity[alert.severity.value] += 1
            return AlertsOverview(
                total=len(alerts),
                by_status=by_status,
                by_severity=by_severity,
                recent=[AlertView.of(a) for a in alerts[:limit]],
                time_range=TimeRangeSchema.of(time_range),
            )

        return await self._cached(
            cache_key(
                "alerts",
                timeframe,
                start,
                end,
                status=status.value if status else None,
                severity=severity.value if severity else None,
                component=component,
                limit=limit,
            ),
            "alerts",
            AlertsOverview,
            self._settings.cache_ttl.alerts,
            compute,
            lambda: AlertsOverview.empty(time_range),
        )

    async def health(self) -> HealthReport:
        """Health of host resources, the sample store and the cache."""
        now = self._clock()

        async def compute() -> HealthReport:
            components = HealthComponents(
                cpu=self._cpu_health(),
                memory=self._memory_health(),
                database=ServiceHealth(status=await self._database_status()),
                cache=ServiceHealth(status=await self._cache_status()),
            )
            return HealthReport(
                status=worst_status(
                    components.cpu.status,
                    components.memory.status,
                    components.database.status,
                    components.cache.status,
                ),
                components=components,
                timestamp=now,
            )

        return await self._cached(
            f"{CACHE_PREFIX}:health",
            "health",
            HealthReport,
            self._settings.cache_ttl.health,
            compute,
            lambda: HealthReport.empty(now),
        )

    async def performance(
        self,
        timeframe: str | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> PerformanceReport:
        """Current host usage and hourly CPU and memory averages."""
        time_range = resolve_time_range(timeframe, start, end, "1h", self._clock)

        async def compute() -> PerformanceReport:
            samples = await collect(
                self._system.read(time_range.start, time_range.end)
            )
            return PerformanceReport(
                current=self._current_usage(),
                historical=time_bucket(samples),
                time_range=TimeRangeSchema.of(time_range),
            )

        return await self._cached(
            cache_key("performance", timeframe, start, end),
            "performance",
            PerformanceReport,
            self._settings.cache_ttl.performance,
            compute,
            lambda: PerformanceReport.empty(time_range),
        )

    async def queue_metrics(
        self,
        timeframe: str | None = None,
        start: float | None = None,
        end: float | None = None,
    ) -> QueueMetrics:
        """Job counts summed over the queue snapshots in the window."""
        time_range = resolve_time_range(timeframe, start, end, "1h", self._clock)
        cache = self._cache

        async def compute() -> QueueMetrics:
            if cache is None:
                return QueueMetrics.empty(time_range)
            raws = await cache.zrangebyscore(
                QUEUES_FEED, time_range.start, time_range.end
            )
            snapshots = decode_many(raws, QUEUE_FEED_KIND, QueueStatsView)
            totals = total_queue_stats(s.to_stats() for s in snapshots)
            return QueueMetrics(
                **totals.model_dump(), time_range=TimeRangeSchema.of(time_range)
            )

        return await self._cached(
            cache_key("queues", timeframe, start, end),
            "queue_metrics",
            QueueMetrics,
            self._settings.cache_ttl.queues,
            compute,
            lambda: QueueMetrics.empty(time_range),
        )

    async def recent_errors(
        self, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[ErrorRecordView]:
        """Most recently reported errors, newest first."""
        return await self._recent(
            ERRORS_FEED, ERROR_FEED_KIND, ErrorRecordView, limit
        )

    async def recent_alerts(
        self, limit: int = DEFAULT_RECENT_LIMIT
    ) -> list[AlertView]:
        """Most recently raised alerts, newest first."""
        return await self._recent(ALERTS_FEED, ALERT_FEED_KIND, AlertView, limit)

    # --- Cache plumbing ---

    async def _cached(
        self,
        key: str,
        kind: str,
        model: type[ModelT],
        ttl: float,
        compute: Callable[[], Awaitable[ModelT]],
        empty: Callable[[], ModelT],
    ) -> ModelT:
        hit = await self._cache_get(key, kind, model)
        if hit is not None:
            return hit
        try:
            result = await asyncio.wait_for(
                compute(), timeout=self._settings.query_timeout_seconds
            )
        except TimeoutError:
            logger.error("Query %s timed out", kind)
            return empty()
        except Exception:
            logger.exception("Query %s failed", kind)
            return empty()
        await self._cache_set(key, kind, result, ttl)
        return result

    async def _cache_get(
        self, key: str, kind: str, model: type[ModelT]
    ) -> ModelT | None:
        if self._cache is None:
            return None
        try:
            raw = await self._cache.get(key)
        except Exception:
            logger.exception("Cache read failed for %s", key)
            return None
        return decode_envelope(raw, kind, model)

    async def _cache_set(
        self, key: str, kind: str, value: BaseModel, ttl: float
    ) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.set(key, encode_envelope(kind, value), ttl)
        except Exception:
            logger.exception("Cache write failed for %s", key)

    async def _recent(
        self, feed: str, kind: str, model: type[ModelT], limit: int
    ) -> list[ModelT]:
        if self._cache is None or limit <= 0:
            return []
        try:
            raws = await self._cache.zrevrange(feed, 0, limit - 1)
        except Exception:
            logger.exception("Failed to read recent feed %s", feed)
            return []
        return decode_many(raws, kind, model)

    # --- Health helpers ---

    def _usage_status(self, usage: float) -> HealthStatus:
        if usage > self._settings.health_unhealthy_percent:
            return HealthStatus.UNHEALTHY
        if usage > self._settings.health_degraded_percent:
            return HealthStatus.DEGRADED
        return HealthStatus.HEALTHY

    def _host_status(self) -> HealthStatus:
        if self._host is None:
            return HealthStatus.HEALTHY
        memory_percent, _, _ = self._host.memory()
        return worst_status(
            self._usage_status(self._host.cpu_percent()),
            self._usage_status(memory_percent),
        )

    def _cpu_health(self) -> CpuHealth:
        if self._host is None:
            return CpuHealth(status=HealthStatus.HEALTHY)
        usage = self._host.cpu_percent()
        return CpuHealth(
            status=self._usage_status(usage),
            usage=round(usage, 2),
            cores=self._host.cpu_count(),
        )

    def _memory_health(self) -> MemoryHealth:
        if self._host is None:
            return MemoryHealth(status=HealthStatus.HEALTHY)
        usage, total, available = self._host.memory()
        return MemoryHealth(
            status=self._usage_status(usage),
            usage=round(usage, 2),
            total=total,
            available=available,
        )

    def _current_usage(self) -> CurrentUsage:
        if self._host is None:
            return CurrentUsage()
        memory_percent, _, _ = self._host.memory()
        return CurrentUsage(
            cpu=self._host.cpu_percent(),
            memory=memory_percent,
            uptime=self._host.uptime(),
        )

    async def _database_status(self) -> HealthStatus:
        try:
            await self._requests.count()
        except Exception:
            logger.exception("Database health check failed")
            return HealthStatus.UNHEALTHY
        return HealthStatus.HEALTHY

    async def _cache_status(self) -> HealthStatus:
        if self._cache is None:
            return HealthStatus.HEALTHY
        try:
            reachable = await self._cache.ping()
        except Exception:
            logger.exception("Cache health check failed")
            return HealthStatus.UNHEALTHY
        return HealthStatus.HEALTHY if reachable else HealthStatus.UNHEALTHY
