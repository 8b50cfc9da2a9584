"""Application factory wiring stores, engine, facade and collector together."""

import asyncio
import logging
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from dataclasses import dataclass

from fastapi import FastAPI

from tailorpulse.adapters.cache import InMemoryCache, RedisCache
from tailorpulse.adapters.frameworks.asgi import RequestSamplingMiddleware
from tailorpulse.adapters.frameworks.fastapi import create_monitoring_router
from tailorpulse.adapters.host import PsutilHostMetrics
from tailorpulse.adapters.logging import ErrorRecordHandler
from tailorpulse.adapters.storage import (
    SQLiteAlertStorage,
    SQLiteErrorStorage,
    SQLiteRequestSampleStorage,
    SQLiteSystemSampleStorage,
)
from tailorpulse.config import MonitoringSettings
from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.ports import (
    AlertStoragePort,
    CachePort,
    ErrorStoragePort,
    HostMetricsPort,
    RequestSampleStoragePort,
    SystemSampleStoragePort,
)
from tailorpulse.core.query import QueryFacade
from tailorpulse.core.queues import QueueStatsRecorder
from tailorpulse.runtime.collector import PeriodicCollector


@dataclass
class Monitoring:
    """The wired monitoring subsystem."""

    settings: MonitoringSettings
    requests: RequestSampleStoragePort
    system: SystemSampleStoragePort
    errors: ErrorStoragePort
    alerts: AlertStoragePort
    cache: CachePort
    host: HostMetricsPort
    reporter: ErrorReporter
    engine: AlertEngine
    facade: QueryFacade
    collector: PeriodicCollector
    queues: QueueStatsRecorder

    async def close(self) -> None:
        """Stop the collector and release storage and cache connections."""
        await self.collector.stop()
        resources = (self.requests, self.system, self.errors, self.alerts, self.cache)
        for resource in resources:
            close = getattr(resource, "close", None)
            if close is not None:
                await close()


def build_monitoring(
    settings: MonitoringSettings | None = None,
    host: HostMetricsPort | None = None,
) -> Monitoring:
    """Build the subsystem on SQLite storage and Redis (or in-memory) cache."""
    settings = settings if settings is not None else MonitoringSettings()
    host = host if host is not None else PsutilHostMetrics()
    cache: CachePort
    if settings.redis_url:
        cache = RedisCache.from_url(settings.redis_url)
    else:
        cache = InMemoryCache()
    requests = SQLiteRequestSampleStorage(settings.database_path)
    system = SQLiteSystemSampleStorage(settings.database_path)
    errors = SQLiteErrorStorage(settings.database_path)
    alerts = SQLiteAlertStorage(settings.database_path)

    reporter = ErrorReporter(errors, cache, feed_length=settings.recent_feed_size)
    engine = AlertEngine(
        alerts,
        cache,
        settings.thresholds,
        feed_length=settings.recent_feed_size,
    )
    facade = QueryFacade(
        requests, system, errors, alerts, cache=cache, host=host, settings=settings
    )
    collector = PeriodicCollector(
        host,
        system,
        requests,
        engine,
        interval=settings.collection_interval_seconds,
        errors=errors,
        retention_seconds=settings.retention_seconds,
    )
    return Monitoring(
        settings=settings,
        requests=requests,
        system=system,
        errors=errors,
        alerts=alerts,
        cache=cache,
        host=host,
        reporter=reporter,
        engine=engine,
        facade=facade,
        collector=collector,
        queues=QueueStatsRecorder(cache),
    )


def create_app(
    settings: MonitoringSettings | None = None,
    monitoring: Monitoring | None = None,
    start_collector: bool = True,
) -> FastAPI:
    """Create the monitoring FastAPI application.

    The lifespan starts the periodic collector and routes ERROR log records
    from the root logger into the error store; shutdown undoes both.

    Args:
        settings: Settings used when ``monitoring`` is not given.
        monitoring: A pre-built subsystem (e.g., on in-memory adapters).
        start_collector: Set False to run without background sampling.
    """
    monitoring = monitoring if monitoring is not None else build_monitoring(settings)
    handler = ErrorRecordHandler(monitoring.reporter)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
        root = logging.getLogger()
        handler.bind_loop(asyncio.get_running_loop())
        root.addHandler(handler)
        if start_collector:
            monitoring.collector.start()
        try:
            yield
        finally:
            root.removeHandler(handler)
            await handler.drain()
            handler.bind_loop(None)
            await monitoring.close()

    app = FastAPI(title="TailorPulse Monitoring", lifespan=lifespan)
    app.state.monitoring = monitoring
    app.include_router(create_monitoring_router(monitoring.facade, monitoring.engine))
    app.add_middleware(
        RequestSamplingMiddleware,
        storage=monitoring.requests,
        reporter=monitoring.reporter,
        exclude_paths=["/monitoring/*", "/docs", "/openapi.json"],
    )
    return app
