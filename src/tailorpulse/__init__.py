"""tailorpulse: request and host monitoring with deduplicated alerts."""

from tailorpulse.adapters.cache import InMemoryCache, RedisCache
from tailorpulse.adapters.frameworks.asgi import RequestSamplingMiddleware
from tailorpulse.adapters.logging import ErrorRecordHandler
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
from tailorpulse.config import AlertThresholds, CacheTTLs, MonitoringSettings
from tailorpulse.core.alerts import AlertEngine
from tailorpulse.core.errors import ErrorReporter
from tailorpulse.core.exceptions import (
    AlertNotFoundError,
    InvalidTimeRangeError,
    TailorPulseError,
)
from tailorpulse.core.models import (
    Alert,
    AlertStatus,
    ErrorRecord,
    RequestSample,
    Severity,
    SystemSample,
    TimeRange,
)
from tailorpulse.core.query import QueryFacade
from tailorpulse.runtime.collector import PeriodicCollector

__all__ = [
    "Alert",
    "AlertEngine",
    "AlertNotFoundError",
    "AlertStatus",
    "AlertThresholds",
    "CacheTTLs",
    "ErrorRecord",
    "ErrorRecordHandler",
    "ErrorReporter",
    "InMemoryAlertStorage",
    "InMemoryCache",
    "InMemoryErrorStorage",
    "InMemoryRequestSampleStorage",
    "InMemorySystemSampleStorage",
    "InvalidTimeRangeError",
    "MonitoringSettings",
    "PeriodicCollector",
    "QueryFacade",
    "RedisCache",
    "RequestSample",
    "RequestSamplingMiddleware",
    "SQLiteAlertStorage",
    "SQLiteErrorStorage",
    "SQLiteRequestSampleStorage",
    "SQLiteSystemSampleStorage",
    "Severity",
    "SystemSample",
    "TailorPulseError",
    "TimeRange",
]
