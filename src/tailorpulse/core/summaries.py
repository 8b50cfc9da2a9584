"""Typed result shapes returned by the query facade.

Fields are snake_case in Python and camelCase on the wire (by alias), so
the same models serve the HTTP responses and the cache envelopes.
"""

from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from tailorpulse.core.models import Alert, ErrorRecord, QueueStats, TimeRange


class _Schema(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel, populate_by_name=True, frozen=True
    )


class HealthStatus(str, Enum):
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


_HEALTH_ORDER = [HealthStatus.HEALTHY, HealthStatus.DEGRADED, HealthStatus.UNHEALTHY]


def worst_status(*statuses: HealthStatus) -> HealthStatus:
    """Return the least healthy of the given statuses."""
    return max(statuses, key=_HEALTH_ORDER.index, default=HealthStatus.HEALTHY)


class TimeRangeSchema(_Schema):
    start: float
    end: float

    @classmethod
    def of(cls, time_range: TimeRange) -> "TimeRangeSchema":
        return cls(start=time_range.start, end=time_range.end)


class EndpointStats(_Schema):
    path: str
    method: str
    count: int
    average_response_time: float
    error_rate: float


class TimeBucket(_Schema):
    timestamp: float
    cpu: float
    memory: float


class RequestSummary(_Schema):
    request_count: int = 0
    average_response_time: float = 0.0
    error_rate: float = 0.0
    top_endpoints: list[EndpointStats] = Field(default_factory=list)


class ApiMetrics(RequestSummary):
    time_range: TimeRangeSchema

    @classmethod
    def empty(cls, time_range: TimeRange) -> "ApiMetrics":
        return cls(time_range=TimeRangeSchema.of(time_range))


class ErrorRecordView(_Schema):
    type: str
    message: str
    component: str
    timestamp: float
    stack: str | None = None
    user_id: str | None = None
    request_id: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, record: ErrorRecord) -> "ErrorRecordView":
        return cls(
            type=record.type,
            message=record.message,
            component=record.component,
            timestamp=record.timestamp,
            stack=record.stack,
            user_id=record.user_id,
            request_id=record.request_id,
            metadata=record.metadata,
        )


class ErrorTypeStats(_Schema):
    type: str
    count: int
    percentage: float
    recent_errors: list[ErrorRecordView] = Field(default_factory=list)


class ErrorGroups(_Schema):
    total: int = 0
    by_component: dict[str, int] = Field(default_factory=dict)
    by_type: list[ErrorTypeStats] = Field(default_factory=list)


class ErrorMetrics(ErrorGroups):
    time_range: TimeRangeSchema

    @classmethod
    def empty(cls, time_range: TimeRange) -> "ErrorMetrics":
        return cls(time_range=TimeRangeSchema.of(time_range))


class AlertView(_Schema):
    id: str
    type: str
    title: str
    severity: str
    component: str
    message: str
    status: str
    count: int
    first_occurrence: float
    last_occurrence: float
    resolved_at: float | None = None
    resolved_by: str | None = None
    metadata: dict[str, Any] = Field(default_factory=dict)

    @classmethod
    def of(cls, alert: Alert) -> "AlertView":
        return cls(
            id=alert.id,
            type=alert.type,
            title=alert.title,
            severity=alert.severity.value,
            component=alert.component,
            message=alert.message,
            status=alert.status.value,
            count=alert.count,
            first_occurrence=alert.first_occurrence,
            last_occurrence=alert.last_occurrence,
            resolved_at=alert.resolved_at,
            resolved_by=alert.resolved_by,
            metadata=alert.metadata,
        )


def _zero_by_status() -> dict[str, int]:
    return {"active": 0, "resolved": 0}


def _zero_by_severity() -> dict[str, int]:
    return {"low": 0, "medium": 0, "high": 0, "critical": 0}


class AlertsOverview(_Schema):
    total: int = 0
    by_status: dict[str, int] = Field(default_factory=_zero_by_status)
    by_severity: dict[str, int] = Field(default_factory=_zero_by_severity)
    recent: list[AlertView] = Field(default_factory=list)
    time_range: TimeRangeSchema

    @classmethod
    def empty(cls, time_range: TimeRange) -> "AlertsOverview":
        return cls(time_range=TimeRangeSchema.of(time_range))


class SummaryMetrics(_Schema):
    request_count: int = 0
    average_response_time: float = 0.0
    error_rate: float = 0.0
    active_alerts: int = 0


class MetricsSummary(_Schema):
    status: HealthStatus
    metrics: SummaryMetrics = Field(default_factory=SummaryMetrics)
    timestamp: float

    @classmethod
    def empty(cls, timestamp: float) -> "MetricsSummary":
        return cls(status=HealthStatus.UNHEALTHY, timestamp=timestamp)


class CpuHealth(_Schema):
    status: HealthStatus
    usage: float = 0.0
    cores: int = 0


class MemoryHealth(_Schema):
    status: HealthStatus
    usage: float = 0.0
    total: int = 0
    available: int = 0


class ServiceHealth(_Schema):
    status: HealthStatus


class HealthComponents(_Schema):
    cpu: CpuHealth
    memory: MemoryHealth
    database: ServiceHealth
    cache: ServiceHealth


class HealthReport(_Schema):
    status: HealthStatus
    components: HealthComponents
    timestamp: float

    @classmethod
    def empty(cls, timestamp: float) -> "HealthReport":
        unhealthy = HealthStatus.UNHEALTHY
        return cls(
            status=unhealthy,
            components=HealthComponents(
                cpu=CpuHealth(status=unhealthy),
                memory=MemoryHealth(status=unhealthy),
                database=ServiceHealth(status=unhealthy),
                cache=ServiceHealth(status=unhealthy),
            ),
            timestamp=timestamp,
        )


class CurrentUsage(_Schema):
    cpu: float = 0.0
    memory: float = 0.0
    uptime: float = 0.0


class PerformanceReport(_Schema):
    current: CurrentUsage = Field(default_factory=CurrentUsage)
    historical: list[TimeBucket] = Field(default_factory=list)
    time_range: TimeRangeSchema

    @classmethod
    def empty(cls, time_range: TimeRange) -> "PerformanceReport":
        return cls(time_range=TimeRangeSchema.of(time_range))


class QueueCounts(_Schema):
    waiting: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


class QueueStatsView(QueueCounts):
    queue: str
    timestamp: float

    @classmethod
    def of(cls, stats: QueueStats) -> "QueueStatsView":
        return cls(
            queue=stats.queue,
            timestamp=stats.timestamp,
            waiting=stats.waiting,
            processing=stats.processing,
            completed=stats.completed,
            failed=stats.failed,
        )

    def to_stats(self) -> QueueStats:
        return QueueStats(
            queue=self.queue,
            timestamp=self.timestamp,
            waiting=self.waiting,
            processing=self.processing,
            completed=self.completed,
            failed=self.failed,
        )


class QueueTotals(QueueCounts):
    by_queue: dict[str, QueueCounts] = Field(default_factory=dict)


class QueueMetrics(QueueTotals):
    time_range: TimeRangeSchema

    @classmethod
    def empty(cls, time_range: TimeRange) -> "QueueMetrics":
        return cls(time_range=TimeRangeSchema.of(time_range))
