"""Core domain models for monitoring data."""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class Severity(str, Enum):
    """Alert severity, ordered low < medium < high < critical."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"

    @property
    def rank(self) -> int:
        return _SEVERITY_RANK[self]

    @classmethod
    def highest(cls, a: "Severity", b: "Severity") -> "Severity":
        """Return the more severe of two severities."""
        return b if b.rank > a.rank else a


_SEVERITY_RANK = {
    Severity.LOW: 1,
    Severity.MEDIUM: 2,
    Severity.HIGH: 3,
    Severity.CRITICAL: 4,
}


class AlertStatus(str, Enum):
    """Lifecycle state of an alert."""

    ACTIVE = "active"
    RESOLVED = "resolved"


@dataclass(frozen=True)
class RequestSample:
    """Timing and outcome of a single API request.

    Attributes:
        path: Request path (e.g., /orders).
        method: HTTP method.
        status_code: Response status code.
        response_time_ms: Time to produce the response, in milliseconds.
        timestamp: Unix timestamp in seconds.
        user_id: Authenticated user, if any.
        ip_address: Client address, if known.
    """

    path: str
    method: str
    status_code: int
    response_time_ms: float
    timestamp: float
    user_id: str | None = None
    ip_address: str | None = None

    @property
    def is_error(self) -> bool:
        return self.status_code >= 400


@dataclass(frozen=True)
class SystemSample:
    """Host resource snapshot taken by the periodic collector.

    Attributes:
        cpu_percent: CPU usage, 0-100.
        memory_percent: Memory usage, 0-100.
        timestamp: Unix timestamp in seconds.
        disk_percent: Disk usage, 0-100, if measured.
        active_connections: Open connection count, if measured.
    """

    cpu_percent: float
    memory_percent: float
    timestamp: float
    disk_percent: float | None = None
    active_connections: int | None = None


@dataclass(frozen=True)
class ErrorRecord:
    """A failure reported by some component of the platform."""

    type: str
    message: str
    component: str
    timestamp: float
    stack: str | None = None
    user_id: str | None = None
    request_id: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class QueueStats:
    """Job counts of one background queue at one point in time."""

    queue: str
    timestamp: float
    waiting: int = 0
    processing: int = 0
    completed: int = 0
    failed: int = 0


@dataclass(frozen=True)
class Alert:
    """A deduplicated, severity-tagged threshold breach.

    Only one alert per ``type`` may be active at a time. A repeated breach
    bumps ``count`` and ``last_occurrence`` on the active alert.
    """

    id: str
    type: str
    title: str
    severity: Severity
    component: str
    message: str
    status: AlertStatus
    count: int
    first_occurrence: float
    last_occurrence: float
    resolved_at: float | None = None
    resolved_by: str | None = None
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def is_active(self) -> bool:
        return self.status is AlertStatus.ACTIVE


@dataclass(frozen=True)
class AlertOccurrence:
    """One observed threshold breach, before deduplication."""

    type: str
    severity: Severity
    title: str
    message: str
    component: str
    timestamp: float
    metadata: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class TimeRange:
    """Closed time interval in Unix seconds."""

    start: float
    end: float

    @property
    def seconds(self) -> float:
        return self.end - self.start

    def contains(self, timestamp: float) -> bool:
        return self.start <= timestamp <= self.end
