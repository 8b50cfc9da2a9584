"""Threshold evaluation and deduplicated alert lifecycle."""

import logging
import time
import uuid
from collections.abc import Callable, Sequence
from typing import Any

from tailorpulse.config import AlertThresholds
from tailorpulse.core.aggregation import error_rate
from tailorpulse.core.encoding.cache import encode_envelope
from tailorpulse.core.exceptions import AlertNotFoundError
from tailorpulse.core.models import (
    Alert,
    AlertOccurrence,
    RequestSample,
    Severity,
    SystemSample,
)
from tailorpulse.core.ports import AlertStoragePort, CachePort
from tailorpulse.core.summaries import AlertView
from tailorpulse.core.timeframes import Clock

logger = logging.getLogger(__name__)

ALERTS_FEED = "events:alerts"
ALERT_FEED_KIND = "alert"
DEFAULT_FEED_LENGTH = 100

CPU_ALERT = "system-cpu"
MEMORY_ALERT = "system-memory"
ERROR_RATE_ALERT = "api-error-rate"


def _new_alert_id() -> str:
    return uuid.uuid4().hex


def resource_severity(
    value: float, warning: float, critical: float
) -> Severity | None:
    """Severity for a resource reading, or None if under both thresholds."""
    if value > critical:
        return Severity.CRITICAL
    if value > warning:
        return Severity.MEDIUM
    return None


class AlertEngine:
    """Evaluates thresholds and keeps one active alert per type.

    Repeated breaches of the same type bump the occurrence count on the
    active alert and can only raise its severity. Alerts leave the active
    state through ``resolve`` alone.

    Args:
        storage: Alert store with an atomic active-alert upsert.
        cache: Optional cache used for the recent-alerts feed.
        thresholds: Threshold configuration. Defaults to ``AlertThresholds()``.
        clock: Returns the current Unix time in seconds.
        id_factory: Returns ids for newly created alerts.
        feed_length: Maximum entries kept on the recent-alerts feed.
    """

    def __init__(
        self,
        storage: AlertStoragePort,
        cache: CachePort | None = None,
        thresholds: AlertThresholds | None = None,
        clock: Clock = time.time,
        id_factory: Callable[[], str] = _new_alert_id,
        feed_length: int = DEFAULT_FEED_LENGTH,
    ) -> None:
        self._storage = storage
        self._cache = cache
        self._thresholds = thresholds if thresholds is not None else AlertThresholds()
        self._clock = clock
        self._id_factory = id_factory
        self._feed_length = feed_length

    @property
    def thresholds(self) -> AlertThresholds:
        return self._thresholds

    async def raise_alert(
        self,
        type: str,
        severity: Severity,
        title: str,
        message: str,
        component: str,
        metadata: dict[str, Any] | None = None,
    ) -> Alert:
        """Create the active alert for ``type`` or record another occurrence.

        Returns:
            The alert as stored after this occurrence.
        """
        occurrence = AlertOccurrence(
            type=type,
            severity=severity,
            title=title,
            message=message,
            component=component,
            timestamp=self._clock(),
            metadata=metadata or {},
        )
        alert = await self._storage.upsert_active(occurrence, self._id_factory())
        logger.warning(
            "Alert %s (%s) %s: %s [count=%d]",
            alert.type,
            alert.severity.value,
            alert.title,
            alert.message,
            alert.count,
        )
        await self._push_feed(alert)
        return alert

    async def evaluate_system(self, sample: SystemSample) -> list[Alert]:
        """Raise CPU and memory alerts for a system sample.

        Storage failures are logged and skipped; this never raises.
        """
        t = self._thresholds
        checks = (
            (
                CPU_ALERT,
                "CPU",
                sample.cpu_percent,
                t.cpu_warning_percent,
                t.cpu_critical_percent,
            ),
            (
                MEMORY_ALERT,
                "Memory",
                sample.memory_percent,
                t.memory_warning_percent,
                t.memory_critical_percent,
            ),
        )
        raised: list[Alert] = []
        for alert_type, label, value, warning, critical in checks:
            severity = resource_severity(value, warning, critical)
            if severity is None:
                continue
            critical_breach = severity is Severity.CRITICAL
            level = "critical" if critical_breach else "high"
            try:
                alert = await self.raise_alert(
                    type=alert_type,
                    severity=severity,
                    title=f"{label} usage {level}",
                    message=f"{label} usage at {value:.2f}%",
                    component="system",
                    metadata={
                        "value": value,
                        "threshold": critical if critical_breach else warning,
                    },
                )
            except Exception:
                logger.exception("Failed to raise %s alert", alert_type)
                continue
            raised.append(alert)
        return raised

    async def evaluate_error_rate(
        self, samples: Sequence[RequestSample]
    ) -> Alert | None:
        """Raise an API error-rate alert if the window's rate exceeds the threshold.

        Args:
            samples: Request samples of the evaluation window.

        Returns:
            The raised alert, or None if under threshold or the write failed.
        """
        if not samples:
            return None
        rate = error_rate(samples)
        if rate <= self._thresholds.error_rate_percent:
            return None
        minutes = round(self._thresholds.error_rate_window_seconds / 60)
        message = (
            f"API error rate of {rate:.2f}% detected in the last {minutes} minutes"
        )
        try:
            return await self.raise_alert(
                type=ERROR_RATE_ALERT,
                severity=Severity.HIGH,
                title="High API error rate",
                message=message,
                component="api",
                metadata={"errorRate": rate, "sampleCount": len(samples)},
            )
        except Exception:
            logger.exception("Failed to raise %s alert", ERROR_RATE_ALERT)
            return None

    async def resolve(self, alert_id: str, resolved_by: str | None = None) -> Alert:
        """Mark an active alert resolved.

        Raises:
            AlertNotFoundError: If no active alert has this id.
        """
        alert = await self._storage.resolve(alert_id, self._clock(), resolved_by)
        if alert is None:
            raise AlertNotFoundError(alert_id)
        logger.info("Alert %s (%s) resolved", alert.id, alert.type)
        return alert

    async def _push_feed(self, alert: Alert) -> None:
        if self._cache is None:
            return
        try:
            await self._cache.zadd(
                ALERTS_FEED,
                encode_envelope(ALERT_FEED_KIND, AlertView.of(alert)),
                alert.last_occurrence,
                max_len=self._feed_length,
            )
        except Exception:
            logger.exception("Failed to push alert %s onto the recent feed", alert.id)
