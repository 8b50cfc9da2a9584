"""Recording of errors reported by other platform components."""

import logging
import time
import traceback
from typing import Any

from tailorpulse.core.encoding.cache import encode_envelope
from tailorpulse.core.models import ErrorRecord
from tailorpulse.core.ports import CachePort, ErrorStoragePort
from tailorpulse.core.summaries import ErrorRecordView
from tailorpulse.core.timeframes import Clock

logger = logging.getLogger(__name__)

ERRORS_FEED = "events:errors"
ERROR_FEED_KIND = "error"
DEFAULT_FEED_LENGTH = 100


class ErrorReporter:
    """Persists ErrorRecords and pushes them onto the recent-errors feed.

    Reporting is best effort: storage and cache failures are logged and
    never raised to the reporting component.
    """

    def __init__(
        self,
        storage: ErrorStoragePort,
        cache: CachePort | None = None,
        clock: Clock = time.time,
        feed_length: int = DEFAULT_FEED_LENGTH,
    ) -> None:
        self._storage = storage
        self._cache = cache
        self._clock = clock
        self._feed_length = feed_length

    async def report(
        self,
        type: str,
        message: str,
        component: str,
        stack: str | None = None,
        user_id: str | None = None,
        request_id: str | None = None,
        metadata: dict[str, Any] | None = None,
        timestamp: float | None = None,
    ) -> ErrorRecord:
        """Record an error.

        Returns:
            The ErrorRecord built from the arguments, whether or not it
            could be stored.
        """
        record = ErrorRecord(
            type=type,
            message=message,
            component=component,
            timestamp=self._clock() if timestamp is None else timestamp,
            stack=stack,
            user_id=user_id,
            request_id=request_id,
            metadata=metadata or {},
        )
        await self.record(record)
        return record

    async def report_exception(
        self,
        exc: BaseException,
        component: str,
        user_id: str | None = None,
        request_id: str | None = None,
        metadata: dict[str, Any] | None = None,
    ) -> ErrorRecord:
        """Record an exception, using its class name as the error type."""
        stack = "".join(
            traceback.format_exception(type(exc), exc, exc.__traceback__)
        )
        return await self.report(
            type=type(exc).__name__,
            message=str(exc) or type(exc).__name__,
            component=component,
            stack=stack,
            user_id=user_id,
            request_id=request_id,
            metadata=metadata,
        )

    async def record(self, record: ErrorRecord) -> None:
        """Persist an already-built ErrorRecord and feed it."""
        try:
            await self._storage.write(record)
        except Exception:
            logger.exception("Failed to store error record from %s", record.component)
        if self._cache is None:
            return
        try:
            await self._cache.zadd(
                ERRORS_FEED,
                encode_envelope(ERROR_FEED_KIND, ErrorRecordView.of(record)),
                record.timestamp,
                max_len=self._feed_length,
            )
        except Exception:
            logger.exception("Failed to push error onto the recent feed")
