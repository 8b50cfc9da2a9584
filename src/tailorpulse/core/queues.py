"""Recording of background job queue statistics.

Queue snapshots live only in the cache, on a sorted set scored by
timestamp, so the read side can select a time window with
``zrangebyscore``.
"""

import logging
import time

from tailorpulse.core.encoding.cache import encode_envelope
from tailorpulse.core.models import QueueStats
from tailorpulse.core.ports import CachePort
from tailorpulse.core.summaries import QueueStatsView
from tailorpulse.core.timeframes import Clock

logger = logging.getLogger(__name__)

QUEUES_FEED = "metrics:queues"
QUEUE_FEED_KIND = "queue_stats"
DEFAULT_QUEUE_FEED_LENGTH = 10_000


class QueueStatsRecorder:
    """Pushes queue snapshots onto the ``metrics:queues`` feed.

    Recording is best effort: cache failures are logged and never raised
    to the queue worker reporting its counts.
    """

    def __init__(
        self,
        cache: CachePort,
        clock: Clock = time.time,
        feed_length: int = DEFAULT_QUEUE_FEED_LENGTH,
    ) -> None:
        self._cache = cache
        self._clock = clock
        self._feed_length = feed_length

    async def record_queue_stats(
        self,
        queue: str,
        waiting: int = 0,
        processing: int = 0,
        completed: int = 0,
        failed: int = 0,
        timestamp: float | None = None,
    ) -> QueueStats:
        """Record one snapshot of a queue's job counts."""
        stats = QueueStats(
            queue=queue,
            timestamp=self._clock() if timestamp is None else timestamp,
            waiting=waiting,
            processing=processing,
            completed=completed,
            failed=failed,
        )
        await self.record(stats)
        return stats

    async def record(self, stats: QueueStats) -> None:
        try:
            await self._cache.zadd(
                QUEUES_FEED,
                encode_envelope(QUEUE_FEED_KIND, QueueStatsView.of(stats)),
                stats.timestamp,
                max_len=self._feed_length,
            )
        except Exception:
            logger.exception("Failed to record stats for queue %s", stats.queue)
