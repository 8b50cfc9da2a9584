"""Pure aggregation helpers over sample collections.

Every function here is a pure function of its input: it never mutates the
samples and returns the same result for the same input. Empty inputs
produce zeros, never NaN or an exception.
"""

from collections.abc import Iterable, Sequence

from tailorpulse.core.models import (
    ErrorRecord,
    QueueStats,
    RequestSample,
    SystemSample,
)
from tailorpulse.core.summaries import (
    EndpointStats,
    ErrorGroups,
    ErrorRecordView,
    ErrorTypeStats,
    QueueCounts,
    QueueTotals,
    RequestSummary,
    TimeBucket,
)

DEFAULT_TOP_ENDPOINTS = 10
HOUR_SECONDS = 3600


def average(values: Iterable[float]) -> float:
    """Arithmetic mean of values, 0.0 when there are none."""
    total = 0.0
    count = 0
    for value in values:
        total += value
        count += 1
    return total / count if count else 0.0


def _percentage(part: int, whole: int) -> float:
    return (part * 100) / whole if whole else 0.0


def average_response_time(samples: Sequence[RequestSample]) -> float:
    """Mean response time in milliseconds, 0.0 for an empty set."""
    return average(s.response_time_ms for s in samples)


def error_rate(samples: Sequence[RequestSample]) -> float:
    """Percentage of samples with status >= 400, 0.0 for an empty set."""
    errors = sum(1 for s in samples if s.is_error)
    return _percentage(errors, len(samples))


def top_endpoints(
    samples: Sequence[RequestSample], n: int = DEFAULT_TOP_ENDPOINTS
) -> list[EndpointStats]:
    """Busiest (method, path) groups, by request count descending.

    Ties keep first-seen order since the sort is stable.
    """
    groups: dict[tuple[str, str], list[RequestSample]] = {}
    for sample in samples:
        groups.setdefault((sample.method, sample.path), []).append(sample)

    stats = [
        EndpointStats(
            path=path,
            method=method,
            count=len(group),
            average_response_time=average_response_time(group),
            error_rate=error_rate(group),
        )
        for (method, path), group in groups.items()
    ]
    stats.sort(key=lambda e: e.count, reverse=True)
    return stats[:n]


def summarize_requests(
    samples: Sequence[RequestSample], n: int = DEFAULT_TOP_ENDPOINTS
) -> RequestSummary:
    """Request count, mean latency, error rate and top endpoints together."""
    return RequestSummary(
        request_count=len(samples),
        average_response_time=average_response_time(samples),
        error_rate=error_rate(samples),
        top_endpoints=top_endpoints(samples, n),
    )


def bucket_start(timestamp: float, bucket_seconds: int = HOUR_SECONDS) -> float:
    """Truncate a Unix timestamp to the start of its bucket."""
    return float(int(timestamp // bucket_seconds) * bucket_seconds)


def time_bucket(
    samples: Iterable[SystemSample], bucket_seconds: int = HOUR_SECONDS
) -> list[TimeBucket]:
    """Average CPU and memory per fixed-size bucket, oldest bucket first."""
    grouped: dict[float, list[SystemSample]] = {}
    for sample in samples:
        grouped.setdefault(bucket_start(sample.timestamp, bucket_seconds), []).append(
            sample
        )
    return [
        TimeBucket(
            timestamp=start,
            cpu=average(s.cpu_percent for s in group),
            memory=average(s.memory_percent for s in group),
        )
        for start, group in sorted(grouped.items())
    ]


def group_errors(
    records: Sequence[ErrorRecord],
    component: str | None = None,
    recent_per_type: int = 5,
) -> ErrorGroups:
    """Group error records by component and by type.

    Args:
        records: Error records to group.
        component: If given, only records from this component count.
        recent_per_type: How many of the newest records to keep per type.
    """
    if component is not None:
        records = [r for r in records if r.component == component]

    by_component: dict[str, int] = {}
    by_type: dict[str, list[ErrorRecord]] = {}
    for record in records:
        by_component[record.component] = by_component.get(record.component, 0) + 1
        by_type.setdefault(record.type, []).append(record)

    total = len(records)
    type_stats = [
        ErrorTypeStats(
            type=error_type,
            count=len(group),
            percentage=_percentage(len(group), max(1, total)),
            recent_errors=[
                ErrorRecordView.of(r)
                for r in sorted(group, key=lambda r: r.timestamp, reverse=True)[
                    :recent_per_type
                ]
            ],
        )
        for error_type, group in by_type.items()
    ]
    return ErrorGroups(total=total, by_component=by_component, by_type=type_stats)


def total_queue_stats(stats: Iterable[QueueStats]) -> QueueTotals:
    """Sum job counts over all snapshots, overall and per queue."""
    fields = ("waiting", "processing", "completed", "failed")
    overall = dict.fromkeys(fields, 0)
    per_queue: dict[str, dict[str, int]] = {}
    for snapshot in stats:
        counts = per_queue.setdefault(snapshot.queue, dict.fromkeys(fields, 0))
        for name in fields:
            value = getattr(snapshot, name)
            overall[name] += value
            counts[name] += value
    return QueueTotals(
        **overall,
        by_queue={queue: QueueCounts(**counts) for queue, counts in per_queue.items()},
    )
