"""Shared query parameter parsing utilities for framework adapters."""

import math
from datetime import datetime, timezone

from tailorpulse.core.exceptions import InvalidTimeRangeError


def _parse_time_param(name: str, raw: str | None) -> float | None:
    """Parse a ``startTime``/``endTime`` query parameter.

    Accepts Unix seconds (``1700000000`` or ``1700000000.5``) or an ISO 8601
    datetime. Naive datetimes are taken as UTC.

    Args:
        name: Parameter name, used in the error message.
        raw: Raw parameter value, or None when absent.

    Returns:
        Unix timestamp in seconds, or None if the parameter is absent or blank.

    Raises:
        InvalidTimeRangeError: If the value is neither a number nor an ISO
            datetime, or is negative, NaN or infinite.
    """
    if raw is None or not raw.strip():
        return None
    value = raw.strip()
    try:
        timestamp = float(value)
    except ValueError:
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            raise InvalidTimeRangeError(
                f"{name} must be Unix seconds or an ISO 8601 datetime"
            ) from None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        timestamp = parsed.timestamp()
    if timestamp < 0 or math.isnan(timestamp) or math.isinf(timestamp):
        raise InvalidTimeRangeError(f"{name} must be a finite, non-negative time")
    return timestamp
