"""Timeframe tokens and time range resolution.

A timeframe token names a window ending now: one of the presets
``5m``, ``1h``, ``24h``, ``7d`` or the generic form ``<int>h``, ``<int>d``,
``<int>w``. Unknown tokens fall back to a default rather than erroring.
"""

import logging
import math
import re
import time
from collections.abc import Callable

from tailorpulse.core.exceptions import InvalidTimeRangeError
from tailorpulse.core.models import TimeRange

logger = logging.getLogger(__name__)

MINUTE = 60
HOUR = 60 * MINUTE
DAY = 24 * HOUR
WEEK = 7 * DAY

PRESETS: dict[str, int] = {
    "5m": 5 * MINUTE,
    "1h": HOUR,
    "24h": DAY,
    "7d": 7 * DAY,
}

_UNITS = {"h": HOUR, "d": DAY, "w": WEEK}
# Longer generic windows are treated as unrecognized tokens.
MAX_WINDOW = 520 * WEEK
_GENERIC_TOKEN = re.compile(r"^(\d{1,6})([hdw])$")

Clock = Callable[[], float]


def timeframe_seconds(token: str | None, default: str = "1h") -> int:
    """Return the window length in seconds for a timeframe token.

    Args:
        token: Timeframe token, or None for the default.
        default: Token used when ``token`` is missing or unrecognized.
            Must itself be valid.

    Returns:
        Window length in seconds.
    """
    if token:
        seconds = _parse_token(token.strip().lower())
        if seconds is not None:
            return seconds
        logger.warning("Invalid timeframe %r, using default of %s", token, default)
    seconds = _parse_token(default)
    if seconds is None:
        raise ValueError(f"Default timeframe {default!r} is not a valid token")
    return seconds


def _parse_token(token: str) -> int | None:
    if token in PRESETS:
        return PRESETS[token]
    match = _GENERIC_TOKEN.match(token)
    if match is None:
        return None
    seconds = int(match.group(1)) * _UNITS[match.group(2)]
    if seconds <= 0 or seconds > MAX_WINDOW:
        return None
    return seconds


def _check_timestamp(name: str, value: float) -> float:
    if math.isnan(value) or math.isinf(value) or value < 0:
        raise InvalidTimeRangeError(f"{name} must be a finite, non-negative timestamp")
    return value


def resolve_time_range(
    timeframe: str | None = None,
    start: float | None = None,
    end: float | None = None,
    default: str = "1h",
    clock: Clock = time.time,
) -> TimeRange:
    """Resolve a query's time range.

    An explicit ``start``/``end`` wins over the timeframe token. A missing
    ``end`` means now; a missing ``start`` means one timeframe before ``end``.

    Raises:
        InvalidTimeRangeError: If an explicit bound is not a finite,
            non-negative timestamp, or start is after end.
    """
    now = clock()
    if start is None and end is None:
        return TimeRange(start=now - timeframe_seconds(timeframe, default), end=now)

    resolved_end = _check_timestamp("endTime", end) if end is not None else now
    if start is not None:
        resolved_start = _check_timestamp("startTime", start)
    else:
        resolved_start = resolved_end - timeframe_seconds(timeframe, default)
    if resolved_start > resolved_end:
        raise InvalidTimeRangeError("startTime must not be after endTime")
    return TimeRange(start=resolved_start, end=resolved_end)
