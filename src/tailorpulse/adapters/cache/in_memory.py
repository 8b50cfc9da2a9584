"""In-process cache adapter with TTL expiry and sorted sets."""

import time

from tailorpulse.core.timeframes import Clock


class InMemoryCache:
    """In-memory implementation of CachePort.

    Suitable for tests and single-process deployments without Redis.
    Expiry is checked lazily on read against the injected clock.
    """

    def __init__(self, clock: Clock = time.monotonic) -> None:
        self._clock = clock
        self._values: dict[str, tuple[str, float]] = {}
        self._sorted_sets: dict[str, dict[str, float]] = {}

    async def get(self, key: str) -> str | None:
        entry = self._values.get(key)
        if entry is None:
            return None
        value, expires_at = entry
        if self._clock() >= expires_at:
            del self._values[key]
            return None
        return value

    async def set(self, key: str, value: str, ttl: float) -> None:
        self._values[key] = (value, self._clock() + ttl)

    async def delete(self, key: str) -> None:
        self._values.pop(key, None)
        self._sorted_sets.pop(key, None)

    async def zadd(
        self, key: str, member: str, score: float, max_len: int | None = None
    ) -> None:
        members = self._sorted_sets.setdefault(key, {})
        members[member] = score
        if max_len is not None and len(members) > max_len:
            ranked = self._ranked(key)
            for stale in ranked[: len(ranked) - max_len]:
                del members[stale]

    async def zrangebyscore(self, key: str, low: float, high: float) -> list[str]:
        members = self._sorted_sets.get(key, {})
        return [m for m in self._ranked(key) if low <= members[m] <= high]

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        descending = self._ranked(key)[::-1]
        if stop == -1:
            return descending[start:]
        return descending[start : stop + 1]

    async def ping(self) -> bool:
        return True

    def _ranked(self, key: str) -> list[str]:
        members = self._sorted_sets.get(key, {})
        return sorted(members, key=lambda m: (members[m], m))
