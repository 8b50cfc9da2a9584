"""Tests for the in-memory cache adapter."""

import pytest

from tailorpulse.adapters.cache.in_memory import InMemoryCache

from support import FakeClock

pytestmark = [pytest.mark.storage, pytest.mark.tier(1)]


class TestValues:
    """Tests for get/set/delete with TTLs."""

    async def test_set_then_get(self, cache: InMemoryCache) -> None:
        """A fresh value reads back."""
        await cache.set("k", "v", ttl=10)
        assert await cache.get("k") == "v"

    async def test_missing_key(self, cache: InMemoryCache) -> None:
        """Unknown keys read as None."""
        assert await cache.get("nope") is None

    async def test_expiry(self, cache: InMemoryCache, clock: FakeClock) -> None:
        """A value is gone once its TTL has elapsed."""
        await cache.set("k", "v", ttl=10)
        clock.advance(9)
        assert await cache.get("k") == "v"
        clock.advance(1)
        assert await cache.get("k") is None

    async def test_delete(self, cache: InMemoryCache) -> None:
        """Deleted keys read as None."""
        await cache.set("k", "v", ttl=10)
        await cache.delete("k")
        assert await cache.get("k") is None


class TestSortedSets:
    """Tests for the sorted-set operations."""

    async def test_zrevrange_newest_first(self, cache: InMemoryCache) -> None:
        """Members come back by descending score."""
        for score, member in ((1.0, "a"), (3.0, "c"), (2.0, "b")):
            await cache.zadd("feed", member, score)
        assert await cache.zrevrange("feed", 0, -1) == ["c", "b", "a"]
        assert await cache.zrevrange("feed", 0, 1) == ["c", "b"]

    async def test_max_len_trims_lowest_scores(self, cache: InMemoryCache) -> None:
        """Only the max_len highest scores survive."""
        for i in range(5):
            await cache.zadd("feed", f"m{i}", float(i), max_len=3)
        assert await cache.zrevrange("feed", 0, -1) == ["m4", "m3", "m2"]

    async def test_zrangebyscore(self, cache: InMemoryCache) -> None:
        """Inclusive score range, lowest first."""
        for i in range(5):
            await cache.zadd("feed", f"m{i}", float(i))
        assert await cache.zrangebyscore("feed", 1.0, 3.0) == ["m1", "m2", "m3"]

    async def test_readding_member_updates_score(self, cache: InMemoryCache) -> None:
        """A member appears once, at its latest score."""
        await cache.zadd("feed", "a", 1.0)
        await cache.zadd("feed", "b", 2.0)
        await cache.zadd("feed", "a", 3.0)
        assert await cache.zrevrange("feed", 0, -1) == ["a", "b"]

    async def test_missing_set_is_empty(self, cache: InMemoryCache) -> None:
        """Unknown sets read as empty."""
        assert await cache.zrevrange("none", 0, -1) == []

    async def test_ping(self, cache: InMemoryCache) -> None:
        """The in-process cache is always reachable."""
        assert await cache.ping() is True
