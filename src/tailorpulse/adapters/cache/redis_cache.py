"""Redis cache adapter using ``redis.asyncio``."""

import logging

import redis.asyncio as redis
from redis.asyncio import Redis
from redis.exceptions import RedisError

logger = logging.getLogger(__name__)


def _text(value: str | bytes) -> str:
    return value.decode("utf-8") if isinstance(value, bytes) else value


class RedisCache:
    """Redis implementation of CachePort.

    Args:
        client: A ``redis.asyncio.Redis`` client. Responses may be bytes or
            str; both are returned as str.
    """

    def __init__(self, client: Redis) -> None:
        self._redis = client

    @classmethod
    def from_url(cls, url: str) -> "RedisCache":
        """Build a cache from a ``redis://`` URL."""
        return cls(redis.from_url(url, decode_responses=True))

    async def get(self, key: str) -> str | None:
        value = await self._redis.get(key)
        return None if value is None else _text(value)

    async def set(self, key: str, value: str, ttl: float) -> None:
        await self._redis.set(key, value, px=max(1, int(ttl * 1000)))

    async def delete(self, key: str) -> None:
        await self._redis.delete(key)

    async def zadd(
        self, key: str, member: str, score: float, max_len: int | None = None
    ) -> None:
        await self._redis.zadd(key, {member: score})
        if max_len is not None:
            # Drop the lowest scores beyond max_len.
            await self._redis.zremrangebyrank(key, 0, -(max_len + 1))

    async def zrangebyscore(self, key: str, low: float, high: float) -> list[str]:
        members = await self._redis.zrangebyscore(key, low, high)
        return [_text(m) for m in members]

    async def zrevrange(self, key: str, start: int, stop: int) -> list[str]:
        members = await self._redis.zrevrange(key, start, stop)
        return [_text(m) for m in members]

    async def ping(self) -> bool:
        try:
            return bool(await self._redis.ping())
        except (RedisError, OSError):
            logger.warning("Redis ping failed", exc_info=True)
            return False

    async def close(self) -> None:
        await self._redis.aclose()
