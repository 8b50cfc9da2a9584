"""Cache adapters implementing CachePort."""

from tailorpulse.adapters.cache.in_memory import InMemoryCache
from tailorpulse.adapters.cache.redis_cache import RedisCache

__all__ = ["InMemoryCache", "RedisCache"]
