import redis
from cachetools import TTLCache
from .config import settings

# In-process request counters for local dev and single-worker deploys.
_local_counters = TTLCache(maxsize=4096, ttl=settings.CACHE_TTL_SECONDS)

class Cache:
    """
    Per-window hit counters for the rate limiter, in Redis or in memory.
    Valuations are never stored here; every valuation reads the store afresh.
    """
    def __init__(self):
        self.backend = None
        if settings.USE_REDIS:
            self.backend = redis.Redis.from_url(settings.REDIS_URL, decode_responses=True)

    def hit(self, key: str) -> int:
        """Count one request against ``key`` and return the running total."""
        if self.backend:
            count = int(self.backend.incr(key))
            if count == 1:
                # First hit opens the window; the key outlives its minute bucket.
                self.backend.expire(key, settings.CACHE_TTL_SECONDS)
            return count
        count = _local_counters.get(key, 0) + 1
        _local_counters[key] = count
        return count

    def clear(self) -> None:
        """Drop in-process counters (Redis keys expire on their own)."""
        _local_counters.clear()

cache = Cache()
