"""Process-wide Redis client: opened in the app lifespan, used for urgency alert dedup."""
import redis.asyncio as aioredis

from foodshare.config import settings

_redis: aioredis.Redis | None = None


async def open_redis() -> aioredis.Redis:
    global _redis
    _redis = aioredis.from_url(settings.REDIS_URL)
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None


async def get_redis() -> aioredis.Redis:
    if _redis is None:
        raise RuntimeError("Redis not initialized")
    return _redis
