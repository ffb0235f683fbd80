from redis.asyncio import Redis

from .config import settings
from .logger import logger

_redis: Redis | None = None


async def get_redis() -> Redis:
    """
    Shared client behind ``RedisLocks``. Only lock keys live in Redis here,
    so a small pool is enough; the command timeout stays below the time a
    request is willing to wait for a lock.
    """
    global _redis
    if _redis is None:
        client = Redis.from_url(
            settings.REDIS_URL,
            socket_timeout=min(3.0, settings.LOCK_BLOCKING_TIMEOUT_SECONDS),
            socket_connect_timeout=3,
            retry_on_timeout=True,
            max_connections=20,
        )
        await client.ping()
        logger.info("Redis connected", lock_timeout=settings.LOCK_TIMEOUT_SECONDS)
        _redis = client
    return _redis


async def close_redis() -> None:
    global _redis
    if _redis is not None:
        await _redis.aclose()
        _redis = None
