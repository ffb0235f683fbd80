import asyncio
from contextlib import asynccontextmanager
from typing import AsyncContextManager, AsyncIterator, Dict, Protocol

from redis.asyncio import Redis
from redis.exceptions import LockError

from .config import settings
from .errors import InvalidAttemptStateError
from .logger import logger

LOCK_PREFIX = "prepsaas:lock:"


def attempt_lock_key(attempt_id: str) -> str:
    return f"attempt:{attempt_id}"


def quiz_stats_lock_key(quiz_id: str) -> str:
    return f"quiz:{quiz_id}:stats"


class LockProvider(Protocol):
    def hold(self, key: str) -> AsyncContextManager[None]: ...


class LocalLocks:
    """Per-key asyncio locks. Correct only while a single worker process serves the API."""

    def __init__(self) -> None:
        self._locks: Dict[str, asyncio.Lock] = {}
        self._holders: Dict[str, int] = {}

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self._locks.setdefault(key, asyncio.Lock())
        # holders counts the owner plus everyone queued on the lock
        self._holders[key] = self._holders.get(key, 0) + 1
        try:
            async with lock:
                yield
        finally:
            self._holders[key] -= 1
            if not self._holders[key]:
                del self._holders[key]
                del self._locks[key]


class RedisLocks:
    """Distributed per-key locks on top of redis-py's Lock (SET NX PX + token check)."""

    def __init__(
        self,
        redis: Redis,
        timeout: float = settings.LOCK_TIMEOUT_SECONDS,
        blocking_timeout: float = settings.LOCK_BLOCKING_TIMEOUT_SECONDS,
    ) -> None:
        self.redis = redis
        self.timeout = timeout
        self.blocking_timeout = blocking_timeout

    @asynccontextmanager
    async def hold(self, key: str) -> AsyncIterator[None]:
        lock = self.redis.lock(
            f"{LOCK_PREFIX}{key}",
            timeout=self.timeout,
            blocking_timeout=self.blocking_timeout,
        )
        acquired = await lock.acquire()
        if not acquired:
            logger.warning("Lock busy", key=key, waited=self.blocking_timeout)
            raise InvalidAttemptStateError(f"Resource {key} is busy, retry the request")
        try:
            yield
        finally:
            try:
                await lock.release()
            except LockError:
                # expired while held; the next holder already owns the key
                logger.error("Lock expired before release", key=key, timeout=self.timeout)
