"""Redis client for persisting the time-spent ledger."""

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Coroutine
from datetime import UTC, datetime
from functools import wraps
from typing import Any, TypeVar

from redis.asyncio import Redis
from redis.asyncio.connection import ConnectionPool
from redis.exceptions import RedisError

from src.core.config import Constants, settings


logger = logging.getLogger(__name__)

T = TypeVar("T")

# Max increments held while Redis is unreachable
_PENDING_WRITES_MAXLEN = 1000


def with_retry(
    max_retries: int = 3, base_delay: float = 0.1
) -> Callable[[Callable[..., Coroutine[Any, Any, T]]], Callable[..., Coroutine[Any, Any, T]]]:
    """Decorator to retry async functions with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts (default: 3)
        base_delay: Base delay in seconds for exponential backoff (default: 0.1)

    Returns:
        Decorated function with retry logic
    """

    def decorator(func: Callable[..., Coroutine[Any, Any, T]]) -> Callable[..., Coroutine[Any, Any, T]]:
        @wraps(func)
        async def wrapper(*args: Any, **kwargs: Any) -> T:  # noqa: ANN401
            last_exception = None
            for attempt in range(max_retries):
                try:
                    return await func(*args, **kwargs)
                except RedisError as e:
                    last_exception = e
                    if attempt < max_retries - 1:
                        delay = base_delay * (2**attempt)
                        logger.warning(
                            "Redis operation failed (attempt %d/%d): %s. Retrying in %.2fs",
                            attempt + 1,
                            max_retries,
                            e,
                            delay,
                        )
                        await asyncio.sleep(delay)
                    else:
                        logger.error("Redis operation failed after %d attempts: %s", max_retries, e)
            raise last_exception  # type: ignore[misc]

        return wrapper

    return decorator


class RedisClient:
    """Async Redis client wrapper with connection pooling."""

    def __init__(self, url: str | None = None) -> None:
        """Initialize Redis client."""
        redis_url = url if url is not None else settings.redis_url
        self._client: Redis | None = None
        self._pool: ConnectionPool | None = None
        self._enabled = bool(redis_url)

        # Health tracking
        self._last_successful_operation: datetime | None = None
        self._failure_count = 0
        self._total_operations = 0

        # Increments that could not be written yet: (key, field, amount)
        self._pending_writes: deque[tuple[str, str, float]] = deque(maxlen=_PENDING_WRITES_MAXLEN)

        if self._enabled and redis_url:
            try:
                self._pool = ConnectionPool.from_url(
                    redis_url,
                    decode_responses=True,
                    max_connections=Constants.REDIS_MAX_CONNECTIONS,
                )
                self._client = Redis(connection_pool=self._pool)
                logger.info("Redis client initialized with URL: %s", redis_url)
            except (RedisError, ValueError) as e:
                logger.warning("Failed to initialize Redis client: %s. Ledger will not be persisted.", e)
                self._enabled = False
                self._client = None
                self._pool = None
        else:
            logger.info("Redis URL not configured. Ledger will not be persisted.")

    @property
    def is_available(self) -> bool:
        """Check if Redis is available."""
        return self._enabled and self._client is not None

    def get_health_status(self) -> dict[str, Any]:
        """Get Redis health status."""
        return {
            "enabled": self._enabled,
            "connected": self.is_available,
            "last_successful_operation": self._last_successful_operation.isoformat()
            if self._last_successful_operation
            else None,
            "failure_count": self._failure_count,
            "total_operations": self._total_operations,
            "pending_writes": len(self._pending_writes),
        }

    def _record_success(self) -> None:
        self._last_successful_operation = datetime.now(UTC)
        self._total_operations += 1

    def _record_failure(self) -> None:
        self._failure_count += 1
        self._total_operations += 1

    async def hgetall(self, key: str) -> dict[str, str]:
        """Read a whole hash.

        Returns:
            Field/value mapping, empty if missing, unavailable, or on error
        """
        if not self.is_available or not self._client:
            return {}

        try:
            value = await self._client.hgetall(key)  # type: ignore[misc]
            self._record_success()
            return dict(value)
        except RedisError as e:
            self._record_failure()
            logger.warning("Redis HGETALL error for key %s: %s", key, e)
            return {}

    async def hincrbyfloat_with_retry(self, key: str, field: str, amount: float) -> bool:
        """Atomically add to a hash field, queueing the write if Redis is unreachable.

        Args:
            key: Hash key
            field: Hash field
            amount: Amount to add

        Returns:
            True if written, False if queued or disabled
        """
        if not self.is_available or not self._client:
            return False

        @with_retry(max_retries=3, base_delay=0.1)
        async def _increment_operation() -> None:
            if self._client:
                await self._client.hincrbyfloat(key, field, amount)  # type: ignore[misc]

        try:
            await _increment_operation()
            self._record_success()
            await self._process_pending_writes()
            return True
        except RedisError as e:
            self._record_failure()
            self._pending_writes.append((key, field, amount))
            logger.error("Redis HINCRBYFLOAT failed after retries: %s. Queued for later.", e)
            return False

    async def _process_pending_writes(self) -> None:
        """Replay increments queued while Redis was unavailable."""
        processed = 0

        while self._pending_writes and self._client:
            key, field, amount = self._pending_writes.popleft()
            try:
                await self._client.hincrbyfloat(key, field, amount)  # type: ignore[misc]
                processed += 1
                self._record_success()
            except RedisError as e:
                self._record_failure()
                self._pending_writes.appendleft((key, field, amount))
                logger.warning("Failed to replay queued ledger write: %s", e)
                break

        if processed > 0:
            logger.info("Replayed %d queued ledger writes", processed)

    async def delete(self, *keys: str) -> bool:
        """Delete one or more keys from Redis."""
        if not self.is_available or not self._client or not keys:
            return False

        try:
            await self._client.delete(*keys)
            self._record_success()
            return True
        except RedisError as e:
            self._record_failure()
            logger.warning("Redis DELETE error: %s", e)
            return False

    async def ping(self) -> bool:
        """Ping Redis to check connection."""
        if not self.is_available or not self._client:
            return False

        try:
            result = await self._client.ping()  # type: ignore[misc]
            return bool(result)
        except RedisError as e:
            logger.warning("Redis PING failed: %s", e)
            return False

    async def close(self) -> None:
        """Close Redis connection."""
        if self._client:
            await self._client.aclose()
            logger.info("Redis client closed")


# Global Redis client instance
redis_client = RedisClient()
