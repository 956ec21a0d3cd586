"""Accumulated focus time per task, optionally mirrored to Redis."""

import logging
from datetime import timedelta

from src.core.config import Constants
from src.core.redis_client import RedisClient


logger = logging.getLogger(__name__)


class TimeSpentLedger:
    """Mapping from task ID to accumulated active time.

    The in-memory mapping is authoritative for the session. When a Redis
    client is available, credited time is also written to a per-owner hash
    on flush() and read back by restore().
    """

    def __init__(self, *, owner_id: str, redis: RedisClient | None = None) -> None:
        self._owner_id = owner_id
        self._redis = redis
        self._entries: dict[str, timedelta] = {}
        self._unsaved: list[tuple[str, timedelta]] = []

    @property
    def key(self) -> str:
        return f"{Constants.LEDGER_KEY_PREFIX}:{self._owner_id}"

    def get(self, task_id: str) -> timedelta:
        return self._entries.get(task_id, timedelta(0))

    def add(self, task_id: str, elapsed: timedelta) -> timedelta:
        """Credit time to a task and return its new total."""
        if elapsed < timedelta(0):
            msg = f"Cannot credit negative time to task {task_id}: {elapsed}"
            raise ValueError(msg)

        total = self.get(task_id) + elapsed
        self._entries[task_id] = total
        self._unsaved.append((task_id, elapsed))
        logger.debug("Credited %s to task %s (total %s)", elapsed, task_id, total)
        return total

    def as_dict(self) -> dict[str, timedelta]:
        return dict(self._entries)

    def total(self) -> timedelta:
        return sum(self._entries.values(), timedelta(0))

    def __len__(self) -> int:
        return len(self._entries)

    async def flush(self) -> int:
        """Write credited time to Redis. Returns the number of entries written."""
        if self._redis is None:
            self._unsaved = []
            return 0
        # Unsaved time is kept until Redis is available to take it
        if not self._unsaved or not self._redis.is_available:
            return 0

        pending, self._unsaved = self._unsaved, []
        written = 0
        for task_id, elapsed in pending:
            if await self._redis.hincrbyfloat_with_retry(self.key, task_id, elapsed.total_seconds()):
                written += 1
        return written

    async def restore(self) -> int:
        """Load persisted totals from Redis, replacing in-memory entries. Returns entries loaded."""
        if self._redis is None or not self._redis.is_available:
            return 0

        stored = await self._redis.hgetall(self.key)
        loaded = 0
        for task_id, seconds in stored.items():
            try:
                self._entries[task_id] = timedelta(seconds=float(seconds))
                loaded += 1
            except ValueError:
                logger.warning("Ignoring unreadable ledger entry for task %s: %r", task_id, seconds)

        logger.info("Restored %d ledger entries for owner %s", loaded, self._owner_id)
        return loaded

    async def clear(self) -> None:
        self._entries = {}
        self._unsaved = []
        if self._redis is not None:
            await self._redis.delete(self.key)
