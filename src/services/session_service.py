"""Per-user tracker sessions.

A TrackerSession owns everything that is scoped to one signed-in user: the
task mirror, the view state, the time-spent ledger, the single timer
controller and the bulk coordinator. The registry keeps one session per
owner for the lifetime of the process.
"""

import logging
from datetime import timedelta

from src.core.logging import span
from src.core.redis_client import RedisClient
from src.domain.timer import SessionEnded
from src.domain.view import ViewState
from src.interface.notifier import Notifier, get_default_notifier
from src.interface.task_backend import SQLiteTaskBackend, TaskBackend
from src.models.service_models import ClassifiedView, TaskSummary
from src.services import analytics_service, classification_service
from src.services.bulk_service import BulkOperationCoordinator
from src.services.task_store import TaskStore
from src.services.time_ledger import TimeSpentLedger
from src.services.timer_service import Clock, TimerController, utc_now


logger = logging.getLogger(__name__)


class TrackerSession:
    """One user's task mirror, timer and bulk operations, wired together."""

    def __init__(
        self,
        *,
        owner_id: str,
        backend: TaskBackend,
        notifier: Notifier | None = None,
        redis: RedisClient | None = None,
        clock: Clock = utc_now,
        timer_duration: timedelta | None = None,
    ) -> None:
        self.owner_id = owner_id
        self._clock = clock
        self.store = TaskStore(backend=backend, owner_id=owner_id, clock=clock)
        self.view_state = ViewState()
        self.ledger = TimeSpentLedger(owner_id=owner_id, redis=redis)
        self.timer = TimerController(
            ledger=self.ledger,
            find_task=self.store.get,
            clock=clock,
            duration=timer_duration,
            notifier=notifier,
        )
        self.bulk = BulkOperationCoordinator(store=self.store, view_state=self.view_state, notifier=notifier)

    async def open(self) -> None:
        """Restore persisted ledger totals and subscribe to task snapshots."""
        with span("session_service.open"):
            await self.ledger.restore()
            await self.store.start()
            logger.info("Opened tracker session for owner %s", self.owner_id)

    async def close(self) -> None:
        """Stop any running timer, unsubscribe and persist the ledger."""
        with span("session_service.close"):
            if self.timer.session is not None:
                self.timer.stop(self.timer.session.task_id)
            self.store.stop()
            await self.ledger.flush()
            logger.info("Closed tracker session for owner %s", self.owner_id)

    def view(self) -> ClassifiedView:
        """Classify the current mirror with the session's view state."""
        classified = classification_service.classify(self.store.tasks, self.view_state, self._clock())
        self.view_state.prune_selection(classified.visible_ids)
        return classified

    def summary(self) -> TaskSummary:
        return analytics_service.summarize(self.store.tasks, self.ledger.as_dict(), self._clock())

    async def start_timer(self, task_id: str) -> bool:
        started = self.timer.start(task_id)
        await self.ledger.flush()
        return started

    async def stop_timer(self, task_id: str) -> SessionEnded:
        """Stop the timer for a task, raising TimerStateError if it is not running."""
        ended = self.timer.stop(task_id, strict=True)
        await self.ledger.flush()
        return ended

    async def tick(self) -> SessionEnded | None:
        ended = self.timer.tick()
        if ended is not None:
            await self.ledger.flush()
        return ended


class SessionRegistry:
    """Process-wide map of owner ID to open TrackerSession."""

    def __init__(self) -> None:
        self._sessions: dict[str, TrackerSession] = {}
        self._backend: TaskBackend | None = None
        self._notifier: Notifier | None = None
        self._redis: RedisClient | None = None

    def configure(
        self,
        *,
        backend: TaskBackend,
        notifier: Notifier | None = None,
        redis: RedisClient | None = None,
    ) -> None:
        self._backend = backend
        self._notifier = notifier
        self._redis = redis

    @property
    def sessions(self) -> list[TrackerSession]:
        return list(self._sessions.values())

    async def get(self, owner_id: str) -> TrackerSession:
        """Return the owner's session, opening it on first use."""
        session = self._sessions.get(owner_id)
        if session is not None:
            return session

        if self._backend is None:
            self.configure(backend=SQLiteTaskBackend(), notifier=get_default_notifier())

        session = TrackerSession(
            owner_id=owner_id,
            backend=self._backend,
            notifier=self._notifier,
            redis=self._redis,
        )
        # Only sessions with a live subscription are cached
        await session.open()
        cached = self._sessions.setdefault(owner_id, session)
        if cached is not session:
            await session.close()
        return cached

    async def tick_all(self) -> int:
        """Tick every session's timer. Returns the number of sessions that completed."""
        completed = 0
        for session in self.sessions:
            try:
                if await session.tick() is not None:
                    completed += 1
            except Exception:
                logger.exception("Timer tick failed for owner %s", session.owner_id)
        return completed

    async def close_all(self) -> None:
        for session in self.sessions:
            await session.close()
        self._sessions = {}


# Global session registry
session_registry = SessionRegistry()
