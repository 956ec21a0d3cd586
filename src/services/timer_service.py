"""Focus session timer.

A TimerController is either Idle or Running(task_id, start_time). At most one
session runs at a time: starting a timer on another task first stops the
running one and credits its elapsed time. A steady clock calls tick() while
running; when the session budget is used up the session stops on its own and
a completion event is emitted exactly once.
"""

import logging
from collections.abc import Callable
from datetime import UTC, datetime, timedelta

from src.core.config import settings
from src.core.errors import TimerStateError
from src.domain.task import Task
from src.domain.timer import SessionEnded, TimerSession, TimerState, TimerStatus
from src.interface.notifier import Notifier, notify_safely
from src.services.time_ledger import TimeSpentLedger


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]
TaskLookup = Callable[[str], Task | None]
CompletionListener = Callable[[SessionEnded], None]


def utc_now() -> datetime:
    return datetime.now(UTC)


def format_clock(milliseconds: float) -> str:
    """Render a duration as "1h 5m", "4m 30s" or "12s"."""
    seconds = int(milliseconds // 1000)
    minutes = seconds // 60
    hours = minutes // 60

    if hours > 0:
        return f"{hours}h {minutes % 60}m"
    if minutes > 0:
        return f"{minutes}m {seconds % 60}s"
    return f"{seconds}s"


class TimerController:
    """Single-session countdown timer owned by one user session."""

    def __init__(
        self,
        *,
        ledger: TimeSpentLedger,
        find_task: TaskLookup,
        clock: Clock = utc_now,
        duration: timedelta | None = None,
        notifier: Notifier | None = None,
    ) -> None:
        self._ledger = ledger
        self._find_task = find_task
        self._clock = clock
        self._duration = duration or timedelta(minutes=settings.timer_duration_minutes)
        self._notifier = notifier
        self._session: TimerSession | None = None
        self._listeners: list[CompletionListener] = []
        self.last_error: TimerStateError | None = None

    @property
    def session(self) -> TimerSession | None:
        return self._session

    @property
    def is_running(self) -> bool:
        return self._session is not None

    @property
    def ledger(self) -> TimeSpentLedger:
        return self._ledger

    def on_session_completed(self, listener: CompletionListener) -> None:
        """Register a callback for sessions that ran their full budget."""
        self._listeners.append(listener)

    def start(self, task_id: str) -> bool:
        """Start timing a task, stopping any running session first.

        Returns:
            True if a session was started, False if the task is unknown
        """
        task = self._find_task(task_id)
        if task is None:
            logger.error("Cannot start timer, task not found: %s", task_id)
            return False

        if self._session is not None:
            self.stop(self._session.task_id)

        self._session = TimerSession(task_id=task_id, start_time=self._clock(), duration_budget=self._duration)
        logger.info("Timer started for task %s", task_id)
        notify_safely(self._notifier, "Timer Started!", f"Working on: {task.title}")
        return True

    def stop(self, task_id: str, *, strict: bool = False) -> SessionEnded | None:
        """Stop the running session for a task and credit its elapsed time.

        A mismatched or absent session is a no-op recorded in ``last_error``.

        Raises:
            TimerStateError: Only when ``strict`` is set and there is nothing to stop
        """
        return self._end_session(task_id, budget_exhausted=False, strict=strict)

    def tick(self) -> SessionEnded | None:
        """Advance the running session; auto-stop once the budget is used up."""
        if self._session is None:
            return None

        if self._session.remaining(self._clock()) > timedelta(0):
            return None

        ended = self._end_session(self._session.task_id, budget_exhausted=True, strict=False)
        if ended is None:
            return None

        logger.info("Session completed for task %s", ended.task_id)
        notify_safely(self._notifier, "Pomodoro Complete!", "Great work! Time for a break.")
        for listener in list(self._listeners):
            try:
                listener(ended)
            except Exception:
                logger.exception("Session completion listener failed")
        return ended

    def status(self) -> TimerStatus:
        if self._session is None:
            return TimerStatus(state=TimerState.IDLE)

        remaining = self._session.remaining(self._clock())
        remaining_ms = int(remaining.total_seconds() * 1000)
        return TimerStatus(
            state=TimerState.RUNNING,
            task_id=self._session.task_id,
            remaining_ms=remaining_ms,
            remaining_display=format_clock(remaining_ms),
        )

    def _end_session(self, task_id: str, *, budget_exhausted: bool, strict: bool) -> SessionEnded | None:
        session = self._session
        if session is None or session.task_id != task_id:
            error = TimerStateError(task_id, running_task_id=session.task_id if session else None)
            self.last_error = error
            logger.error("No active timer for task: %s", task_id)
            if strict:
                raise error
            return None

        elapsed = session.elapsed(self._clock())
        if budget_exhausted:
            # Ticks can land slightly past the budget; a full session is worth exactly its budget
            elapsed = min(elapsed, session.duration_budget)

        self._ledger.add(task_id, elapsed)
        self._session = None
        self.last_error = None

        minutes = round(elapsed.total_seconds() / 60)
        logger.info("Timer stopped for task %s after %s", task_id, elapsed)
        notify_safely(self._notifier, "Timer Stopped!", f"Time recorded: {minutes} minutes")
        return SessionEnded(task_id=task_id, elapsed=elapsed, budget_exhausted=budget_exhausted)
