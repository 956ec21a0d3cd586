"""Timer session models."""

from datetime import datetime, timedelta
from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class TimerState(StrEnum):
    """Timer controller state."""

    IDLE = "idle"
    RUNNING = "running"


class TimerSession(BaseModel):
    """The single active focus session."""

    model_config = ConfigDict(frozen=True)

    task_id: str = Field(..., description="Task being timed")
    start_time: datetime = Field(..., description="When the session began")
    duration_budget: timedelta = Field(..., description="Target session length")

    def elapsed(self, now: datetime) -> timedelta:
        return max(now - self.start_time, timedelta(0))

    def remaining(self, now: datetime) -> timedelta:
        return max(self.duration_budget - self.elapsed(now), timedelta(0))


class TimerStatus(BaseModel):
    """Snapshot of the timer for display."""

    state: TimerState
    task_id: str | None = None
    remaining_ms: int | None = None
    remaining_display: str | None = None


class SessionEnded(BaseModel):
    """Emitted when a session is destroyed and its time credited to the ledger."""

    task_id: str
    elapsed: timedelta
    budget_exhausted: bool = Field(default=False, description="True when the session ran its full budget")
