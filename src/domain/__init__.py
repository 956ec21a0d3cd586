"""Domain models and DTOs."""

from src.domain.create_models import TaskCreate
from src.domain.task import Area, Priority, Task, TaskStatus
from src.domain.timer import SessionEnded, TimerSession, TimerState, TimerStatus
from src.domain.update_models import TaskUpdate
from src.domain.view import FilterKey, ViewMode, ViewState


__all__ = [
    "Area",
    "FilterKey",
    "Priority",
    "SessionEnded",
    "Task",
    "TaskCreate",
    "TaskStatus",
    "TaskUpdate",
    "TimerSession",
    "TimerState",
    "TimerStatus",
    "ViewMode",
    "ViewState",
]
