"""Task domain models and enums."""

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class Area(StrEnum):
    """Fixed task categories used for grouping and per-area current selection."""

    HOME = "Home"
    WORK = "Work"
    SELF = "Self"


class Priority(StrEnum):
    """Task priority."""

    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        """Numeric rank, higher is more urgent."""
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {Priority.HIGH: 3, Priority.MEDIUM: 2, Priority.LOW: 1}


class TaskStatus(StrEnum):
    """Derived classification of a task."""

    DONE = "done"
    CURRENT = "current"
    PENDING = "pending"

    @property
    def label(self) -> str:
        """Display label used in exports."""
        return self.value.capitalize()


def parse_deadline(value: str | None) -> datetime | None:
    """Parse a stored deadline into an aware UTC datetime.

    Date-only values resolve to midnight UTC. Naive timestamps are taken as UTC.
    Returns None for missing or unparseable input.
    """
    if not value:
        return None
    try:
        parsed = datetime.fromisoformat(value)
    except (TypeError, ValueError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


class Task(BaseModel):
    """Task data transfer object, as mirrored from the task store."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., description="Unique task ID assigned by the store")
    title: str = Field(..., description="Task title")
    description: str = Field(default="", description="Detailed task description")
    area: Area = Field(..., description="Home, Work or Self")
    priority: Priority = Field(default=Priority.MEDIUM, description="high, medium or low")
    deadline: str | None = Field(default=None, description="Deadline date (ISO format)")
    completed: bool = Field(default=False, description="Whether the task is done")
    created_at: datetime = Field(..., description="Creation timestamp")
    completed_at: datetime | None = Field(default=None, description="Completion timestamp")
    owner_id: str | None = Field(default=None, description="Owner user ID")

    @model_validator(mode="before")
    @classmethod
    def clear_completed_at_when_open(cls, data: Any) -> Any:  # noqa: ANN401
        """An incomplete task never carries a completion timestamp."""
        if isinstance(data, dict) and not data.get("completed"):
            return {**data, "completed_at": None}
        return data

    @field_validator("created_at", "completed_at")
    @classmethod
    def assume_utc(cls, v: datetime | None) -> datetime | None:
        """Treat naive timestamps from the store as UTC."""
        if v is not None and v.tzinfo is None:
            return v.replace(tzinfo=UTC)
        return v

    @property
    def deadline_at(self) -> datetime | None:
        """Deadline as an aware datetime, None if missing or unparseable."""
        return parse_deadline(self.deadline)
