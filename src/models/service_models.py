"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting store
records and derived data into typed objects.
"""

from pydantic import BaseModel, Field

from src.domain.task import Area, Task, TaskStatus


class ClassifiedView(BaseModel):
    """Annotated, filtered and sorted view of the task set."""

    visible: list[Task]
    by_area: dict[Area, list[Task]]
    statuses: dict[str, TaskStatus] = Field(description="Status of every task in the input set, keyed by ID")

    @property
    def visible_ids(self) -> list[str]:
        return [task.id for task in self.visible]


class MutationResult(BaseModel):
    """Outcome of a single mutation request against the store."""

    task_id: str | None
    success: bool
    error: str | None = None


class BulkResult(BaseModel):
    """Outcome of a best-effort batch operation."""

    operation: str
    succeeded: list[str]
    failed: dict[str, str] = Field(default_factory=dict, description="Failed task ID to error reason")

    @property
    def success_count(self) -> int:
        return len(self.succeeded)

    @property
    def failed_ids(self) -> set[str]:
        return set(self.failed)


class TaskSummary(BaseModel):
    """Overall task statistics."""

    total: int
    active: int
    completed: int
    pending: int
    overdue: int
    completion_rate: int
    on_time_rate: int
    average_turnaround: str
    time_tracked: str
