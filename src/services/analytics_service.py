"""Analytics service for task statistics.

This module provides pure functions for:
- Turnaround time (TAT): time from creation to completion of a task
- Completion and on-time rates across the task set
- Total focus time tracked in the time-spent ledger
- A combined summary for the statistics panel

Durations are presented at the coarsest unit that exceeds one, with units
rounded up (a task finished 25 hours after creation took "2 days").
"""

import math
from collections.abc import Mapping, Sequence
from datetime import UTC, datetime, timedelta

from src.domain.task import Task, TaskStatus
from src.models.service_models import TaskSummary
from src.services import classification_service


_DAY = timedelta(days=1)
_HOUR = timedelta(hours=1)
_MINUTE = timedelta(minutes=1)

NOT_APPLICABLE = "N/A"


def _units(duration: timedelta, unit: timedelta) -> int:
    return math.ceil(duration / unit)


def format_duration(duration: timedelta) -> str:
    """Collapse a duration to days, hours or minutes, else "Just now"."""
    days, hours, minutes = _units(duration, _DAY), _units(duration, _HOUR), _units(duration, _MINUTE)
    if days > 1:
        return f"{days} days"
    if hours > 1:
        return f"{hours} hours"
    if minutes > 1:
        return f"{minutes} minutes"
    return "Just now"


def _turnaround(task: Task) -> timedelta | None:
    if not task.completed or task.completed_at is None:
        return None
    return max(task.completed_at - task.created_at, timedelta(0))


def turnaround_duration(task: Task) -> timedelta | None:
    """Raw turnaround time, None unless the task is completed with a completion time."""
    return _turnaround(task)


def turnaround_time(task: Task) -> str | None:
    """Presented turnaround time, None unless the task is completed with a completion time."""
    duration = _turnaround(task)
    return format_duration(duration) if duration is not None else None


def average_turnaround(tasks: Sequence[Task]) -> str:
    """Mean turnaround over completed tasks, in days or hours only."""
    durations = [d for d in (_turnaround(task) for task in tasks) if d is not None]
    if not durations:
        return NOT_APPLICABLE

    average = sum(durations, timedelta(0)) / len(durations)
    days, hours = _units(average, _DAY), _units(average, _HOUR)
    if days > 1:
        return f"{days} days"
    if hours > 1:
        return f"{hours} hours"
    return "Less than 1 hour"


def completion_rate(tasks: Sequence[Task]) -> int:
    """Percentage of tasks completed, 0 for an empty set."""
    if not tasks:
        return 0
    completed = sum(1 for task in tasks if task.completed)
    return round(completed / len(tasks) * 100)


def on_time_rate(tasks: Sequence[Task]) -> int:
    """Percentage of completed tasks finished by their deadline.

    With no completed tasks the rate is 100 (nothing was late). A completed
    task with an unparseable deadline counts as on time.
    """
    completed = [task for task in tasks if task.completed and task.completed_at is not None]
    if not completed:
        return 100

    on_time = 0
    for task in completed:
        deadline = task.deadline_at
        if deadline is None or task.completed_at <= deadline:
            on_time += 1
    return round(on_time / len(completed) * 100)


def total_time_tracked(ledger: Mapping[str, timedelta]) -> str:
    """Sum of the ledger, presented like turnaround time; "0 minutes" when empty."""
    if not ledger:
        return "0 minutes"
    return format_duration(sum(ledger.values(), timedelta(0)))


def days_until_deadline(task: Task, now: datetime | None = None) -> str:
    """Relative deadline label for open tasks."""
    if task.completed:
        return NOT_APPLICABLE
    deadline = task.deadline_at
    if deadline is None:
        return NOT_APPLICABLE

    now = now or datetime.now(UTC)
    days = _units(deadline - now, _DAY)
    if days < 0:
        return f"{abs(days)} days overdue"
    if days == 0:
        return "Due today"
    if days == 1:
        return "Due tomorrow"
    return f"{days} days left"


def summarize(tasks: Sequence[Task], ledger: Mapping[str, timedelta], now: datetime | None = None) -> TaskSummary:
    """Collect every statistic shown on the summary panel."""
    now = now or datetime.now(UTC)
    statuses = classification_service.compute_statuses(tasks)
    completed = sum(1 for task in tasks if task.completed)

    return TaskSummary(
        total=len(tasks),
        active=len(tasks) - completed,
        completed=completed,
        pending=sum(1 for status in statuses.values() if status == TaskStatus.PENDING),
        overdue=sum(1 for task in tasks if classification_service.is_overdue(task, now)),
        completion_rate=completion_rate(tasks),
        on_time_rate=on_time_rate(tasks),
        average_turnaround=average_turnaround(tasks),
        time_tracked=total_time_tracked(ledger),
    )
