"""Task classification, filtering and prioritization.

Every task is classified as done, current or pending:
- Completed tasks are always done.
- Within each area, open tasks are ranked by priority (high first), then by
  deadline (earliest first), then by their position in the input. The top
  three are current; the rest are pending.

Classification is recomputed from scratch on every call and never mutates
its inputs.
"""

from collections.abc import Sequence
from datetime import UTC, datetime

from src.core.config import Constants
from src.domain.task import Area, Priority, Task, TaskStatus
from src.domain.view import FilterKey, ViewMode, ViewState
from src.models.service_models import ClassifiedView


# Missing or unparseable deadlines sort after every real one
_LATEST_DEADLINE = datetime.max.replace(tzinfo=UTC)


def priority_sort_key(task: Task) -> tuple[int, datetime]:
    """Priority descending, then deadline ascending."""
    return (-task.priority.rank, task.deadline_at or _LATEST_DEADLINE)


def rank_open_tasks(tasks: Sequence[Task]) -> dict[Area, list[Task]]:
    """Group open tasks by area, each group in priority order.

    sorted() is stable, so input order breaks remaining ties.
    """
    groups: dict[Area, list[Task]] = {area: [] for area in Area}
    for task in tasks:
        if not task.completed:
            groups[task.area].append(task)
    return {area: sorted(group, key=priority_sort_key) for area, group in groups.items()}


def compute_statuses(tasks: Sequence[Task]) -> dict[str, TaskStatus]:
    """Classify every task in the set."""
    statuses = {task.id: TaskStatus.DONE for task in tasks if task.completed}
    for ranked in rank_open_tasks(tasks).values():
        for position, task in enumerate(ranked):
            is_current = position < Constants.CURRENT_TASKS_PER_AREA
            statuses[task.id] = TaskStatus.CURRENT if is_current else TaskStatus.PENDING
    return statuses


def status_of(task: Task, tasks: Sequence[Task]) -> TaskStatus:
    """Classify a single task against the set it belongs to."""
    if task.completed:
        return TaskStatus.DONE
    return compute_statuses(tasks).get(task.id, TaskStatus.PENDING)


def matches_search(task: Task, query: str) -> bool:
    if not query:
        return True
    needle = query.lower()
    return needle in task.title.lower() or needle in task.description.lower() or needle in task.area.value.lower()


def is_overdue(task: Task, now: datetime) -> bool:
    deadline = task.deadline_at
    return deadline is not None and deadline < now and not task.completed


def is_due_today(task: Task, now: datetime) -> bool:
    deadline = task.deadline_at
    return deadline is not None and deadline.astimezone(now.tzinfo).date() == now.date()


def matches_filters(task: Task, filters: set[FilterKey], now: datetime) -> bool:
    """OR across the active filters; ALL matches everything."""
    if not filters or FilterKey.ALL in filters:
        return True

    checks = {
        FilterKey.HIGH: lambda: task.priority == Priority.HIGH,
        FilterKey.OVERDUE: lambda: is_overdue(task, now),
        FilterKey.TODAY: lambda: is_due_today(task, now),
    }
    return any(checks[key]() for key in filters if key in checks)


def _in_view(task: Task, status: TaskStatus, view_mode: ViewMode) -> bool:
    if view_mode == ViewMode.DONE:
        return task.completed
    if task.completed:
        return False
    return status.value == view_mode.value


def classify(tasks: Sequence[Task], view_state: ViewState, now: datetime | None = None) -> ClassifiedView:
    """Build the visible view model for the given tasks and view state.

    Args:
        tasks: The full task set for one owner
        view_state: View mode, search query and active filters
        now: Reference time for overdue/today filters (defaults to current UTC time)

    Returns:
        ClassifiedView with the sorted visible tasks, the same tasks grouped by
        area (every area present, possibly empty) and the status of every input task
    """
    now = now or datetime.now(UTC)
    if now.tzinfo is None:
        now = now.replace(tzinfo=UTC)
    statuses = compute_statuses(tasks)

    visible = [
        task
        for task in tasks
        if matches_search(task, view_state.search_query)
        and matches_filters(task, view_state.active_filters, now)
        and _in_view(task, statuses[task.id], view_state.view_mode)
    ]
    visible.sort(key=priority_sort_key)

    by_area: dict[Area, list[Task]] = {area: [] for area in Area}
    for task in visible:
        by_area[task.area].append(task)

    if view_state.view_mode == ViewMode.CURRENT:
        by_area = {area: group[: Constants.CURRENT_TASKS_PER_AREA] for area, group in by_area.items()}

    return ClassifiedView(visible=visible, by_area=by_area, statuses=statuses)
