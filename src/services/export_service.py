"""CSV export of tasks.

Rows are plain lists of strings so they can be rendered by any tabular
writer. to_csv() uses the csv module with minimal quoting: a field holding a
comma, a double quote or a newline is wrapped in quotes with inner quotes
doubled, which spreadsheet tools read back verbatim.
"""

import csv
import io
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime

from src.core.config import Constants
from src.domain.task import Task, TaskStatus
from src.services import analytics_service, classification_service


EXPORT_COLUMNS = [
    "ID",
    "Title",
    "Description",
    "Area",
    "Priority",
    "Deadline",
    "Status",
    "Completed",
    "Created At",
    "TAT",
]

FULL_EXPORT_COLUMNS = [
    "ID",
    "Title",
    "Description",
    "Area",
    "Priority",
    "Deadline",
    "Status",
    "Completed",
    "Created At",
    "Completed At",
    "TAT",
    "Days Until Deadline",
]


def _common_fields(task: Task, statuses: dict[str, TaskStatus]) -> dict[str, str]:
    status = statuses.get(task.id, TaskStatus.PENDING)
    return {
        "ID": task.id,
        "Title": task.title,
        "Description": task.description,
        "Area": task.area.value,
        "Priority": task.priority.value,
        "Deadline": task.deadline or "",
        "Status": status.label,
        "Completed": "Yes" if task.completed else "No",
        "Created At": task.created_at.date().isoformat(),
        "TAT": analytics_service.turnaround_time(task) or analytics_service.NOT_APPLICABLE,
    }


def export_rows(tasks: Sequence[Task], task_ids: Iterable[str]) -> list[list[str]]:
    """Rows for the selected tasks, in mirror order, with EXPORT_COLUMNS.

    Unknown IDs are skipped.
    """
    wanted = set(task_ids)
    statuses = classification_service.compute_statuses(tasks)
    rows = []
    for task in tasks:
        if task.id in wanted:
            fields = _common_fields(task, statuses)
            rows.append([fields[column] for column in EXPORT_COLUMNS])
    return rows


def export_all_rows(tasks: Sequence[Task], now: datetime | None = None) -> list[list[str]]:
    """Rows for every task with FULL_EXPORT_COLUMNS."""
    now = now or datetime.now(UTC)
    statuses = classification_service.compute_statuses(tasks)
    rows = []
    for task in tasks:
        fields = _common_fields(task, statuses)
        fields["Completed At"] = (
            task.completed_at.date().isoformat()
            if task.completed and task.completed_at
            else analytics_service.NOT_APPLICABLE
        )
        fields["Days Until Deadline"] = analytics_service.days_until_deadline(task, now)
        rows.append([fields[column] for column in FULL_EXPORT_COLUMNS])
    return rows


def to_csv(columns: Sequence[str], rows: Iterable[Sequence[str]]) -> str:
    """Render a header and rows as CSV text."""
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_MINIMAL, lineterminator="\n")
    writer.writerow(columns)
    writer.writerows(rows)
    return buffer.getvalue()


def parse_csv(text: str) -> list[list[str]]:
    """Parse CSV text produced by to_csv(), header included."""
    return list(csv.reader(io.StringIO(text)))


def export_filename(*, owner_id: str, selected: bool, now: datetime | None = None) -> str:
    today = (now or datetime.now(UTC)).date().isoformat()
    template = Constants.EXPORT_SELECTED_FILENAME if selected else Constants.EXPORT_ALL_FILENAME
    return template.format(owner=owner_id, date=today)
