"""Bulk operations over selected tasks.

Batches are best-effort, not atomic: one request per task is issued
concurrently and every request runs to completion. A failure on one task
never rolls back the others; the result lists which tasks succeeded and why
the others failed, so the caller can retry just those.

The selection is cleared after every batch, including partially failed ones.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from datetime import datetime

from src.core.errors import TaskNotFoundError
from src.core.logging import span
from src.domain.view import ViewState
from src.interface.notifier import Notifier, notify_safely
from src.models.service_models import BulkResult, MutationResult
from src.services import export_service
from src.services.task_store import TaskStore


logger = logging.getLogger(__name__)


class BulkOperationCoordinator:
    """Applies batch mutations across selected tasks."""

    def __init__(self, *, store: TaskStore, view_state: ViewState, notifier: Notifier | None = None) -> None:
        self._store = store
        self._view_state = view_state
        self._notifier = notifier

    async def _apply(
        self,
        operation: str,
        task_ids: Iterable[str],
        request: Callable[[str], Awaitable[MutationResult]],
    ) -> BulkResult:
        ids = list(dict.fromkeys(task_ids))
        failed: dict[str, str] = {}

        known = []
        for task_id in ids:
            if self._store.get(task_id) is None:
                failed[task_id] = str(TaskNotFoundError(task_id))
            else:
                known.append(task_id)

        outcomes = await asyncio.gather(*(request(task_id) for task_id in known), return_exceptions=True)

        succeeded = []
        for task_id, outcome in zip(known, outcomes, strict=True):
            if isinstance(outcome, Exception):
                failed[task_id] = str(outcome)
            elif outcome.success:
                succeeded.append(task_id)
            else:
                failed[task_id] = outcome.error or "Unknown error"

        self._view_state.clear_selection()

        result = BulkResult(operation=operation, succeeded=succeeded, failed=failed)
        logger.info(
            "Bulk %s finished (%d successful, %d failed)",
            operation,
            result.success_count,
            len(failed),
        )
        return result

    async def complete(self, task_ids: Iterable[str]) -> BulkResult:
        """Mark every given task completed."""
        with span("bulk_service.complete"):
            result = await self._apply("complete", task_ids, self._store.request_complete)
            self._announce(result, "Bulk Complete", "Completed")
            return result

    async def delete(self, task_ids: Iterable[str]) -> BulkResult:
        """Delete every given task."""
        with span("bulk_service.delete"):
            result = await self._apply("delete", task_ids, self._store.request_delete)
            self._announce(result, "Bulk Delete", "Deleted")
            return result

    async def clear_all(self) -> BulkResult:
        """Delete every task in the mirror."""
        with span("bulk_service.clear_all"):
            return await self._apply("clear_all", [task.id for task in self._store.tasks], self._store.request_delete)

    def export_rows(self, task_ids: Iterable[str]) -> list[list[str]]:
        """Export rows for the given tasks. Pure read; no store interaction."""
        return export_service.export_rows(self._store.tasks, task_ids)

    def export_csv(self, task_ids: Iterable[str]) -> str:
        rows = self.export_rows(task_ids)
        notify_safely(self._notifier, "Export Complete!", f"Exported {len(rows)} selected tasks")
        return export_service.to_csv(export_service.EXPORT_COLUMNS, rows)

    def export_all_csv(self, now: datetime | None = None) -> str:
        rows = export_service.export_all_rows(self._store.tasks, now)
        return export_service.to_csv(export_service.FULL_EXPORT_COLUMNS, rows)

    def _announce(self, result: BulkResult, title: str, verb: str) -> None:
        if result.failed:
            notify_safely(
                self._notifier,
                f"{title} Incomplete",
                f"{verb} {result.success_count} tasks, {len(result.failed)} failed",
            )
        elif result.succeeded:
            notify_safely(self._notifier, f"{title} Success!", f"{verb} {result.success_count} tasks")
