"""Local mirror of the owner's tasks, reconciled from store snapshots.

Key Concepts:
- Snapshot: the store always delivers the owner's complete task collection.
  Applying one replaces the mirror wholesale, in receipt order.
- Mutation intents: create/update/delete are forwarded to the store and never
  touch the mirror. The mirror only changes when the next snapshot arrives,
  so a failed request can never leave local state inconsistent.
- Per-task serialization: requests for the same task ID run one at a time;
  requests for different tasks run concurrently.
"""

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import ValidationError

from src.core.errors import StoreError, TaskNotFoundError, TaskValidationError
from src.core.logging import span
from src.domain.create_models import TaskCreate
from src.domain.task import Task
from src.domain.update_models import TaskUpdate
from src.interface.task_backend import TaskBackend, Unsubscribe
from src.models.service_models import MutationResult


logger = logging.getLogger(__name__)

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


def _validation_message(error: ValidationError) -> str:
    return "; ".join(f"{'.'.join(str(p) for p in e['loc']) or 'task'}: {e['msg']}" for e in error.errors())


class TaskStore:
    """Authoritative local mirror of one owner's tasks."""

    def __init__(self, *, backend: TaskBackend, owner_id: str, clock: Clock = utc_now) -> None:
        self._backend = backend
        self._owner_id = owner_id
        self._clock = clock
        self._tasks: list[Task] = []
        self._locks: dict[str, asyncio.Lock] = {}
        self._unsubscribe: Unsubscribe | None = None
        self._in_flight = 0
        self._awaiting_first_snapshot = False
        self._snapshot_count = 0
        self.last_error: Exception | None = None

    @property
    def owner_id(self) -> str:
        return self._owner_id

    @property
    def tasks(self) -> list[Task]:
        """Current mirror, newest first. Returns a copy."""
        return list(self._tasks)

    @property
    def syncing(self) -> bool:
        """True while waiting for the first snapshot or a mutation request."""
        return self._awaiting_first_snapshot or self._in_flight > 0

    @property
    def snapshot_count(self) -> int:
        return self._snapshot_count

    def get(self, task_id: str) -> Task | None:
        return next((task for task in self._tasks if task.id == task_id), None)

    def require(self, task_id: str) -> Task:
        """Return the mirrored task or raise TaskNotFoundError."""
        task = self.get(task_id)
        if task is None:
            raise TaskNotFoundError(task_id)
        return task

    async def start(self) -> None:
        """Subscribe to the owner's task snapshots."""
        if self._unsubscribe is not None:
            return
        self._awaiting_first_snapshot = True
        try:
            self._unsubscribe = await self._backend.subscribe(self._owner_id, self.apply_remote_snapshot, self._on_error)
        except StoreError as e:
            self._on_error(e)
            raise

    def stop(self) -> None:
        """Unsubscribe and clear the mirror."""
        if self._unsubscribe is not None:
            self._unsubscribe()
            self._unsubscribe = None
        self._tasks = []
        self._awaiting_first_snapshot = False

    def apply_remote_snapshot(self, records: list[dict[str, Any]] | list[Task]) -> None:
        """Replace the mirror with a complete snapshot from the store."""
        tasks: list[Task] = []
        for record in records:
            if isinstance(record, Task):
                tasks.append(record)
                continue
            try:
                tasks.append(Task.model_validate(record))
            except ValidationError as e:
                logger.warning("Dropping invalid task in snapshot: %s", _validation_message(e))

        tasks.sort(key=lambda task: task.created_at, reverse=True)
        self._tasks = tasks
        self._snapshot_count += 1
        self._awaiting_first_snapshot = False
        self.last_error = None
        logger.debug("Applied snapshot with %d tasks", len(tasks))

    def _on_error(self, error: Exception) -> None:
        self.last_error = error
        self._awaiting_first_snapshot = False
        logger.error("Task subscription error for owner %s: %s", self._owner_id, error)

    def _lock_for(self, task_id: str) -> asyncio.Lock:
        return self._locks.setdefault(task_id, asyncio.Lock())

    async def _run(self, task_id: str | None, operation: str, call: Callable[[], Awaitable[Any]]) -> MutationResult:
        """Await a store call, converting StoreError into a failed result."""
        self._in_flight += 1
        try:
            result = await call()
        except StoreError as e:
            logger.error("Store %s failed for task %s: %s", operation, task_id, e)
            return MutationResult(task_id=task_id, success=False, error=str(e))
        finally:
            self._in_flight -= 1

        created_id = result if isinstance(result, str) else task_id
        logger.info("Store %s succeeded for task %s", operation, created_id)
        return MutationResult(task_id=created_id, success=True)

    async def request_create(self, fields: dict[str, Any] | TaskCreate) -> MutationResult:
        """Validate and forward a new task to the store.

        Raises:
            TaskValidationError: If title or deadline is missing; no store call is made
        """
        with span("task_store.request_create"):
            try:
                payload = fields if isinstance(fields, TaskCreate) else TaskCreate.model_validate(fields)
            except ValidationError as e:
                raise TaskValidationError(_validation_message(e)) from e

            data = {
                **payload.model_dump(mode="json"),
                "completed": False,
                "created_at": self._clock().isoformat(),
            }
            return await self._run(None, "create", lambda: self._backend.create(self._owner_id, data))

    async def request_update(self, task_id: str, fields: dict[str, Any] | TaskUpdate) -> MutationResult:
        """Forward a partial update to the store.

        Completion changes keep completed_at consistent: it is stamped when a
        task becomes completed and cleared when it is reopened.

        Raises:
            TaskNotFoundError: If the task is not in the mirror
            TaskValidationError: If the update payload is invalid
        """
        with span("task_store.request_update"):
            self.require(task_id)
            try:
                update = fields if isinstance(fields, TaskUpdate) else TaskUpdate.model_validate(fields)
            except ValidationError as e:
                raise TaskValidationError(_validation_message(e)) from e

            data = update.to_fields()
            if not data:
                msg = "Empty update payload"
                raise TaskValidationError(msg)

            async with self._lock_for(task_id):
                return await self._update_locked(task_id, data)

    async def _update_locked(self, task_id: str, data: dict[str, Any]) -> MutationResult:
        # Caller holds the task's lock
        if data.get("completed") is True:
            data["completed_at"] = self._clock().isoformat()
        elif data.get("completed") is False:
            data["completed_at"] = None
        return await self._run(task_id, "update", lambda: self._backend.update(task_id, data))

    async def request_toggle(self, task_id: str) -> MutationResult:
        """Flip a task between completed and open.

        The current state is read under the task's lock, so concurrent toggles
        apply one after the other.
        """
        with span("task_store.request_toggle"):
            self.require(task_id)
            async with self._lock_for(task_id):
                task = self.require(task_id)
                return await self._update_locked(task_id, {"completed": not task.completed})

    async def request_complete(self, task_id: str) -> MutationResult:
        return await self.request_update(task_id, TaskUpdate(completed=True))

    async def request_delete(self, task_id: str) -> MutationResult:
        """Forward a delete to the store.

        Raises:
            TaskNotFoundError: If the task is not in the mirror
        """
        with span("task_store.request_delete"):
            self.require(task_id)
            async with self._lock_for(task_id):
                result = await self._run(task_id, "delete", lambda: self._backend.delete(task_id))
            if result.success:
                self._locks.pop(task_id, None)
            return result
