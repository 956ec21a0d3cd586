"""Task store collaborator interface and its SQLite implementation.

The engine consumes the remote store only through ``TaskBackend``:
a long-lived subscription delivering full snapshots, plus async
create/update/delete calls that may fail.
"""

import logging
from collections.abc import Callable
from typing import Any, Protocol

from src.core import db_client
from src.core.errors import StoreError
from src.core.logging import span


logger = logging.getLogger(__name__)

SnapshotCallback = Callable[[list[dict[str, Any]]], None]
ErrorCallback = Callable[[Exception], None]
Unsubscribe = Callable[[], None]

_COLLECTION = "tasks"


class TaskBackend(Protocol):
    """Remote task store as seen by the engine."""

    async def subscribe(
        self, owner_id: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback
    ) -> Unsubscribe: ...

    async def create(self, owner_id: str, fields: dict[str, Any]) -> str: ...

    async def update(self, task_id: str, fields: dict[str, Any]) -> None: ...

    async def delete(self, task_id: str) -> None: ...


def _record_to_task_fields(record: dict[str, Any]) -> dict[str, Any]:
    """Convert a SQLite row into the field names used by the Task model."""
    return {**record, "completed": bool(record.get("completed"))}


class SQLiteTaskBackend:
    """TaskBackend over the local SQLite database.

    Every successful mutation re-publishes a full snapshot of the affected
    owner's tasks to that owner's subscribers.
    """

    def __init__(self, *, db_path: str | None = None) -> None:
        self._db_path = db_path
        self._listeners: dict[str, list[tuple[SnapshotCallback, ErrorCallback]]] = {}

    async def subscribe(self, owner_id: str, on_snapshot: SnapshotCallback, on_error: ErrorCallback) -> Unsubscribe:
        """Register a listener and deliver the current snapshot immediately."""
        listener = (on_snapshot, on_error)
        self._listeners.setdefault(owner_id, []).append(listener)
        logger.info("Subscribed to tasks", extra={"owner_id": owner_id})

        await self._publish(owner_id)

        def unsubscribe() -> None:
            listeners = self._listeners.get(owner_id, [])
            if listener in listeners:
                listeners.remove(listener)
                logger.info("Unsubscribed from tasks", extra={"owner_id": owner_id})

        return unsubscribe

    async def create(self, owner_id: str, fields: dict[str, Any]) -> str:
        with span("task_backend.create"):
            try:
                record = await db_client.create_record(
                    collection=_COLLECTION,
                    data={**fields, "owner_id": owner_id},
                    db_path=self._db_path,
                )
            except (db_client.DatabaseError, ValueError) as e:
                msg = f"Failed to create task: {e}"
                raise StoreError(msg) from e

            await self._publish(owner_id)
            return record["id"]

    async def update(self, task_id: str, fields: dict[str, Any]) -> None:
        with span("task_backend.update"):
            try:
                record = await db_client.update_record(
                    collection=_COLLECTION,
                    record_id=task_id,
                    data=fields,
                    db_path=self._db_path,
                )
            except (db_client.DatabaseError, db_client.RecordNotFoundError, ValueError) as e:
                msg = f"Failed to update task {task_id}: {e}"
                raise StoreError(msg) from e

            await self._publish(record["owner_id"])

    async def delete(self, task_id: str) -> None:
        with span("task_backend.delete"):
            try:
                record = await db_client.get_record(collection=_COLLECTION, record_id=task_id, db_path=self._db_path)
                await db_client.delete_record(collection=_COLLECTION, record_id=task_id, db_path=self._db_path)
            except (db_client.DatabaseError, db_client.RecordNotFoundError, ValueError) as e:
                msg = f"Failed to delete task {task_id}: {e}"
                raise StoreError(msg) from e

            await self._publish(record["owner_id"])

    async def _publish(self, owner_id: str) -> None:
        """Send a full snapshot of the owner's tasks to every listener."""
        listeners = list(self._listeners.get(owner_id, []))
        if not listeners:
            return

        try:
            records = await db_client.list_records(
                collection=_COLLECTION,
                filters={"owner_id": owner_id},
                db_path=self._db_path,
            )
        except db_client.DatabaseError as e:
            logger.error("Failed to load snapshot", extra={"owner_id": owner_id, "error": str(e)})
            for _, on_error in listeners:
                on_error(StoreError(str(e)))
            return

        snapshot = [_record_to_task_fields(record) for record in records]
        for on_snapshot, _ in listeners:
            on_snapshot(snapshot)
