"""JSON API over one owner's tracker session."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Query, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from src.core.config import constants, settings
from src.core.errors import (
    FocusboardError,
    StoreError,
    TaskNotFoundError,
    TaskValidationError,
    TimerStateError,
    classify_error_with_response,
)
from src.core.logging import log_with_context
from src.domain.timer import TimerStatus
from src.domain.view import FilterKey, ViewMode
from src.models.service_models import BulkResult, MutationResult, TaskSummary
from src.services import export_service
from src.services.session_service import TrackerSession, session_registry


logger = logging.getLogger(__name__)

router = APIRouter(tags=["tasks"])

_ERROR_STATUS: list[tuple[type[FocusboardError], int]] = [
    (TaskValidationError, constants.HTTP_UNPROCESSABLE),
    (TaskNotFoundError, constants.HTTP_NOT_FOUND),
    (TimerStateError, constants.HTTP_CONFLICT),
    (StoreError, constants.HTTP_BAD_GATEWAY),
]


class BulkRequest(BaseModel):
    """Tasks to act on; the current selection when omitted."""

    task_ids: list[str] | None = Field(default=None, description="Task IDs, defaults to the selection")


async def get_tracker_session(x_owner_id: str | None = Header(default=None)) -> TrackerSession:
    """Resolve the caller's session from the X-Owner-Id header."""
    return await session_registry.get(x_owner_id or settings.owner_id)


async def focusboard_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """Render a FocusboardError as a structured ErrorResponse."""
    response = classify_error_with_response(exc)
    status_code = next((code for error_type, code in _ERROR_STATUS if isinstance(exc, error_type)), 500)
    log_with_context(
        logger,
        "warning",
        "request_failed",
        path=request.url.path,
        code=response.code,
        error=str(exc),
    )
    return JSONResponse(status_code=status_code, content=response.model_dump(mode="json"))


def _raise_on_failure(result: MutationResult) -> MutationResult:
    if not result.success:
        raise StoreError(result.error or "Store request failed")
    return result


def _csv_response(content: str, filename: str) -> Response:
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/tasks/view")
async def view_tasks(
    view_mode: ViewMode | None = None,
    q: str | None = None,
    filters: list[FilterKey] | None = Query(default=None),
    session: TrackerSession = Depends(get_tracker_session),
) -> dict[str, Any]:
    """Classify the owner's tasks with the given view settings.

    Query parameters update the session's view state, so they persist for
    later requests until changed.
    """
    state = session.view_state
    if view_mode is not None:
        state.view_mode = view_mode
    if q is not None:
        state.search_query = q
    if filters is not None:
        state.toggle_filter(FilterKey.ALL)
        for key in filters:
            state.toggle_filter(key)

    classified = session.view()
    return {
        **classified.model_dump(mode="json"),
        "view_mode": state.view_mode,
        "search_query": state.search_query,
        "filters": sorted(state.active_filters),
        "selection": sorted(state.selection),
        "syncing": session.store.syncing,
    }


@router.post("/tasks", status_code=201)
async def create_task(
    fields: dict[str, Any] = Body(...),
    session: TrackerSession = Depends(get_tracker_session),
) -> MutationResult:
    return _raise_on_failure(await session.store.request_create(fields))


@router.delete("/tasks")
async def clear_all_tasks(session: TrackerSession = Depends(get_tracker_session)) -> BulkResult:
    """Delete every task the owner has."""
    return await session.bulk.clear_all()


@router.post("/tasks/bulk/complete")
async def bulk_complete(
    payload: BulkRequest | None = None,
    session: TrackerSession = Depends(get_tracker_session),
) -> BulkResult:
    task_ids = payload.task_ids if payload and payload.task_ids is not None else session.view_state.selection
    return await session.bulk.complete(task_ids)


@router.post("/tasks/bulk/delete")
async def bulk_delete(
    payload: BulkRequest | None = None,
    session: TrackerSession = Depends(get_tracker_session),
) -> BulkResult:
    task_ids = payload.task_ids if payload and payload.task_ids is not None else session.view_state.selection
    return await session.bulk.delete(task_ids)


@router.post("/tasks/export")
async def export_selected(
    payload: BulkRequest | None = None,
    session: TrackerSession = Depends(get_tracker_session),
) -> Response:
    """CSV of the given (or selected) tasks."""
    task_ids = payload.task_ids if payload and payload.task_ids is not None else session.view_state.selection
    content = session.bulk.export_csv(task_ids)
    return _csv_response(content, export_service.export_filename(owner_id=session.owner_id, selected=True))


@router.get("/tasks/export")
async def export_all(session: TrackerSession = Depends(get_tracker_session)) -> Response:
    """CSV of every task, with completion date and deadline distance."""
    content = session.bulk.export_all_csv()
    return _csv_response(content, export_service.export_filename(owner_id=session.owner_id, selected=False))


@router.get("/tasks/selection")
async def get_selection(session: TrackerSession = Depends(get_tracker_session)) -> dict[str, list[str]]:
    session.view()
    return {"selection": sorted(session.view_state.selection)}


@router.post("/tasks/selection/all")
async def select_visible(session: TrackerSession = Depends(get_tracker_session)) -> dict[str, list[str]]:
    """Select every task in the current view."""
    session.view_state.select_all(session.view().visible_ids)
    return {"selection": sorted(session.view_state.selection)}


@router.post("/tasks/selection/{task_id}/toggle")
async def toggle_selected(
    task_id: str,
    session: TrackerSession = Depends(get_tracker_session),
) -> dict[str, list[str]]:
    """Toggle one task's selection. Tasks outside the current view are never kept selected."""
    session.store.require(task_id)
    session.view_state.toggle_selection(task_id)
    session.view()
    return {"selection": sorted(session.view_state.selection)}


@router.delete("/tasks/selection")
async def clear_selection(session: TrackerSession = Depends(get_tracker_session)) -> dict[str, list[str]]:
    session.view_state.clear_selection()
    return {"selection": []}


@router.patch("/tasks/{task_id}")
async def update_task(
    task_id: str,
    fields: dict[str, Any] = Body(...),
    session: TrackerSession = Depends(get_tracker_session),
) -> MutationResult:
    return _raise_on_failure(await session.store.request_update(task_id, fields))


@router.post("/tasks/{task_id}/toggle")
async def toggle_task(task_id: str, session: TrackerSession = Depends(get_tracker_session)) -> MutationResult:
    return _raise_on_failure(await session.store.request_toggle(task_id))


@router.delete("/tasks/{task_id}")
async def delete_task(task_id: str, session: TrackerSession = Depends(get_tracker_session)) -> MutationResult:
    return _raise_on_failure(await session.store.request_delete(task_id))


@router.get("/timer")
async def timer_status(session: TrackerSession = Depends(get_tracker_session)) -> TimerStatus:
    return session.timer.status()


@router.post("/timer/{task_id}/start")
async def start_timer(task_id: str, session: TrackerSession = Depends(get_tracker_session)) -> TimerStatus:
    if not await session.start_timer(task_id):
        raise TaskNotFoundError(task_id)
    return session.timer.status()


@router.post("/timer/{task_id}/stop")
async def stop_timer(task_id: str, session: TrackerSession = Depends(get_tracker_session)) -> dict[str, Any]:
    ended = await session.stop_timer(task_id)
    return {
        "task_id": ended.task_id,
        "elapsed_seconds": ended.elapsed.total_seconds(),
        "total_seconds": session.ledger.get(task_id).total_seconds(),
    }


@router.get("/metrics")
async def metrics(session: TrackerSession = Depends(get_tracker_session)) -> TaskSummary:
    return session.summary()
