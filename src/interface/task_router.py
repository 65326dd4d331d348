"""Task REST endpoints."""

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse

from src.core.config import constants
from src.domain.create_models import TaskCreate
from src.domain.task import TaskFilter
from src.domain.update_models import TaskReplace, TaskUpdate
from src.interface.responses import success_response
from src.services import task_service


router = APIRouter(prefix="/tasks", tags=["tasks"])


@router.get("")
async def list_tasks(task_filter: TaskFilter = Query(default=TaskFilter.ALL, alias="filter")) -> JSONResponse:
    """List tasks, newest first, optionally only active or completed ones."""
    tasks = await task_service.list_tasks(task_filter=task_filter)
    return success_response(tasks, count=len(tasks))


@router.get("/counts")
async def get_task_counts() -> JSONResponse:
    """Return task counts and completion progress."""
    counts = await task_service.get_task_counts()
    return success_response(counts)


@router.get("/{task_id}")
async def get_task(task_id: str) -> JSONResponse:
    """Get a single task by ID."""
    task = await task_service.get_task(task_id=task_id)
    return success_response(task)


@router.post("")
async def create_task(payload: TaskCreate) -> JSONResponse:
    """Create a new task."""
    task = await task_service.create_task(payload=payload)
    return success_response(task, status_code=constants.HTTP_CREATED)


@router.put("/{task_id}")
async def replace_task(task_id: str, payload: TaskReplace) -> JSONResponse:
    """Replace a task's title, description and status."""
    task = await task_service.replace_task(task_id=task_id, payload=payload)
    return success_response(task)


@router.patch("/{task_id}")
async def update_task(task_id: str, payload: TaskUpdate) -> JSONResponse:
    """Partially update a task (edit or mark complete/incomplete)."""
    task = await task_service.update_task(task_id=task_id, payload=payload)
    return success_response(task)


@router.post("/{task_id}/toggle")
async def toggle_task(task_id: str) -> JSONResponse:
    """Flip a task between pending and completed."""
    task = await task_service.toggle_task(task_id=task_id)
    return success_response(task)


@router.delete("/{task_id}")
async def delete_task(task_id: str) -> JSONResponse:
    """Delete a task."""
    await task_service.delete_task(task_id=task_id)
    return success_response({}, message="Task deleted successfully")
