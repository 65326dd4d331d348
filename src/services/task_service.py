"""Task service for CRUD operations and completion tracking."""

import logging
import random
from datetime import datetime
from typing import Any

from src.core import db_client
from src.core.config import Constants, settings
from src.core.errors import ErrorCode, NotFoundError, StoreError
from src.core.logging import span
from src.domain.create_models import TaskCreate
from src.domain.task import Task, TaskFilter, TaskStatus
from src.domain.update_models import TaskReplace, TaskUpdate
from src.models.service_models import RecomputeResult, TaskCounts
from src.services import stats_service


logger = logging.getLogger(__name__)

_COLLECTION = "tasks"

_FILTER_QUERIES = {
    TaskFilter.ALL: "",
    TaskFilter.ACTIVE: f'status = "{TaskStatus.PENDING.value}"',
    TaskFilter.COMPLETED: f'status = "{TaskStatus.COMPLETED.value}"',
}

_points_rng = random.Random(settings.points_seed)  # noqa: S311 - game points, not security


def generate_points() -> int:
    """Draw a point value for a new task from [points_min, points_max]."""
    return _points_rng.randint(settings.points_min, settings.points_max)


def reseed_points(seed: int | None) -> None:
    """Reseed the points generator (used for reproducible runs)."""
    _points_rng.seed(seed)


def _completion_fields(*, old_status: TaskStatus | None, new_status: TaskStatus) -> dict[str, Any]:
    """Return the completed_at change implied by a status transition.

    Entering completed stamps the time, leaving it clears the stamp, and staying
    in the same state leaves the stored value alone.
    """
    if new_status == TaskStatus.COMPLETED and old_status != TaskStatus.COMPLETED:
        return {"completed_at": db_client.utc_now_iso()}
    if new_status == TaskStatus.PENDING:
        return {"completed_at": None}
    return {}


async def _get_task_record(task_id: str) -> dict[str, Any]:
    try:
        return await db_client.get_record(collection=_COLLECTION, record_id=task_id)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("Task not found", code=ErrorCode.ERR_TASK_NOT_FOUND) from e


async def load_all_tasks(*, task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
    """Load every matching task, newest-created first, fetching in chunks."""
    filter_query = _FILTER_QUERIES[task_filter]
    tasks: list[Task] = []
    page = 1
    while True:
        records = await db_client.list_records(
            collection=_COLLECTION,
            page=page,
            per_page=Constants.TASK_FETCH_CHUNK_SIZE,
            filter_query=filter_query,
            sort="-created_at",
        )
        tasks.extend(Task.model_validate(record) for record in records)
        if len(records) < Constants.TASK_FETCH_CHUNK_SIZE:
            return tasks
        page += 1


async def refresh_statistics(*, now: datetime | None = None) -> RecomputeResult:
    """Recompute the statistics aggregate from the full task set.

    The task set is read while the statistics lock is held, so concurrent
    refreshes persist in the order their snapshots were taken.
    """
    with span("task_service.refresh_statistics"):
        return await stats_service.recompute_from(load_all_tasks, now=now)


async def _refresh_after_mutation(task_id: str) -> None:
    """Recompute statistics after a task change; failures do not undo the change."""
    try:
        await refresh_statistics()
    except StoreError as e:
        logger.warning("Failed to refresh statistics after change to task %s: %s", task_id, e)


async def list_tasks(*, task_filter: TaskFilter = TaskFilter.ALL) -> list[Task]:
    """List tasks, newest-created first.

    Args:
        task_filter: all, active (pending only), or completed

    Returns:
        List of Task objects
    """
    with span("task_service.list_tasks"):
        tasks = await load_all_tasks(task_filter=task_filter)
        logger.info("Listed %d tasks (filter=%s)", len(tasks), task_filter)
        return tasks


async def get_task(*, task_id: str) -> Task:
    """Get a single task.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.get_task"):
        return Task.model_validate(await _get_task_record(task_id))


async def create_task(*, payload: TaskCreate) -> Task:
    """Create a task and refresh statistics.

    A task created without points receives a generated value. A task created
    directly as completed is stamped as completed now.
    """
    with span("task_service.create_task"):
        status = payload.status or TaskStatus.PENDING
        data = {
            "title": payload.title,
            "description": payload.description or "",
            "status": status.value,
            "points": payload.points if payload.points is not None else generate_points(),
            "completed_at": None,
            **_completion_fields(old_status=None, new_status=status),
        }

        record = await db_client.create_record(collection=_COLLECTION, data=data)
        task = Task.model_validate(record)
        logger.info("Created task '%s' (%s, %d points)", task.title, task.id, task.points)

        await _refresh_after_mutation(task.id)
        return task


async def replace_task(*, task_id: str, payload: TaskReplace) -> Task:
    """Fully replace a task's editable fields.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.replace_task"):
        current = Task.model_validate(await _get_task_record(task_id))
        status = payload.status or TaskStatus.PENDING

        data = {
            "title": payload.title,
            "description": payload.description or "",
            "status": status.value,
            **_completion_fields(old_status=current.status, new_status=status),
        }
        task = await _update(task_id, data)
        logger.info("Replaced task %s", task_id)

        await _refresh_after_mutation(task_id)
        return task


async def update_task(*, task_id: str, payload: TaskUpdate) -> Task:
    """Apply a partial update to a task.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.update_task"):
        current = Task.model_validate(await _get_task_record(task_id))
        changes = payload.changes()
        if not changes:
            return current

        data: dict[str, Any] = {}
        if "title" in changes:
            data["title"] = changes["title"]
        if "description" in changes:
            data["description"] = changes["description"]
        if "status" in changes:
            new_status = TaskStatus(changes["status"])
            data["status"] = new_status.value
            data.update(_completion_fields(old_status=current.status, new_status=new_status))

        task = await _update(task_id, data)
        logger.info("Updated task %s: %s", task_id, ", ".join(sorted(data)))

        await _refresh_after_mutation(task_id)
        return task


async def toggle_task(*, task_id: str) -> Task:
    """Flip a task between pending and completed.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.toggle_task"):
        current = Task.model_validate(await _get_task_record(task_id))
        new_status = TaskStatus.PENDING if current.is_completed else TaskStatus.COMPLETED

        data = {
            "status": new_status.value,
            **_completion_fields(old_status=current.status, new_status=new_status),
        }
        task = await _update(task_id, data)
        logger.info("Toggled task %s to %s", task_id, new_status)

        await _refresh_after_mutation(task_id)
        return task


async def delete_task(*, task_id: str) -> None:
    """Delete a task and refresh statistics.

    Raises:
        NotFoundError: If the task does not exist
    """
    with span("task_service.delete_task"):
        try:
            await db_client.delete_record(collection=_COLLECTION, record_id=task_id)
        except db_client.RecordNotFoundError as e:
            raise NotFoundError("Task not found", code=ErrorCode.ERR_TASK_NOT_FOUND) from e

        logger.info("Deleted task %s", task_id)
        await _refresh_after_mutation(task_id)


async def get_task_counts() -> TaskCounts:
    """Count tasks by state and compute the completion percentage."""
    with span("task_service.get_task_counts"):
        completed = sum(1 for task in tasks if task.is_completed)
        return TaskCounts(
            all=len(tasks),
            active=len(tasks) - completed,
            completed=completed,
            progress=stats_service.calculate_progress(completed, len(tasks)),
        )


async def _update(task_id: str, data: dict[str, Any]) -> Task:
    try:
        record = await db_client.update_record(collection=_COLLECTION, record_id=task_id, data=data)
    except db_client.RecordNotFoundError as e:
        raise NotFoundError("Task not found", code=ErrorCode.ERR_TASK_NOT_FOUND) from e
    return Task.model_validate(record)
