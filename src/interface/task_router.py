"""Task HTTP endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, Body, Query

from src.domain.log import TaskLog
from src.domain.task import Task, TaskPriority, TaskStatus
from src.interface.deps import ActorId, Presence
from src.modules.tasks import service as task_service


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/tasks", tags=["tasks"])


@router.post("")
async def create_task(actor_id: ActorId, presence: Presence, payload: dict[str, Any] = Body(...)) -> dict[str, Any]:
    """Create a task owned by the caller."""
    task = await task_service.create_task(actor_id=actor_id, data=payload, presence=presence)
    return {"success": True, "task": task}


@router.get("/my-tasks")
async def list_my_tasks(
    actor_id: ActorId,
    filter: str = Query(default="all"),  # noqa: A002 - public query parameter name
    status: str = Query(default="all"),
    priority: str = Query(default="all"),
    q: str | None = Query(default=None),
) -> list[Task]:
    """List tasks the caller created or is assigned to, with optional filters."""
    scope = filter if filter in ("created", "assigned") else "all"
    status_filter = TaskStatus(status) if status in TaskStatus else None
    priority_filter = TaskPriority(priority) if priority in TaskPriority else None
    return await task_service.list_my_tasks(
        actor_id=actor_id,
        scope=scope,
        status=status_filter,
        priority=priority_filter,
        query=q,
    )


@router.get("/{task_id}/logs")
async def get_task_logs(task_id: str, actor_id: ActorId) -> list[TaskLog]:
    """Get the audit trail for a task, newest first."""
    return await task_service.get_task_logs(actor_id=actor_id, task_id=task_id)


@router.get("/{task_id}")
async def get_task(task_id: str, actor_id: ActorId) -> Task:
    """Get a single task."""
    return await task_service.get_task(actor_id=actor_id, task_id=task_id)


@router.put("/{task_id}")
async def update_task(
    task_id: str,
    actor_id: ActorId,
    presence: Presence,
    payload: dict[str, Any] = Body(...),
) -> dict[str, Any]:
    """Apply a partial update to a task."""
    task = await task_service.update_task(actor_id=actor_id, task_id=task_id, data=payload, presence=presence)
    return {"success": True, "task": task}


@router.delete("/{task_id}")
async def delete_task(task_id: str, actor_id: ActorId, presence: Presence) -> dict[str, Any]:
    """Delete a task (creator only)."""
    await task_service.delete_task(actor_id=actor_id, task_id=task_id, presence=presence)
    return {"success": True, "message": "Task deleted successfully"}
