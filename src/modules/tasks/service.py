"""Task service: permission-checked mutations, audit trail and notification fan-out."""

import logging
from typing import Any, Literal

from pydantic import BaseModel, ValidationError

from src.core import db_client
from src.core.db_client import sanitize_param
from src.core.errors import TaskValidationError
from src.core.logging import span
from src.domain.log import TaskLog
from src.domain.task import Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate
from src.modules.tasks import mutations
from src.services import audit_log_service, notification_service
from src.services.presence_registry import PresenceRegistry


logger = logging.getLogger(__name__)

COLLECTION = "tasks"

TaskScopeFilter = Literal["all", "created", "assigned"]


def _parse_input(model: type[BaseModel], data: dict[str, Any]) -> Any:
    """Validate request data, converting pydantic errors into TaskValidationError."""
    try:
        return model.model_validate(data)
    except ValidationError as e:
        first = e.errors()[0]
        location = ".".join(str(part) for part in first["loc"])
        message = first["msg"].removeprefix("Value error, ")
        if first["type"] == "missing" and location == "title":
            message = "Title is required"
        elif location:
            message = f"{location}: {message}"
        raise TaskValidationError(message) from e


async def _get_task_record(task_id: str) -> Task:
    try:
        record = await db_client.get_record(collection=COLLECTION, record_id=task_id)
    except db_client.RecordNotFoundError:
        raise db_client.RecordNotFoundError("Task not found") from None
    return Task(**record)


async def _write_audit(task_id: str, plan: mutations.TaskMutationPlan) -> None:
    for entry in plan.audit_entries:
        await audit_log_service.append_entry(
            task_id=task_id,
            action=entry.action,
            actor_id=entry.actor_id,
            details=entry.details,
        )


async def create_task(*, actor_id: str, data: dict[str, Any], presence: PresenceRegistry) -> Task:
    """Create a task owned by the actor.

    Args:
        actor_id: Authenticated user creating the task (becomes creator)
        data: Request fields (title required; others default)
        presence: Registry used for live notification delivery

    Returns:
        Created task

    Raises:
        TaskValidationError: If the input is missing or invalid
        db_client.DatabaseError: If the task cannot be stored
    """
    with span("task_service.create_task"):
        task_in = _parse_input(TaskCreate, data)
        plan = mutations.plan_create(actor_id=actor_id, task_in=task_in)

        record = await db_client.create_record(collection=COLLECTION, data=plan.changes)
        task = Task(**record)
        logger.info("Created task %s '%s' (assigned to: %s)", task.id, task.title, task.assignee_id or "unassigned")

        await _write_audit(task.id, plan)
        await notification_service.dispatch_all(presence=presence, targets=plan.notifications, task_id=task.id)

        return task


async def update_task(
    *,
    actor_id: str,
    task_id: str,
    data: dict[str, Any],
    presence: PresenceRegistry,
) -> Task:
    """Apply a partial update to a task.

    Only fields present in ``data`` are applied. Concurrent updates are
    last-write-wins per field.

    Args:
        actor_id: Authenticated user making the change
        task_id: Task ID
        data: Fields to change
        presence: Registry used for live notification delivery

    Returns:
        Updated task

    Raises:
        TaskValidationError: If the input is invalid
        db_client.RecordNotFoundError: If the task does not exist
        ForbiddenError: If the actor is neither creator nor assignee
    """
    with span("task_service.update_task"):
        task = await _get_task_record(task_id)
        mutations.ensure_can_edit(task, actor_id)
        update = _parse_input(TaskUpdate, data)
        plan = mutations.plan_update(actor_id=actor_id, task=task, update=update)

        if plan.changes:
            record = await db_client.update_record(collection=COLLECTION, record_id=task_id, data=plan.changes)
            task = Task(**record)

        logger.info("Updated task %s by %s (fields: %s)", task_id, actor_id, sorted(plan.changes) or "none")

        await _write_audit(task_id, plan)
        await notification_service.dispatch_all(presence=presence, targets=plan.notifications, task_id=task_id)

        return task


async def delete_task(*, actor_id: str, task_id: str, presence: PresenceRegistry) -> None:
    """Delete a task and its audit trail (creator only).

    The assignee is notified before any data is removed. Audit entries are
    deleted before the task so none outlive it.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        ForbiddenError: If the actor is not the creator
    """
    with span("task_service.delete_task"):
        task = await _get_task_record(task_id)
        plan = mutations.plan_delete(actor_id=actor_id, task=task)

        await notification_service.dispatch_all(presence=presence, targets=plan.notifications, task_id=task_id)

        removed_logs = await audit_log_service.delete_for_task(task_id=task_id)
        await db_client.delete_record(collection=COLLECTION, record_id=task_id)

        logger.info("Deleted task %s by %s (%d log entries removed)", task_id, actor_id, removed_logs)


async def get_task(*, actor_id: str, task_id: str) -> Task:
    """Get a task the actor created or is assigned to.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        ForbiddenError: If the actor has no access
    """
    with span("task_service.get_task"):
        task = await _get_task_record(task_id)
        mutations.ensure_can_view(task, actor_id)
        return task


async def get_task_logs(*, actor_id: str, task_id: str) -> list[TaskLog]:
    """Get the audit trail for a task, newest first.

    Raises:
        db_client.RecordNotFoundError: If the task does not exist
        ForbiddenError: If the actor has no access
    """
    with span("task_service.get_task_logs"):
        task = await _get_task_record(task_id)
        mutations.ensure_can_view(task, actor_id)
        return await audit_log_service.list_for_task(task_id=task_id)


async def list_my_tasks(
    *,
    actor_id: str,
    scope: TaskScopeFilter = "all",
    status: TaskStatus | None = None,
    priority: TaskPriority | None = None,
    query: str | None = None,
    page: int = 1,
    per_page: int = 50,
) -> list[Task]:
    """List tasks the actor created and/or is assigned to.

    Args:
        actor_id: Authenticated user
        scope: "created", "assigned", or "all" (either)
        status: Optional status filter
        priority: Optional priority filter
        query: Optional case-insensitive search over title and description
        page: Page number (1-indexed)
        per_page: Page size

    Returns:
        Matching tasks, newest first
    """
    with span("task_service.list_my_tasks"):
        actor = sanitize_param(actor_id)
        filters = []

        if scope == "created":
            filters.append(f'creator_id = "{actor}"')
        elif scope == "assigned":
            filters.append(f'assignee_id = "{actor}"')
        else:
            filters.append(f'(creator_id = "{actor}" || assignee_id = "{actor}")')

        if status:
            filters.append(f'status = "{sanitize_param(status)}"')

        if priority:
            filters.append(f'priority = "{sanitize_param(priority)}"')

        search = sanitize_param(query).strip() if query else ""
        if search:
            filters.append(f'(title ~ "{search}" || description ~ "{search}")')

        filter_query = " && ".join(filters)
        records = await db_client.list_records(
            collection=COLLECTION,
            filter_query=filter_query,
            sort="-created",
            page=page,
            per_page=per_page,
        )

        logger.debug("Retrieved %d tasks with filters: %s", len(records), filter_query)
        return [Task(**record) for record in records]
