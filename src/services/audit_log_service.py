"""Append-only audit trail of actions performed on tasks."""

import logging

from src.core import db_client
from src.core.config import Constants
from src.core.db_client import sanitize_param
from src.core.logging import span
from src.domain.log import TaskLog


logger = logging.getLogger(__name__)

COLLECTION = "task_logs"


async def append_entry(*, task_id: str, action: str, actor_id: str, details: str = "") -> TaskLog:
    """Write one immutable audit entry.

    Args:
        task_id: Task the action was performed on (must exist)
        action: Action label, e.g. "Task Updated"
        actor_id: User who performed the action
        details: Human-readable change summary

    Returns:
        The stored entry
    """
    with span("audit_log_service.append_entry"):
        record = await db_client.create_record(
            collection=COLLECTION,
            data={
                "task_id": task_id,
                "action": action[: Constants.AUDIT_ACTION_MAX_LENGTH],
                "actor_id": actor_id,
                "details": details[: Constants.AUDIT_DETAILS_MAX_LENGTH],
            },
        )
        logger.info("Logged '%s' on task %s by %s", action, task_id, actor_id)
        return TaskLog(**record)


async def list_for_task(*, task_id: str) -> list[TaskLog]:
    """Return all audit entries for a task, newest first."""
    with span("audit_log_service.list_for_task"):
        filter_query = f'task_id = "{sanitize_param(task_id)}"'
        per_page = Constants.DEFAULT_PER_PAGE_LIMIT

        records = []
        page = 1
        while True:
            batch = await db_client.list_records(
                collection=COLLECTION,
                filter_query=filter_query,
                sort="-created",
                page=page,
                per_page=per_page,
            )
            records.extend(batch)
            if len(batch) < per_page:
                break
            page += 1

        return [TaskLog(**record) for record in records]


async def delete_for_task(*, task_id: str) -> int:
    """Delete every audit entry for a task.

    Returns:
        Number of entries removed
    """
    with span("audit_log_service.delete_for_task"):
        count = await db_client.delete_records(
            collection=COLLECTION,
            filter_query=f'task_id = "{sanitize_param(task_id)}"',
        )
        logger.info("Deleted %d log entries for task %s", count, task_id)
        return count
