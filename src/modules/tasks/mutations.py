"""Pure decision functions for task mutations.

Each planner takes the actor, the current task state and the request and
returns the field changes, audit entries and notification targets. Callers
perform persistence and dispatch.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from src.core.errors import ForbiddenError
from src.domain.log import TaskAction
from src.domain.task import Task, TaskCreate, TaskUpdate
from src.models.service_models import AuditEntryDraft, NotificationTarget


def assigned_message(title: str) -> str:
    return f"📌 New Task Assigned: {title}"


def updated_message(title: str) -> str:
    return f"🔄 Task Updated: {title}"


def unassigned_message(title: str) -> str:
    return f"📤 Task Unassigned: {title}"


def deleted_message(title: str) -> str:
    return f"🗑️ Task Deleted: {title}"


@dataclass(frozen=True)
class TaskMutationPlan:
    """Outcome of a task mutation decision."""

    changes: dict[str, Any] = field(default_factory=dict)
    audit_entries: list[AuditEntryDraft] = field(default_factory=list)
    notifications: list[NotificationTarget] = field(default_factory=list)


def can_view(task: Task, actor_id: str) -> bool:
    """Whether the actor is the task's creator or assignee."""
    return actor_id in (task.creator_id, task.assignee_id)


def ensure_can_view(task: Task, actor_id: str) -> None:
    """Raise ForbiddenError unless the actor may read the task."""
    if not can_view(task, actor_id):
        raise ForbiddenError("Not authorized to view this task")


def ensure_can_edit(task: Task, actor_id: str) -> None:
    """Raise ForbiddenError unless the actor is the creator or current assignee."""
    if actor_id not in (task.creator_id, task.assignee_id):
        raise ForbiddenError("Not authorized to edit this task")


def _serialize_due_date(value: datetime | None) -> str | None:
    return value.isoformat() if value else None


def plan_create(*, actor_id: str, task_in: TaskCreate) -> TaskMutationPlan:
    """Decide the stored record, audit entry and notifications for a new task."""
    changes = {
        "title": task_in.title,
        "description": task_in.description,
        "priority": task_in.priority,
        "status": task_in.status,
        "due_date": _serialize_due_date(task_in.due_date),
        "assignee_id": task_in.assignee_id,
        "creator_id": actor_id,
    }

    audit = AuditEntryDraft(
        action=TaskAction.CREATED,
        actor_id=actor_id,
        details=f'Task "{task_in.title}" was created',
    )

    notifications = []
    if task_in.assignee_id and task_in.assignee_id != actor_id:
        notifications.append(
            NotificationTarget(recipient_id=task_in.assignee_id, message=assigned_message(task_in.title))
        )

    return TaskMutationPlan(changes=changes, audit_entries=[audit], notifications=notifications)


def _describe_changes(task: Task, changes: dict[str, Any]) -> list[str]:
    """Build one human-readable description per changed field, in field order."""
    descriptions = []
    if "title" in changes:
        descriptions.append(f'Title changed to "{changes["title"]}"')
    if "description" in changes:
        descriptions.append("Description updated")
    if "priority" in changes:
        descriptions.append(f"Priority changed from {task.priority} to {changes['priority']}")
    if "status" in changes:
        descriptions.append(f"Status changed from {task.status} to {changes['status']}")
    if "due_date" in changes:
        if changes["due_date"]:
            descriptions.append(f"Due date changed to {changes['due_date']}")
        else:
            descriptions.append("Due date cleared")
    if "assignee_id" in changes:
        descriptions.append("Task reassigned" if changes["assignee_id"] else "Task unassigned")
    return descriptions


def plan_update(*, actor_id: str, task: Task, update: TaskUpdate) -> TaskMutationPlan:
    """Decide the field changes, audit entry and notifications for a task update.

    Raises:
        ForbiddenError: If the actor is neither creator nor current assignee
    """
    ensure_can_edit(task, actor_id)

    requested = update.applied_fields()
    if "due_date" in requested:
        requested["due_date"] = _serialize_due_date(requested["due_date"])  # type: ignore[arg-type]

    changes = {name: value for name, value in requested.items() if getattr(task, name) != value}

    details = ", ".join(_describe_changes(task, changes)) or "No changes"
    audit = AuditEntryDraft(action=TaskAction.UPDATED, actor_id=actor_id, details=details)

    title = changes.get("title", task.title)
    old_assignee = task.assignee_id
    new_assignee = changes.get("assignee_id", old_assignee)
    assignee_changed = "assignee_id" in changes

    # No deduplication across the three rules
    notifications = []
    if task.creator_id != actor_id:
        notifications.append(NotificationTarget(recipient_id=task.creator_id, message=updated_message(title)))

    if new_assignee and new_assignee != actor_id:
        message = assigned_message(title) if assignee_changed else updated_message(title)
        notifications.append(NotificationTarget(recipient_id=new_assignee, message=message))

    if assignee_changed and old_assignee and old_assignee != actor_id:
        notifications.append(NotificationTarget(recipient_id=old_assignee, message=unassigned_message(title)))

    return TaskMutationPlan(changes=changes, audit_entries=[audit], notifications=notifications)


def plan_delete(*, actor_id: str, task: Task) -> TaskMutationPlan:
    """Decide the notifications for deleting a task.

    Raises:
        ForbiddenError: If the actor is not the creator
    """
    if task.creator_id != actor_id:
        raise ForbiddenError("Only task creator can delete this task")

    notifications = []
    if task.assignee_id and task.assignee_id != actor_id:
        notifications.append(NotificationTarget(recipient_id=task.assignee_id, message=deleted_message(task.title)))

    return TaskMutationPlan(notifications=notifications)
