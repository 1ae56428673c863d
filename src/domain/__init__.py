"""Domain models and DTOs."""

from src.domain.log import TaskAction, TaskLog
from src.domain.notification import Notification
from src.domain.task import Task, TaskCreate, TaskPriority, TaskStatus, TaskUpdate


__all__ = [
    "Notification",
    "Task",
    "TaskAction",
    "TaskCreate",
    "TaskLog",
    "TaskPriority",
    "TaskStatus",
    "TaskUpdate",
]
