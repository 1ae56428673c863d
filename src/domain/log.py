"""Log domain models for audit trail."""

from enum import StrEnum

from pydantic import BaseModel, Field


class TaskAction(StrEnum):
    """Action labels recorded in the audit trail."""

    CREATED = "Task Created"
    UPDATED = "Task Updated"


class TaskLog(BaseModel):
    """Task log entry data transfer object for audit trail."""

    id: str = Field(..., description="Unique log ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    task_id: str = Field(..., description="ID of task this log relates to")
    action: str = Field(..., description="Action performed (e.g., 'Task Created', 'Task Updated')")
    actor_id: str = Field(..., description="ID of user who performed the action")
    details: str = Field(default="", description="Human-readable summary of the change")
