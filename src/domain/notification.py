"""Notification domain models."""

from pydantic import BaseModel, Field


class Notification(BaseModel):
    """Notification data transfer object.

    Only ``is_read`` ever changes after creation.
    """

    id: str = Field(..., description="Unique notification ID from database")
    created: str = Field(..., description="Creation timestamp (ISO format)")
    updated: str = Field(..., description="Last update timestamp (ISO format)")
    recipient_id: str = Field(..., description="User the notification is addressed to")
    message: str = Field(..., description="Notification text")
    is_read: bool = Field(default=False, description="Whether the recipient has read it")
    task_id: str | None = Field(default=None, description="Related task ID")
