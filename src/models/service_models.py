"""Pydantic models for service layer return types.

These models provide type safety at service boundaries, converting database
dictionaries into typed objects with validation.
"""

from enum import StrEnum

from pydantic import BaseModel

from src.core.errors import DeliveryWarning
from src.domain.notification import Notification


class DispatchStatus(StrEnum):
    """Outcome of a single notification dispatch."""

    DELIVERED = "delivered"  # Stored and pushed to a live connection
    STORED = "stored"  # Stored only; recipient offline or push failed
    SKIPPED = "skipped"  # No recipient given
    FAILED = "failed"  # Could not be stored


class DispatchResult(BaseModel):
    """Result of dispatching a notification."""

    recipient_id: str | None
    status: DispatchStatus
    notification: Notification | None = None
    warning: DeliveryWarning | None = None
    error: str | None = None


class NotificationTarget(BaseModel):
    """A (recipient, message) pair computed by a task mutation."""

    recipient_id: str
    message: str


class AuditEntryDraft(BaseModel):
    """An audit entry computed by a task mutation, not yet persisted."""

    action: str
    actor_id: str
    details: str
