"""Notification read-path HTTP endpoints."""

import logging
from typing import Any

from fastapi import APIRouter, HTTPException, status

from src.domain.notification import Notification
from src.interface.deps import ActorId
from src.services import notification_store


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


def _require_self(actor_id: str, user_id: str) -> None:
    """Users may only read and acknowledge their own notifications."""
    if actor_id != user_id:
        logger.warning("notification_access_denied", extra={"actor_id": actor_id, "user_id": user_id})
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Not authorized to access these notifications")


@router.get("/{user_id}")
async def list_notifications(user_id: str, actor_id: ActorId) -> list[Notification]:
    """Fetch all notifications for a user, newest first."""
    _require_self(actor_id, user_id)
    return await notification_store.list_by_recipient(recipient_id=user_id)


@router.get("/{user_id}/unread-count")
async def unread_count(user_id: str, actor_id: ActorId) -> dict[str, int]:
    """Count unread notifications for a user."""
    _require_self(actor_id, user_id)
    return {"unread_count": await notification_store.count_unread(recipient_id=user_id)}


@router.patch("/{user_id}/mark-read")
async def mark_all_read(user_id: str, actor_id: ActorId) -> dict[str, Any]:
    """Mark every unread notification for a user as read."""
    _require_self(actor_id, user_id)
    count = await notification_store.mark_all_read(recipient_id=user_id)
    return {
        "success": True,
        "message": f"{count} notifications marked as read",
        "modified_count": count,
    }


@router.patch("/{user_id}/{notification_id}/read")
async def mark_one_read(user_id: str, notification_id: str, actor_id: ActorId) -> dict[str, Any]:
    """Mark a single notification as read; 404 if missing or already read."""
    _require_self(actor_id, user_id)
    notification = await notification_store.mark_one_read(recipient_id=user_id, notification_id=notification_id)
    return {"success": True, "notification": notification}
