"""Durable notification log scoped per recipient."""

import logging

from src.core import db_client
from src.core.config import Constants
from src.core.db_client import sanitize_param
from src.core.errors import NotFoundError
from src.core.logging import span
from src.domain.notification import Notification


logger = logging.getLogger(__name__)

COLLECTION = "notifications"


def _is_canonical_id(record_id: str) -> bool:
    """Reject ids SQLite would coerce onto another row ('true', '01', '1.0', ' 1')."""
    return record_id.isdigit() and str(int(record_id)) == record_id


async def append(*, recipient_id: str, message: str, task_id: str | None = None) -> Notification:
    """Persist a new unread notification.

    Succeeds regardless of whether the recipient is online.

    Args:
        recipient_id: User the notification is addressed to
        message: Notification text (truncated to the column limit)
        task_id: Optional related task

    Returns:
        The stored notification with its generated ID and timestamps

    Raises:
        db_client.DatabaseError: If the write fails
    """
    with span("notification_store.append"):
        data = {
            "recipient_id": recipient_id,
            "message": message[: Constants.NOTIFICATION_MESSAGE_MAX_LENGTH],
            "is_read": False,
            "task_id": task_id,
        }
        record = await db_client.create_record(collection=COLLECTION, data=data)
        logger.info("Stored notification %s for recipient=%s", record["id"], recipient_id)
        return Notification(**record)


async def list_by_recipient(*, recipient_id: str) -> list[Notification]:
    """Return every notification for a recipient, newest first.

    Args:
        recipient_id: Recipient user ID

    Returns:
        Notifications in both read states
    """
    with span("notification_store.list_by_recipient"):
        filter_query = f'recipient_id = "{sanitize_param(recipient_id)}"'
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

        logger.debug("Retrieved %d notifications for recipient=%s", len(records), recipient_id)
        return [Notification(**record) for record in records]


async def count_unread(*, recipient_id: str) -> int:
    """Count unread notifications for a recipient."""
    notifications = await list_by_recipient(recipient_id=recipient_id)
    return sum(1 for n in notifications if not n.is_read)


async def mark_all_read(*, recipient_id: str) -> int:
    """Mark every unread notification for a recipient as read.

    Args:
        recipient_id: Recipient user ID

    Returns:
        Number of notifications that changed (0 on a repeat call)
    """
    with span("notification_store.mark_all_read"):
        count = await db_client.update_records(
            collection=COLLECTION,
            filter_query=f'recipient_id = "{sanitize_param(recipient_id)}" && is_read = "false"',
            data={"is_read": True},
        )
        logger.info("Marked %d notifications read for recipient=%s", count, recipient_id)
        return count


async def mark_one_read(*, recipient_id: str, notification_id: str) -> Notification:
    """Mark a single unread notification as read.

    Args:
        recipient_id: Recipient who must own the notification
        notification_id: Notification ID

    Returns:
        The updated notification

    Raises:
        NotFoundError: If the notification does not exist, belongs to someone
            else, or is already read. The store is left unchanged.
    """
    with span("notification_store.mark_one_read"):
        if not _is_canonical_id(notification_id):
            raise NotFoundError("Notification not found or already read")

        count = await db_client.update_records(
            collection=COLLECTION,
            filter_query=(
                f'id = "{sanitize_param(notification_id)}" && '
                f'recipient_id = "{sanitize_param(recipient_id)}" && '
                f'is_read = "false"'
            ),
            data={"is_read": True},
        )
        if count == 0:
            raise NotFoundError("Notification not found or already read")

        record = await db_client.get_record(collection=COLLECTION, record_id=notification_id)
        logger.info("Marked notification %s read for recipient=%s", notification_id, recipient_id)
        return Notification(**record)
