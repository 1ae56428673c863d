"""Notification dispatcher: persist a notification, then push it live if the recipient is online."""

import logging
from collections.abc import Iterable

from src.core.config import Constants
from src.core.errors import DeliveryWarning
from src.core.logging import span
from src.domain.notification import Notification
from src.models.service_models import DispatchResult, DispatchStatus, NotificationTarget
from src.services import notification_store
from src.services.presence_registry import ConnectionHandle, PresenceRegistry


logger = logging.getLogger(__name__)


async def dispatch(
    *,
    presence: PresenceRegistry,
    recipient_id: str | None,
    message: str,
    task_id: str | None = None,
) -> DispatchResult:
    """Store a notification and push it to the recipient's live connection.

    Never raises: storage and push failures are logged and reported in the
    returned result so the triggering mutation still succeeds.

    Args:
        presence: Registry used to find the recipient's connection
        recipient_id: User to notify (empty means no-op)
        message: Notification text
        task_id: Optional related task

    Returns:
        DispatchResult describing what happened
    """
    with span("notification_service.dispatch"):
        if not recipient_id:
            logger.warning("notification_skipped", extra={"reason": DeliveryWarning.NO_RECIPIENT, "task_id": task_id})
            return DispatchResult(
                recipient_id=None,
                status=DispatchStatus.SKIPPED,
                warning=DeliveryWarning.NO_RECIPIENT,
            )

        try:
            notification = await notification_store.append(
                recipient_id=recipient_id,
                message=message,
                task_id=task_id,
            )
        except Exception as e:
            logger.exception("notification_store_failed", extra={"recipient_id": recipient_id, "task_id": task_id})
            return DispatchResult(recipient_id=recipient_id, status=DispatchStatus.FAILED, error=str(e))

        connection = presence.lookup(recipient_id)
        if connection is None:
            logger.info("Recipient offline, notification stored: %s", recipient_id)
            return DispatchResult(
                recipient_id=recipient_id,
                status=DispatchStatus.STORED,
                notification=notification,
                warning=DeliveryWarning.RECIPIENT_OFFLINE,
            )

        if not _push(connection=connection, notification=notification):
            return DispatchResult(
                recipient_id=recipient_id,
                status=DispatchStatus.STORED,
                notification=notification,
                warning=DeliveryWarning.PUSH_FAILED,
            )

        logger.info("Notification pushed to recipient: %s", recipient_id)
        return DispatchResult(recipient_id=recipient_id, status=DispatchStatus.DELIVERED, notification=notification)


def _push(*, connection: ConnectionHandle, notification: Notification) -> bool:
    """Hand the notification to the connection without waiting for delivery."""
    try:
        connection.send_event(Constants.NOTIFICATION_EVENT, notification.model_dump(mode="json"))
    except Exception:
        logger.warning(
            "notification_push_failed",
            extra={"recipient_id": notification.recipient_id, "notification_id": notification.id},
            exc_info=True,
        )
        return False
    return True


async def dispatch_all(
    *,
    presence: PresenceRegistry,
    targets: Iterable[NotificationTarget],
    task_id: str | None = None,
) -> list[DispatchResult]:
    """Dispatch each target in order.

    Args:
        presence: Registry used to find live connections
        targets: Recipients and messages, in the order they should be sent
        task_id: Related task for every notification

    Returns:
        One DispatchResult per target
    """
    results = [
        await dispatch(presence=presence, recipient_id=target.recipient_id, message=target.message, task_id=task_id)
        for target in targets
    ]

    if results:
        logger.info(
            "Dispatched %d notifications (%d delivered, %d stored, %d failed)",
            len(results),
            sum(1 for r in results if r.status == DispatchStatus.DELIVERED),
            sum(1 for r in results if r.status == DispatchStatus.STORED),
            sum(1 for r in results if r.status == DispatchStatus.FAILED),
        )
    return results
