"""In-memory presence registry mapping users to their live connection."""

import logging
import threading
from typing import Any, Protocol


logger = logging.getLogger(__name__)


class ConnectionHandle(Protocol):
    """Opaque handle to an open realtime channel for one client."""

    def send_event(self, event: str, payload: dict[str, Any]) -> None:
        """Queue an event for the client without waiting for delivery."""
        ...


class PresenceRegistry:
    """Thread-safe map of user ID to live connection handle.

    At most one handle is kept per user; the latest registration wins and the
    previous connection is left open. State is process-local and is not shared
    between server instances.
    """

    def __init__(self) -> None:
        """Initialize an empty registry."""
        self._connections: dict[str, ConnectionHandle] = {}
        self._lock = threading.Lock()

    def register(self, user_id: str, connection: ConnectionHandle) -> None:
        """Associate a user with a connection, replacing any earlier one.

        Args:
            user_id: Authenticated user identity
            connection: Live connection handle
        """
        with self._lock:
            replaced = self._connections.get(user_id)
            self._connections[user_id] = connection

        if replaced is not None and replaced is not connection:
            logger.info("presence_replaced", extra={"user_id": user_id})
        else:
            logger.info("presence_registered", extra={"user_id": user_id})

    def lookup(self, user_id: str) -> ConnectionHandle | None:
        """Return the user's live connection, or None if offline."""
        with self._lock:
            return self._connections.get(user_id)

    def unregister(self, connection: ConnectionHandle) -> list[str]:
        """Remove every entry pointing at this connection.

        Idempotent: unknown connections are ignored.

        Args:
            connection: Connection that closed

        Returns:
            User IDs that were removed
        """
        with self._lock:
            removed = [user_id for user_id, handle in self._connections.items() if handle is connection]
            for user_id in removed:
                del self._connections[user_id]

        for user_id in removed:
            logger.info("presence_unregistered", extra={"user_id": user_id})
        return removed

    def online_user_ids(self) -> list[str]:
        """Return a snapshot of users with a live connection."""
        with self._lock:
            return list(self._connections)

    def clear(self) -> None:
        """Drop all entries (used at shutdown)."""
        with self._lock:
            count = len(self._connections)
            self._connections.clear()
        logger.info("presence_cleared", extra={"count": count})

    def __len__(self) -> int:
        with self._lock:
            return len(self._connections)
