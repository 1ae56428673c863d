"""WebSocket endpoint that binds live connections to users for notification push."""

import asyncio
import contextlib
import logging
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from src.core.config import Constants
from src.core.logging import log_with_user_context
from src.services.presence_registry import PresenceRegistry


logger = logging.getLogger(__name__)

router = APIRouter(tags=["realtime"])


class WebSocketConnection:
    """Connection handle wrapping a WebSocket with a non-blocking outbox.

    ``send_event`` may be called from any thread; events are written to the
    socket by a background sender task running on the connection's loop.
    Once a write fails the handle is closed and removed from presence, and
    further ``send_event`` calls raise ``ConnectionError``.
    """

    def __init__(self, websocket: WebSocket, presence: PresenceRegistry) -> None:
        self.websocket = websocket
        self._presence = presence
        self._loop = asyncio.get_running_loop()
        self._outbox: asyncio.Queue[dict[str, Any]] = asyncio.Queue()
        self._sender: asyncio.Task[None] | None = None
        self._closed = False

    @property
    def closed(self) -> bool:
        return self._closed

    def send_event(self, event: str, payload: dict[str, Any]) -> None:
        """Queue an event for the client without waiting for delivery."""
        if self._closed:
            raise ConnectionError("WebSocket connection is closed")
        self._loop.call_soon_threadsafe(self._outbox.put_nowait, {"event": event, "data": payload})

    def start(self) -> None:
        self._sender = asyncio.create_task(self._drain())

    async def stop(self) -> None:
        self._closed = True
        if self._sender is None:
            return
        self._sender.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._sender

    async def _drain(self) -> None:
        while True:
            message = await self._outbox.get()
            try:
                await self.websocket.send_json(message)
            except (WebSocketDisconnect, RuntimeError, OSError):
                logger.warning("websocket_send_failed", extra={"event": message.get("event")})
                break

        self._closed = True
        self._presence.unregister(self)
        with contextlib.suppress(WebSocketDisconnect, RuntimeError, OSError):
            await self.websocket.close()


async def _handle_message(presence: PresenceRegistry, connection: WebSocketConnection, message: Any) -> None:
    if not isinstance(message, dict):
        logger.warning("websocket_message_ignored", extra={"reason": "not_an_object"})
        return

    if message.get("event") != Constants.REGISTER_EVENT:
        logger.debug("websocket_message_ignored", extra={"event": message.get("event")})
        return

    if connection.closed:
        logger.warning("websocket_register_rejected", extra={"reason": "connection_closed"})
        return

    user_id = message.get("user_id")
    if not isinstance(user_id, str) or not user_id.strip():
        logger.warning("websocket_register_rejected", extra={"reason": "missing_user_id"})
        return

    presence.register(user_id.strip(), connection)
    log_with_user_context(logger, "info", "websocket_registered", user_id=user_id.strip())


@router.websocket("/ws")
async def websocket_endpoint(websocket: WebSocket) -> None:
    """Accept a realtime connection and route ``register`` events to the presence registry."""
    presence: PresenceRegistry = websocket.app.state.presence_registry

    await websocket.accept()
    connection = WebSocketConnection(websocket, presence)
    connection.start()
    logger.info("websocket_connected")

    try:
        while True:
            try:
                message = await websocket.receive_json()
            except ValueError:
                logger.warning("websocket_message_ignored", extra={"reason": "invalid_json"})
                continue
            await _handle_message(presence, connection, message)
    except WebSocketDisconnect:
        logger.info("websocket_disconnected")
    finally:
        presence.unregister(connection)
        await connection.stop()
