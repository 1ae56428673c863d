"""Helpers shared by the API integration tests."""

import time

from src.services.presence_registry import PresenceRegistry


def headers(user_id: str) -> dict[str, str]:
    """Request headers authenticating as ``user_id``."""
    return {"X-User-Id": user_id}


def wait_until_online(presence: PresenceRegistry, user_id: str, timeout: float = 2.0) -> None:
    """Block until the user's register event has been processed."""
    deadline = time.monotonic() + timeout
    while presence.lookup(user_id) is None:
        if time.monotonic() > deadline:
            raise AssertionError(f"{user_id} never registered")
        time.sleep(0.01)


def wait_until_offline(presence: PresenceRegistry, user_id: str, timeout: float = 2.0) -> None:
    """Block until the user's connection has been unregistered."""
    deadline = time.monotonic() + timeout
    while presence.lookup(user_id) is not None:
        if time.monotonic() > deadline:
            raise AssertionError(f"{user_id} still registered")
        time.sleep(0.01)
