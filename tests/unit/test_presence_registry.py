"""Tests for the in-memory presence registry."""

import threading

import pytest

from src.services.presence_registry import PresenceRegistry
from tests.unit.mocks import RecordingConnection


@pytest.mark.unit
class TestPresenceRegistry:
    """Register, lookup and unregister semantics."""

    def test_lookup_unknown_user_returns_none(self):
        registry = PresenceRegistry()

        assert registry.lookup("ghost") is None

    def test_register_then_lookup(self):
        registry = PresenceRegistry()
        connection = RecordingConnection()

        registry.register("alice", connection)

        assert registry.lookup("alice") is connection
        assert len(registry) == 1

    def test_latest_registration_wins(self):
        """A second register for the same user replaces the first handle."""
        registry = PresenceRegistry()
        first, second = RecordingConnection(), RecordingConnection()

        registry.register("alice", first)
        registry.register("alice", second)

        assert registry.lookup("alice") is second
        assert len(registry) == 1

    def test_same_connection_can_serve_several_users(self):
        registry = PresenceRegistry()
        connection = RecordingConnection()

        registry.register("alice", connection)
        registry.register("bob", connection)

        assert registry.lookup("alice") is connection
        assert registry.lookup("bob") is connection

    def test_unregister_removes_every_entry_for_connection(self):
        registry = PresenceRegistry()
        shared, other = RecordingConnection(), RecordingConnection()
        registry.register("alice", shared)
        registry.register("bob", shared)
        registry.register("carol", other)

        removed = registry.unregister(shared)

        assert sorted(removed) == ["alice", "bob"]
        assert registry.lookup("alice") is None
        assert registry.lookup("bob") is None
        assert registry.lookup("carol") is other

    def test_unregister_unknown_connection_is_noop(self):
        registry = PresenceRegistry()
        registry.register("alice", RecordingConnection())

        assert registry.unregister(RecordingConnection()) == []
        assert len(registry) == 1

    def test_unregister_is_idempotent(self):
        registry = PresenceRegistry()
        connection = RecordingConnection()
        registry.register("alice", connection)

        assert registry.unregister(connection) == ["alice"]
        assert registry.unregister(connection) == []

    def test_stale_connection_close_keeps_replacement(self):
        """Closing a replaced connection must not evict the newer one."""
        registry = PresenceRegistry()
        old, new = RecordingConnection(), RecordingConnection()
        registry.register("alice", old)
        registry.register("alice", new)

        assert registry.unregister(old) == []
        assert registry.lookup("alice") is new

        assert registry.unregister(new) == ["alice"]
        assert registry.lookup("alice") is None

    def test_matching_is_by_identity(self):
        """Equal-looking handles are still distinct connections."""
        registry = PresenceRegistry()
        registry.register("alice", RecordingConnection())

        assert registry.unregister(RecordingConnection()) == []
        assert registry.lookup("alice") is not None

    def test_online_user_ids_and_clear(self):
        registry = PresenceRegistry()
        registry.register("alice", RecordingConnection())
        registry.register("bob", RecordingConnection())

        assert sorted(registry.online_user_ids()) == ["alice", "bob"]

        registry.clear()

        assert registry.online_user_ids() == []
        assert len(registry) == 0

    def test_concurrent_registration_is_safe(self):
        registry = PresenceRegistry()
        connections = {f"user{i}": RecordingConnection() for i in range(50)}

        threads = [
            threading.Thread(target=registry.register, args=(user_id, connection))
            for user_id, connection in connections.items()
        ]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()

        assert len(registry) == 50
        for user_id, connection in connections.items():
            assert registry.lookup(user_id) is connection
