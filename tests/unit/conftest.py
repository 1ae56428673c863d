"""Pytest configuration and fixtures for unit tests."""

import pytest

from src.services.presence_registry import PresenceRegistry
from tests.unit.mocks import InMemoryDBClient, RecordingConnection


@pytest.fixture
def in_memory_db():
    """Provides a fresh InMemoryDBClient for each test."""
    return InMemoryDBClient()


@pytest.fixture
def patched_db(monkeypatch, in_memory_db):
    """Patches src.core.db_client functions to use InMemoryDBClient."""
    monkeypatch.setattr("src.core.db_client.create_record", in_memory_db.create_record)
    monkeypatch.setattr("src.core.db_client.get_record", in_memory_db.get_record)
    monkeypatch.setattr("src.core.db_client.update_record", in_memory_db.update_record)
    monkeypatch.setattr("src.core.db_client.update_records", in_memory_db.update_records)
    monkeypatch.setattr("src.core.db_client.delete_record", in_memory_db.delete_record)
    monkeypatch.setattr("src.core.db_client.delete_records", in_memory_db.delete_records)
    monkeypatch.setattr("src.core.db_client.list_records", in_memory_db.list_records)
    monkeypatch.setattr("src.core.db_client.get_first_record", in_memory_db.get_first_record)
    return in_memory_db


@pytest.fixture
def presence():
    """Provides an empty PresenceRegistry."""
    return PresenceRegistry()


@pytest.fixture
def connect(presence):
    """Register a RecordingConnection for a user and return it."""

    def _connect(user_id: str) -> RecordingConnection:
        connection = RecordingConnection()
        presence.register(user_id, connection)
        return connection

    return _connect
