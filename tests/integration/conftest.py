"""Pytest configuration and fixtures for integration tests."""

from collections.abc import AsyncIterator, Iterator

import pytest
from fastapi.testclient import TestClient

from src.core import config as config_module, db_client
from src.main import app
from src.services.presence_registry import PresenceRegistry


@pytest.fixture
def db_path(tmp_path, monkeypatch) -> str:
    """Point the application at a fresh SQLite file."""
    path = str(tmp_path / "taskpulse-test.db")
    monkeypatch.setattr(config_module.settings, "sqlite_db_path", path)
    return path


@pytest.fixture
async def sqlite_db(db_path) -> AsyncIterator[str]:
    """Initialize the schema on a real SQLite database and close it afterwards."""
    await db_client.init_db()
    yield db_path
    await db_client.close_connection()


@pytest.fixture
def client(db_path) -> Iterator[TestClient]:
    """TestClient running the full application lifespan."""
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def presence(client) -> PresenceRegistry:
    """The presence registry created by the running application."""
    return app.state.presence_registry
