"""Tests for configuration validation."""

import pytest

from src.core.config import Constants, Settings


def test_require_credential_with_valid_value() -> None:
    """Test require_credential returns value when credential is set."""
    settings = Settings(logfire_token="token123")

    result = settings.require_credential("logfire_token", "Logfire")

    assert result == "token123"


def test_require_credential_with_none_raises_error() -> None:
    """Test require_credential raises ValueError when credential is None."""
    settings = Settings(logfire_token=None)

    with pytest.raises(ValueError, match="Logfire credential not configured"):
        settings.require_credential("logfire_token", "Logfire")


def test_require_credential_error_message_includes_field_name() -> None:
    """Test error message includes the environment variable name."""
    settings = Settings(logfire_token="")

    with pytest.raises(ValueError, match="LOGFIRE_TOKEN"):
        settings.require_credential("logfire_token", "Logfire")


def test_settings_read_from_environment(monkeypatch) -> None:
    """Test settings pick up environment variables."""
    monkeypatch.setenv("SQLITE_DB_PATH", "/tmp/custom.db")
    monkeypatch.setenv("ENVIRONMENT", "Production")

    settings = Settings()

    assert settings.sqlite_db_path == "/tmp/custom.db"
    assert settings.is_production is True


def test_defaults(monkeypatch) -> None:
    """Test defaults when nothing is configured."""
    monkeypatch.delenv("SQLITE_DB_PATH", raising=False)
    monkeypatch.delenv("ENVIRONMENT", raising=False)

    settings = Settings(_env_file=None)

    assert settings.sqlite_db_path == "data/taskpulse.db"
    assert settings.service_name == "taskpulse"
    assert settings.is_production is False


def test_field_limits() -> None:
    """Test constants match the stored column limits."""
    assert Constants.TASK_TITLE_MAX_LENGTH == 200
    assert Constants.TASK_DESCRIPTION_MAX_LENGTH == 2000
    assert Constants.NOTIFICATION_MESSAGE_MAX_LENGTH == 500
    assert Constants.ACTOR_HEADER == "X-User-Id"
