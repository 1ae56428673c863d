"""Pytest configuration and shared fixtures."""

from datetime import UTC, datetime, timedelta

import pytest


@pytest.fixture
def future_due_date() -> str:
    """ISO-8601 due date a week from now."""
    return (datetime.now(UTC) + timedelta(days=7)).isoformat()


@pytest.fixture
def past_due_date() -> str:
    """ISO-8601 due date a day in the past."""
    return (datetime.now(UTC) - timedelta(days=1)).isoformat()
