"""Pytest configuration and fixtures."""

import os

import pytest

from effort_engine.core.schemas_effort import LogEvent


@pytest.fixture(scope="session", autouse=True)
def setup_test_env():
    """Set up test environment variables."""
    os.environ["SUPABASE_URL"] = "https://test.supabase.co"
    os.environ["SUPABASE_SERVICE_ROLE_KEY"] = "test-key"
    os.environ["OPENAI_API_KEY"] = "test-openai-key"
    os.environ["EFFORT_ENGINE_ENV"] = "test"


@pytest.fixture
def make_events():
    """Build LogEvents from (timestamp_ms, message) pairs."""

    def _make(*pairs: tuple[int, str]) -> list[LogEvent]:
        return [LogEvent(message=message, timestamp=timestamp) for timestamp, message in pairs]

    return _make
