"""Pytest configuration and shared fixtures."""

from unittest.mock import AsyncMock, MagicMock

import pytest

from dockerstats.common.config import CollectorSettings, Settings
from tests.factories import make_stats


@pytest.fixture
def raw_stats():
    """A well-formed Linux stats document."""
    return make_stats()


@pytest.fixture
def mock_runtime():
    """Create a mock Docker runtime."""
    runtime = MagicMock()
    runtime.list_running_containers = AsyncMock(return_value=[])
    runtime.get_stats = AsyncMock()
    runtime.inspect = AsyncMock(return_value={"Config": {"Labels": {}}})
    runtime.close = AsyncMock()
    return runtime


@pytest.fixture
def mock_handle(mock_runtime):
    """Create a mock runtime handle whose current runtime is mock_runtime."""
    handle = MagicMock()
    handle.current = mock_runtime
    handle.reconnect = MagicMock(return_value=mock_runtime)
    handle.close = AsyncMock()
    return handle


@pytest.fixture
def fast_settings():
    """Settings with all reconnection delays set to zero."""
    return Settings(
        collector=CollectorSettings(
            reconnect_backoff_seconds=0,
            resubscribe_delay_seconds=0,
            label_retry_delay_seconds=0,
            handle_close_grace_seconds=0,
        )
    )


@pytest.fixture
def mock_aiodocker(monkeypatch):
    """Mock aiodocker.Docker to return a mock client."""
    import aiodocker

    client = MagicMock()
    client._query_json = AsyncMock()
    client.close = AsyncMock()
    factory = MagicMock(return_value=client)

    monkeypatch.setattr(aiodocker, "Docker", factory)
    return factory
