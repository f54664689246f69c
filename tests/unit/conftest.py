"""Unit test fixtures (mocks and stubs).

Provides mock objects for testing without external dependencies.
"""

from unittest.mock import AsyncMock, MagicMock, Mock

import pytest

from deck_orchestrator.llm.base_client import BaseLLMClient
from deck_orchestrator.usage.meter import UsageMeter


@pytest.fixture
def mock_async_redis():
    """Mock AsyncRedis client for unit tests (async).

    Pipeline commands are buffered synchronously; only execute() is awaited.
    """
    mock = Mock()
    pipeline = MagicMock()
    pipeline.execute = AsyncMock(return_value=[1, True])
    mock.pipeline = Mock(return_value=pipeline)
    return mock


@pytest.fixture
def mock_provider():
    """Mock provider client; set `generate.return_value` / `side_effect` per test."""
    mock = AsyncMock(spec=BaseLLMClient)
    mock.generate = AsyncMock()
    mock.close = AsyncMock()
    return mock


@pytest.fixture
def usage_meter() -> UsageMeter:
    """Usage meter with no sinks."""
    return UsageMeter()


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()
