"""Shared test fixtures and configuration for all tests.

This conftest.py provides common fixtures used across unit and integration tests.
"""

import copy
import json
from typing import Any, Callable, Dict

import pytest

from deck_orchestrator.config import Settings
from deck_orchestrator.models.llm_models import LLMGenerationResponse
from deck_orchestrator.models.request_models import GenerationRequest, Message

VALID_DECK: Dict[str, Any] = {
    "title": "Quarterly Review",
    "slides": [
        {
            "id": "slide-1",
            "blocks": [
                {"type": "BackgroundBlock", "props": {"color": "bg-white"}},
                {
                    "type": "Cover_TextCenter",
                    "props": {"title": "Quarterly Review", "paragraph": "Q3 results"},
                },
            ],
        },
        {
            "id": "slide-2",
            "blocks": [
                {"type": "BackgroundBlock", "props": {"color": "bg-gray-50"}},
                {
                    "type": "Metrics_FullWidthChart",
                    "props": {"title": "Revenue", "hasChart": True, "chartType": "bar"},
                },
            ],
        },
    ],
}


@pytest.fixture
def test_settings() -> Settings:
    """Test settings with safe defaults for local testing.

    Override specific settings in individual tests as needed:
        def test_something(test_settings):
            test_settings.QUEUE_MIN_INTERVAL = 0.0
    """
    return Settings(
        # === Application ===
        APP_NAME="Deck Orchestrator (Test)",
        APP_VERSION="0.1.0",
        DEBUG=True,
        LOG_LEVEL="DEBUG",
        ENVIRONMENT="development",

        # === Anthropic ===
        ANTHROPIC_API_KEY="test-key",
        ANTHROPIC_BASE_URL="https://anthropic.test",
        LLM_MODEL="claude-3-5-haiku-20241022",
        LLM_TIMEOUT=5.0,

        # === Retry / Queue (fast for tests) ===
        TRANSPORT_MAX_ATTEMPTS=3,
        TRANSPORT_BACKOFF_BASE=0.01,
        TRANSPORT_BACKOFF_CAP=0.05,
        QUEUE_MIN_INTERVAL=0.0,
        QUEUE_MAX_RETRIES=3,
        RATE_LIMIT_RETRY_DELAYS=[0.01, 0.02, 0.04],

        # === Cache ===
        CACHE_TTL_SECONDS=300.0,
        CACHE_SWEEP_INTERVAL_SECONDS=60.0,

        # === Usage ===
        USAGE_LOG_PATH=None,
        USAGE_REDIS_ENABLED=False,
        REDIS_URL="redis://localhost:6379/0",

        PROMETHEUS_ENABLED=False,  # Disable metrics in tests unless explicitly needed
    )


@pytest.fixture
def valid_deck() -> Dict[str, Any]:
    """A complete, valid two-slide presentation (fresh copy per test)."""
    return copy.deepcopy(VALID_DECK)


@pytest.fixture
def valid_deck_json(valid_deck: Dict[str, Any]) -> str:
    return json.dumps(valid_deck)


@pytest.fixture
def create_request() -> Callable[..., GenerationRequest]:
    """Factory fixture to create GenerationRequest with custom content.

    Usage:
        def test_something(create_request):
            request = create_request("Make a deck about solar panels")
    """

    def _create(
        content: str = "Create a presentation about renewable energy",
        **kwargs: Any,
    ) -> GenerationRequest:
        messages = kwargs.pop("messages", None) or [Message(role="user", content=content)]
        return GenerationRequest(
            messages=messages,
            system_prompt=kwargs.pop("system_prompt", "You generate presentation JSON."),
            **kwargs,
        )

    return _create


@pytest.fixture
def create_llm_response() -> Callable[..., LLMGenerationResponse]:
    """Factory fixture for provider responses."""

    def _create(content: str, **kwargs: Any) -> LLMGenerationResponse:
        defaults: Dict[str, Any] = {
            "model_version": "claude-3-5-haiku-20241022",
            "stop_reason": "end_turn",
            "input_tokens": 1200,
            "output_tokens": 900,
            "latency_ms": 1500,
        }
        defaults.update(kwargs)
        return LLMGenerationResponse(content=content, **defaults)

    return _create
