"""
LLM client layer: provider client, generation wrapper, error classification.
"""

from deck_orchestrator.llm.anthropic_client import AnthropicClient
from deck_orchestrator.llm.base_client import BaseLLMClient
from deck_orchestrator.llm.classifier import classify_error
from deck_orchestrator.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMOverloadedError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMServerError,
)
from deck_orchestrator.llm.generation_client import (
    GenerationClient,
    GenerationParams,
    GenerationResult,
)

__all__ = [
    "AnthropicClient",
    "BaseLLMClient",
    "GenerationClient",
    "GenerationParams",
    "GenerationResult",
    "classify_error",
    "LLMClientError",
    "LLMConnectionError",
    "LLMOverloadedError",
    "LLMRateLimitError",
    "LLMRequestError",
    "LLMResponseError",
    "LLMServerError",
]
