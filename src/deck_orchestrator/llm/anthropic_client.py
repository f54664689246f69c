"""
Anthropic Messages API client.

Communicates with the provider using httpx AsyncClient. Supports:
- System prompt plus multi-turn messages
- Token usage extraction, including prompt-cache write/read counts
- Mapping of HTTP status and provider error type onto llm.exceptions

One call per `generate()`: retries and the hard deadline belong to the
GenerationClient wrapping this client.
"""

import json
import time
from typing import Any, Dict, Optional

import httpx
import structlog

from deck_orchestrator.llm.base_client import BaseLLMClient
from deck_orchestrator.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMOverloadedError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMServerError,
)
from deck_orchestrator.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from deck_orchestrator.monitoring.metrics import llm_latency_seconds


logger = structlog.get_logger(__name__)


class AnthropicClient(BaseLLMClient):
    """
    Anthropic-specific client using httpx for async HTTP communication.

    API Endpoints:
    - POST /v1/messages: Create a message

    Features:
    - Connection pooling via persistent AsyncClient
    - Injectable transport (httpx.MockTransport in tests)
    - Detailed metadata extraction (tokens, latency, stop reason)
    """

    def __init__(
        self,
        api_key: str,
        base_url: str = "https://api.anthropic.com",
        api_version: str = "2023-06-01",
        connect_timeout: float = 10.0,
        connection_limits: Optional[httpx.Limits] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        **kwargs
    ):
        """
        Initialize Anthropic client.

        Args:
            api_key: Provider API key
            base_url: Provider base URL
            api_version: Value of the anthropic-version header
            connect_timeout: TCP connect timeout in seconds; reads are unbounded
                here because the caller enforces the overall deadline
            connection_limits: httpx connection pool limits (default: 10 max connections)
            transport: Optional httpx transport override
            **kwargs: Additional config
        """
        super().__init__(base_url, **kwargs)
        self.api_key = api_key
        self.api_version = api_version
        self.connect_timeout = connect_timeout

        if connection_limits is None:
            connection_limits = httpx.Limits(
                max_keepalive_connections=5,
                max_connections=10,
                keepalive_expiry=30.0
            )

        self._client: Optional[httpx.AsyncClient] = None
        self._connection_limits = connection_limits
        self._transport = transport

        if not api_key:
            logger.warning("Anthropic client initialized without API key")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create the async HTTP client."""
        if self._client is None or self._client.is_closed:
            self._client = httpx.AsyncClient(
                base_url=self.base_url,
                timeout=httpx.Timeout(None, connect=self.connect_timeout),
                limits=self._connection_limits,
                transport=self._transport,
                headers={
                    "x-api-key": self.api_key,
                    "anthropic-version": self.api_version,
                    "content-type": "application/json",
                },
            )
            logger.debug("Created new httpx AsyncClient")
        return self._client

    async def generate(self, request: LLMGenerationRequest) -> LLMGenerationResponse:
        """
        Generate a completion via the Messages API.

        POST /v1/messages with payload:
        {
            "model": "claude-3-5-haiku-20241022",
            "max_tokens": 6000,
            "temperature": 0.3,
            "system": "...",
            "messages": [{"role": "user", "content": "..."}]
        }

        Response:
        {
            "id": "msg_...",
            "model": "claude-3-5-haiku-20241022",
            "content": [{"type": "text", "text": "..."}],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": 1200, "output_tokens": 900, ...}
        }
        """
        start_time = time.monotonic()

        payload: Dict[str, Any] = {
            "model": request.model,
            "max_tokens": request.max_tokens,
            "temperature": request.temperature,
            "messages": request.messages,
        }
        if request.system:
            payload["system"] = request.system

        logger.info(
            "Sending generation request to Anthropic",
            model=request.model,
            message_count=len(request.messages),
            temperature=request.temperature,
            max_tokens=request.max_tokens,
        )

        try:
            client = await self._get_client()
            response = await client.post("/v1/messages", json=payload)
        except httpx.TransportError as e:
            self._observe_failure(request.model, start_time)
            logger.warning("Anthropic network error", error=str(e), error_type=type(e).__name__)
            raise LLMConnectionError(
                f"Connection error: {e}",
                details={"error_type": type(e).__name__},
            ) from e

        latency_ms = int((time.monotonic() - start_time) * 1000)

        if response.status_code >= 400:
            self._observe_failure(request.model, start_time)
            raise self._error_from_response(response)

        try:
            response_data = response.json()
        except json.JSONDecodeError as e:
            self._observe_failure(request.model, start_time)
            raise LLMResponseError(
                "Invalid JSON response from Anthropic",
                status_code=response.status_code,
                details={"parse_error": str(e)},
            ) from e

        content = "".join(
            block.get("text", "")
            for block in response_data.get("content", [])
            if block.get("type") == "text"
        )
        if not content:
            self._observe_failure(request.model, start_time)
            raise LLMResponseError(
                "Empty response from Anthropic",
                status_code=response.status_code,
                details={"stop_reason": response_data.get("stop_reason")},
            )

        usage = response_data.get("usage") or {}
        model_version = response_data.get("model", request.model)

        logger.info(
            "Anthropic generation successful",
            model=model_version,
            latency_ms=latency_ms,
            input_tokens=usage.get("input_tokens"),
            output_tokens=usage.get("output_tokens"),
            stop_reason=response_data.get("stop_reason"),
        )
        llm_latency_seconds.labels(model=model_version, success="true").observe(latency_ms / 1000.0)

        return LLMGenerationResponse(
            content=content,
            model_version=model_version,
            stop_reason=response_data.get("stop_reason"),
            input_tokens=usage.get("input_tokens") or 0,
            output_tokens=usage.get("output_tokens") or 0,
            cache_creation_input_tokens=usage.get("cache_creation_input_tokens") or 0,
            cache_read_input_tokens=usage.get("cache_read_input_tokens") or 0,
            latency_ms=latency_ms,
            raw_metadata={"id": response_data.get("id")},
        )

    def _error_from_response(self, response: httpx.Response) -> LLMClientError:
        status_code = response.status_code
        error_type = None
        error_message = response.text[:500]
        try:
            body = response.json()
            error = body.get("error") or {}
            error_type = error.get("type")
            error_message = error.get("message") or error_message
        except (json.JSONDecodeError, AttributeError):
            pass

        logger.error(
            "Anthropic HTTP error",
            status_code=status_code,
            error_type=error_type,
            error_message=error_message,
        )

        message = f"Anthropic error {status_code}: {error_message}"
        kwargs = {"status_code": status_code, "error_type": error_type}
        if status_code == 429:
            return LLMRateLimitError(message, **kwargs)
        if status_code == 529 or error_type == "overloaded_error":
            return LLMOverloadedError(message, **kwargs)
        if status_code >= 500:
            return LLMServerError(message, **kwargs)
        return LLMRequestError(message, **kwargs)

    def _observe_failure(self, model: str, start_time: float) -> None:
        llm_latency_seconds.labels(model=model, success="false").observe(time.monotonic() - start_time)

    async def close(self) -> None:
        """Close the HTTP client connection."""
        if self._client and not self._client.is_closed:
            await self._client.aclose()
            logger.debug("Closed Anthropic client connection")
