"""
Unit tests for AnthropicClient using httpx.MockTransport.
"""

import json

import httpx
import pytest

from deck_orchestrator.llm.anthropic_client import AnthropicClient
from deck_orchestrator.llm.exceptions import (
    LLMConnectionError,
    LLMOverloadedError,
    LLMRateLimitError,
    LLMRequestError,
    LLMResponseError,
    LLMServerError,
)
from deck_orchestrator.models.llm_models import LLMGenerationRequest


def make_request(**kwargs) -> LLMGenerationRequest:
    defaults = {
        "model": "claude-3-5-haiku-20241022",
        "messages": [{"role": "user", "content": "Deck about bees"}],
        "system": "You generate presentation JSON.",
        "max_tokens": 6000,
        "temperature": 0.3,
    }
    defaults.update(kwargs)
    return LLMGenerationRequest(**defaults)


def make_client(handler) -> AnthropicClient:
    return AnthropicClient(
        api_key="test-key",
        base_url="https://anthropic.test",
        transport=httpx.MockTransport(handler),
    )


def error_body(error_type: str, message: str = "error") -> dict:
    return {"type": "error", "error": {"type": error_type, "message": message}}


@pytest.mark.asyncio
async def test_generate_success_parses_text_and_usage():
    seen = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["headers"] = request.headers
        seen["body"] = json.loads(request.content)
        return httpx.Response(
            200,
            json={
                "id": "msg_1",
                "model": "claude-3-5-haiku-20241022",
                "content": [
                    {"type": "text", "text": '{"title": '},
                    {"type": "text", "text": '"Bees"}'},
                ],
                "stop_reason": "end_turn",
                "usage": {
                    "input_tokens": 1200,
                    "output_tokens": 900,
                    "cache_creation_input_tokens": 100,
                    "cache_read_input_tokens": 50,
                },
            },
        )

    client = make_client(handler)
    try:
        response = await client.generate(make_request())
    finally:
        await client.close()

    assert response.content == '{"title": "Bees"}'
    assert response.input_tokens == 1200
    assert response.output_tokens == 900
    assert response.cache_creation_input_tokens == 100
    assert response.cache_read_input_tokens == 50
    assert response.stop_reason == "end_turn"
    assert not response.truncated
    assert response.raw_metadata == {"id": "msg_1"}

    assert seen["url"] == "https://anthropic.test/v1/messages"
    assert seen["headers"]["x-api-key"] == "test-key"
    assert seen["headers"]["anthropic-version"] == "2023-06-01"
    assert seen["body"]["system"] == "You generate presentation JSON."
    assert seen["body"]["max_tokens"] == 6000
    assert seen["body"]["messages"] == [{"role": "user", "content": "Deck about bees"}]


@pytest.mark.asyncio
async def test_system_omitted_when_empty():
    bodies = []

    def handler(request):
        bodies.append(json.loads(request.content))
        return httpx.Response(200, json={"content": [{"type": "text", "text": "{}"}], "usage": {}})

    client = make_client(handler)
    await client.generate(make_request(system=None))
    await client.close()

    assert "system" not in bodies[0]


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "status_code,error_type,expected",
    [
        (429, "rate_limit_error", LLMRateLimitError),
        (529, "overloaded_error", LLMOverloadedError),
        (500, "overloaded_error", LLMOverloadedError),
        (500, "api_error", LLMServerError),
        (400, "invalid_request_error", LLMRequestError),
        (401, "authentication_error", LLMRequestError),
    ],
)
async def test_http_errors_are_mapped(status_code, error_type, expected):
    client = make_client(lambda request: httpx.Response(status_code, json=error_body(error_type, "nope")))

    with pytest.raises(expected) as exc_info:
        await client.generate(make_request())
    await client.close()

    assert exc_info.value.status_code == status_code
    assert exc_info.value.error_type == error_type
    assert "nope" in exc_info.value.message


@pytest.mark.asyncio
async def test_non_json_error_body_is_tolerated():
    client = make_client(lambda request: httpx.Response(502, text="<html>bad gateway</html>"))

    with pytest.raises(LLMServerError) as exc_info:
        await client.generate(make_request())
    await client.close()

    assert exc_info.value.error_type is None
    assert "bad gateway" in exc_info.value.message


@pytest.mark.asyncio
async def test_transport_error_becomes_connection_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    client = make_client(handler)
    with pytest.raises(LLMConnectionError):
        await client.generate(make_request())
    await client.close()


@pytest.mark.asyncio
async def test_empty_content_is_response_error():
    client = make_client(
        lambda request: httpx.Response(200, json={"content": [], "stop_reason": "end_turn", "usage": {}})
    )
    with pytest.raises(LLMResponseError):
        await client.generate(make_request())
    await client.close()


@pytest.mark.asyncio
async def test_invalid_json_body_is_response_error():
    client = make_client(lambda request: httpx.Response(200, text="not json"))
    with pytest.raises(LLMResponseError):
        await client.generate(make_request())
    await client.close()


@pytest.mark.asyncio
async def test_async_context_manager_closes_client():
    async with make_client(
        lambda request: httpx.Response(200, json={"content": [{"type": "text", "text": "{}"}], "usage": {}})
    ) as client:
        await client.generate(make_request())
        http_client = client._client

    assert http_client.is_closed
