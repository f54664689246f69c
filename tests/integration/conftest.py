"""Integration test fixtures (service checks and scripted upstreams).

The provider is replaced by an httpx.MockTransport answering like the
Anthropic Messages API, so the full stack (AnthropicClient, GenerationClient,
RequestQueue, repair pipeline) runs without network access. Tests needing a
real Redis are skipped if it is not running.
"""

import json
from typing import Any, Callable, Iterable, Union

import httpx
import pytest
from redis import Redis

Scripted = Union[httpx.Response, Callable[[httpx.Request], httpx.Response]]


def messages_response(text: str, input_tokens: int = 1200, output_tokens: int = 900) -> httpx.Response:
    """A successful Messages API response carrying `text`."""
    return httpx.Response(
        200,
        json={
            "id": "msg_test",
            "type": "message",
            "model": "claude-3-5-haiku-20241022",
            "content": [{"type": "text", "text": text}],
            "stop_reason": "end_turn",
            "usage": {"input_tokens": input_tokens, "output_tokens": output_tokens},
        },
    )


def error_response(status_code: int, error_type: str, message: str = "error") -> httpx.Response:
    return httpx.Response(
        status_code,
        json={"type": "error", "error": {"type": error_type, "message": message}},
    )


class ScriptedUpstream:
    """
    Callable for httpx.MockTransport replaying a fixed list of responses.

    The last response repeats once the script is exhausted. Every request
    body is kept in `requests` for assertions.
    """

    def __init__(self, responses: Iterable[Scripted]):
        self.responses = list(responses)
        self.requests: list[dict[str, Any]] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(json.loads(request.content))
        index = min(len(self.requests) - 1, len(self.responses) - 1)
        response = self.responses[index]
        return response(request) if callable(response) else response

    @property
    def call_count(self) -> int:
        return len(self.requests)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self)


@pytest.fixture
def scripted_upstream() -> Callable[..., ScriptedUpstream]:
    def _create(*responses: Scripted) -> ScriptedUpstream:
        return ScriptedUpstream(responses)

    return _create


@pytest.fixture(scope="session")
def check_redis():
    """Check if Redis is available at localhost:6379.

    Skips tests if Redis is not reachable.
    """
    try:
        client = Redis.from_url("redis://localhost:6379/0")
        client.ping()
        client.close()
    except Exception as e:
        pytest.skip(f"Redis not available: {e}")


@pytest.fixture
def ok_response() -> Callable[..., httpx.Response]:
    return messages_response


@pytest.fixture
def upstream_error() -> Callable[..., httpx.Response]:
    return error_response
