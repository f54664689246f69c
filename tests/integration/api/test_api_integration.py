"""
Integration tests for FastAPI application.

These tests use TestClient against the real app. The orchestrator is built
from test settings with a scripted Anthropic upstream and injected into
`app.state` before startup, so no running services are required.
"""

import json

import pytest
from fastapi.testclient import TestClient

from deck_orchestrator.llm.anthropic_client import AnthropicClient
from deck_orchestrator.main import app
from deck_orchestrator.orchestrator import build_orchestrator

pytestmark = pytest.mark.integration


@pytest.fixture
def make_client(test_settings):
    """Factory: TestClient whose orchestrator talks to the given scripted upstream."""
    clients = []

    def _create(upstream, api_key: str = "test-key") -> TestClient:
        test_settings.ANTHROPIC_API_KEY = api_key
        provider = AnthropicClient(
            api_key=api_key,
            base_url=test_settings.ANTHROPIC_BASE_URL,
            transport=upstream.transport(),
        )
        app.state.orchestrator = build_orchestrator(test_settings, provider=provider)
        client = TestClient(app)
        client.__enter__()
        clients.append(client)
        return client

    yield _create

    for client in clients:
        client.__exit__(None, None, None)
    app.state.orchestrator = None


def generate_body(content: str = "Create a deck about solar energy", **extra) -> dict:
    return {
        "messages": [{"role": "user", "content": content}],
        "systemPrompt": "You generate presentation JSON.",
        **extra,
    }


def test_root_endpoint(make_client, scripted_upstream, ok_response):
    client = make_client(scripted_upstream(ok_response("{}")))

    response = client.get("/")

    assert response.status_code == 200
    data = response.json()
    assert data["service"]
    assert data["health"] == "/health"
    assert data["usage"] == "/usage"


def test_generate_returns_document(make_client, scripted_upstream, ok_response, valid_deck_json):
    upstream = scripted_upstream(ok_response(valid_deck_json))
    client = make_client(upstream)

    response = client.post(
        "/generate",
        json=generate_body(userAction="create-deck"),
        headers={"X-Correlation-ID": "corr-1"},
    )

    assert response.status_code == 200
    data = response.json()
    assert data["title"] == "Quarterly Review"
    assert [s["id"] for s in data["slides"]] == ["slide-1", "slide-2"]
    assert response.headers["X-Correlation-ID"] == "corr-1"
    assert "X-Request-ID" in response.headers
    assert upstream.requests[0]["system"] == "You generate presentation JSON."


def test_duplicate_generate_served_from_cache(make_client, scripted_upstream, ok_response, valid_deck_json):
    upstream = scripted_upstream(ok_response(valid_deck_json))
    client = make_client(upstream)

    first = client.post("/generate", json=generate_body())
    second = client.post("/generate", json=generate_body())

    assert first.json() == second.json()
    assert upstream.call_count == 1


def test_modification_returns_slide_list(make_client, scripted_upstream, ok_response, valid_deck):
    changed = {"slides": [valid_deck["slides"][0]]}
    upstream = scripted_upstream(ok_response(json.dumps(changed)))
    client = make_client(upstream)

    response = client.post("/generate", json=generate_body("Change the cover text", existingDocument=valid_deck))

    assert response.status_code == 200
    data = response.json()
    assert "title" not in data
    assert data["slides"][0]["id"] == "slide-1"


def test_unparseable_response_is_502(make_client, scripted_upstream, ok_response):
    client = make_client(scripted_upstream(ok_response("Sorry, I cannot do that.")))

    response = client.post("/generate", json=generate_body())

    assert response.status_code == 502
    assert response.headers["Retry-After"] == "60"
    body = response.json()
    assert body["error"] == "unparseable"
    assert body["details"]["raw_response"] == "Sorry, I cannot do that."


def test_unknown_block_type_is_422(make_client, scripted_upstream, ok_response):
    deck = {"title": "Deck", "slides": [{"id": "slide-1", "blocks": [{"type": "Roadmap_Timeline"}]}]}
    client = make_client(scripted_upstream(ok_response(json.dumps(deck))))

    response = client.post("/generate", json=generate_body())

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "structural_invalid"
    assert body["details"]["violations"] == [
        "slides.0.blocks.0.type: 'Roadmap_Timeline' is not an allowed block type"
    ]


def test_persistent_rate_limit_is_429(make_client, scripted_upstream, upstream_error):
    client = make_client(scripted_upstream(upstream_error(429, "rate_limit_error")))

    response = client.post("/generate", json=generate_body())

    assert response.status_code == 429
    assert response.headers["Retry-After"] == "30"
    assert response.json()["error"] == "rate_limit_exceeded"


def test_server_errors_are_503(make_client, scripted_upstream, upstream_error):
    upstream = scripted_upstream(upstream_error(500, "api_error"))
    client = make_client(upstream)

    response = client.post("/generate", json=generate_body())

    assert response.status_code == 503
    assert response.json()["error"] == "upstream_unavailable"
    assert upstream.call_count == 3


def test_invalid_api_key_is_502(make_client, scripted_upstream, upstream_error):
    upstream = scripted_upstream(upstream_error(401, "authentication_error", "invalid x-api-key"))
    client = make_client(upstream)

    response = client.post("/generate", json=generate_body())

    assert response.status_code == 502
    assert response.json()["error"] == "fatal"
    assert upstream.call_count == 1


def test_generate_invalid_request(make_client, scripted_upstream, ok_response):
    upstream = scripted_upstream(ok_response("{}"))
    client = make_client(upstream)

    response = client.post("/generate", json={"messages": []})

    assert response.status_code == 400
    assert response.json()["error"] == "invalid_request"
    assert upstream.call_count == 0


def test_health_endpoint(make_client, scripted_upstream, ok_response):
    client = make_client(scripted_upstream(ok_response("{}")))

    response = client.get("/health")

    assert response.status_code == 200
    data = response.json()
    assert data["status"] == "healthy"
    assert data["queue_depth"] == 0
    assert data["processing"] is False
    assert data["provider_configured"] is True
    assert "timestamp" in data


def test_health_degraded_without_api_key(make_client, scripted_upstream, ok_response):
    client = make_client(scripted_upstream(ok_response("{}")), api_key="")

    response = client.get("/health")

    assert response.status_code == 503
    assert response.json()["status"] == "degraded"


def test_usage_endpoint(make_client, scripted_upstream, ok_response, valid_deck_json):
    client = make_client(scripted_upstream(ok_response(valid_deck_json)))
    client.post("/generate", json=generate_body(userAction="create-deck"))

    response = client.get("/usage")

    assert response.status_code == 200
    data = response.json()
    assert data["total_requests"] == 1
    assert data["actions"][0]["action"] == "create-deck"
    assert data["total_cost"] > 0
