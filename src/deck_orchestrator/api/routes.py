"""
HTTP routes for deck generation.

POST /generate blocks until the queue resolves the request: either a
validated presentation (or slide list for modifications) or a structured
error with a status code and an optional Retry-After.
"""

import time
from typing import Any

import structlog
from fastapi import APIRouter, Depends, Request, status
from fastapi.responses import JSONResponse
from prometheus_client import Counter, Histogram

from deck_orchestrator import __version__
from deck_orchestrator.api.dependencies import get_orchestrator
from deck_orchestrator.api.models import GenerateRequest, HealthResponse, UsageResponse
from deck_orchestrator.exceptions import OrchestratorError
from deck_orchestrator.orchestrator import GenerationOrchestrator

logger = structlog.get_logger(__name__)

generate_requests_total = Counter(
    "deck_generate_requests_total",
    "Total generation requests by outcome",
    ["outcome"],
)

generate_duration_seconds = Histogram(
    "deck_generate_duration_seconds",
    "Generation request duration in seconds (queue wait included)",
    buckets=(0.5, 1, 2, 5, 10, 20, 30, 60, 120),
)

router = APIRouter()


@router.post(
    "/generate",
    status_code=status.HTTP_200_OK,
    summary="Generate or modify a presentation",
    description="""
    Queue a generation request and wait for its result.

    Without `existingDocument` the response is a full presentation
    (`title` + `slides`). With `existingDocument` the response holds only
    the slides that changed. Identical requests within the cache TTL are
    answered from the response cache without calling the provider.
    """,
    responses={
        200: {"description": "Validated document"},
        400: {"description": "Invalid request format"},
        422: {"description": "Provider output failed structural validation"},
        429: {"description": "Provider rate limit persisted after all retries"},
        502: {"description": "Provider output could not be parsed"},
        503: {"description": "Provider unavailable"},
        504: {"description": "Provider call exceeded its deadline"},
    },
)
async def generate(
    body: GenerateRequest,
    request: Request,
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> dict[str, Any]:
    generation_request = body.to_domain(getattr(request.state, "correlation_id", None))

    start_time = time.perf_counter()
    try:
        document = await orchestrator.submit(generation_request)
    except OrchestratorError as exc:
        generate_requests_total.labels(outcome=exc.kind.value).inc()
        raise
    finally:
        generate_duration_seconds.observe(time.perf_counter() - start_time)

    generate_requests_total.labels(outcome="success").inc()
    logger.info(
        "Generation request served",
        correlation_id=generation_request.correlation_id,
        slide_count=len(document.slides),
    )
    return document.to_payload()


@router.get(
    "/health",
    response_model=HealthResponse,
    summary="Health check",
    responses={
        200: {"description": "Service healthy"},
        503: {"description": "Provider not configured"},
    },
)
async def health(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> JSONResponse:
    """
    Report queue, cache and provider configuration state.

    Returns 503 when no provider API key is configured, since every
    generation request would fail.
    """
    stats = orchestrator.stats()
    healthy = stats["provider_configured"]
    health_response = HealthResponse(
        status="healthy" if healthy else "degraded",
        version=__version__,
        **stats,
    )
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content=health_response.model_dump(mode="json"),
    )


@router.get(
    "/usage",
    response_model=UsageResponse,
    summary="Usage summaries by user action",
)
async def usage(
    orchestrator: GenerationOrchestrator = Depends(get_orchestrator),
) -> UsageResponse:
    summaries = orchestrator.usage_meter.summaries()
    return UsageResponse(
        actions=summaries,
        total_cost=round(sum(s.total_cost for s in summaries), 6),
        total_requests=sum(s.request_count for s in summaries),
    )
