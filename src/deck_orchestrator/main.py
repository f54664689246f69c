"""
FastAPI application entry point for the deck generation orchestrator.
"""

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from prometheus_fastapi_instrumentator import Instrumentator

from deck_orchestrator.api.error_handlers import EXCEPTION_HANDLERS
from deck_orchestrator.api.middleware import RequestTracingMiddleware
from deck_orchestrator.api.routes import router
from deck_orchestrator.config import settings
from deck_orchestrator.logging_config import configure_logging
from deck_orchestrator.orchestrator import build_orchestrator
from deck_orchestrator.persistence.redis_client import RedisClient

# Configure structured logging before any other imports
configure_logging(settings.LOG_LEVEL, settings.ENVIRONMENT)
logger = structlog.get_logger(__name__)

app = FastAPI(
    title=settings.APP_NAME,
    description="Queues, paces, caches and repairs LLM-generated presentation documents",
    version=settings.APP_VERSION,
    docs_url="/docs",
    redoc_url="/redoc",
)

# Request tracing middleware (must be first for request_id in all logs)
app.add_middleware(RequestTracingMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

for exc_class, handler in EXCEPTION_HANDLERS.items():
    app.add_exception_handler(exc_class, handler)

app.include_router(router, tags=["generation"])


@app.on_event("startup")
async def startup():
    """Build the orchestrator (unless one was injected) and start its sweeper."""
    logger.info(
        "Application startup",
        version=settings.APP_VERSION,
        environment=settings.ENVIRONMENT,
        model=settings.LLM_MODEL,
        base_url=settings.ANTHROPIC_BASE_URL,
    )

    if getattr(app.state, "orchestrator", None) is None:
        app.state.orchestrator = build_orchestrator(settings)

    if not settings.ANTHROPIC_API_KEY:
        logger.warning("ANTHROPIC_API_KEY not set; generation requests will fail")

    await app.state.orchestrator.start()
    logger.info("Application startup complete")


@app.on_event("shutdown")
async def shutdown():
    """Reject pending requests, stop the sweeper, close connections."""
    logger.info("Application shutdown")
    orchestrator = getattr(app.state, "orchestrator", None)
    if orchestrator is not None:
        await orchestrator.stop()
    await RedisClient.close_pool()
    logger.info("Application shutdown complete")


if settings.PROMETHEUS_ENABLED:
    Instrumentator().instrument(app).expose(app)


@app.get("/")
async def root():
    """Root endpoint with API documentation links."""
    return {
        "service": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "docs": "/docs",
        "health": "/health",
        "usage": "/usage",
        "chart_service": settings.CHART_SERVICE_BASE_URL,
        "metrics": "/metrics" if settings.PROMETHEUS_ENABLED else None,
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "deck_orchestrator.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
    )
