"""
FastAPI dependency injection for the orchestrator API.

The orchestrator is built once at application startup and stored on
`app.state`; endpoints receive it through `get_orchestrator`.
"""

from fastapi import HTTPException, Request, status

from deck_orchestrator.orchestrator import GenerationOrchestrator


def get_orchestrator(request: Request) -> GenerationOrchestrator:
    """
    Get the orchestrator built at startup.

    Raises:
        HTTPException: 503 if the application has not finished starting
    """
    orchestrator = getattr(request.app.state, "orchestrator", None)
    if orchestrator is None:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Orchestrator not initialized",
        )
    return orchestrator
