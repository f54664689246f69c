"""
FastAPI exception handlers for structured error responses.

Every OrchestratorError maps to its own status code; the body always has
the shape {error, message, details, retry_after, timestamp}.
"""

from datetime import datetime, timezone

import structlog
from fastapi import Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import ValidationError as PydanticValidationError

from deck_orchestrator.exceptions import OrchestratorError

logger = structlog.get_logger(__name__)


def _timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


async def orchestrator_error_handler(request: Request, exc: OrchestratorError) -> JSONResponse:
    """
    Handle errors surfaced by the orchestrator.

    Adds a Retry-After header when the error suggests one.

    Args:
        request: FastAPI request
        exc: OrchestratorError instance

    Returns:
        JSON error response
    """
    logger.warning(
        "Generation failed",
        error_kind=exc.kind.value,
        status_code=exc.status_code,
        reason=exc.message,
    )

    body = exc.to_dict()
    body["timestamp"] = _timestamp()
    headers = {"Retry-After": str(exc.retry_after)} if exc.retry_after else None
    return JSONResponse(status_code=exc.status_code, content=body, headers=headers)


async def request_validation_error_handler(
    request: Request, exc: RequestValidationError | PydanticValidationError
) -> JSONResponse:
    """
    Handle invalid request bodies.

    Maps to 400 Bad Request (client error).
    """
    errors = exc.errors()
    logger.warning("Invalid request format", errors=errors)

    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "invalid_request",
            "message": "Request validation failed",
            "details": {"errors": [{"loc": list(e.get("loc", ())), "msg": e.get("msg")} for e in errors]},
            "retry_after": None,
            "timestamp": _timestamp(),
        },
    )


async def generic_error_handler(request: Request, exc: Exception) -> JSONResponse:
    """
    Handle unexpected errors.

    Maps to 500 Internal Server Error.
    """
    logger.exception("Unexpected error", error_type=type(exc).__name__)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred",
            "details": {},
            "retry_after": None,
            "timestamp": _timestamp(),
        },
    )


# Exception handler mapping for FastAPI app.add_exception_handler()
EXCEPTION_HANDLERS = {
    OrchestratorError: orchestrator_error_handler,
    RequestValidationError: request_validation_error_handler,
    PydanticValidationError: request_validation_error_handler,
    Exception: generic_error_handler,
}
