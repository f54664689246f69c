"""
FastAPI API routes and endpoints.

- routes.py: POST /generate, GET /health, GET /usage
- dependencies.py: Dependency injection for the orchestrator
- models.py: API-specific request/response models
- error_handlers.py: Exception handlers for structured error responses
- middleware.py: Request id / correlation id tracing
"""

from deck_orchestrator.api import dependencies, error_handlers, models
from deck_orchestrator.api.routes import router

__all__ = [
    "router",
    "dependencies",
    "error_handlers",
    "models",
]
