"""
API-specific request and response models for FastAPI endpoints.

The HTTP surface speaks the renderer's camelCase field names; these models
translate to and from the snake_case domain models.
"""

from datetime import datetime, timezone
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from deck_orchestrator.models.request_models import GenerationRequest, Message
from deck_orchestrator.models.usage_models import ActionSummary


class GenerateRequest(BaseModel):
    """Body of POST /generate."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    messages: list[Message] = Field(..., min_length=1, description="Ordered conversation")
    system_prompt: str = Field(default="", description="System instruction")
    existing_document: Optional[dict[str, Any]] = Field(
        default=None,
        description="Presentation being modified; omit for a new deck",
    )
    file_attachment: Optional[Any] = Field(default=None, description="Structured data from an uploaded file")
    prompt: Optional[str] = Field(default=None, description="Raw user prompt")
    correlation_id: Optional[str] = Field(default=None, description="Caller correlation id")
    user_action: Optional[str] = Field(default=None, description="Usage action label", examples=["create-deck"])

    def to_domain(self, fallback_correlation_id: Optional[str] = None) -> GenerationRequest:
        data = self.model_dump(exclude={"correlation_id"})
        correlation_id = self.correlation_id or fallback_correlation_id
        if correlation_id:
            data["correlation_id"] = correlation_id
        return GenerationRequest(**data)


class HealthResponse(BaseModel):
    """Response for health check endpoint."""

    status: str = Field(description="Overall health", examples=["healthy", "degraded"])
    version: str
    queue_depth: int = Field(ge=0)
    processing: bool
    cache_entries: int = Field(ge=0)
    provider_configured: bool
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class UsageResponse(BaseModel):
    """Usage summaries by user action, most expensive first."""

    actions: list[ActionSummary] = Field(default_factory=list)
    total_cost: float = Field(ge=0.0)
    total_requests: int = Field(ge=0)
