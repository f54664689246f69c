"""
Usage accounting models.

UsageRecord is append-only: one per provider call attempt, successful or
not. ActionSummary is derived on demand by the UsageMeter.
"""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from deck_orchestrator.models.enums import CallKind, ErrorClass


class UsageRecord(BaseModel):
    """Token counts, latency and cost for one provider call attempt."""

    model_config = ConfigDict(frozen=True)

    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    model: str
    kind: CallKind
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_write_tokens: int = Field(default=0, ge=0)
    cache_read_tokens: int = Field(default=0, ge=0)
    latency_ms: int = Field(default=0, ge=0)
    cost_in: float = Field(default=0.0, ge=0.0)
    cost_out: float = Field(default=0.0, ge=0.0)
    cost_cache: float = Field(default=0.0, ge=0.0, description="Cache write + cache read cost")
    cost_total: float = Field(default=0.0, ge=0.0)
    user_action: str = "unknown"
    request_id: Optional[str] = None
    attempt: int = Field(default=1, ge=1)
    success: bool = True
    error_class: Optional[ErrorClass] = None


class ActionSummary(BaseModel):
    """Aggregated usage for one logical user action."""

    action: str
    request_count: int = Field(..., ge=0)
    total_cost: float = Field(..., ge=0.0)
    total_input_tokens: int = Field(..., ge=0)
    total_output_tokens: int = Field(..., ge=0)
    avg_latency_ms: int = Field(..., ge=0)
    failed_count: int = Field(default=0, ge=0)
