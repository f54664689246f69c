"""
LLM-specific data models for the provider request/response cycle.

These models are internal to the LLM layer and describe the raw exchange
with the provider. They are separate from the caller-facing models
(GenerationRequest, Document) so the provider client can be swapped
without touching the queue or the repair pipeline.
"""

from typing import Any, Dict, Optional
from pydantic import BaseModel, Field, ConfigDict


class LLMGenerationRequest(BaseModel):
    """
    Provider-neutral request for one completion.

    Built by GenerationClient from a GenerationRequest, with generation
    parameters chosen by call kind.
    """
    model_config = ConfigDict(frozen=True)

    model: str = Field(..., description="Model identifier (e.g., 'claude-3-5-haiku-20241022')")
    messages: list[Dict[str, str]] = Field(..., min_length=1, description="Role/content message dicts")
    system: Optional[str] = Field(default=None, description="System instruction")
    max_tokens: int = Field(default=4000, ge=1, le=64000, description="Maximum tokens to generate")
    temperature: float = Field(default=0.3, ge=0.0, le=1.0, description="Sampling temperature")


class LLMGenerationResponse(BaseModel):
    """
    Raw completion returned by the provider.

    `content` is free-form text; turning it into a Document is the repair
    pipeline's job.
    """
    model_config = ConfigDict(frozen=True)

    content: str = Field(..., description="Concatenated text blocks of the completion")
    model_version: str = Field(..., description="Model id reported by the provider")
    stop_reason: Optional[str] = Field(
        default=None,
        description="Why generation stopped: 'end_turn', 'max_tokens', etc."
    )
    input_tokens: int = Field(default=0, ge=0)
    output_tokens: int = Field(default=0, ge=0)
    cache_creation_input_tokens: int = Field(default=0, ge=0)
    cache_read_input_tokens: int = Field(default=0, ge=0)
    latency_ms: int = Field(..., ge=0, description="Provider call latency in milliseconds")
    raw_metadata: Dict[str, Any] = Field(
        default_factory=dict,
        description="Provider-specific metadata (for debugging)"
    )

    @property
    def truncated(self) -> bool:
        """True when the provider stopped at the token limit."""
        return self.stop_reason == "max_tokens"
