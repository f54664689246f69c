"""
Pydantic data models for the generation orchestrator.

Includes:
- Enums (ErrorClass, ErrorKind, CallKind, RepairTier, BlockType)
- Request models (Message, GenerationRequest)
- Document models (Block, Slide, Document)
- LLM models (LLMGenerationRequest, LLMGenerationResponse)
- Usage models (UsageRecord, ActionSummary)
"""

from deck_orchestrator.models.enums import (
    BlockType,
    CallKind,
    ErrorClass,
    ErrorKind,
    RepairTier,
)
from deck_orchestrator.models.request_models import GenerationRequest, Message
from deck_orchestrator.models.document_models import Block, Document, Slide
from deck_orchestrator.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from deck_orchestrator.models.usage_models import ActionSummary, UsageRecord

__all__ = [
    # Enums
    "BlockType",
    "CallKind",
    "ErrorClass",
    "ErrorKind",
    "RepairTier",
    # Request models
    "GenerationRequest",
    "Message",
    # Document models
    "Block",
    "Document",
    "Slide",
    # LLM models
    "LLMGenerationRequest",
    "LLMGenerationResponse",
    # Usage models
    "ActionSummary",
    "UsageRecord",
]
