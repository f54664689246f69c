"""
Caller-facing request models.

A GenerationRequest is immutable once submitted: the queue, the cache
fingerprint and the generation client all read it, none of them mutate it.
"""

from typing import Any, Literal, Optional
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from deck_orchestrator.models.enums import CallKind


class Message(BaseModel):
    """One conversation turn sent to the provider."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "assistant"] = Field(..., description="Conversation role")
    content: str = Field(..., description="Message text")


class GenerationRequest(BaseModel):
    """
    Request to generate or modify a presentation.

    `existing_document` marks the request as a modification: the provider is
    expected to answer with a single slide or a title-less slide list.
    `file_attachment` and `prompt` only feed the cache fingerprint so that
    two requests over different uploaded files never share a cached result.
    """

    model_config = ConfigDict(frozen=True)

    messages: list[Message] = Field(..., min_length=1, description="Ordered conversation")
    system_prompt: str = Field(default="", description="System instruction")
    existing_document: Optional[dict[str, Any]] = Field(
        default=None,
        description="Presentation being modified (None for new decks)",
    )
    file_attachment: Optional[Any] = Field(
        default=None,
        description="Structured payload extracted from an uploaded file",
    )
    prompt: Optional[str] = Field(default=None, description="Raw user prompt text")
    correlation_id: str = Field(
        default_factory=lambda: uuid4().hex,
        description="Caller-assigned id used to correlate logs",
    )
    user_action: Optional[str] = Field(
        default=None,
        description="Logical user action for usage aggregation (e.g. 'create-deck')",
    )

    @property
    def is_modification(self) -> bool:
        return self.existing_document is not None

    @property
    def call_kind(self) -> CallKind:
        return CallKind.MODIFY if self.is_modification else CallKind.NEW

    @property
    def action(self) -> str:
        """Usage action, defaulting by call kind."""
        return self.user_action or self.call_kind.default_action

    def last_user_message(self) -> Optional[str]:
        for message in reversed(self.messages):
            if message.role == "user":
                return message.content
        return None
