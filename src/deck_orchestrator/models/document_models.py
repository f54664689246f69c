"""
Presentation document models.

These are the validated output of the orchestrator. Instances are only
built by DocumentValidator after the structural checks pass, so the model
itself stays permissive about extra keys the renderer may understand.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

from deck_orchestrator.models.enums import BlockType


class Block(BaseModel):
    """Typed content block with an open property map."""

    model_config = ConfigDict(extra="allow")

    type: BlockType = Field(..., description="Component type from the allow-list")
    props: dict[str, Any] = Field(default_factory=dict, description="Component properties")


class Slide(BaseModel):
    """A slide: non-empty id plus ordered blocks."""

    model_config = ConfigDict(extra="allow")

    id: str = Field(..., min_length=1, description="Slide identifier (e.g. 'slide-1')")
    title: Optional[str] = Field(default=None, description="Optional slide title")
    blocks: list[Block] = Field(default_factory=list, description="Ordered content blocks")


class Document(BaseModel):
    """
    Generated presentation.

    A full presentation has a title. A modification response may omit it and
    carry one or more replacement slides.
    """

    model_config = ConfigDict(extra="allow")

    title: Optional[str] = Field(default=None, description="Presentation title")
    slides: list[Slide] = Field(..., min_length=1, description="Ordered slides")

    @property
    def is_modification(self) -> bool:
        return self.title is None

    def to_payload(self) -> dict[str, Any]:
        """JSON-ready dict in the renderer's shape (enum values, no None title)."""
        return self.model_dump(mode="json", exclude_none=True)
