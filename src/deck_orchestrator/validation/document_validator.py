"""
Structural contract check for parsed responses.

Accepts three shapes:
- Full presentation: non-empty title, non-empty slides
- Modification slide list: no title, non-empty slides, each with blocks
- Modification bare slide: {"id": ..., "blocks": [...]} with non-empty blocks

Anything else, and any block whose type is outside the BlockType allow-list,
raises StructuralInvalid carrying the offending data. Nothing is dropped or
coerced.
"""

from typing import Any, NoReturn

import structlog
from jsonschema import Draft7Validator
from pydantic import ValidationError as PydanticValidationError

from deck_orchestrator.exceptions import StructuralInvalid
from deck_orchestrator.models.document_models import Document, Slide
from deck_orchestrator.models.enums import BlockType
from deck_orchestrator.monitoring.metrics import structural_failures_total
from deck_orchestrator.validation.schemas import (
    BARE_SLIDE_SCHEMA,
    PRESENTATION_SCHEMA,
    SLIDE_LIST_SCHEMA,
)

logger = structlog.get_logger(__name__)


class DocumentValidator:
    """
    Validates a parsed dict and builds the Document model.
    """

    def __init__(self, allowed_block_types: frozenset[str] | None = None):
        self.allowed_block_types = allowed_block_types or BlockType.allowed_values()
        self._presentation = Draft7Validator(PRESENTATION_SCHEMA)
        self._slide_list = Draft7Validator(SLIDE_LIST_SCHEMA)
        self._bare_slide = Draft7Validator(BARE_SLIDE_SCHEMA)

    def validate(self, data: Any) -> Document:
        """
        Validate parsed output.

        Args:
            data: Parsed JSON value

        Returns:
            Document (title is None for modification shapes)

        Raises:
            StructuralInvalid: If data matches no accepted shape or uses an
                unknown block type
        """
        if not isinstance(data, dict):
            self._fail("schema", f"Expected a JSON object, got {type(data).__name__}", [], data)

        shape, validator = self._select_shape(data)
        errors = sorted(validator.iter_errors(data), key=lambda e: [str(p) for p in e.path])
        if errors:
            messages = []
            for error in errors[:10]:  # Limit to first 10 errors
                path = ".".join(str(p) for p in error.path) if error.path else "root"
                messages.append(f"{path}: {error.message}")
            self._fail("schema", f"Response is not a valid {shape} ({len(errors)} error(s))", messages, data)

        slides = data["slides"] if shape != "slide" else [data]
        unknown = self._unknown_block_types(slides, bare=shape == "slide")
        if unknown:
            self._fail("unknown_block_type", f"Response uses {len(unknown)} unknown block type(s)", unknown, data)

        try:
            document = Document(
                title=data.get("title") if shape == "presentation" else None,
                slides=[Slide.model_validate(slide) for slide in slides],
            )
        except PydanticValidationError as e:
            self._fail("schema", "Response could not be converted to a document", [str(e)], data)

        logger.debug("Document validated", shape=shape, slide_count=len(document.slides))
        return document

    def _select_shape(self, data: dict) -> tuple[str, Draft7Validator]:
        if "slides" in data:
            if data.get("title"):
                return "presentation", self._presentation
            return "slide list", self._slide_list
        if "id" in data or "blocks" in data:
            return "slide", self._bare_slide
        # Neither shape: report against the full presentation contract
        return "presentation", self._presentation

    def _unknown_block_types(self, slides: list[dict], bare: bool) -> list[str]:
        violations = []
        for i, slide in enumerate(slides):
            prefix = "blocks" if bare else f"slides.{i}.blocks"
            for j, block in enumerate(slide.get("blocks", [])):
                block_type = block.get("type")
                if block_type not in self.allowed_block_types:
                    violations.append(f"{prefix}.{j}.type: '{block_type}' is not an allowed block type")
        return violations

    def _fail(self, reason: str, message: str, violations: list[str], data: Any) -> NoReturn:
        structural_failures_total.labels(reason=reason).inc()
        logger.warning("Structural validation failed", reason=reason, violations=violations[:10])
        raise StructuralInvalid(message, violations=violations, offending=data)
