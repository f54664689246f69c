"""
Response repair and structural validation.

- repair: pure text -> text transforms
- pipeline: tiered ResponseRepairPipeline (direct, heuristic, salvage)
- document_validator: DocumentValidator (shape + block type allow-list)
- translation: structure guard for translation requests
"""

from deck_orchestrator.validation.document_validator import DocumentValidator
from deck_orchestrator.validation.exceptions import JSONParseError
from deck_orchestrator.validation.pipeline import (
    ParsedDocument,
    ResponseRepairPipeline,
    build_placeholder_slide,
)
from deck_orchestrator.validation.translation import (
    TranslationRequest,
    detect_translation_request,
    find_structure_changes,
)

__all__ = [
    "DocumentValidator",
    "JSONParseError",
    "ParsedDocument",
    "ResponseRepairPipeline",
    "TranslationRequest",
    "build_placeholder_slide",
    "detect_translation_request",
    "find_structure_changes",
]
