"""
Translation structure guard.

A translation request may only change text. When the last user message of a
modification request asks for an English/Spanish translation, the result
must keep the deck's slide ids, block counts, block types and structural
props exactly as they were.
"""

from dataclasses import dataclass
from typing import Any, Literal, Optional

import structlog

logger = structlog.get_logger(__name__)

TargetLanguage = Literal["spanish", "english"]

TO_SPANISH_PHRASES = (
    "translate to spanish", "translate to español", "translate into spanish",
    "convert to spanish", "change to spanish", "traduce al español",
    "traducir al español", "cambiar a español", "convertir a español",
    "translate this to spanish", "change language to spanish",
    "switch to spanish", "make it spanish", "en español",
    "translate everything to spanish", "convert all to spanish",
)

TO_ENGLISH_PHRASES = (
    "translate to english", "translate into english", "convert to english",
    "change to english", "tradúcelo al inglés", "traducir al inglés",
    "cambiar a inglés", "convertir a inglés", "traduce al inglés",
    "translate this to english", "change language to english",
    "switch to english", "make it english", "in english",
    "translate everything to english", "convert all to english",
)

STRUCTURAL_PROPS = (
    "color", "imageUrl", "hasChart", "chartType",
    "legendPosition", "showLegend", "showGrid", "animate",
)


@dataclass(frozen=True)
class TranslationRequest:
    target_language: TargetLanguage


def detect_translation_request(text: Optional[str]) -> Optional[TranslationRequest]:
    """Return the requested target language, or None if `text` is not a translation request."""
    if not text:
        return None
    lowered = text.lower()
    if any(phrase in lowered for phrase in TO_SPANISH_PHRASES):
        return TranslationRequest(target_language="spanish")
    if any(phrase in lowered for phrase in TO_ENGLISH_PHRASES):
        return TranslationRequest(target_language="english")
    return None


def find_structure_changes(original: dict[str, Any], translated: dict[str, Any]) -> list[str]:
    """
    Compare two decks and list every structural difference.

    Only slides are compared; text props may differ freely.

    Returns:
        Human-readable differences (empty when the structure is preserved)
    """
    original_slides = original.get("slides")
    translated_slides = translated.get("slides")
    if not isinstance(original_slides, list) or not isinstance(translated_slides, list):
        return []

    if len(original_slides) != len(translated_slides):
        return [f"slide count changed: {len(original_slides)} -> {len(translated_slides)}"]

    changes = []
    for i, (orig_slide, trans_slide) in enumerate(zip(original_slides, translated_slides)):
        if orig_slide.get("id") != trans_slide.get("id"):
            changes.append(f"slides.{i}.id changed: {orig_slide.get('id')!r} -> {trans_slide.get('id')!r}")
            continue
        orig_blocks = orig_slide.get("blocks") or []
        trans_blocks = trans_slide.get("blocks") or []
        if len(orig_blocks) != len(trans_blocks):
            changes.append(f"slides.{i}.blocks count changed: {len(orig_blocks)} -> {len(trans_blocks)}")
            continue
        for j, (orig_block, trans_block) in enumerate(zip(orig_blocks, trans_blocks)):
            if orig_block.get("type") != trans_block.get("type"):
                changes.append(
                    f"slides.{i}.blocks.{j}.type changed: {orig_block.get('type')!r} -> {trans_block.get('type')!r}"
                )
                continue
            orig_props = orig_block.get("props") or {}
            trans_props = trans_block.get("props") or {}
            for prop in STRUCTURAL_PROPS:
                if prop in orig_props and orig_props[prop] != trans_props.get(prop):
                    changes.append(f"slides.{i}.blocks.{j}.props.{prop} changed")
    return changes
