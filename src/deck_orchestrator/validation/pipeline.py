"""
Response repair pipeline: raw provider text -> validated Document.

Tiers, each attempted only if the previous one failed to produce a JSON
object:

1. DIRECT: strip markdown fences, strict json.loads
2. HEURISTIC: HEURISTIC_TRANSFORMS chain, then parse; if that fails and the
   output looks truncated, cut back to the last complete slide, append the
   missing closers and parse again
3. SALVAGE: parse every slide object found by its "slide-N" id marker in
   isolation, dropping slides that still fail; recover the title by pattern.
   A title with no surviving slide yields a single placeholder slide.

If no tier produces an object, Unparseable is raised with a bounded prefix of
the raw text. An object that parses but breaks the document contract raises
StructuralInvalid from DocumentValidator and later tiers are not tried. The
one exception is an object closed by tier 2: its invalid tail is an artifact
of the truncation, so the pipeline moves on to SALVAGE.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Optional

import structlog

from deck_orchestrator.exceptions import StructuralInvalid, Unparseable
from deck_orchestrator.models.document_models import Document
from deck_orchestrator.models.enums import RepairTier
from deck_orchestrator.monitoring.metrics import repair_tier_total
from deck_orchestrator.validation.document_validator import DocumentValidator
from deck_orchestrator.validation.exceptions import JSONParseError
from deck_orchestrator.validation.repair import (
    apply_transforms,
    balance_closers,
    ends_inside_string,
    find_enclosing_object_start,
    find_object_end,
    remove_control_characters,
    remove_trailing_commas,
    strip_code_fences,
    trim_to_last_complete_element,
)

logger = structlog.get_logger(__name__)

SLIDE_ID_MARKER = re.compile(r'"id"\s*:\s*"slide-\d+"')
TITLE_PATTERN = re.compile(r'"title"\s*:\s*"((?:[^"\\]|\\.)+)"')

DEFAULT_TITLE = "Generated Presentation"
PLACEHOLDER_PARAGRAPH = "Content is being processed. Please try regenerating this presentation."
PLACEHOLDER_IMAGE_URL = "/Default-Image-2.png"


def build_placeholder_slide(title: str) -> dict[str, Any]:
    """Minimal "please retry" slide used when nothing but a title survives."""
    return {
        "id": "slide-1",
        "blocks": [
            {"type": "BackgroundBlock", "props": {"color": "bg-white"}},
            {
                "type": "Cover_ProductLayout",
                "props": {
                    "title": title,
                    "paragraph": PLACEHOLDER_PARAGRAPH,
                    "imageUrl": PLACEHOLDER_IMAGE_URL,
                    "fontFamily": "font-helvetica-neue",
                },
            },
        ],
    }


@dataclass(frozen=True)
class ParsedDocument:
    document: Document
    tier: RepairTier


def _loads_object(text: str, tier: RepairTier) -> dict[str, Any]:
    try:
        parsed = json.loads(text)
    except json.JSONDecodeError as e:
        raise JSONParseError("Invalid JSON", tier=tier.value, raw_content=text, parse_error=str(e)) from e
    if not isinstance(parsed, dict):
        raise JSONParseError(
            f"Expected a JSON object, got {type(parsed).__name__}",
            tier=tier.value,
            raw_content=text,
        )
    return parsed


class ResponseRepairPipeline:
    """
    Tiered parser for provider output.

    Never raises a raw parser exception: the outcome is a ParsedDocument,
    Unparseable or StructuralInvalid.
    """

    def __init__(
        self,
        validator: Optional[DocumentValidator] = None,
        diagnostic_chars: int = 500,
        retry_after: int = 60,
    ):
        self.validator = validator or DocumentValidator()
        self.diagnostic_chars = diagnostic_chars
        self.retry_after = retry_after
        self._tiers: tuple[tuple[RepairTier, Callable[[str], tuple[dict[str, Any], bool]]], ...] = (
            (RepairTier.DIRECT, self._direct),
            (RepairTier.HEURISTIC, self._heuristic),
            (RepairTier.SALVAGE, self._salvage),
        )

    def parse(self, raw_text: str) -> ParsedDocument:
        """
        Parse and validate raw provider text.

        Args:
            raw_text: Completion text as returned by the provider

        Returns:
            ParsedDocument with the validated document and the tier that produced it

        Raises:
            Unparseable: No tier produced a JSON object
            StructuralInvalid: Parsed object violates the document contract
        """
        text = strip_code_fences(raw_text or "")
        if text:
            for tier, strategy in self._tiers:
                try:
                    data, closed = strategy(text)
                except JSONParseError as e:
                    logger.debug("Repair tier failed", tier=tier.value, error=e.message)
                    continue

                try:
                    document = self.validator.validate(data)
                except StructuralInvalid as e:
                    if not closed:
                        raise
                    logger.info(
                        "Closed truncated output is invalid, falling back to salvage",
                        violations=e.violations[:5],
                    )
                    continue
                repair_tier_total.labels(tier=tier.value).inc()
                if tier is not RepairTier.DIRECT:
                    logger.info("Response repaired", tier=tier.value, slide_count=len(document.slides))
                return ParsedDocument(document=document, tier=tier)

        repair_tier_total.labels(tier="failed").inc()
        logger.error(
            "All repair tiers failed",
            raw_length=len(raw_text or ""),
            raw_prefix=(raw_text or "")[:200],
        )
        raise Unparseable(
            "Unable to parse provider response after all repair tiers",
            raw_text=raw_text or "",
            diagnostic_chars=self.diagnostic_chars,
            retry_after=self.retry_after,
        )

    def _direct(self, text: str) -> tuple[dict[str, Any], bool]:
        return _loads_object(text, RepairTier.DIRECT), False

    def _heuristic(self, text: str) -> tuple[dict[str, Any], bool]:
        repaired = apply_transforms(text)
        try:
            return _loads_object(repaired, RepairTier.HEURISTIC), False
        except JSONParseError:
            if ends_inside_string(repaired):
                raise
            trimmed = trim_to_last_complete_element(repaired)
            balanced = balance_closers(trimmed)
            if balanced == repaired:
                raise
        logger.info(
            "Output looks truncated, appended missing closers",
            dropped_chars=len(repaired) - len(trimmed),
            appended=balanced[len(trimmed.rstrip()):],
        )
        return _loads_object(remove_trailing_commas(balanced), RepairTier.HEURISTIC), True

    def _salvage(self, text: str) -> tuple[dict[str, Any], bool]:
        text = remove_control_characters(text)
        slides: list[dict[str, Any]] = []
        consumed_until = -1

        for match in SLIDE_ID_MARKER.finditer(text):
            if match.start() < consumed_until:
                continue  # marker nested inside a slide already extracted
            start = find_enclosing_object_start(text, match.start())
            if start == -1:
                continue
            end = find_object_end(text, start)
            if end == -1:
                logger.debug("Skipping unterminated slide", offset=start)
                continue
            try:
                slide = _loads_object(apply_transforms(text[start:end + 1]), RepairTier.SALVAGE)
            except JSONParseError as e:
                logger.debug("Skipping malformed slide", offset=start, error=e.message)
                continue
            slides.append(slide)
            consumed_until = end

        title = self._extract_title(text)
        if slides:
            logger.warning("Salvaged slides from malformed response", salvaged=len(slides))
            return {"title": title or DEFAULT_TITLE, "slides": slides}, False
        if title:
            logger.warning("No slide survived, returning placeholder slide", title=title)
            return {"title": title, "slides": [build_placeholder_slide(title)]}, False
        raise JSONParseError("No slide or title could be salvaged", tier=RepairTier.SALVAGE.value)

    @staticmethod
    def _extract_title(text: str) -> Optional[str]:
        match = TITLE_PATTERN.search(text)
        if not match:
            return None
        raw = match.group(1)
        try:
            return json.loads(f'"{raw}"')
        except json.JSONDecodeError:
            return raw
