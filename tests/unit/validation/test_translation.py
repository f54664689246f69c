"""
Unit tests for the translation structure guard.
"""

import copy

import pytest

from deck_orchestrator.validation.translation import detect_translation_request, find_structure_changes


@pytest.mark.parametrize(
    "text,expected",
    [
        ("Please translate to Spanish", "spanish"),
        ("Traduce al español todo", "spanish"),
        ("can you translate everything to english?", "english"),
        ("Tradúcelo al inglés", "english"),
    ],
)
def test_detects_target_language(text, expected):
    assert detect_translation_request(text).target_language == expected


@pytest.mark.parametrize("text", [None, "", "Make slide 2 blue", "Add a pricing slide"])
def test_non_translation_requests(text):
    assert detect_translation_request(text) is None


def test_text_only_changes_preserve_structure(valid_deck):
    translated = copy.deepcopy(valid_deck)
    translated["title"] = "Revisión trimestral"
    translated["slides"][0]["blocks"][1]["props"]["paragraph"] = "Resultados del tercer trimestre"

    assert find_structure_changes(valid_deck, translated) == []


def test_slide_count_change(valid_deck):
    translated = copy.deepcopy(valid_deck)
    translated["slides"].pop()

    assert find_structure_changes(valid_deck, translated) == ["slide count changed: 2 -> 1"]


def test_block_type_and_structural_prop_changes(valid_deck):
    translated = copy.deepcopy(valid_deck)
    translated["slides"][0]["blocks"][1]["type"] = "Cover_ProductLayout"
    translated["slides"][1]["blocks"][0]["props"]["color"] = "bg-black"

    changes = find_structure_changes(valid_deck, translated)

    assert "slides.0.blocks.1.type changed: 'Cover_TextCenter' -> 'Cover_ProductLayout'" in changes
    assert "slides.1.blocks.0.props.color changed" in changes


def test_slide_id_change(valid_deck):
    translated = copy.deepcopy(valid_deck)
    translated["slides"][1]["id"] = "slide-9"

    assert find_structure_changes(valid_deck, translated) == ["slides.1.id changed: 'slide-2' -> 'slide-9'"]
