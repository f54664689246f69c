"""
JSON Schemas (Draft 7) for the three accepted response shapes.

- PRESENTATION_SCHEMA: full deck, non-empty title and slides
- SLIDE_LIST_SCHEMA: modification response, title-less slide list
- SLIDE_SCHEMA: modification response, a single bare slide

Block type membership is checked separately against BlockType so the
offending value can be reported by path.
"""

BLOCK_SCHEMA = {
    "type": "object",
    "required": ["type"],
    "properties": {
        "type": {"type": "string", "minLength": 1},
        "props": {"type": "object"},
    },
}

SLIDE_SCHEMA = {
    "type": "object",
    "required": ["id", "blocks"],
    "properties": {
        "id": {"type": "string", "minLength": 1},
        "title": {"type": ["string", "null"]},
        "blocks": {"type": "array", "minItems": 1, "items": BLOCK_SCHEMA},
    },
}

# Full decks may carry a slide whose blocks the model left empty
_DECK_SLIDE_SCHEMA = {
    **SLIDE_SCHEMA,
    "properties": {
        **SLIDE_SCHEMA["properties"],
        "blocks": {"type": "array", "items": BLOCK_SCHEMA},
    },
}

PRESENTATION_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["title", "slides"],
    "properties": {
        "title": {"type": "string", "minLength": 1},
        "slides": {"type": "array", "minItems": 1, "items": _DECK_SLIDE_SCHEMA},
    },
}

SLIDE_LIST_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    "type": "object",
    "required": ["slides"],
    "properties": {
        "slides": {"type": "array", "minItems": 1, "items": SLIDE_SCHEMA},
    },
}

BARE_SLIDE_SCHEMA = {
    "$schema": "http://json-schema.org/draft-07/schema#",
    **SLIDE_SCHEMA,
}
