"""
Pure text -> text repair transforms for model-emitted JSON.

Each transform targets one common model mistake and is independently
testable. Transforms that rewrite syntax only touch text outside string
literals, so slide copy such as "Revenue: 1, 2, 3}" is never altered.

HEURISTIC_TRANSFORMS is the ordered chain applied by tier 2 of the
ResponseRepairPipeline.
"""

import re
from typing import Callable

Transform = Callable[[str], str]

_FENCE_OPEN = re.compile(r"```(?:json|JSON)?[ \t]*\r?\n?")
_CONTROL_CHARS = re.compile(r"[\x00-\x1f\x7f-\x9f]")
_CONTROL_CHARS_NON_WS = re.compile(r"[\x00-\x08\x0b\x0c\x0e-\x1f\x7f-\x9f]")
_TRAILING_COMMA = re.compile(r",(\s*[}\]])")
_UNQUOTED_KEY = re.compile(r"([{,]\s*)([A-Za-z_$][\w$-]*)(\s*:)")
_UNQUOTED_VALUE = re.compile(r"(:\s*)([^\s\"',\[\]{}:][^\",\[\]{}:]*?)(\s*)(?=[,}\]])")
_MISSING_OBJECT_COMMA = re.compile(r"}(\s*){")
_MISSING_ARRAY_COMMA = re.compile(r"](\s*)\[")
_NUMBER = re.compile(r"-?(?:0|[1-9]\d*)(?:\.\d+)?(?:[eE][+-]?\d+)?")
_JSON_LITERALS = frozenset({"true", "false", "null"})


def _scan(text: str) -> tuple[list[tuple[bool, str]], bool]:
    segments: list[tuple[bool, str]] = []
    start = 0
    i = 0
    in_string = False
    n = len(text)
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                segments.append((True, text[start:i + 1]))
                start = i + 1
                in_string = False
        elif ch == '"':
            if i > start:
                segments.append((False, text[start:i]))
            start = i
            in_string = True
        i += 1
    if start < n:
        segments.append((in_string, text[start:]))
    return segments, in_string


def split_string_literals(text: str) -> list[tuple[bool, str]]:
    """
    Split text into (is_string, chunk) segments.

    String chunks keep their surrounding quotes. An unterminated string at the
    end of the text is returned as a final string chunk.
    """
    return _scan(text)[0]


def ends_inside_string(text: str) -> bool:
    return _scan(text)[1]


def _map_code(text: str, fn: Transform) -> str:
    return "".join(chunk if is_string else fn(chunk) for is_string, chunk in split_string_literals(text))


def strip_code_fences(text: str) -> str:
    """Remove markdown code fences and surrounding whitespace."""
    text = _FENCE_OPEN.sub("", text)
    return text.replace("```", "").strip()


def remove_control_characters(text: str) -> str:
    """
    Drop control characters.

    Inside strings every control character is removed (raw newlines are
    invalid JSON there); outside strings ordinary whitespace is kept.
    """
    return "".join(
        _CONTROL_CHARS.sub("", chunk) if is_string else _CONTROL_CHARS_NON_WS.sub("", chunk)
        for is_string, chunk in split_string_literals(text)
    )


def extract_json_span(text: str) -> str:
    """
    Cut leading/trailing prose around the outermost object.

    Keeps text from the first '{' to the brace that closes it. If that
    object never closes (truncated output), keeps everything from the
    first '{'.
    """
    start = text.find("{")
    if start == -1:
        return text
    end = find_object_end(text, start)
    if end == -1:
        return text[start:]
    return text[start:end + 1]


def remove_trailing_commas(text: str) -> str:
    return _map_code(text, lambda chunk: _TRAILING_COMMA.sub(r"\1", chunk))


def quote_unquoted_keys(text: str) -> str:
    """{title: "x"} -> {"title": "x"}"""
    return _map_code(text, lambda chunk: _UNQUOTED_KEY.sub(r'\1"\2"\3', chunk))


def _quote_value(match: re.Match) -> str:
    value = match.group(2).rstrip()
    if value in _JSON_LITERALS or _NUMBER.fullmatch(value):
        return match.group(0)
    return f'{match.group(1)}"{value}"{match.group(3)}'


def quote_unquoted_values(text: str) -> str:
    """{"color": bg-white} -> {"color": "bg-white"}; numbers and literals are kept."""
    return _map_code(text, lambda chunk: _UNQUOTED_VALUE.sub(_quote_value, chunk))


def insert_missing_commas(text: str) -> str:
    """Insert commas between adjacent objects ('}{') and arrays ('][')."""
    def fix(chunk: str) -> str:
        chunk = _MISSING_OBJECT_COMMA.sub(r"},\1{", chunk)
        return _MISSING_ARRAY_COMMA.sub(r"],\1[", chunk)
    return _map_code(text, fix)


def balance_closers(text: str) -> str:
    """
    Append the closers missing from truncated output.

    Tracks open braces/brackets outside strings with a stack and appends the
    matching closers in reverse order. If the text ends inside a string
    literal it is returned unchanged: the truncation point is mid-value and
    only per-slide salvage can recover from it.
    """
    segments, unterminated = _scan(text)
    if unterminated:
        return text
    stack: list[str] = []
    for is_string, chunk in segments:
        if is_string:
            continue
        for ch in chunk:
            if ch == "{":
                stack.append("}")
            elif ch == "[":
                stack.append("]")
            elif ch in "}]" and stack and stack[-1] == ch:
                stack.pop()
    if not stack:
        return text
    return text.rstrip() + "".join(reversed(stack))


def find_object_end(text: str, start: int) -> int:
    """
    Index of the '}' closing the object that opens at `start`, or -1.

    String-aware: braces inside string literals are ignored.
    """
    depth = 0
    i = start
    n = len(text)
    in_string = False
    while i < n:
        ch = text[i]
        if in_string:
            if ch == "\\":
                i += 2
                continue
            if ch == '"':
                in_string = False
        elif ch == '"':
            in_string = True
        elif ch == "{":
            depth += 1
        elif ch == "}":
            depth -= 1
            if depth == 0:
                return i
        i += 1
    return -1


def find_enclosing_object_start(text: str, index: int) -> int:
    """
    Index of the '{' opening the object that contains `index`, or -1.

    Scans forward to `index` keeping a stack of open braces; braces inside
    string literals are ignored.
    """
    stack: list[int] = []
    offset = 0
    for is_string, chunk in split_string_literals(text[:index]):
        if not is_string:
            for j, ch in enumerate(chunk):
                if ch == "{":
                    stack.append(offset + j)
                elif ch == "}" and stack:
                    stack.pop()
        offset += len(chunk)
    return stack[-1] if stack else -1


def trim_to_last_complete_element(text: str) -> str:
    """
    Cut truncated output back to the last complete object of a top-level array.

    '{"title": "T", "slides": [{...}, {"id": "slide-2", "blocks": [' becomes
    '{"title": "T", "slides": [{...}'. Text whose top-level array is already
    closed, or which holds no complete element yet, is returned unchanged.
    """
    stack: list[str] = []
    cut = -1
    offset = 0
    for is_string, chunk in split_string_literals(text):
        if not is_string:
            for j, ch in enumerate(chunk):
                if ch in "{[":
                    stack.append(ch)
                elif ch in "}]" and stack:
                    stack.pop()
                    if ch == "}" and stack == ["{", "["]:
                        cut = offset + j
        offset += len(chunk)
    if cut == -1 or stack[:2] != ["{", "["]:
        return text
    return text[:cut + 1]


HEURISTIC_TRANSFORMS: tuple[Transform, ...] = (
    remove_control_characters,
    extract_json_span,
    remove_trailing_commas,
    quote_unquoted_keys,
    quote_unquoted_values,
    insert_missing_commas,
)


def apply_transforms(text: str, transforms: tuple[Transform, ...] = HEURISTIC_TRANSFORMS) -> str:
    for transform in transforms:
        text = transform(text)
    return text
