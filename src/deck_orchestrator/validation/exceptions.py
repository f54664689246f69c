"""
Exceptions internal to the response repair pipeline.

A JSONParseError means one tier could not produce a usable object. The
pipeline catches it and falls through to the next tier; it never escapes to
callers, which only ever see Unparseable or StructuralInvalid.
"""

from typing import Any


class JSONParseError(Exception):
    """
    A repair tier failed to produce a JSON object.
    """

    def __init__(
        self,
        message: str,
        tier: str | None = None,
        raw_content: str | None = None,
        parse_error: str | None = None,
    ):
        """
        Initialize JSON parse error.

        Args:
            message: Error description
            tier: Repair tier that failed
            raw_content: Candidate text (first 200 chars are kept)
            parse_error: Original json.JSONDecodeError message
        """
        super().__init__(message)
        self.message = message
        self.details: dict[str, Any] = {}
        if tier:
            self.details["tier"] = tier
        if raw_content:
            self.details["content_snippet"] = raw_content[:200]
        if parse_error:
            self.details["parse_error"] = parse_error

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message
