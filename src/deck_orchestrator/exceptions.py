"""
Errors that cross the orchestrator boundary.

Every failure a caller can observe from `GenerationOrchestrator.submit` is one
of the classes below. Retryable conditions (rate limits, transient upstream
errors) are handled inside the orchestrator up to fixed bounds; only
exhausted-retry and fatal kinds reach the caller.

Each class carries an HTTP-style status code and a user-facing message so a
web layer can map it directly to a response.
"""

from typing import Any, Optional

from deck_orchestrator.models.enums import ErrorKind


class OrchestratorError(Exception):
    """
    Base class for errors surfaced to orchestrator callers.

    Attributes:
        kind: Closed error kind
        status_code: HTTP-style status code for the web layer
        user_message: Message safe to show to an end user
        retry_after: Suggested seconds before resubmitting (None if not applicable)
        details: Structured diagnostic data for logging
    """

    kind: ErrorKind = ErrorKind.FATAL
    status_code: int = 500
    user_message: str = "Generation failed. Please try again."
    retry_after: Optional[int] = None

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> dict[str, Any]:
        """Serializable representation used by the API error handlers."""
        return {
            "error": self.kind.value,
            "message": self.user_message,
            "details": {"reason": self.message, **self.details},
            "retry_after": self.retry_after,
        }


class RateLimitExceeded(OrchestratorError):
    """Upstream kept rate-limiting after the queue exhausted its retries."""

    kind = ErrorKind.RATE_LIMIT_EXCEEDED
    status_code = 429
    user_message = "The generation service is busy. Please try again shortly."
    retry_after = 30


class UpstreamUnavailable(OrchestratorError):
    """Upstream overloaded or failing after the client's transport retries."""

    kind = ErrorKind.UPSTREAM_UNAVAILABLE
    status_code = 503
    user_message = "The generation service is temporarily unavailable. Please try again shortly."
    retry_after = 30


class GenerationTimeout(OrchestratorError):
    """The hard per-call deadline elapsed."""

    kind = ErrorKind.TIMEOUT
    status_code = 504
    user_message = "Generation took too long. Please try again."


class Unparseable(OrchestratorError):
    """
    The repair pipeline exhausted every tier.

    Carries a bounded prefix of the raw provider text for diagnostics.
    """

    kind = ErrorKind.UNPARSEABLE
    status_code = 502
    user_message = "The generated presentation could not be read. Please try regenerating it."

    def __init__(
        self,
        message: str,
        raw_text: str = "",
        diagnostic_chars: int = 500,
        retry_after: int = 60,
    ):
        self.raw_snippet = raw_text[:diagnostic_chars]
        self.retry_after = retry_after
        super().__init__(message, {"raw_response": self.raw_snippet})


class StructuralInvalid(OrchestratorError):
    """
    Parsed output violates the document contract.

    Raised for unknown block types, missing ids/titles, or a translation
    that changed the deck's structure.
    """

    kind = ErrorKind.STRUCTURAL_INVALID
    status_code = 422
    user_message = "The generated presentation was malformed. Please try regenerating it."

    def __init__(
        self,
        message: str,
        violations: list[str] | None = None,
        offending: Any | None = None,
    ):
        self.violations = violations or []
        self.offending = offending
        details: dict[str, Any] = {}
        if self.violations:
            details["violations"] = self.violations[:20]
        if offending is not None:
            details["offending"] = offending
        super().__init__(message, details)


class FatalGenerationError(OrchestratorError):
    """
    Non-retryable failure: configuration, authentication or bad request.

    `upstream_rejected` marks failures where the provider refused the request
    (any 4xx other than 429), reported as 502 rather than 500.
    """

    kind = ErrorKind.FATAL

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        upstream_rejected: bool = False,
    ):
        super().__init__(message, details)
        self.status_code = 502 if upstream_rejected else 500
