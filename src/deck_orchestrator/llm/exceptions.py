"""
Custom exceptions for the LLM client layer.

These exceptions describe a single failed provider call. They carry the HTTP
status and the provider's error type so the ErrorClassifier can map each one
to Retryable, RateLimited or Fatal without inspecting raw responses.
"""


class LLMClientError(Exception):
    """
    Base exception for all LLM client errors.

    All LLM-specific exceptions inherit from this to allow catching
    any LLM-related error with a single except clause.
    """
    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        error_type: str | None = None,
        details: dict | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.error_type = error_type
        self.details = details or {}


class LLMConnectionError(LLMClientError):
    """
    Raised when unable to reach the provider.

    Includes connection refused, DNS failures and transport-level timeouts.
    Classified as Retryable.
    """
    pass


class LLMRateLimitError(LLMClientError):
    """
    Raised when the provider answers HTTP 429.

    Classified as RateLimited: retried by the transport layer first, then
    re-queued by the RequestQueue.
    """
    pass


class LLMOverloadedError(LLMClientError):
    """
    Raised on HTTP 529 or an "overloaded_error" payload.

    Treated like a rate limit.
    """
    pass


class LLMServerError(LLMClientError):
    """Raised on HTTP 5xx (other than 529). Classified as Retryable."""
    pass


class LLMRequestError(LLMClientError):
    """
    Raised on HTTP 4xx other than 429.

    Examples:
    - Invalid API key (401)
    - Malformed request (400)
    - Model not found (404)

    Never retried.
    """
    pass


class LLMResponseError(LLMClientError):
    """
    Raised when the provider returns a payload that cannot be decoded
    or carries no text content.
    """
    pass
