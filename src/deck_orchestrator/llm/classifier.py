"""
Error classification for failed provider calls.

`classify_error` is total: every exception maps to exactly one ErrorClass.
Both retry layers (GenerationClient's transport retry and the RequestQueue's
rate-limit requeue) decide on the class, never on the raw exception type.
"""

import asyncio
import errno
import socket

import httpx

from deck_orchestrator.exceptions import OrchestratorError
from deck_orchestrator.llm.exceptions import (
    LLMClientError,
    LLMConnectionError,
    LLMOverloadedError,
    LLMRateLimitError,
)
from deck_orchestrator.models.enums import ErrorClass

RATE_LIMIT_STATUS_CODES = frozenset({429, 529})
OVERLOADED_ERROR_TYPE = "overloaded_error"

_NETWORK_ERRNOS = frozenset({errno.ECONNREFUSED, errno.ECONNRESET, errno.EHOSTUNREACH})
_TRANSIENT_MESSAGE_MARKERS = ("timeout", "timed out", "connection error")


def classify_error(error: BaseException) -> ErrorClass:
    """
    Map an exception to Retryable, RateLimited or Fatal.

    Rules, in order:
    1. Errors already raised at the orchestrator boundary (exhausted retries,
       timeouts, parse failures) are Fatal: they are never retried again.
    2. HTTP 429, HTTP 529 or a provider "overloaded_error" are RateLimited.
    3. HTTP 5xx is Retryable; any other HTTP status is Fatal.
    4. Connection refused, DNS failures and network errors are Retryable,
       as is any message mentioning a timeout or a connection error.
    5. Everything else is Fatal.

    Args:
        error: The exception raised by a provider call

    Returns:
        The ErrorClass for the exception
    """
    if isinstance(error, OrchestratorError):
        return ErrorClass.FATAL

    if isinstance(error, (LLMRateLimitError, LLMOverloadedError)):
        return ErrorClass.RATE_LIMITED

    status_code = _status_code_of(error)
    error_type = getattr(error, "error_type", None)

    if status_code in RATE_LIMIT_STATUS_CODES or error_type == OVERLOADED_ERROR_TYPE:
        return ErrorClass.RATE_LIMITED

    if status_code is not None:
        return ErrorClass.RETRYABLE if status_code >= 500 else ErrorClass.FATAL

    if isinstance(error, LLMConnectionError):
        return ErrorClass.RETRYABLE

    if isinstance(error, (httpx.TransportError, socket.gaierror)):
        return ErrorClass.RETRYABLE

    if isinstance(error, OSError) and error.errno in _NETWORK_ERRNOS:
        return ErrorClass.RETRYABLE

    # A bare asyncio timeout carries no message; the orchestrator wraps its own
    # deadline in GenerationTimeout before classification.
    if isinstance(error, asyncio.TimeoutError):
        return ErrorClass.RETRYABLE

    message = str(error).lower()
    if any(marker in message for marker in _TRANSIENT_MESSAGE_MARKERS):
        return ErrorClass.RETRYABLE

    return ErrorClass.FATAL


def _status_code_of(error: BaseException) -> int | None:
    if isinstance(error, LLMClientError):
        return error.status_code
    if isinstance(error, httpx.HTTPStatusError):
        return error.response.status_code
    return None
