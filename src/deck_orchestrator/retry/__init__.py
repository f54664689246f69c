"""
Retry policies.

Two independent layers:
- TransportBackoff: exponential retry of transient provider failures
- RateLimitBackoff: fixed-schedule requeue of rate-limited requests
"""

from deck_orchestrator.retry.backoff import (
    STOP,
    BackoffDecision,
    BackoffPolicy,
    RateLimitBackoff,
    TransportBackoff,
)

__all__ = [
    "STOP",
    "BackoffDecision",
    "BackoffPolicy",
    "RateLimitBackoff",
    "TransportBackoff",
]
