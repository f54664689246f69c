"""
Backoff policies for the two retry layers.

Each policy is a pure mapping (error class, attempt) -> BackoffDecision.
The layers respond to different failure classes and stay separate:

    TransportBackoff: used inside GenerationClient. Retries Retryable and
        RateLimited errors with exponential delays (1s, 2s, 4s, capped at 5s)
        up to a fixed number of attempts.
    RateLimitBackoff: used by the RequestQueue. Retries only RateLimited
        errors, re-queueing the item after a fixed schedule (3s, 6s, 12s).
"""

from dataclasses import dataclass
from typing import Protocol, Sequence

from deck_orchestrator.models.enums import ErrorClass


@dataclass(frozen=True)
class BackoffDecision:
    """Whether to retry, and after how many seconds."""

    retry: bool
    delay: float = 0.0


STOP = BackoffDecision(retry=False)


class BackoffPolicy(Protocol):
    """
    Protocol for backoff policies.

    `attempt` counts retries already performed for the item (0 on the first
    failure), so a policy can index a schedule directly.
    """

    def decide(self, error_class: ErrorClass, attempt: int) -> BackoffDecision:
        ...


class RateLimitBackoff:
    """
    Fixed-schedule backoff for provider rate limits.

    Only RateLimited errors are retried; every other class stops at once.
    """

    def __init__(self, delays: Sequence[float] = (3.0, 6.0, 12.0), max_retries: int | None = None):
        """
        Args:
            delays: Delay in seconds for each retry, by retry index
            max_retries: Retry bound (defaults to len(delays)); indexes past
                the schedule reuse its last delay
        """
        if not delays:
            raise ValueError("RateLimitBackoff requires at least one delay")
        self.delays = tuple(float(d) for d in delays)
        self.max_retries = len(self.delays) if max_retries is None else max_retries

    def decide(self, error_class: ErrorClass, attempt: int) -> BackoffDecision:
        if error_class is not ErrorClass.RATE_LIMITED or attempt >= self.max_retries:
            return STOP
        return BackoffDecision(retry=True, delay=self.delays[min(attempt, len(self.delays) - 1)])


class TransportBackoff:
    """
    Exponential backoff for transient transport failures.

    delay(n) = min(base * 2^n, cap) for the n-th retry (0-indexed).
    `max_attempts` counts total calls, so at most max_attempts - 1 retries.
    """

    def __init__(self, max_attempts: int = 3, base: float = 1.0, cap: float = 5.0):
        self.max_attempts = max_attempts
        self.base = base
        self.cap = cap

    def decide(self, error_class: ErrorClass, attempt: int) -> BackoffDecision:
        if error_class is ErrorClass.FATAL or attempt + 1 >= self.max_attempts:
            return STOP
        return BackoffDecision(retry=True, delay=min(self.base * (2 ** attempt), self.cap))
