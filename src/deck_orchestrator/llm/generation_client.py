"""
Generation client: one logical provider call with deadline, transport
retry and usage recording.

Wraps a BaseLLMClient. Each attempt:
1. Runs under a hard deadline (asyncio.wait_for). Expiry raises
   GenerationTimeout, which is Fatal and never retried here.
2. Records a UsageRecord, with zero tokens on failure.
3. On failure, classifies the error and asks TransportBackoff whether to
   retry (Retryable and RateLimited errors, exponential delay).

When retries are exhausted, errors leave this layer as:
- RateLimited: the original provider error, so the RequestQueue can requeue it
- Retryable: UpstreamUnavailable
- Fatal: FatalGenerationError
"""

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Optional

import structlog

from deck_orchestrator.exceptions import (
    FatalGenerationError,
    GenerationTimeout,
    OrchestratorError,
    UpstreamUnavailable,
)
from deck_orchestrator.llm.base_client import BaseLLMClient
from deck_orchestrator.llm.classifier import classify_error
from deck_orchestrator.llm.exceptions import LLMClientError
from deck_orchestrator.models.enums import CallKind, ErrorClass
from deck_orchestrator.models.llm_models import LLMGenerationRequest, LLMGenerationResponse
from deck_orchestrator.models.request_models import GenerationRequest
from deck_orchestrator.models.usage_models import UsageRecord
from deck_orchestrator.monitoring.metrics import transport_retries_total, upstream_calls_total
from deck_orchestrator.retry.backoff import BackoffPolicy, TransportBackoff
from deck_orchestrator.usage.meter import UsageMeter

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class GenerationParams:
    """Generation parameters for one call kind."""

    max_tokens: int
    temperature: float


DEFAULT_PARAMS: dict[CallKind, GenerationParams] = {
    CallKind.NEW: GenerationParams(max_tokens=6000, temperature=0.3),
    CallKind.MODIFY: GenerationParams(max_tokens=4000, temperature=0.1),
}


@dataclass(frozen=True)
class GenerationResult:
    """Raw completion text plus the usage record of the successful attempt."""

    text: str
    response: LLMGenerationResponse
    usage: UsageRecord


class GenerationClient:
    """
    Provider call wrapper used by the RequestQueue's handler.

    Attributes:
        provider: Provider client performing single HTTP calls
        usage_meter: Receives one record per attempt
        model: Model id sent to the provider
        timeout: Hard per-attempt deadline in seconds
        backoff: Transport retry policy
    """

    def __init__(
        self,
        provider: BaseLLMClient,
        usage_meter: UsageMeter,
        model: str = "claude-3-5-haiku-20241022",
        timeout: float = 60.0,
        backoff: Optional[BackoffPolicy] = None,
        params: Optional[dict[CallKind, GenerationParams]] = None,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.provider = provider
        self.usage_meter = usage_meter
        self.model = model
        self.timeout = timeout
        self.backoff = backoff or TransportBackoff()
        self.params = params or DEFAULT_PARAMS
        self._sleep = sleep

    def build_llm_request(self, request: GenerationRequest) -> LLMGenerationRequest:
        params = self.params[request.call_kind]
        return LLMGenerationRequest(
            model=self.model,
            messages=[{"role": m.role, "content": m.content} for m in request.messages],
            system=request.system_prompt or None,
            max_tokens=params.max_tokens,
            temperature=params.temperature,
        )

    async def call(self, request: GenerationRequest) -> GenerationResult:
        """
        Perform the provider call with transport retries.

        Args:
            request: Caller request

        Returns:
            GenerationResult for the first successful attempt

        Raises:
            GenerationTimeout: Deadline elapsed on an attempt
            UpstreamUnavailable: Retryable failures exhausted the attempts
            FatalGenerationError: Non-retryable failure
            LLMRateLimitError / LLMOverloadedError: Rate limiting persisted
                through all attempts (left for the queue to requeue)
        """
        llm_request = self.build_llm_request(request)
        kind = request.call_kind
        log = logger.bind(correlation_id=request.correlation_id, kind=kind.value, model=self.model)

        attempt = 0
        while True:
            attempt += 1
            start = time.monotonic()
            log.info("Provider call attempt", attempt=attempt)
            try:
                response = await asyncio.wait_for(self.provider.generate(llm_request), timeout=self.timeout)
            except asyncio.TimeoutError as e:
                await self._record_failure(request, attempt, start, ErrorClass.FATAL)
                upstream_calls_total.labels(kind=kind.value, outcome="timeout").inc()
                log.error("Provider call timed out", attempt=attempt, timeout=self.timeout)
                raise GenerationTimeout(
                    f"Provider call exceeded {self.timeout}s deadline",
                    details={"attempt": attempt, "timeout": self.timeout},
                ) from e
            except Exception as e:
                error_class = classify_error(e)
                await self._record_failure(request, attempt, start, error_class)
                upstream_calls_total.labels(kind=kind.value, outcome=error_class.value).inc()

                decision = self.backoff.decide(error_class, attempt - 1)
                if decision.retry:
                    transport_retries_total.labels(error_class=error_class.value).inc()
                    log.warning(
                        "Provider call failed, retrying",
                        attempt=attempt,
                        error=str(e),
                        error_class=error_class.value,
                        delay=decision.delay,
                    )
                    await self._sleep(decision.delay)
                    continue

                log.error(
                    "Provider call failed",
                    attempt=attempt,
                    error=str(e),
                    error_type=type(e).__name__,
                    error_class=error_class.value,
                )
                raise self._boundary_error(e, error_class, attempt)

            usage = await self.usage_meter.record(
                model=self.model,
                kind=kind,
                input_tokens=response.input_tokens,
                output_tokens=response.output_tokens,
                cache_write_tokens=response.cache_creation_input_tokens,
                cache_read_tokens=response.cache_read_input_tokens,
                latency_ms=response.latency_ms,
                user_action=request.action,
                request_id=request.correlation_id,
                attempt=attempt,
            )
            upstream_calls_total.labels(kind=kind.value, outcome="success").inc()
            if response.truncated:
                log.warning("Provider output truncated at max_tokens", output_tokens=response.output_tokens)
            return GenerationResult(text=response.content, response=response, usage=usage)

    async def _record_failure(
        self,
        request: GenerationRequest,
        attempt: int,
        start: float,
        error_class: ErrorClass,
    ) -> None:
        await self.usage_meter.record(
            model=self.model,
            kind=request.call_kind,
            latency_ms=int((time.monotonic() - start) * 1000),
            user_action=request.action,
            request_id=request.correlation_id,
            attempt=attempt,
            success=False,
            error_class=error_class,
        )

    @staticmethod
    def _boundary_error(error: Exception, error_class: ErrorClass, attempt: int) -> Exception:
        if isinstance(error, OrchestratorError):
            return error
        if error_class is ErrorClass.RATE_LIMITED:
            return error
        details = {"attempts": attempt, "error_type": type(error).__name__}
        if error_class is ErrorClass.RETRYABLE:
            upstream = UpstreamUnavailable(f"Upstream unavailable after {attempt} attempts: {error}", details)
            upstream.__cause__ = error
            return upstream
        status_code = getattr(error, "status_code", None) if isinstance(error, LLMClientError) else None
        fatal = FatalGenerationError(
            f"Generation failed: {error}",
            details={**details, "status_code": status_code},
            upstream_rejected=status_code is not None and 400 <= status_code < 500,
        )
        fatal.__cause__ = error
        return fatal
