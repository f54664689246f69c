"""
Single-flight request queue in front of the provider.

All upstream calls go through one consumer task, so at most one call is in
flight at any time. The consumer:

1. Pops the head item (FIFO for first attempts)
2. Re-checks the response cache (a duplicate may have completed meanwhile)
3. Waits until `min_interval` has passed since the previous dispatch
4. Runs the handler; on success caches the document and resolves the item
5. On failure classifies the error:
   - RateLimited with retries left: re-inserts the item at the head of the
     queue after the backoff delay, without resolving it
   - RateLimited with retries exhausted: resolves with RateLimitExceeded
   - anything else: resolves with the original error

The consumer goes idle when the queue is empty and is restarted lazily by
the next submit or requeue. Every item is resolved exactly once.
"""

import asyncio
import time
from collections import deque
from dataclasses import dataclass, field
from typing import Awaitable, Callable, Optional
from uuid import uuid4

import structlog

from deck_orchestrator.cache.fingerprint import compute_cache_key
from deck_orchestrator.cache.response_cache import ResponseCache
from deck_orchestrator.exceptions import RateLimitExceeded, UpstreamUnavailable
from deck_orchestrator.llm.classifier import classify_error
from deck_orchestrator.models.document_models import Document
from deck_orchestrator.models.enums import ErrorClass
from deck_orchestrator.models.request_models import GenerationRequest
from deck_orchestrator.monitoring.metrics import (
    cache_entries,
    cache_lookups_total,
    queue_depth,
    queue_resolutions_total,
    rate_limit_requeues_total,
)
from deck_orchestrator.retry.backoff import BackoffPolicy, RateLimitBackoff

logger = structlog.get_logger(__name__)

Handler = Callable[[GenerationRequest], Awaitable[Document]]


@dataclass
class QueuedItem:
    """A request owned by the queue until its future is resolved."""

    request: GenerationRequest
    cache_key: str
    future: asyncio.Future
    id: str = field(default_factory=lambda: uuid4().hex)
    enqueued_at: float = field(default_factory=time.monotonic)
    retry_count: int = 0


class RequestQueue:
    """
    Serializes provider calls with pacing and rate-limit requeueing.

    Attributes:
        handler: Coroutine producing a Document for a request (one dispatch)
        cache: Response cache shared with the orchestrator
        min_interval: Minimum seconds between two dispatches
        backoff: Requeue policy for rate-limited dispatches
    """

    def __init__(
        self,
        handler: Handler,
        cache: ResponseCache,
        min_interval: float = 2.0,
        backoff: Optional[BackoffPolicy] = None,
        key_fn: Callable[[GenerationRequest], str] = compute_cache_key,
        classifier: Callable[[BaseException], ErrorClass] = classify_error,
        clock: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ):
        self.handler = handler
        self.cache = cache
        self.min_interval = min_interval
        self.backoff = backoff or RateLimitBackoff()
        self.key_fn = key_fn
        self.classifier = classifier
        self._clock = clock
        self._sleep = sleep

        self._items: deque[QueuedItem] = deque()
        self._timers: dict[str, tuple[asyncio.TimerHandle, QueuedItem]] = {}
        self._consumer: Optional[asyncio.Task] = None
        self._current: Optional[QueuedItem] = None
        self._last_dispatch: Optional[float] = None
        self._closed = False

    @property
    def depth(self) -> int:
        """Items waiting, including those waiting out a retry delay."""
        return len(self._items) + len(self._timers)

    @property
    def processing(self) -> bool:
        """True while an item is being paced or dispatched."""
        return self._current is not None

    async def submit(self, request: GenerationRequest) -> Document:
        """
        Submit a request and wait for its document.

        Returns immediately on a cache hit without queueing.

        Raises:
            RateLimitExceeded: Rate limiting persisted through all requeues
            OrchestratorError: Any non-retried failure from the handler
        """
        if self._closed:
            raise UpstreamUnavailable("Request queue is closed")

        cache_key = self.key_fn(request)
        cached = self.cache.get(cache_key)
        if cached is not None:
            cache_lookups_total.labels(result="hit").inc()
            queue_resolutions_total.labels(outcome="cache_hit").inc()
            logger.info("Cache hit, skipping queue", correlation_id=request.correlation_id)
            return cached
        cache_lookups_total.labels(result="miss").inc()

        item = QueuedItem(
            request=request,
            cache_key=cache_key,
            future=asyncio.get_running_loop().create_future(),
        )
        self._items.append(item)
        queue_depth.set(self.depth)
        logger.info(
            "Request queued",
            item_id=item.id,
            correlation_id=request.correlation_id,
            queue_depth=self.depth,
        )
        self._ensure_consumer()
        return await item.future

    def _ensure_consumer(self) -> None:
        if self._consumer is None or self._consumer.done():
            self._consumer = asyncio.get_running_loop().create_task(self._run(), name="request-queue-consumer")

    async def _run(self) -> None:
        while self._items:
            item = self._items.popleft()
            queue_depth.set(self.depth)
            if item.future.done():
                # Caller went away while the item waited
                continue

            cached = self.cache.get(item.cache_key)
            if cached is not None:
                cache_lookups_total.labels(result="hit").inc()
                queue_resolutions_total.labels(outcome="cache_hit").inc()
                logger.info("Resolved from cache at dispatch", item_id=item.id)
                self._resolve(item, cached)
                continue

            self._current = item
            try:
                await self._pace()
                self._last_dispatch = self._clock()
                log = logger.bind(item_id=item.id, correlation_id=item.request.correlation_id, retry_count=item.retry_count)
                log.info("Dispatching request", waited_ms=int((time.monotonic() - item.enqueued_at) * 1000))
                try:
                    document = await self.handler(item.request)
                except Exception as e:
                    self._handle_failure(item, e)
                else:
                    self.cache.set(item.cache_key, document)
                    cache_entries.set(len(self.cache))
                    queue_resolutions_total.labels(outcome="success").inc()
                    log.info("Request completed")
                    self._resolve(item, document)
            finally:
                self._current = None
        logger.debug("Request queue idle")

    async def _pace(self) -> None:
        if self._last_dispatch is None:
            return
        wait = self.min_interval - (self._clock() - self._last_dispatch)
        if wait > 0:
            logger.debug("Pacing before dispatch", wait_seconds=round(wait, 3))
            await self._sleep(wait)

    def _handle_failure(self, item: QueuedItem, error: Exception) -> None:
        error_class = self.classifier(error)
        decision = self.backoff.decide(error_class, item.retry_count)

        if decision.retry:
            item.retry_count += 1
            rate_limit_requeues_total.inc()
            logger.warning(
                "Rate limited, requeueing at head",
                item_id=item.id,
                retry_count=item.retry_count,
                delay=decision.delay,
                error=str(error),
            )
            handle = asyncio.get_running_loop().call_later(decision.delay, self._requeue, item.id)
            self._timers[item.id] = (handle, item)
            return

        if error_class is ErrorClass.RATE_LIMITED:
            exhausted = RateLimitExceeded(
                f"Rate limited after {item.retry_count} retries",
                details={"retries": item.retry_count},
            )
            exhausted.__cause__ = error
            queue_resolutions_total.labels(outcome="rate_limit_exceeded").inc()
            logger.error("Rate limit retries exhausted", item_id=item.id, retries=item.retry_count)
            self._reject(item, exhausted)
            return

        queue_resolutions_total.labels(outcome="error").inc()
        logger.error(
            "Request failed",
            item_id=item.id,
            error=str(error),
            error_type=type(error).__name__,
            error_class=error_class.value,
        )
        self._reject(item, error)

    def _requeue(self, item_id: str) -> None:
        _, item = self._timers.pop(item_id)
        if item.future.done():
            return
        self._items.appendleft(item)
        queue_depth.set(self.depth)
        self._ensure_consumer()

    @staticmethod
    def _resolve(item: QueuedItem, document: Document) -> None:
        if not item.future.done():
            item.future.set_result(document)

    @staticmethod
    def _reject(item: QueuedItem, error: BaseException) -> None:
        if not item.future.done():
            item.future.set_exception(error)

    async def close(self) -> None:
        """
        Stop accepting work and fail everything still pending with
        UpstreamUnavailable.
        """
        self._closed = True
        pending = list(self._items)
        self._items.clear()
        for handle, item in self._timers.values():
            handle.cancel()
            pending.append(item)
        self._timers.clear()
        if self._current is not None:
            pending.append(self._current)

        for item in pending:
            queue_resolutions_total.labels(outcome="cancelled").inc()
            self._reject(item, UpstreamUnavailable("Orchestrator is shutting down"))

        if self._consumer is not None and not self._consumer.done():
            self._consumer.cancel()
            try:
                await self._consumer
            except asyncio.CancelledError:
                pass
        self._consumer = None
        queue_depth.set(0)
        if pending:
            logger.info("Request queue closed", rejected=len(pending))
