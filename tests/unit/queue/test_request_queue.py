"""
Unit tests for RequestQueue: single-flight dispatch, pacing, cache
short-circuit and rate-limit requeueing.
"""

import asyncio
import time

import pytest

from deck_orchestrator.cache.response_cache import ResponseCache
from deck_orchestrator.exceptions import RateLimitExceeded, StructuralInvalid, UpstreamUnavailable
from deck_orchestrator.llm.exceptions import LLMRateLimitError
from deck_orchestrator.models.document_models import Document
from deck_orchestrator.queue.request_queue import RequestQueue
from deck_orchestrator.retry.backoff import RateLimitBackoff


def make_document(title: str = "Deck") -> Document:
    return Document.model_validate(
        {"title": title, "slides": [{"id": "slide-1", "blocks": [{"type": "TextBlock", "props": {}}]}]}
    )


class RecordingHandler:
    """Handler that tracks concurrency and replays a scripted list of outcomes."""

    def __init__(self, outcomes=None, delay: float = 0.0):
        self.outcomes = list(outcomes or [])
        self.delay = delay
        self.calls = []
        self.dispatch_times = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def __call__(self, request):
        self.calls.append(request)
        self.dispatch_times.append(time.monotonic())
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            if self.delay:
                await asyncio.sleep(self.delay)
            outcome = self.outcomes.pop(0) if self.outcomes else make_document(request.last_user_message())
            if isinstance(outcome, BaseException):
                raise outcome
            return outcome
        finally:
            self.in_flight -= 1


def make_queue(handler, **kwargs) -> RequestQueue:
    kwargs.setdefault("min_interval", 0.0)
    kwargs.setdefault("backoff", RateLimitBackoff(delays=(0.01, 0.02, 0.04)))
    return RequestQueue(handler=handler, cache=kwargs.pop("cache", ResponseCache()), **kwargs)


def rate_limited() -> LLMRateLimitError:
    return LLMRateLimitError("Anthropic error 429: rate limited", status_code=429, error_type="rate_limit_error")


class TestDispatch:
    @pytest.mark.asyncio
    async def test_submit_returns_handler_document(self, create_request):
        handler = RecordingHandler()
        queue = make_queue(handler)

        document = await queue.submit(create_request("Bees"))

        assert document.title == "Bees"
        assert len(handler.calls) == 1
        assert queue.depth == 0
        assert not queue.processing

    @pytest.mark.asyncio
    async def test_at_most_one_call_in_flight(self, create_request):
        handler = RecordingHandler(delay=0.02)
        queue = make_queue(handler)

        documents = await asyncio.gather(*(queue.submit(create_request(f"Deck {i}")) for i in range(5)))

        assert [d.title for d in documents] == [f"Deck {i}" for i in range(5)]
        assert handler.max_in_flight == 1
        # FIFO for first attempts
        assert [r.last_user_message() for r in handler.calls] == [f"Deck {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_dispatches_are_paced(self, create_request):
        handler = RecordingHandler()
        queue = make_queue(handler, min_interval=0.1)

        await asyncio.gather(*(queue.submit(create_request(f"Deck {i}")) for i in range(3)))

        gaps = [b - a for a, b in zip(handler.dispatch_times, handler.dispatch_times[1:])]
        assert len(gaps) == 2
        assert all(gap >= 0.09 for gap in gaps)

    @pytest.mark.asyncio
    async def test_fatal_error_resolves_only_that_item(self, create_request):
        error = StructuralInvalid("bad", violations=["x"])
        handler = RecordingHandler(outcomes=[error])
        queue = make_queue(handler)

        results = await asyncio.gather(
            queue.submit(create_request("first")),
            queue.submit(create_request("second")),
            return_exceptions=True,
        )

        assert results[0] is error
        assert results[1].title == "second"
        assert len(handler.calls) == 2


class TestCache:
    @pytest.mark.asyncio
    async def test_duplicate_submit_served_from_cache(self, create_request):
        handler = RecordingHandler()
        cache = ResponseCache()
        queue = make_queue(handler, cache=cache)

        first = await queue.submit(create_request("Bees"))
        second = await queue.submit(create_request("Bees"))

        assert second == first
        assert len(handler.calls) == 1

    @pytest.mark.asyncio
    async def test_concurrent_duplicates_hit_cache_at_dispatch(self, create_request):
        handler = RecordingHandler(delay=0.01)
        queue = make_queue(handler)

        first, second = await asyncio.gather(
            queue.submit(create_request("Bees")),
            queue.submit(create_request("Bees")),
        )

        assert first == second
        assert len(handler.calls) == 1

    @pytest.mark.asyncio
    async def test_failed_result_is_not_cached(self, create_request):
        handler = RecordingHandler(outcomes=[StructuralInvalid("bad")])
        cache = ResponseCache()
        queue = make_queue(handler, cache=cache)

        with pytest.raises(StructuralInvalid):
            await queue.submit(create_request("Bees"))

        assert len(cache) == 0
        assert (await queue.submit(create_request("Bees"))).title == "Bees"
        assert len(handler.calls) == 2

    @pytest.mark.asyncio
    async def test_expired_entry_triggers_new_call(self, create_request, fake_clock):
        handler = RecordingHandler()
        cache = ResponseCache(ttl_seconds=300, clock=fake_clock)
        queue = make_queue(handler, cache=cache)

        await queue.submit(create_request("Bees"))
        fake_clock.advance(301)
        await queue.submit(create_request("Bees"))

        assert len(handler.calls) == 2


class TestRateLimitRequeue:
    @pytest.mark.asyncio
    async def test_requeued_until_success(self, create_request):
        handler = RecordingHandler(outcomes=[rate_limited(), rate_limited(), rate_limited()])
        queue = make_queue(handler, backoff=RateLimitBackoff(delays=(0.03, 0.06, 0.12)))

        start = time.monotonic()
        document = await queue.submit(create_request("Bees"))
        elapsed = time.monotonic() - start

        assert document.title == "Bees"
        assert len(handler.calls) == 4
        # 0.03 + 0.06 + 0.12 of scheduled delay
        assert elapsed >= 0.2

    @pytest.mark.asyncio
    async def test_retries_exhausted_raise_rate_limit_exceeded(self, create_request):
        handler = RecordingHandler(outcomes=[rate_limited() for _ in range(4)])
        queue = make_queue(handler)

        with pytest.raises(RateLimitExceeded) as exc_info:
            await queue.submit(create_request("Bees"))

        assert len(handler.calls) == 4
        assert exc_info.value.details["retries"] == 3
        assert isinstance(exc_info.value.__cause__, LLMRateLimitError)

    @pytest.mark.asyncio
    async def test_requeued_item_goes_to_head(self, create_request):
        handler = RecordingHandler(outcomes=[rate_limited()], delay=0.01)
        queue = make_queue(handler, backoff=RateLimitBackoff(delays=(0.0,)))

        await asyncio.gather(
            queue.submit(create_request("first")),
            queue.submit(create_request("second")),
            queue.submit(create_request("third")),
        )

        order = [r.last_user_message() for r in handler.calls]
        assert order[0] == "first"
        # The rate-limited item is retried before the remaining first attempts
        assert order.index("first", 1) < order.index("third")

    @pytest.mark.asyncio
    async def test_depth_counts_items_waiting_out_a_delay(self, create_request):
        handler = RecordingHandler(outcomes=[rate_limited()])
        queue = make_queue(handler, backoff=RateLimitBackoff(delays=(0.2,)))

        task = asyncio.ensure_future(queue.submit(create_request("Bees")))
        await asyncio.sleep(0.05)
        assert queue.depth == 1
        assert not queue.processing

        await task
        assert queue.depth == 0


class TestClose:
    @pytest.mark.asyncio
    async def test_close_rejects_pending_items(self, create_request):
        handler = RecordingHandler(delay=0.5)
        queue = make_queue(handler)

        tasks = [asyncio.ensure_future(queue.submit(create_request(f"Deck {i}"))) for i in range(3)]
        await asyncio.sleep(0.05)
        await queue.close()

        results = await asyncio.gather(*tasks, return_exceptions=True)
        assert all(isinstance(r, UpstreamUnavailable) for r in results)

    @pytest.mark.asyncio
    async def test_close_rejects_items_waiting_on_retry(self, create_request):
        handler = RecordingHandler(outcomes=[rate_limited()])
        queue = make_queue(handler, backoff=RateLimitBackoff(delays=(10.0,)))

        task = asyncio.ensure_future(queue.submit(create_request("Bees")))
        await asyncio.sleep(0.05)
        await queue.close()

        with pytest.raises(UpstreamUnavailable):
            await task

    @pytest.mark.asyncio
    async def test_submit_after_close_fails(self, create_request):
        queue = make_queue(RecordingHandler())
        await queue.close()

        with pytest.raises(UpstreamUnavailable):
            await queue.submit(create_request())
