"""
Generation orchestrator: the dependency-injection root.

GenerationOrchestrator owns one ResponseCache, one RequestQueue, the cache
sweeper and the usage meter. The web layer builds a single instance at
startup via `build_orchestrator(settings)`; tests construct isolated
instances with fakes.

Request flow:
    submit(request)
      -> RequestQueue (cache check, pacing, rate-limit requeue)
        -> DocumentGenerator.generate (one dispatch)
          -> GenerationClient.call (deadline, transport retry, usage)
          -> ResponseRepairPipeline.parse (tiers + DocumentValidator)
          -> translation structure guard (translation requests only)
"""

from pathlib import Path
from typing import Optional

import structlog

from deck_orchestrator.cache.fingerprint import compute_cache_key
from deck_orchestrator.cache.response_cache import ResponseCache
from deck_orchestrator.cache.sweeper import CacheSweeper
from deck_orchestrator.config import Settings
from deck_orchestrator.exceptions import StructuralInvalid
from deck_orchestrator.llm.anthropic_client import AnthropicClient
from deck_orchestrator.llm.base_client import BaseLLMClient
from deck_orchestrator.llm.generation_client import GenerationClient, GenerationParams
from deck_orchestrator.models.document_models import Document
from deck_orchestrator.models.enums import CallKind
from deck_orchestrator.models.request_models import GenerationRequest
from deck_orchestrator.monitoring.metrics import structural_failures_total
from deck_orchestrator.persistence.redis_client import RedisClient
from deck_orchestrator.persistence.usage_sinks import JsonlFileSink, RedisUsageSink, UsageSink
from deck_orchestrator.queue.request_queue import RequestQueue
from deck_orchestrator.retry.backoff import RateLimitBackoff, TransportBackoff
from deck_orchestrator.usage.meter import UsageMeter
from deck_orchestrator.validation.pipeline import ResponseRepairPipeline
from deck_orchestrator.validation.translation import detect_translation_request, find_structure_changes

logger = structlog.get_logger(__name__)


class DocumentGenerator:
    """
    One dispatch: provider call, repair/validation, translation guard.

    This is the RequestQueue's handler. Errors leave it already classified
    for the queue (provider rate-limit errors pass through untouched so they
    can be requeued).
    """

    def __init__(self, client: GenerationClient, pipeline: ResponseRepairPipeline):
        self.client = client
        self.pipeline = pipeline

    async def generate(self, request: GenerationRequest) -> Document:
        result = await self.client.call(request)
        parsed = self.pipeline.parse(result.text)
        document = parsed.document

        if request.is_modification:
            self._check_translation(request, document)

        logger.info(
            "Document generated",
            correlation_id=request.correlation_id,
            tier=parsed.tier.value,
            slide_count=len(document.slides),
            modification=document.is_modification,
            cost_total=round(result.usage.cost_total, 6),
        )
        return document

    @staticmethod
    def _check_translation(request: GenerationRequest, document: Document) -> None:
        translation = detect_translation_request(request.last_user_message())
        if translation is None:
            return
        changes = find_structure_changes(request.existing_document or {}, document.to_payload())
        if changes:
            structural_failures_total.labels(reason="translation_mismatch").inc()
            logger.warning(
                "Translation changed deck structure",
                correlation_id=request.correlation_id,
                target_language=translation.target_language,
                changes=changes[:10],
            )
            raise StructuralInvalid(
                "Translation modified the presentation structure; only text may change",
                violations=changes,
                offending=document.to_payload(),
            )
        logger.info("Translation structure preserved", target_language=translation.target_language)


class GenerationOrchestrator:
    """
    Process-wide entry point for generation requests.

    Args:
        queue: Single-flight request queue
        cache: Response cache shared with the queue
        sweeper: Background expiry task for the cache
        usage_meter: Usage accounting
        client: Provider client, closed on shutdown
    """

    def __init__(
        self,
        queue: RequestQueue,
        cache: ResponseCache,
        sweeper: CacheSweeper,
        usage_meter: UsageMeter,
        client: Optional[BaseLLMClient] = None,
        provider_configured: bool = True,
    ):
        self.queue = queue
        self.cache = cache
        self.sweeper = sweeper
        self.usage_meter = usage_meter
        self.client = client
        self.provider_configured = provider_configured
        self._started = False

    async def start(self) -> None:
        if self._started:
            return
        self.sweeper.start()
        self._started = True
        logger.info("Generation orchestrator started")

    async def stop(self) -> None:
        await self.sweeper.stop()
        await self.queue.close()
        if self.client is not None:
            await self.client.close()
        self._started = False
        logger.info("Generation orchestrator stopped")

    async def submit(self, request: GenerationRequest) -> Document:
        """Generate (or fetch from cache) the document for `request`."""
        return await self.queue.submit(request)

    def stats(self) -> dict:
        return {
            "queue_depth": self.queue.depth,
            "processing": self.queue.processing,
            "cache_entries": len(self.cache),
            "provider_configured": self.provider_configured,
        }


def build_usage_sinks(settings: Settings) -> list[UsageSink]:
    sinks: list[UsageSink] = []
    if settings.USAGE_LOG_PATH:
        sinks.append(JsonlFileSink(Path(settings.USAGE_LOG_PATH)))
    if settings.USAGE_REDIS_ENABLED:
        sinks.append(
            RedisUsageSink(
                RedisClient.get_client(settings),
                key=settings.USAGE_REDIS_KEY,
                max_entries=settings.USAGE_REDIS_MAX_ENTRIES,
            )
        )
    return sinks


def build_orchestrator(settings: Settings, provider: Optional[BaseLLMClient] = None) -> GenerationOrchestrator:
    """
    Wire the orchestrator from settings.

    Args:
        settings: Application settings
        provider: Provider client override (defaults to AnthropicClient)

    Returns:
        A GenerationOrchestrator ready to start()
    """
    if provider is None:
        provider = AnthropicClient(
            api_key=settings.ANTHROPIC_API_KEY,
            base_url=settings.ANTHROPIC_BASE_URL,
            api_version=settings.ANTHROPIC_API_VERSION,
        )

    usage_meter = UsageMeter(
        sinks=build_usage_sinks(settings),
        cost_warning_usd=settings.USAGE_COST_WARNING_USD,
        input_token_warning=settings.USAGE_INPUT_TOKEN_WARNING,
    )
    client = GenerationClient(
        provider=provider,
        usage_meter=usage_meter,
        model=settings.LLM_MODEL,
        timeout=settings.LLM_TIMEOUT,
        backoff=TransportBackoff(
            max_attempts=settings.TRANSPORT_MAX_ATTEMPTS,
            base=settings.TRANSPORT_BACKOFF_BASE,
            cap=settings.TRANSPORT_BACKOFF_CAP,
        ),
        params={
            CallKind.NEW: GenerationParams(settings.LLM_MAX_TOKENS_NEW, settings.LLM_TEMPERATURE_NEW),
            CallKind.MODIFY: GenerationParams(settings.LLM_MAX_TOKENS_MODIFY, settings.LLM_TEMPERATURE_MODIFY),
        },
    )
    pipeline = ResponseRepairPipeline(
        diagnostic_chars=settings.PARSE_DIAGNOSTIC_CHARS,
        retry_after=settings.PARSE_RETRY_AFTER_SECONDS,
    )
    generator = DocumentGenerator(client, pipeline)

    cache: ResponseCache[Document] = ResponseCache(ttl_seconds=settings.CACHE_TTL_SECONDS)
    queue = RequestQueue(
        handler=generator.generate,
        cache=cache,
        min_interval=settings.QUEUE_MIN_INTERVAL,
        backoff=RateLimitBackoff(settings.RATE_LIMIT_RETRY_DELAYS, max_retries=settings.QUEUE_MAX_RETRIES),
        key_fn=lambda request: compute_cache_key(
            request,
            message_window=settings.CACHE_MESSAGE_WINDOW,
            system_prompt_prefix_chars=settings.CACHE_SYSTEM_PROMPT_PREFIX_CHARS,
        ),
    )
    sweeper = CacheSweeper(cache, interval_seconds=settings.CACHE_SWEEP_INTERVAL_SECONDS)

    logger.info(
        "Orchestrator built",
        model=settings.LLM_MODEL,
        min_interval=settings.QUEUE_MIN_INTERVAL,
        rate_limit_delays=settings.RATE_LIMIT_RETRY_DELAYS,
        cache_ttl_seconds=settings.CACHE_TTL_SECONDS,
        usage_sinks=len(usage_meter.sinks),
    )
    return GenerationOrchestrator(
        queue=queue,
        cache=cache,
        sweeper=sweeper,
        usage_meter=usage_meter,
        client=provider,
        provider_configured=bool(settings.ANTHROPIC_API_KEY),
    )
