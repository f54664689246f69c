"""
Per-model price table.

Rates are USD per 1K tokens. Unknown model ids fall back to the cheapest
tier with a warning; pricing never fails a call.
"""

from dataclasses import dataclass

import structlog

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class ModelPricing:
    input: float
    output: float
    cache_write: float
    cache_read: float


@dataclass(frozen=True)
class CallCost:
    cost_in: float
    cost_out: float
    cost_cache: float

    @property
    def total(self) -> float:
        return self.cost_in + self.cost_out + self.cost_cache


FALLBACK_MODEL = "claude-3-5-haiku-20241022"

PRICING: dict[str, ModelPricing] = {
    "claude-3-5-haiku-20241022": ModelPricing(input=0.0008, output=0.004, cache_write=0.001, cache_read=0.00008),
    "claude-3-5-sonnet-20241022": ModelPricing(input=0.003, output=0.015, cache_write=0.00375, cache_read=0.0003),
    "claude-3-opus-20240229": ModelPricing(input=0.015, output=0.075, cache_write=0.01875, cache_read=0.0015),
}


def get_pricing(model: str) -> ModelPricing:
    pricing = PRICING.get(model)
    if pricing is None:
        logger.warning("Unknown model pricing, using fallback", model=model, fallback_model=FALLBACK_MODEL)
        return PRICING[FALLBACK_MODEL]
    return pricing


def calculate_cost(
    model: str,
    input_tokens: int,
    output_tokens: int,
    cache_write_tokens: int = 0,
    cache_read_tokens: int = 0,
) -> CallCost:
    """
    Compute the cost of one call.

    Args:
        model: Model id as reported by the provider
        input_tokens: Uncached input tokens
        output_tokens: Generated tokens
        cache_write_tokens: Tokens written to the provider's prompt cache
        cache_read_tokens: Tokens served from the provider's prompt cache

    Returns:
        CallCost with input, output and cache components
    """
    pricing = get_pricing(model)
    return CallCost(
        cost_in=input_tokens / 1000 * pricing.input,
        cost_out=output_tokens / 1000 * pricing.output,
        cost_cache=(
            cache_write_tokens / 1000 * pricing.cache_write
            + cache_read_tokens / 1000 * pricing.cache_read
        ),
    )
