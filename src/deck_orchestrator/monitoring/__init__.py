"""Monitoring and metrics instrumentation for the generation orchestrator.

Exports custom Prometheus metrics for operational monitoring and alerting.
"""

from deck_orchestrator.monitoring.metrics import (
    cache_entries,
    cache_lookups_total,
    generation_cost_usd_total,
    llm_latency_seconds,
    llm_tokens_total,
    queue_depth,
    queue_resolutions_total,
    rate_limit_requeues_total,
    repair_tier_total,
    structural_failures_total,
    transport_retries_total,
    upstream_calls_total,
)

__all__ = [
    "upstream_calls_total",
    "transport_retries_total",
    "rate_limit_requeues_total",
    "queue_resolutions_total",
    "queue_depth",
    "cache_lookups_total",
    "cache_entries",
    "repair_tier_total",
    "structural_failures_total",
    "llm_latency_seconds",
    "llm_tokens_total",
    "generation_cost_usd_total",
]
