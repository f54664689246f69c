"""Custom Prometheus metrics for the generation orchestrator.

These metrics are exposed at /metrics endpoint and should be scraped by Prometheus.
Alert rules should be configured for:
- rate_limit_requeues_total (sustained upstream rate limiting)
- upstream_calls_total{outcome="failure"} (provider instability)
- repair_tier_total{tier="salvage"} (model emitting truncated output)
- generation_cost_usd_total (spend)
"""

from prometheus_client import Counter, Gauge, Histogram

# === Upstream Call Metrics ===

upstream_calls_total = Counter(
    "upstream_calls_total",
    "Total provider call attempts by call kind and outcome",
    ["kind", "outcome"],
)
"""
Provider call attempts.

Labels:
- kind: new, modify
- outcome: success, retryable, rate_limited, fatal, timeout
"""

transport_retries_total = Counter(
    "transport_retries_total",
    "Transport-level retries performed inside the generation client",
    ["error_class"],
)

rate_limit_requeues_total = Counter(
    "rate_limit_requeues_total",
    "Queue items re-inserted at the head after a rate limit",
)
"""
Rate-limit requeues.

Alert thresholds:
- WARN: > 10 per minute (provider quota close to exhaustion)
"""

queue_resolutions_total = Counter(
    "queue_resolutions_total",
    "Queue items resolved by outcome",
    ["outcome"],
)
"""
Labels:
- outcome: success, cache_hit, rate_limit_exceeded, error, cancelled
"""

# === Queue / Cache State ===

queue_depth = Gauge(
    "queue_depth",
    "Items waiting in the request queue",
)

cache_lookups_total = Counter(
    "cache_lookups_total",
    "Response cache lookups by result",
    ["result"],
)
"""
Labels:
- result: hit, miss
"""

cache_entries = Gauge(
    "cache_entries",
    "Entries currently held in the response cache (including expired, not yet swept)",
)

# === Parsing / Validation Metrics ===

repair_tier_total = Counter(
    "repair_tier_total",
    "Responses parsed, by the repair tier that produced them",
    ["tier"],
)
"""
Labels:
- tier: direct, heuristic, salvage, failed

A rising salvage share usually means output is being truncated at max_tokens.
"""

structural_failures_total = Counter(
    "structural_failures_total",
    "Documents rejected by structural validation",
    ["reason"],
)
"""
Labels:
- reason: schema, unknown_block_type, translation_mismatch
"""

# === LLM Performance Metrics ===

llm_latency_seconds = Histogram(
    "llm_latency_seconds",
    "LLM generation latency in seconds",
    ["model", "success"],
    buckets=[0.5, 1.0, 2.0, 5.0, 10.0, 20.0, 30.0, 60.0],
)
"""
LLM generation latency histogram.

Labels:
- model: Model id (e.g., claude-3-5-haiku-20241022)
- success: true, false

Alert thresholds:
- WARN: p95 > 30s
- CRITICAL: p95 > 50s (close to the 60s hard deadline)
"""

llm_tokens_total = Counter(
    "llm_tokens_total",
    "Total tokens consumed by model and type",
    ["model", "token_type"],
)
"""
Token consumption counter.

Labels:
- model: Model id
- token_type: input, output, cache_write, cache_read
"""

generation_cost_usd_total = Counter(
    "generation_cost_usd_total",
    "Computed provider spend in USD by model and user action",
    ["model", "action"],
)
