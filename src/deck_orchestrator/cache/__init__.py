"""
Response cache: TTL store, request fingerprinting and background sweep.
"""

from deck_orchestrator.cache.fingerprint import compute_cache_key
from deck_orchestrator.cache.response_cache import CacheEntry, ResponseCache
from deck_orchestrator.cache.sweeper import CacheSweeper

__all__ = ["CacheEntry", "CacheSweeper", "ResponseCache", "compute_cache_key"]
