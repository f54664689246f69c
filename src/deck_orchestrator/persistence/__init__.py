"""
Persistence for usage audit records: Redis connection pool and sinks.
"""

from deck_orchestrator.persistence.redis_client import RedisClient
from deck_orchestrator.persistence.usage_sinks import JsonlFileSink, RedisUsageSink, UsageSink

__all__ = [
    "RedisClient",
    "JsonlFileSink",
    "RedisUsageSink",
    "UsageSink",
]
