"""
Append-only audit sinks for usage records.

A sink receives every UsageRecord the meter produces. Sinks are an
observability side channel: a failing sink logs and returns, it never fails
the generation call that produced the record. Writes are awaited on the
event loop, so neither sink may do blocking I/O there.
"""

import asyncio
from pathlib import Path
from typing import Protocol

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from deck_orchestrator.models.usage_models import UsageRecord

logger = structlog.get_logger(__name__)


class UsageSink(Protocol):
    async def write(self, record: UsageRecord) -> None:
        ...


class JsonlFileSink:
    """One JSON object per line, appended to `path` from a worker thread."""

    def __init__(self, path: str | Path):
        self.path = Path(path)
        self.path.parent.mkdir(parents=True, exist_ok=True)

    async def write(self, record: UsageRecord) -> None:
        line = record.model_dump_json() + "\n"
        try:
            await asyncio.to_thread(self._append, line)
        except OSError as e:
            logger.error("Failed to write usage log", path=str(self.path), error=str(e))

    def _append(self, line: str) -> None:
        with self.path.open("a", encoding="utf-8") as handle:
            handle.write(line)


class RedisUsageSink:
    """
    Redis list sink: newest record first, trimmed to `max_entries`.

    Args:
        client: Async Redis client (see persistence.redis_client)
        key: List key
        max_entries: Entries kept after each write
    """

    def __init__(self, client: Redis, key: str = "deck:usage", max_entries: int = 10000):
        self.client = client
        self.key = key
        self.max_entries = max_entries

    async def write(self, record: UsageRecord) -> None:
        try:
            pipe = self.client.pipeline()
            pipe.lpush(self.key, record.model_dump_json())
            pipe.ltrim(self.key, 0, self.max_entries - 1)
            await pipe.execute()
        except RedisError as e:
            logger.error("Failed to push usage record to Redis", key=self.key, error=str(e))
