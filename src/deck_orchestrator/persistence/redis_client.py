"""
Redis client with connection pooling for the usage audit sink.

Uses redis-py's asyncio client so audit writes never block the event loop
that drives the request queue.
"""

from typing import Optional

import structlog
from redis.asyncio import ConnectionPool, Redis

from deck_orchestrator.config import Settings

logger = structlog.get_logger(__name__)


class RedisClient:
    """
    Redis client wrapper with a process-wide async connection pool.
    """

    _pool: Optional[ConnectionPool] = None

    @classmethod
    def get_client(cls, settings: Settings) -> Redis:
        """
        Get async Redis client backed by the shared pool.

        Args:
            settings: Application settings

        Returns:
            Redis client instance
        """
        if cls._pool is None:
            cls._pool = ConnectionPool.from_url(
                settings.REDIS_URL,
                max_connections=settings.REDIS_MAX_CONNECTIONS,
                decode_responses=True,  # Auto-decode bytes to str
                socket_timeout=5,
                socket_connect_timeout=5,
                retry_on_timeout=True,
            )
            logger.info("Initialized Redis async connection pool", max_connections=settings.REDIS_MAX_CONNECTIONS)

        return Redis(connection_pool=cls._pool)

    @classmethod
    async def close_pool(cls) -> None:
        """Close connection pool (cleanup on shutdown)."""
        if cls._pool is not None:
            await cls._pool.disconnect()
            cls._pool = None
            logger.info("Closed Redis async connection pool")
