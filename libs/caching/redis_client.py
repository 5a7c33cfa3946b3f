"""
Redis client manager for the Lexi AI response cache.

Provides:
- Async Redis client with connection pooling
- Singleton pattern for resource efficiency
- Graceful degradation: callers get None when Redis is unavailable
"""

from typing import Optional

import redis.asyncio as redis
import structlog

from libs.common.settings import get_settings

logger = structlog.get_logger(__name__)

# Global Redis client instance (singleton)
_redis_client: Optional[redis.Redis] = None
_connection_failed = False  # Circuit breaker for repeated failures


def _redacted(redis_url: str) -> str:
    return redis_url.split("@")[-1] if "@" in redis_url else redis_url.split("//")[-1]


async def get_redis_client() -> Optional[redis.Redis]:
    """
    Get or create async Redis client with connection pooling.

    Returns:
        Redis client instance, or None when LEXI_REDIS_URL is unset or the
        server cannot be reached.
    """
    global _redis_client, _connection_failed

    # If previous connection attempt failed, don't retry immediately
    if _connection_failed:
        return None

    if _redis_client is not None:
        return _redis_client

    redis_url = get_settings().redis_url
    if not redis_url:
        logger.warning("LEXI_REDIS_URL not configured, AI response caching disabled")
        _connection_failed = True
        return None

    client = redis.from_url(
        redis_url,
        encoding="utf-8",
        decode_responses=True,
        max_connections=20,
        socket_timeout=5,
        socket_connect_timeout=5,
    )
    try:
        await client.ping()
    except redis.RedisError as e:
        logger.error("Redis connection failed", error=str(e), redis_url=_redacted(redis_url))
        _connection_failed = True
        await client.aclose()
        return None

    logger.info("Redis client initialized", url=_redacted(redis_url), max_connections=20)
    _redis_client = client
    return _redis_client


async def close_redis_client():
    """Close Redis client connection and re-arm the circuit breaker."""
    global _redis_client, _connection_failed

    if _redis_client is not None:
        try:
            await _redis_client.aclose()
            logger.info("Redis client closed")
        except redis.RedisError as e:
            logger.warning("Error closing Redis client", error=str(e))
        finally:
            _redis_client = None

    _connection_failed = False
