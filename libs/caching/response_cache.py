"""
Redis cache for single-turn AI generations.

Entries are keyed by a SHA-256 of the system prompt, sampling options and
prompt. Redis failures never fail a generation: the cache logs and steps aside.
"""

import hashlib
from dataclasses import dataclass
from typing import Optional

import redis.asyncio as redis
import structlog

logger = structlog.get_logger(__name__)

KEY_PREFIX = "lexi:ai:"


@dataclass
class CacheStats:
    """Cache statistics for monitoring."""

    hits: int = 0
    misses: int = 0
    errors: int = 0

    @property
    def hit_rate(self) -> float:
        total = self.hits + self.misses
        if total == 0:
            return 0.0
        return self.hits / total


class ResponseCache:
    """Text cache for AI responses.

    Usage:
        cache = ResponseCache(await get_redis_client(), default_ttl=3600)
        cached = await cache.get(prompt, system_prompt)
        if cached is None:
            await cache.set(prompt, system_prompt, text)
    """

    def __init__(self, redis_client: redis.Redis, default_ttl: int = 3600):
        self._redis = redis_client
        self.default_ttl = default_ttl
        self._stats = CacheStats()

    @staticmethod
    def make_key(
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> str:
        """Key over everything that shapes the generation, not just the prompt."""
        material = "\x00".join([system_prompt or "", repr(temperature), repr(max_tokens), prompt])
        digest = hashlib.sha256(material.encode("utf-8")).hexdigest()
        return f"{KEY_PREFIX}{digest}"

    async def get(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> Optional[str]:
        key = self.make_key(prompt, system_prompt, temperature, max_tokens)
        try:
            value = await self._redis.get(key)
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.warning("AI cache read failed", error=str(e))
            return None

        if value is None:
            self._stats.misses += 1
            return None

        self._stats.hits += 1
        logger.info("Using cached AI response", key=key[-12:])
        return value

    async def set(
        self,
        prompt: str,
        system_prompt: Optional[str],
        text: str,
        ttl_seconds: Optional[int] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
    ) -> bool:
        key = self.make_key(prompt, system_prompt, temperature, max_tokens)
        try:
            await self._redis.set(key, text, ex=ttl_seconds or self.default_ttl)
        except redis.RedisError as e:
            self._stats.errors += 1
            logger.warning("AI cache write failed", error=str(e))
            return False
        return True

    def get_stats(self) -> CacheStats:
        return self._stats

