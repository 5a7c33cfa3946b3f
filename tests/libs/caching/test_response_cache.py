"""
Tests for the AI response cache.

Tests verify:
- Key derivation from prompt, system prompt and sampling options
- Hit/miss tracking and TTL
- Graceful degradation when Redis fails
"""

import pytest
from unittest.mock import AsyncMock, MagicMock

import redis.asyncio as redis

from libs.caching.response_cache import KEY_PREFIX, ResponseCache


@pytest.fixture
async def cache(redis_client):
    return ResponseCache(redis_client, default_ttl=3600)


def test_key_depends_on_prompt_and_system_prompt():
    key = ResponseCache.make_key("What is a lease?", "Be formal.")

    assert key.startswith(KEY_PREFIX)
    assert key == ResponseCache.make_key("What is a lease?", "Be formal.")
    assert key != ResponseCache.make_key("What is a lease?", "Be casual.")
    assert key != ResponseCache.make_key("What is a licence?", "Be formal.")
    assert ResponseCache.make_key("q", None) == ResponseCache.make_key("q", "")


def test_key_depends_on_sampling_options():
    key = ResponseCache.make_key("Draft a clause", "Be formal.", temperature=0.2, max_tokens=512)

    assert key == ResponseCache.make_key("Draft a clause", "Be formal.", temperature=0.2, max_tokens=512)
    assert key != ResponseCache.make_key("Draft a clause", "Be formal.", temperature=0.7, max_tokens=512)
    assert key != ResponseCache.make_key("Draft a clause", "Be formal.", temperature=0.2, max_tokens=1024)


@pytest.mark.asyncio
async def test_miss_then_hit(cache):
    assert await cache.get("What is a lease?", "Be formal.") is None

    stored = await cache.set("What is a lease?", "Be formal.", "A lease is a contract.")
    assert stored is True

    assert await cache.get("What is a lease?", "Be formal.") == "A lease is a contract."
    stats = cache.get_stats()
    assert stats.hits == 1
    assert stats.misses == 1
    assert stats.hit_rate == 0.5


@pytest.mark.asyncio
async def test_set_applies_ttl(cache, redis_client):
    await cache.set("prompt", None, "text", ttl_seconds=120)

    ttl = await redis_client.ttl(ResponseCache.make_key("prompt"))
    assert 0 < ttl <= 120


@pytest.mark.asyncio
async def test_default_ttl_used(cache, redis_client):
    await cache.set("prompt", None, "text")

    ttl = await redis_client.ttl(ResponseCache.make_key("prompt"))
    assert 3500 < ttl <= 3600


@pytest.mark.asyncio
async def test_redis_errors_degrade_to_miss():
    broken = MagicMock()
    broken.get = AsyncMock(side_effect=redis.ConnectionError("connection refused"))
    broken.set = AsyncMock(side_effect=redis.ConnectionError("connection refused"))
    cache = ResponseCache(broken)

    assert await cache.get("prompt") is None
    assert await cache.set("prompt", None, "text") is False
    assert cache.get_stats().errors == 2
    assert cache.get_stats().hit_rate == 0.0
