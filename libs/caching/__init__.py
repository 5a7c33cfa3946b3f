"""
Caching utilities for Lexi.

- Redis client management
- AI response caching for single-turn generations
"""

from libs.caching.redis_client import get_redis_client
from libs.caching.response_cache import ResponseCache

__all__ = ["ResponseCache", "get_redis_client"]
