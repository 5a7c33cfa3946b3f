"""Generation provider wrapper that serves repeated single-turn prompts from Redis."""

from typing import Any, Optional, Sequence

from api.llm.gemini_provider import ChatResult, GenerationOptions, GenerationResult
from libs.caching.response_cache import ResponseCache

CACHE_MODEL = "cache"


class CachedGenerationProvider:
    """Wraps a generation provider so single-turn calls go through the cache.

    Chat generation with history passes straight through; it depends on
    conversation state and is never cached.
    """

    def __init__(self, provider, cache: ResponseCache, ttl_seconds: Optional[int] = None):
        self.provider = provider
        self.cache = cache
        self.ttl_seconds = ttl_seconds

    async def generate_single_turn(self, prompt: str, options: Optional[GenerationOptions] = None) -> GenerationResult:
        options = options or GenerationOptions()
        cached = await self.cache.get(prompt, options.system_prompt, options.temperature, options.max_tokens)
        if cached is not None:
            return GenerationResult(text=cached, model=CACHE_MODEL)

        result = await self.provider.generate_single_turn(prompt, options)
        await self.cache.set(
            prompt,
            options.system_prompt,
            result.text,
            ttl_seconds=self.ttl_seconds,
            temperature=options.temperature,
            max_tokens=options.max_tokens,
        )
        return result

    async def generate_with_history(
        self,
        prompt: str,
        history: Sequence[Any] = (),
        options: Optional[GenerationOptions] = None,
    ) -> ChatResult:
        return await self.provider.generate_with_history(prompt, history, options)
