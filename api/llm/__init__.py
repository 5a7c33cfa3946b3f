"""LLM module for Google Gemini generation with model fallback."""

from .gemini_provider import (
    ChatResult,
    ChatTurn,
    GeminiProvider,
    GenerationOptions,
    GenerationResult,
    get_generation_provider,
    to_provider_history,
)

__all__ = [
    "ChatResult",
    "ChatTurn",
    "GeminiProvider",
    "GenerationOptions",
    "GenerationResult",
    "get_generation_provider",
    "to_provider_history",
]
