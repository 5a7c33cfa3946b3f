"""
Gemini generation provider with ordered model fallback.

This module wraps the google-genai async client behind two calls:
single-turn generation and chat generation with prior history. Both walk a
fixed, ordered list of model ids and return the first success; a failure of
one model is logged and the next one is tried.
"""

from __future__ import annotations

import asyncio
import time
from functools import lru_cache
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Literal, Optional, Sequence, Tuple, TypeVar

import structlog
from google import genai
from google.genai import types
from pydantic import BaseModel, ConfigDict, Field

from libs.common.errors import AllProvidersExhausted, ProviderNotConfiguredError
from libs.common.settings import DEFAULT_GEMINI_MODELS, get_settings

logger = structlog.get_logger(__name__)

PROVIDER_NAME = "google"
DEFAULT_SYSTEM_PROMPT = "You are a legal contract expert. Generate professional, legally sound contracts."

T = TypeVar("T")


class GenerationOptions(BaseModel):
    """Recognized generation options. Unknown keys are dropped."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    system_prompt: Optional[str] = None
    temperature: Optional[float] = Field(default=None, ge=0.0, le=2.0)
    max_tokens: Optional[int] = Field(default=None, gt=0)


class ChatTurn(BaseModel):
    """One turn of provider-format history."""

    role: Literal["user", "model"]
    content: str


class GenerationResult(BaseModel):
    text: str
    model: str
    provider: str = PROVIDER_NAME


class ChatResult(GenerationResult):
    history: List[ChatTurn] = Field(default_factory=list)


def to_provider_history(messages: Iterable[Any]) -> List[ChatTurn]:
    """Convert stored messages (or dicts) into provider history.

    System messages are dropped; ``user`` stays ``user`` and every other role
    (``assistant``, ``model``) becomes ``model``. Order is preserved.
    """
    history: List[ChatTurn] = []
    for message in messages:
        if isinstance(message, dict):
            role, content = message.get("role"), message.get("content")
        else:
            role, content = message.role, message.content
        if role == "system":
            continue
        history.append(ChatTurn(role="user" if role == "user" else "model", content=content))
    return history


class GeminiProvider:
    """Generation provider adapter for Google Gemini.

    The model list is data: each request walks ``models`` in order until one
    model answers. When every model fails, ``AllProvidersExhausted`` is raised
    with the last underlying error attached.

    Usage:
        provider = GeminiProvider(genai.Client(api_key=...))
        result = await provider.generate_single_turn("Explain force majeure")
        chat = await provider.generate_with_history("And in leases?", result_history)
    """

    def __init__(self, client: Optional[genai.Client], models: Sequence[str] = tuple(DEFAULT_GEMINI_MODELS)):
        if not models:
            raise ValueError("GeminiProvider needs at least one model")
        self.client = client
        self.models: Tuple[str, ...] = tuple(models)

    @property
    def is_configured(self) -> bool:
        return self.client is not None

    async def _with_fallback(
        self,
        operation: str,
        attempt: Callable[[str], Awaitable[T]],
    ) -> Tuple[T, str]:
        """Run ``attempt`` for each candidate model until one succeeds."""
        if self.client is None:
            raise ProviderNotConfiguredError("Google AI not configured")

        last_error: Optional[BaseException] = None
        for model_name in self.models:
            try:
                value = await attempt(model_name)
            except Exception as e:
                last_error = e
                logger.warning(
                    "Gemini model failed, trying next",
                    operation=operation,
                    model=model_name,
                    error=str(e),
                    error_type=type(e).__name__,
                )
                continue
            logger.debug("Gemini model succeeded", operation=operation, model=model_name)
            return value, model_name

        logger.error("All Gemini models failed", operation=operation, models=list(self.models))
        raise AllProvidersExhausted("All Google AI models failed", last_error=last_error) from last_error

    @staticmethod
    def _build_config(options: GenerationOptions, include_max_tokens: bool) -> types.GenerateContentConfig:
        config: Dict[str, Any] = {"system_instruction": options.system_prompt or DEFAULT_SYSTEM_PROMPT}
        if options.temperature is not None:
            config["temperature"] = options.temperature
        if include_max_tokens and options.max_tokens is not None:
            config["max_output_tokens"] = options.max_tokens
        return types.GenerateContentConfig(**config)

    @staticmethod
    def _response_text(response: Any) -> str:
        text = getattr(response, "text", None)
        if not isinstance(text, str) or not text.strip():
            raise ValueError("Empty response from model")
        return text

    async def generate_single_turn(
        self,
        prompt: str,
        options: Optional[GenerationOptions] = None,
    ) -> GenerationResult:
        """Generate a reply to a single prompt."""
        options = options or GenerationOptions()
        config = self._build_config(options, include_max_tokens=True)

        async def attempt(model_name: str) -> str:
            response = await self.client.aio.models.generate_content(
                model=model_name,
                contents=prompt,
                config=config,
            )
            return self._response_text(response)

        text, model_name = await self._with_fallback("generate_single_turn", attempt)
        return GenerationResult(text=text, model=model_name)

    async def generate_with_history(
        self,
        prompt: str,
        history: Sequence[Any] = (),
        options: Optional[GenerationOptions] = None,
    ) -> ChatResult:
        """Continue a chat: replay ``history`` then send ``prompt``.

        The returned history is the input history plus the new user and model
        turns, ready to be persisted or chained.
        """
        options = options or GenerationOptions()
        config = self._build_config(options, include_max_tokens=False)
        turns = to_provider_history(history)
        contents = [types.Content(role=turn.role, parts=[types.Part(text=turn.content)]) for turn in turns]

        async def attempt(model_name: str) -> str:
            chat = self.client.aio.chats.create(model=model_name, config=config, history=list(contents))
            response = await chat.send_message(prompt)
            return self._response_text(response)

        text, model_name = await self._with_fallback("generate_with_history", attempt)
        updated = [*turns, ChatTurn(role="user", content=prompt), ChatTurn(role="model", content=text)]
        return ChatResult(text=text, model=model_name, history=updated)

    async def health_check(self, timeout: float = 5.0) -> Dict[str, Any]:
        """Probe the models in order and report the first one that answers.

        Never raises; the outcome is described in the returned dict.
        """
        if self.client is None:
            return {
                "status": "not_configured",
                "message": "Google AI API key not configured",
                "model": None,
                "response_time_ms": None,
            }

        start_time = time.perf_counter()
        last_error: Optional[BaseException] = None
        for model_name in self.models:
            try:
                await asyncio.wait_for(
                    self.client.aio.models.generate_content(model=model_name, contents="test"),
                    timeout=timeout,
                )
            except Exception as e:
                last_error = e
                logger.warning("Health check failed for model", model=model_name, error=str(e) or type(e).__name__)
                continue
            return {
                "status": "healthy",
                "message": "Google AI is reachable",
                "model": model_name,
                "response_time_ms": int((time.perf_counter() - start_time) * 1000),
            }

        return {
            "status": "unhealthy",
            "message": str(last_error) if last_error else "All Google AI models failed",
            "model": None,
            "response_time_ms": int((time.perf_counter() - start_time) * 1000),
        }


@lru_cache
def get_generation_provider() -> GeminiProvider:
    """Get or create the process-wide provider built from settings."""
    settings = get_settings()
    client = genai.Client(api_key=settings.google_api_key) if settings.google_api_key else None
    if client is None:
        logger.warning("LEXI_GOOGLE_API_KEY not set, generation will be unavailable")
    return GeminiProvider(client, models=settings.gemini_models)
