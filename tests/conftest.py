"""
Pytest configuration and fixtures for Lexi tests.

Provides shared fixtures for:
- Test environment variables and a fresh settings cache
- Mock Redis client (fakeredis)
- In-memory conversation store and scripted generation provider
"""

from typing import Any, Dict, List, Optional

import pytest

from api.llm.gemini_provider import ChatResult, ChatTurn, GenerationResult, to_provider_history
from libs.common.errors import APIError, NotFound, ValidationError
from libs.common.settings import get_settings
from libs.models.firestore import (
    SEED_SYSTEM_MESSAGE,
    FirestoreConversation,
    FirestoreMessage,
    MessageMetadata,
)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch):
    """Set up test environment variables."""
    monkeypatch.setenv("LEXI_APP_ENV", "test")
    monkeypatch.delenv("LEXI_GOOGLE_API_KEY", raising=False)
    monkeypatch.delenv("LEXI_REDIS_URL", raising=False)
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
async def redis_client():
    """
    Provide fakeredis client for testing.

    This avoids requiring actual Redis server during tests.
    """
    from fakeredis import aioredis as fakeredis

    client = fakeredis.FakeRedis(decode_responses=True)

    yield client

    await client.flushdb()
    await client.aclose()


class FakeProvider:
    """Scripted generation provider.

    ``single_turn`` and ``with_history`` are lists of replies consumed in
    order; a reply that is an exception is raised instead of returned.
    """

    def __init__(self, single_turn=None, with_history=None, model: str = "gemini-2.5-flash"):
        self.single_turn = list(single_turn or [])
        self.with_history = list(with_history or [])
        self.model = model
        self.calls: List[Dict[str, Any]] = []

    @staticmethod
    def _next(replies: list):
        reply = replies.pop(0) if replies else "ok"
        if isinstance(reply, BaseException):
            raise reply
        return reply

    async def generate_single_turn(self, prompt, options=None):
        self.calls.append({"kind": "single_turn", "prompt": prompt, "options": options})
        return GenerationResult(text=self._next(self.single_turn), model=self.model)

    async def generate_with_history(self, prompt, history=(), options=None):
        self.calls.append({"kind": "with_history", "prompt": prompt, "history": list(history), "options": options})
        text = self._next(self.with_history)
        turns = to_provider_history(history)
        updated = [*turns, ChatTurn(role="user", content=prompt), ChatTurn(role="model", content=text)]
        return ChatResult(text=text, model=self.model, history=updated)


class InMemoryConversationStore:
    """Dict-backed stand-in for ConversationStore with the same read/append semantics."""

    def __init__(self):
        self.conversations: Dict[str, FirestoreConversation] = {}
        self.fail_on_append: Optional[int] = None
        self.append_calls = 0

    async def create(self, user_id: str, title: str, description: str = "") -> FirestoreConversation:
        if not user_id or not title:
            raise ValidationError("User ID and title are required")
        conversation = FirestoreConversation(
            user_id=user_id,
            title=title,
            description=description,
            messages=[
                FirestoreMessage(role="system", content=SEED_SYSTEM_MESSAGE, metadata=MessageMetadata(type="system"))
            ],
        )
        self.conversations[conversation.conversation_id] = conversation
        return conversation

    async def get_by_id(self, conversation_id: str, user_id: str) -> FirestoreConversation:
        conversation = self.conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id or conversation.status == "deleted":
            raise NotFound("Conversation not found")
        return conversation

    async def append_message(self, conversation_id, user_id, role, content, metadata=None):
        self.append_calls += 1
        if self.fail_on_append == self.append_calls:
            raise APIError("Error adding message: write failed")
        conversation = await self.get_by_id(conversation_id, user_id)
        metadata = dict(metadata or {})
        metadata.setdefault("type", "system" if role == "system" else "chat")
        message = FirestoreMessage(role=role, content=content, metadata=MessageMetadata(**metadata))
        updated = conversation.model_copy(update={"messages": [*conversation.messages, message]})
        self.conversations[conversation_id] = updated
        return updated


@pytest.fixture
def memory_store():
    return InMemoryConversationStore()


@pytest.fixture
def make_provider():
    """Factory for scripted providers: ``make_provider(single_turn=[...], with_history=[...])``."""
    return FakeProvider
