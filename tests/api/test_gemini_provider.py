"""Tests for the Gemini provider adapter and its model fallback."""

import asyncio
from unittest.mock import AsyncMock, MagicMock

import pytest

from api.llm.gemini_provider import (
    DEFAULT_SYSTEM_PROMPT,
    GeminiProvider,
    GenerationOptions,
    to_provider_history,
)
from libs.common.errors import AllProvidersExhausted, ProviderNotConfiguredError
from libs.models.firestore import FirestoreMessage, MessageMetadata

MODELS = ["gemini-2.5-flash", "gemini-1.5-flash", "gemini-pro"]


def _response(text):
    response = MagicMock()
    response.text = text
    return response


@pytest.fixture
def mock_client():
    client = MagicMock()
    client.aio.models.generate_content = AsyncMock()
    return client


@pytest.mark.asyncio
async def test_single_turn_uses_first_model_that_succeeds(mock_client):
    mock_client.aio.models.generate_content.side_effect = [
        RuntimeError("quota exceeded"),
        RuntimeError("model overloaded"),
        _response("A lease is a contract."),
    ]
    provider = GeminiProvider(mock_client, MODELS)

    result = await provider.generate_single_turn("What is a lease?")

    assert result.text == "A lease is a contract."
    assert result.model == "gemini-pro"
    assert result.provider == "google"
    called_models = [call.kwargs["model"] for call in mock_client.aio.models.generate_content.await_args_list]
    assert called_models == MODELS


@pytest.mark.asyncio
async def test_single_turn_stops_after_first_success(mock_client):
    mock_client.aio.models.generate_content.return_value = _response("Answer")
    provider = GeminiProvider(mock_client, MODELS)

    result = await provider.generate_single_turn("Question")

    assert result.model == "gemini-2.5-flash"
    assert mock_client.aio.models.generate_content.await_count == 1


@pytest.mark.asyncio
async def test_single_turn_all_models_fail(mock_client):
    last = RuntimeError("third failure")
    mock_client.aio.models.generate_content.side_effect = [RuntimeError("one"), RuntimeError("two"), last]
    provider = GeminiProvider(mock_client, MODELS)

    with pytest.raises(AllProvidersExhausted) as exc_info:
        await provider.generate_single_turn("Question")

    assert exc_info.value.status_code == 503
    assert exc_info.value.last_error is last
    assert exc_info.value.message == "All Google AI models failed"


@pytest.mark.asyncio
async def test_empty_text_counts_as_model_failure(mock_client):
    mock_client.aio.models.generate_content.side_effect = [_response(""), _response("Second model answer")]
    provider = GeminiProvider(mock_client, MODELS)

    result = await provider.generate_single_turn("Question")

    assert result.model == "gemini-1.5-flash"
    assert result.text == "Second model answer"


@pytest.mark.asyncio
async def test_single_turn_passes_options_to_config(mock_client):
    mock_client.aio.models.generate_content.return_value = _response("ok")
    provider = GeminiProvider(mock_client, MODELS)

    await provider.generate_single_turn(
        "Question",
        GenerationOptions(system_prompt="Be brief.", temperature=0.3, max_tokens=500),
    )

    config = mock_client.aio.models.generate_content.await_args.kwargs["config"]
    assert config.system_instruction == "Be brief."
    assert config.temperature == 0.3
    assert config.max_output_tokens == 500


@pytest.mark.asyncio
async def test_default_system_prompt_when_none_given(mock_client):
    mock_client.aio.models.generate_content.return_value = _response("ok")
    provider = GeminiProvider(mock_client, MODELS)

    await provider.generate_single_turn("Draft an NDA")

    config = mock_client.aio.models.generate_content.await_args.kwargs["config"]
    assert config.system_instruction == DEFAULT_SYSTEM_PROMPT


def test_generation_options_ignore_unknown_keys():
    options = GenerationOptions(temperature=0.5, top_k=3)
    assert options.temperature == 0.5
    assert not hasattr(options, "top_k")


@pytest.mark.asyncio
async def test_not_configured_raises_without_calls():
    provider = GeminiProvider(None, MODELS)

    with pytest.raises(ProviderNotConfiguredError) as exc_info:
        await provider.generate_single_turn("Question")

    assert isinstance(exc_info.value, AllProvidersExhausted)
    assert exc_info.value.message == "Google AI not configured"


def test_to_provider_history_drops_system_and_maps_roles():
    messages = [
        {"role": "system", "content": "seed"},
        {"role": "user", "content": "Hi"},
        {"role": "assistant", "content": "Hello"},
        {"role": "model", "content": "Already provider format"},
    ]

    history = to_provider_history(messages)

    assert [(turn.role, turn.content) for turn in history] == [
        ("user", "Hi"),
        ("model", "Hello"),
        ("model", "Already provider format"),
    ]


def test_to_provider_history_accepts_stored_messages():
    messages = [
        FirestoreMessage(role="system", content="seed", metadata=MessageMetadata(type="system")),
        FirestoreMessage(role="user", content="Q", metadata=MessageMetadata(type="chat")),
        FirestoreMessage(role="assistant", content="A", metadata=MessageMetadata(type="explain")),
    ]

    assert [turn.role for turn in to_provider_history(messages)] == ["user", "model"]


@pytest.mark.asyncio
async def test_generate_with_history_replays_history_and_extends_it(mock_client):
    chat = MagicMock()
    chat.send_message = AsyncMock(return_value=_response("Follow-up answer"))
    mock_client.aio.chats.create = MagicMock(return_value=chat)
    provider = GeminiProvider(mock_client, MODELS)
    history = [
        {"role": "system", "content": "seed"},
        {"role": "user", "content": "What is a lease?"},
        {"role": "assistant", "content": "A contract."},
    ]

    result = await provider.generate_with_history("And a licence?", history, GenerationOptions(temperature=0.7))

    assert result.text == "Follow-up answer"
    assert result.model == "gemini-2.5-flash"
    sent_history = mock_client.aio.chats.create.call_args.kwargs["history"]
    assert [content.role for content in sent_history] == ["user", "model"]
    assert sent_history[0].parts[0].text == "What is a lease?"
    chat.send_message.assert_awaited_once_with("And a licence?")
    assert [(t.role, t.content) for t in result.history] == [
        ("user", "What is a lease?"),
        ("model", "A contract."),
        ("user", "And a licence?"),
        ("model", "Follow-up answer"),
    ]


@pytest.mark.asyncio
async def test_generate_with_history_falls_back(mock_client):
    failing_chat = MagicMock()
    failing_chat.send_message = AsyncMock(side_effect=RuntimeError("unavailable"))
    working_chat = MagicMock()
    working_chat.send_message = AsyncMock(return_value=_response("Recovered"))
    mock_client.aio.chats.create = MagicMock(side_effect=[failing_chat, working_chat])
    provider = GeminiProvider(mock_client, MODELS)

    result = await provider.generate_with_history("Q", [])

    assert result.model == "gemini-1.5-flash"
    assert result.text == "Recovered"


@pytest.mark.asyncio
async def test_health_check_healthy(mock_client):
    mock_client.aio.models.generate_content.return_value = _response("pong")
    provider = GeminiProvider(mock_client, MODELS)

    report = await provider.health_check(timeout=1.0)

    assert report["status"] == "healthy"
    assert report["model"] == "gemini-2.5-flash"
    assert report["response_time_ms"] >= 0


@pytest.mark.asyncio
async def test_health_check_times_out(mock_client):
    async def slow(**kwargs):
        await asyncio.sleep(1)

    mock_client.aio.models.generate_content.side_effect = slow
    provider = GeminiProvider(mock_client, ["gemini-2.5-flash"])

    report = await provider.health_check(timeout=0.01)

    assert report["status"] == "unhealthy"
    assert report["model"] is None


@pytest.mark.asyncio
async def test_health_check_not_configured():
    report = await GeminiProvider(None, MODELS).health_check()
    assert report["status"] == "not_configured"


def test_provider_requires_models():
    with pytest.raises(ValueError):
        GeminiProvider(MagicMock(), [])
