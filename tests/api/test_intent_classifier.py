"""Tests for intent classification and intent-to-metadata mapping."""

import pytest

from api.orchestrators.intent_classifier import (
    DEFAULT_INTENT,
    INTENT_OPTIONS,
    IntentClassifier,
    map_intent_to_metadata_type,
    parse_intent_response,
)
from libs.common.errors import AllProvidersExhausted


@pytest.mark.parametrize(
    "intent_type,expected",
    [
        ("summarize", "summarize"),
        ("explain", "explain"),
        ("analyze", "analyze"),
        ("suggest", "suggest"),
        ("adjust", "adjust"),
        ("InformationRequest", "chat"),
        ("LegalAdvice", "chat"),
        ("DocumentReview", "analyze"),
        ("RiskAssessment", "analyze"),
        ("ClauseGeneration", "suggest"),
        ("ToneAdjustment", "adjust"),
        ("general", "chat"),
        ("SomethingNew", "chat"),
        (None, "chat"),
    ],
)
def test_map_intent_to_metadata_type(intent_type, expected):
    assert map_intent_to_metadata_type(intent_type) == expected


def test_parse_plain_json():
    outcome = parse_intent_response('{"type": "suggest", "clauseType": "termination", "confidence": 0.8}')

    assert outcome.ok
    assert outcome.intent.type == "suggest"
    assert outcome.intent.clause_type == "termination"
    assert outcome.intent.confidence == 0.8


def test_parse_json_wrapped_in_prose():
    text = 'Sure! Here is the result:\n```json\n{"type": "explain"}\n```\nHope that helps.'

    outcome = parse_intent_response(text)

    assert outcome.intent.type == "explain"
    assert outcome.intent.confidence == 0.95


def test_parse_missing_type_defaults_to_general():
    assert parse_intent_response('{"confidence": 0.4}').intent.type == "general"


def test_parse_without_json_fails():
    outcome = parse_intent_response("I think the user wants a summary.")

    assert not outcome.ok
    assert outcome.error == "Invalid response format"


def test_parse_out_of_range_confidence_fails():
    assert not parse_intent_response('{"type": "explain", "confidence": 1.7}').ok


def test_parse_non_object_json_fails():
    assert not parse_intent_response('["summarize"]').ok


@pytest.mark.asyncio
async def test_classify_uses_low_temperature_call(make_provider):
    provider = make_provider(single_turn=['{"type": "analyze", "confidence": 0.9}'])

    intent = await IntentClassifier(provider).classify("Is clause 7 enforceable?")

    assert intent.type == "analyze"
    assert provider.calls[0]["options"] is INTENT_OPTIONS
    assert INTENT_OPTIONS.temperature == 0.3
    assert INTENT_OPTIONS.max_tokens == 500


@pytest.mark.asyncio
async def test_classify_falls_back_on_provider_failure(make_provider):
    provider = make_provider(single_turn=[AllProvidersExhausted("All Google AI models failed")])

    intent = await IntentClassifier(provider).classify("Hello")

    assert intent == DEFAULT_INTENT
    assert intent.type == "general"
    assert intent.confidence == 0.95


@pytest.mark.asyncio
async def test_classify_falls_back_on_garbage(make_provider):
    provider = make_provider(single_turn=["no json here"])

    intent = await IntentClassifier(provider).classify("Hello")

    assert intent.type == "general"


@pytest.mark.asyncio
async def test_try_classify_reports_error(make_provider):
    provider = make_provider(single_turn=[RuntimeError("boom")])

    outcome = await IntentClassifier(provider).try_classify("Hello")

    assert not outcome.ok
    assert "boom" in outcome.error
