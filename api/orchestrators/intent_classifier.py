"""
LLM-backed intent classification for legal queries.

Classification never fails outward: any provider error or unparseable answer
collapses to the default ``general`` intent in ``IntentClassifier.classify``.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass
from typing import Any, Dict, Optional

import pydantic
import structlog
from pydantic import BaseModel, ConfigDict, Field

from api.llm.gemini_provider import GenerationOptions

logger = structlog.get_logger(__name__)

DEFAULT_INTENT_TYPE = "general"
DEFAULT_CONFIDENCE = 0.95

INTENT_SYSTEM_PROMPT = (
    "Analyze this legal query and determine the intent. "
    "Respond with only a JSON object, no prose: "
    '{"type": one of "summarize", "explain", "analyze", "suggest", "adjust", "general", '
    '"clauseType": the clause kind when type is "suggest", '
    '"confidence": a number between 0 and 1}.'
)
INTENT_OPTIONS = GenerationOptions(system_prompt=INTENT_SYSTEM_PROMPT, temperature=0.3, max_tokens=500)

# Classifier vocabulary (including synonyms the model tends to produce) to
# persisted message metadata types.
INTENT_METADATA_TYPES: Dict[str, str] = {
    "summarize": "summarize",
    "explain": "explain",
    "analyze": "analyze",
    "suggest": "suggest",
    "adjust": "adjust",
    "InformationRequest": "chat",
    "ClarificationRequest": "chat",
    "GeneralQuery": "chat",
    "LegalAdvice": "chat",
    "DocumentReview": "analyze",
    "RiskAssessment": "analyze",
    "ComplianceCheck": "analyze",
    "ClauseGeneration": "suggest",
    "ToneAdjustment": "adjust",
}

_BRACED = re.compile(r"\{.*\}", re.DOTALL)


class Intent(BaseModel):
    """Classified purpose of a query."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    type: str = DEFAULT_INTENT_TYPE
    clause_type: Optional[str] = Field(default=None, alias="clauseType")
    confidence: float = Field(default=DEFAULT_CONFIDENCE, ge=0.0, le=1.0)


DEFAULT_INTENT = Intent(type=DEFAULT_INTENT_TYPE, confidence=DEFAULT_CONFIDENCE)


@dataclass(frozen=True)
class ClassificationResult:
    """Either an intent or the reason classification failed."""

    intent: Optional[Intent] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.intent is not None

    def unwrap_or(self, default: Intent) -> Intent:
        return self.intent if self.intent is not None else default


def map_intent_to_metadata_type(intent_type: Optional[str]) -> str:
    """Map a classifier intent type to a persisted metadata type (``chat`` if unknown)."""
    return INTENT_METADATA_TYPES.get(intent_type or "", "chat")


def parse_intent_response(text: str) -> ClassificationResult:
    """Parse the model's answer: whole text as JSON, else the first braced span."""
    data: Any
    try:
        data = json.loads(text)
    except (TypeError, ValueError):
        match = _BRACED.search(text or "")
        if not match:
            return ClassificationResult(error="Invalid response format")
        try:
            data = json.loads(match.group(0))
        except ValueError as e:
            return ClassificationResult(error=f"Invalid JSON in response: {e}")

    if not isinstance(data, dict):
        return ClassificationResult(error="Response JSON is not an object")

    intent_type = data.get("type")
    if not isinstance(intent_type, str) or not intent_type.strip():
        intent_type = DEFAULT_INTENT_TYPE
    confidence = data.get("confidence")

    try:
        intent = Intent(
            type=intent_type.strip(),
            clause_type=data.get("clauseType") or data.get("clause_type"),
            confidence=DEFAULT_CONFIDENCE if confidence is None else confidence,
        )
    except pydantic.ValidationError as e:
        return ClassificationResult(error=f"Invalid intent fields: {e.error_count()} error(s)")
    return ClassificationResult(intent=intent)


class IntentClassifier:
    """Classifies free-text legal queries with one low-temperature generation call."""

    def __init__(self, provider):
        self.provider = provider

    async def try_classify(self, message: str) -> ClassificationResult:
        try:
            result = await self.provider.generate_single_turn(message, INTENT_OPTIONS)
        except Exception as e:
            return ClassificationResult(error=f"Provider error: {e}")
        return parse_intent_response(result.text)

    async def classify(self, message: str) -> Intent:
        """Classify ``message``; falls back to the default intent on any failure."""
        outcome = await self.try_classify(message)
        if not outcome.ok:
            logger.warning("Intent classification failed, using fallback", error=outcome.error)
        return outcome.unwrap_or(DEFAULT_INTENT.model_copy())
