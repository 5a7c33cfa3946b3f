"""Query state schema for the Lexi query orchestrator.

This module defines the state object that flows through the LangGraph
pipeline, from the raw message to the persisted answer.
"""

from __future__ import annotations

import time
import uuid
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from api.llm.gemini_provider import ChatTurn
from api.orchestrators.intent_classifier import Intent

ProcessingStage = Literal[
    "start",
    "intent_resolved",
    "prompt_built",
    "history_loaded",
    "generated",
    "post_processed",
    "persisted",
]


class ResponseMetadata(BaseModel):
    """Metadata returned with an answer and stored on the assistant message."""

    type: str = Field(description="Persisted metadata type derived from the intent")
    document_type: Optional[str] = Field(default=None, description="Document kind the query is about")
    tone: Optional[str] = Field(default=None, description="Requested tone")
    response_time_ms: int = Field(ge=0, description="Milliseconds from request start to end of generation")
    references: List[str] = Field(default_factory=list, description="Legal references found in the answer")
    suggestions: List[str] = Field(default_factory=list, description="Actionable lines found in the answer")
    provider: str = Field(default="google", description="Generation provider")
    model: Optional[str] = Field(default=None, description="Model that produced the answer")


class LegalQueryResult(BaseModel):
    text: str
    metadata: ResponseMetadata


class QueryState(BaseModel):
    """State object for one legal query."""

    request_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Per-request identifier")
    started_at: float = Field(default_factory=time.perf_counter, description="Monotonic start time")
    processing_stage: ProcessingStage = "start"

    # Input
    message: str = Field(description="User message")
    conversation_id: Optional[str] = None
    user_id: Optional[str] = None
    document_type: Optional[str] = None
    tone: Optional[str] = None

    # Intent and prompt
    intent: Optional[Intent] = None
    metadata_type: str = "chat"
    system_prompt: Optional[str] = None

    # History and generation
    history: List[ChatTurn] = Field(default_factory=list)
    response_text: Optional[str] = None
    model: Optional[str] = None
    response_time_ms: Optional[int] = None

    # Output
    metadata: Optional[ResponseMetadata] = None
    node_timings: Dict[str, int] = Field(default_factory=dict)

    @property
    def has_conversation(self) -> bool:
        return bool(self.conversation_id and self.user_id)

    def timing(self, node: str, start: float) -> Dict[str, Any]:
        """Build a node_timings update for ``node`` started at ``start``."""
        return {"node_timings": {**self.node_timings, node: int((time.perf_counter() - start) * 1000)}}
