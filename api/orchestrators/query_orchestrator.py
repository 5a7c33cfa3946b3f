"""
LangGraph query orchestrator for the Lexi legal document assistant.

One request walks a small state machine:

    classify_intent -> build_prompt -> [load_history] -> generate
        -> post_process -> [persist] -> END

History loading and persistence only run when both a conversation id and a
user id are supplied. Nothing is written until generation has finished, and
both turns (user, then assistant) must be written for the call to succeed.
"""

from __future__ import annotations

import time
from typing import Any, Dict, Optional

import structlog
from langgraph.graph import END, StateGraph

from api.composer.postprocess import extract_references, extract_suggestions
from api.composer.prompts import build_system_prompt
from api.llm.gemini_provider import GenerationOptions, get_generation_provider, to_provider_history
from api.orchestrators.intent_classifier import IntentClassifier, map_intent_to_metadata_type
from api.schemas.query_state import LegalQueryResult, QueryState, ResponseMetadata
from libs.common.errors import APIError, InternalError, ValidationError
from libs.firestore.conversations import get_conversation_store

logger = structlog.get_logger(__name__)

CHAT_TEMPERATURE = 0.7
SINGLE_TURN_MAX_TOKENS = 1000


class QueryOrchestrator:
    """Answers legal queries, optionally inside a stored conversation.

    The provider and the conversation store are injected so tests can pass
    fakes.
    """

    def __init__(self, provider, store, classifier: Optional[IntentClassifier] = None):
        self.provider = provider
        self.store = store
        self.classifier = classifier or IntentClassifier(provider)
        self.graph = self._build_graph()

    def _build_graph(self):
        """Build and compile the LangGraph state machine."""
        graph = StateGraph(QueryState)

        graph.add_node("classify_intent", self._classify_intent_node)
        graph.add_node("build_prompt", self._build_prompt_node)
        graph.add_node("load_history", self._load_history_node)
        graph.add_node("generate", self._generate_node)
        graph.add_node("post_process", self._post_process_node)
        graph.add_node("persist", self._persist_node)

        graph.set_entry_point("classify_intent")
        graph.add_edge("classify_intent", "build_prompt")
        graph.add_conditional_edges(
            "build_prompt",
            self._route_after_prompt,
            {"load_history": "load_history", "generate": "generate"},
        )
        graph.add_edge("load_history", "generate")
        graph.add_edge("generate", "post_process")
        graph.add_conditional_edges(
            "post_process",
            self._route_after_post_process,
            {"persist": "persist", "done": END},
        )
        graph.add_edge("persist", END)

        return graph.compile()

    @staticmethod
    def _route_after_prompt(state: QueryState) -> str:
        return "load_history" if state.has_conversation else "generate"

    @staticmethod
    def _route_after_post_process(state: QueryState) -> str:
        return "persist" if state.has_conversation else "done"

    async def _classify_intent_node(self, state: QueryState) -> Dict[str, Any]:
        start_time = time.perf_counter()
        intent = await self.classifier.classify(state.message)
        metadata_type = map_intent_to_metadata_type(intent.type)

        logger.info(
            "Intent classified",
            request_id=state.request_id,
            intent=intent.type,
            confidence=intent.confidence,
            metadata_type=metadata_type,
        )
        return {
            "intent": intent,
            "metadata_type": metadata_type,
            "processing_stage": "intent_resolved",
            **state.timing("classify_intent", start_time),
        }

    async def _build_prompt_node(self, state: QueryState) -> Dict[str, Any]:
        system_prompt = build_system_prompt(state.intent, state.document_type, state.tone)
        logger.debug("System prompt built", request_id=state.request_id, prompt_length=len(system_prompt))
        return {"system_prompt": system_prompt, "processing_stage": "prompt_built"}

    async def _load_history_node(self, state: QueryState) -> Dict[str, Any]:
        start_time = time.perf_counter()
        conversation = await self.store.get_by_id(state.conversation_id, state.user_id)
        history = to_provider_history(conversation.messages)

        logger.debug(
            "Conversation history loaded",
            request_id=state.request_id,
            conversation_id=state.conversation_id,
            turns=len(history),
        )
        return {
            "history": history,
            "processing_stage": "history_loaded",
            **state.timing("load_history", start_time),
        }

    async def _generate_node(self, state: QueryState) -> Dict[str, Any]:
        start_time = time.perf_counter()

        if state.history:
            result = await self.provider.generate_with_history(
                state.message,
                state.history,
                GenerationOptions(system_prompt=state.system_prompt, temperature=CHAT_TEMPERATURE),
            )
        else:
            result = await self.provider.generate_single_turn(
                state.message,
                GenerationOptions(
                    system_prompt=state.system_prompt,
                    temperature=CHAT_TEMPERATURE,
                    max_tokens=SINGLE_TURN_MAX_TOKENS,
                ),
            )

        response_time_ms = int((time.perf_counter() - state.started_at) * 1000)
        logger.info(
            "Answer generated",
            request_id=state.request_id,
            model=result.model,
            with_history=bool(state.history),
            response_time_ms=response_time_ms,
        )
        return {
            "response_text": result.text,
            "model": result.model,
            "response_time_ms": response_time_ms,
            "processing_stage": "generated",
            **state.timing("generate", start_time),
        }

    async def _post_process_node(self, state: QueryState) -> Dict[str, Any]:
        metadata = ResponseMetadata(
            type=state.metadata_type,
            document_type=state.document_type,
            tone=state.tone,
            response_time_ms=state.response_time_ms or 0,
            references=extract_references(state.response_text),
            suggestions=extract_suggestions(state.response_text),
            model=state.model,
        )
        logger.debug(
            "Answer post-processed",
            request_id=state.request_id,
            references=len(metadata.references),
            suggestions=len(metadata.suggestions),
        )
        return {"metadata": metadata, "processing_stage": "post_processed"}

    async def _persist_node(self, state: QueryState) -> Dict[str, Any]:
        start_time = time.perf_counter()

        await self.store.append_message(
            state.conversation_id,
            state.user_id,
            "user",
            state.message,
            {"type": state.metadata_type},
        )
        await self.store.append_message(
            state.conversation_id,
            state.user_id,
            "assistant",
            state.response_text,
            state.metadata.model_dump(),
        )

        logger.info("Conversation turns persisted", request_id=state.request_id, conversation_id=state.conversation_id)
        return {"processing_stage": "persisted", **state.timing("persist", start_time)}

    async def answer_legal_query(
        self,
        message: str,
        *,
        conversation_id: Optional[str] = None,
        user_id: Optional[str] = None,
        document_type: Optional[str] = None,
        tone: Optional[str] = None,
    ) -> LegalQueryResult:
        """Answer a legal query, recording both turns when a conversation is given.

        Raises:
            ValidationError: if ``message`` is empty; no provider call is made.
            APIError: any operational error, unwrapped; anything else is
                wrapped in ``InternalError``.
        """
        if not isinstance(message, str) or not message.strip():
            raise ValidationError("Message is required")

        state = QueryState(
            message=message,
            conversation_id=conversation_id,
            user_id=user_id,
            document_type=document_type,
            tone=tone,
        )
        logger.info(
            "Processing legal query",
            request_id=state.request_id,
            query_preview=message[:50],
            conversation_id=conversation_id,
        )

        try:
            result = await self.graph.ainvoke(state)
        except APIError:
            raise
        except Exception as e:
            logger.error("Legal query failed", request_id=state.request_id, error=str(e), exc_info=True)
            raise InternalError(f"Error processing legal query: {e}") from e

        # LangGraph returns the final channel values as a dict
        if isinstance(result, dict):
            result = state.model_copy(update=result)

        logger.info(
            "Legal query completed",
            request_id=state.request_id,
            stage=result.processing_stage,
            node_timings=result.node_timings,
        )
        return LegalQueryResult(text=result.response_text, metadata=result.metadata)


# Global orchestrator instance
_orchestrator: Optional[QueryOrchestrator] = None


def get_orchestrator() -> QueryOrchestrator:
    """Get or create the global orchestrator instance."""
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = QueryOrchestrator(get_generation_provider(), get_conversation_store())
    return _orchestrator
