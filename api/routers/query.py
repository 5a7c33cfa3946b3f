from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Request

from api.auth import User, get_current_user
from api.models import LegalQueryRequest
from api.orchestrators.query_orchestrator import QueryOrchestrator, get_orchestrator
from api.schemas.query_state import LegalQueryResult

logger = structlog.get_logger(__name__)
router = APIRouter()


@router.post("/v1/lexi/query", response_model=LegalQueryResult, tags=["Legal Query"])
async def answer_legal_query(
    request: Request,
    query_request: LegalQueryRequest,
    current_user: User = Depends(get_current_user),
    orchestrator: QueryOrchestrator = Depends(get_orchestrator),
) -> LegalQueryResult:
    """Answer a legal query, optionally continuing a stored conversation.

    When ``conversation_id`` is given, the conversation's history is replayed
    to the model and both the question and the answer are appended to it.

    Raises:
        APIError: 400 for an empty message, 404 for an unknown conversation,
            503 when every Gemini model fails, 500 otherwise.

    Example:
        ```bash
        curl -X POST http://localhost:8000/api/v1/lexi/query \\
          -H "Authorization: Bearer <firebase-id-token>" \\
          -H "Content-Type: application/json" \\
          -d '{"message": "What does an indemnity clause do?", "tone": "plain"}'
        ```
    """
    request_id = getattr(request.state, "request_id", "unknown")
    logger.info(
        "Processing legal query request",
        request_id=request_id,
        user_id=current_user.uid,
        conversation_id=query_request.conversation_id,
    )

    return await orchestrator.answer_legal_query(
        query_request.message,
        conversation_id=query_request.conversation_id,
        user_id=current_user.uid,
        document_type=query_request.document_type,
        tone=query_request.tone,
    )
