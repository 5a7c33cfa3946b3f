"""Pydantic models for the Lexi API.

This module defines the request and response models used by the API endpoints.
Conversation documents are returned as ``libs.models.firestore`` models.
"""

from __future__ import annotations

import time
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, field_validator


class LegalQueryRequest(BaseModel):
    """Request model for a legal query."""
    message: str = Field(..., max_length=8000, description="User query text", examples=["Explain clause 4 of my NDA"])
    conversation_id: Optional[str] = Field(None, description="Conversation to continue and record the turn in")
    document_type: Optional[str] = Field(None, max_length=100, description="Kind of document the query is about", examples=["lease agreement"])
    tone: Optional[str] = Field(None, max_length=50, description="Requested tone", examples=["formal"])


class CreateConversationRequest(BaseModel):
    """Request model for starting a conversation."""
    title: str = Field(..., max_length=200, description="Conversation title", examples=["Office lease review"])
    description: str = Field("", max_length=2000, description="Optional description")


class AddMessageRequest(BaseModel):
    """Request model for appending a message to a conversation."""
    role: Literal["system", "user", "assistant"] = Field(..., description="Message role")
    content: str = Field(..., max_length=20000, description="Message text")
    metadata: Optional[dict[str, Any]] = Field(None, description="Message metadata; 'type' defaults from the role")


class DraftSectionsRequest(BaseModel):
    """Request model for generating a contract outline."""
    contract_type: str = Field(..., max_length=100, examples=["employment"])
    parties: list[Any] = Field(default_factory=list, description="Contract parties")

    @field_validator("contract_type")
    @classmethod
    def contract_type_must_not_be_empty(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("Contract type must not be empty")
        return v.strip()


class RewriteSectionRequest(BaseModel):
    """Request model for rewriting one contract section."""
    content: str = Field(..., min_length=1, max_length=20000)
    style: str = Field("formal", max_length=50)


class SuggestClauseRequest(BaseModel):
    """Request model for a clause suggestion."""
    context: str = Field(..., min_length=1, max_length=20000)
    clause_type: str = Field(..., min_length=1, max_length=100, examples=["confidentiality"])


class DraftTextResponse(BaseModel):
    text: str


class HealthResponse(BaseModel):
    """Response model for health check endpoints.

    Attributes:
        status: Health status (healthy/unhealthy/ready/not_ready)
        service: Service name
        version: Service version
        timestamp: Unix timestamp
        details: Optional additional details
    """

    status: Literal["healthy", "unhealthy", "ready", "not_ready"] = Field(
        description="Health status",
        examples=["healthy"],
    )
    service: str = Field(
        description="Service name",
        examples=["api"],
    )
    version: str = Field(
        description="Service version",
        examples=["0.1.0"],
    )
    timestamp: float = Field(
        default_factory=time.time,
        description="Unix timestamp",
    )
    details: dict[str, Any] | None = Field(
        default=None,
        description="Optional additional details",
        examples=[{"google_ai": {"status": "healthy", "model": "gemini-2.5-flash"}}],
    )


class ErrorResponse(BaseModel):
    """Standard error response model.

    Attributes:
        error_code: Error code
        message: Human-readable error message
        metadata: Optional error details
    """

    error_code: str = Field(
        description="Error code",
        examples=["VALIDATION_ERROR"],
    )
    message: str = Field(
        description="Human-readable error message",
        examples=["Message is required"],
    )
    metadata: dict[str, Any] | None = Field(
        default=None,
        description="Optional error details",
    )


# OpenAPI documentation for the APIError bodies rendered by the app's exception handler.
ERROR_RESPONSES: dict[int | str, dict[str, Any]] = {
    400: {"model": ErrorResponse, "description": "Missing or malformed input"},
    404: {"model": ErrorResponse, "description": "Conversation not found"},
    500: {"model": ErrorResponse, "description": "Persistence or internal error"},
    503: {"model": ErrorResponse, "description": "All Gemini models failed"},
}
