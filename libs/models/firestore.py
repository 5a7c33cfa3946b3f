"""Pydantic models for Firestore collections.

These models define the structure of the documents stored in Firestore
and are used for data validation and serialization.
"""
import uuid
from datetime import datetime, timezone
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

MessageRole = Literal["system", "user", "assistant"]
MessageType = Literal["system", "chat", "summarize", "explain", "analyze", "suggest", "adjust"]
ConversationStatus = Literal["active", "archived", "deleted"]

SEED_SYSTEM_MESSAGE = (
    "You are a legal document assistant. You help users understand, analyze, "
    "and improve legal documents."
)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class MessageMetadata(BaseModel):
    """Metadata attached to a message; ``type`` is required, anything else is kept as-is."""
    model_config = ConfigDict(extra="allow")

    type: MessageType = Field(..., description="Kind of operation that produced the message.")


class FirestoreMessage(BaseModel):
    """Represents a single message within a conversation."""
    message_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique identifier for the message.")
    role: MessageRole = Field(..., description="The role of the message sender.")
    content: str = Field(..., min_length=1, description="The text content of the message.")
    metadata: MessageMetadata = Field(..., description="Message metadata, at least a type.")
    timestamp: datetime = Field(default_factory=utcnow, description="Timestamp of the message.")


class FirestoreConversation(BaseModel):
    """Represents a conversation document with its ordered messages embedded."""
    conversation_id: str = Field(default_factory=lambda: uuid.uuid4().hex, description="Unique identifier for the conversation.")
    user_id: str = Field(..., description="UID of the user who owns the conversation.")
    title: str = Field(..., min_length=1, description="A short, descriptive title for the conversation.")
    description: str = Field("", description="Optional longer description.")
    status: ConversationStatus = Field("active", description="Lifecycle status.")
    messages: list[FirestoreMessage] = Field(default_factory=list, description="Messages in creation order.")
    created_at: datetime = Field(default_factory=utcnow, description="Timestamp of conversation creation.")
    updated_at: datetime = Field(default_factory=utcnow, description="Timestamp of the last change.")

    def non_system_messages(self) -> list[FirestoreMessage]:
        return [m for m in self.messages if m.role != "system"]


class ConversationPage(BaseModel):
    """One page of a user's conversations."""
    items: list[FirestoreConversation]
    total: int
    page: int
    limit: int
    pages: int
