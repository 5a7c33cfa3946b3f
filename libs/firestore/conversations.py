"""Conversation persistence in Firestore.

Each conversation is one document in the conversations collection with its
messages embedded as an ordered array. Appends use a server-side array union
so concurrent writers never drop each other's messages; there is no locking
between reading a conversation and appending to it.
"""

from __future__ import annotations

import math
from contextlib import contextmanager
from functools import lru_cache
from typing import Any, Dict, Iterator, List, Optional

import pydantic
import structlog
from google.api_core.exceptions import GoogleAPIError
from google.cloud.firestore_v1 import ArrayUnion
from google.cloud.firestore_v1.async_client import AsyncClient
from google.cloud.firestore_v1.base_query import FieldFilter

from libs.common.errors import NotFound, PersistenceError, ValidationError
from libs.common.settings import get_settings
from libs.models.firestore import (
    SEED_SYSTEM_MESSAGE,
    ConversationPage,
    FirestoreConversation,
    FirestoreMessage,
    MessageMetadata,
    utcnow,
)

logger = structlog.get_logger(__name__)

VALID_ROLES = ("system", "user", "assistant")
VALID_STATUSES = ("active", "archived", "deleted")
SORTABLE_FIELDS = ("updated_at", "created_at", "title")
MAX_PAGE_SIZE = 100

# Allowed lifecycle edges: from-status -> reachable statuses.
STATUS_TRANSITIONS: Dict[str, tuple] = {
    "active": ("archived", "deleted"),
    "archived": ("active", "deleted"),
    "deleted": (),
}


def _require(value: Any, label: str) -> None:
    if not value:
        raise ValidationError(f"{label} is required")


@contextmanager
def _firestore_errors(operation: str) -> Iterator[None]:
    """Convert Firestore/driver failures into PersistenceError."""
    try:
        yield
    except GoogleAPIError as e:
        logger.error("Firestore operation failed", operation=operation, error=str(e))
        raise PersistenceError(f"Error {operation}: {e}") from e


class ConversationStore:
    """Firestore-backed store for conversations and their messages.

    Usage:
        store = ConversationStore(get_firestore_async_client())
        conversation = await store.create(user_id, "NDA review")
        await store.append_message(conversation.conversation_id, user_id, "user", "Hi")
    """

    def __init__(self, client: AsyncClient, collection: str = "conversations"):
        self.client = client
        self.collection = collection

    def _doc(self, conversation_id: str):
        return self.client.collection(self.collection).document(conversation_id)

    async def create(self, user_id: str, title: str, description: str = "") -> FirestoreConversation:
        """Create a conversation seeded with the system message.

        Args:
            user_id: The UID of the owning user.
            title: A short title for the conversation.
            description: Optional description.

        Returns:
            The created conversation.
        """
        _require(user_id, "User ID")
        _require(title and title.strip(), "Title")

        conversation = FirestoreConversation(
            user_id=user_id,
            title=title.strip(),
            description=description or "",
            messages=[
                FirestoreMessage(
                    role="system",
                    content=SEED_SYSTEM_MESSAGE,
                    metadata=MessageMetadata(type="system"),
                )
            ],
        )

        with _firestore_errors("creating conversation"):
            await self._doc(conversation.conversation_id).set(conversation.model_dump())

        logger.info("Conversation created", conversation_id=conversation.conversation_id, user_id=user_id)
        return conversation

    async def get_by_id(self, conversation_id: str, user_id: str) -> FirestoreConversation:
        """Fetch a conversation owned by ``user_id``.

        Raises:
            NotFound: if it does not exist, belongs to another user, or is deleted.
        """
        _require(conversation_id, "Conversation ID")
        _require(user_id, "User ID")

        with _firestore_errors("getting conversation"):
            snapshot = await self._doc(conversation_id).get()

        if not snapshot.exists:
            raise NotFound("Conversation not found")

        data = snapshot.to_dict() or {}
        if data.get("user_id") != user_id or data.get("status") == "deleted":
            raise NotFound("Conversation not found")

        try:
            return FirestoreConversation(**data)
        except pydantic.ValidationError as e:
            raise PersistenceError(f"Error getting conversation: stored document is invalid ({e})") from e

    async def append_message(
        self,
        conversation_id: str,
        user_id: str,
        role: str,
        content: str,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> FirestoreConversation:
        """Append one message to the end of a conversation.

        When ``metadata`` has no ``type`` it defaults to ``system`` for system
        messages and ``chat`` for everything else.
        """
        _require(conversation_id, "Conversation ID")
        _require(user_id, "User ID")
        _require(role, "Message role")
        _require(content, "Message content")
        if role not in VALID_ROLES:
            raise ValidationError(f"Invalid message role: {role}")

        metadata = dict(metadata or {})
        if not metadata.get("type"):
            metadata["type"] = "system" if role == "system" else "chat"

        try:
            message = FirestoreMessage(role=role, content=content, metadata=MessageMetadata(**metadata))
        except pydantic.ValidationError as e:
            raise ValidationError(f"Invalid message: {e}") from e

        conversation = await self.get_by_id(conversation_id, user_id)
        now = utcnow()

        with _firestore_errors("adding message"):
            await self._doc(conversation_id).update(
                {"messages": ArrayUnion([message.model_dump()]), "updated_at": now}
            )

        logger.debug(
            "Message appended",
            conversation_id=conversation_id,
            role=role,
            message_type=message.metadata.type,
            content_length=len(content),
        )
        return conversation.model_copy(update={"messages": [*conversation.messages, message], "updated_at": now})

    async def set_status(self, conversation_id: str, user_id: str, status: str) -> FirestoreConversation:
        """Move a conversation along one lifecycle edge."""
        _require(status, "Status")
        if status not in VALID_STATUSES:
            raise ValidationError(f"Invalid status: {status}")

        conversation = await self.get_by_id(conversation_id, user_id)
        if status not in STATUS_TRANSITIONS[conversation.status]:
            raise ValidationError(f"Cannot change conversation status from {conversation.status} to {status}")

        now = utcnow()
        with _firestore_errors("updating conversation status"):
            await self._doc(conversation_id).update({"status": status, "updated_at": now})

        logger.info("Conversation status changed", conversation_id=conversation_id, status=status)
        return conversation.model_copy(update={"status": status, "updated_at": now})

    async def archive(self, conversation_id: str, user_id: str) -> FirestoreConversation:
        return await self.set_status(conversation_id, user_id, "archived")

    async def restore(self, conversation_id: str, user_id: str) -> FirestoreConversation:
        return await self.set_status(conversation_id, user_id, "active")

    async def soft_delete(self, conversation_id: str, user_id: str) -> FirestoreConversation:
        return await self.set_status(conversation_id, user_id, "deleted")

    async def list(
        self,
        user_id: str,
        status: str = "active",
        limit: int = 10,
        page: int = 1,
        sort_by: str = "updated_at",
        sort_order: str = "desc",
    ) -> ConversationPage:
        """List a user's conversations with the given status, one page at a time."""
        _require(user_id, "User ID")
        if status not in ("active", "archived"):
            raise ValidationError(f"Invalid status filter: {status}")
        if not 1 <= limit <= MAX_PAGE_SIZE:
            raise ValidationError(f"Limit must be between 1 and {MAX_PAGE_SIZE}")
        if page < 1:
            raise ValidationError("Page must be 1 or greater")
        if sort_by not in SORTABLE_FIELDS:
            raise ValidationError(f"Cannot sort by {sort_by}")
        if sort_order not in ("asc", "desc"):
            raise ValidationError("Sort order must be 'asc' or 'desc'")

        base_query = (
            self.client.collection(self.collection)
            .where(filter=FieldFilter("user_id", "==", user_id))
            .where(filter=FieldFilter("status", "==", status))
        )
        direction = "DESCENDING" if sort_order == "desc" else "ASCENDING"
        page_query = base_query.order_by(sort_by, direction=direction).offset((page - 1) * limit).limit(limit)

        with _firestore_errors("listing conversations"):
            count_result = await base_query.count().get()
            items: List[FirestoreConversation] = [
                FirestoreConversation(**doc.to_dict()) async for doc in page_query.stream()
            ]

        total = int(count_result[0][0].value) if count_result and count_result[0] else 0
        return ConversationPage(
            items=items,
            total=total,
            page=page,
            limit=limit,
            pages=math.ceil(total / limit),
        )

    async def recent_messages(self, conversation_id: str, user_id: str, limit: int = 5) -> List[FirestoreMessage]:
        """Last ``limit`` non-system messages, oldest first."""
        conversation = await self.get_by_id(conversation_id, user_id)
        if limit <= 0:
            return []
        return conversation.non_system_messages()[-limit:]


@lru_cache
def get_conversation_store() -> ConversationStore:
    """Get or create the process-wide store on the default Firestore client."""
    from libs.firebase.client import get_firestore_async_client

    return ConversationStore(get_firestore_async_client(), collection=get_settings().conversations_collection)
