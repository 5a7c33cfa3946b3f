from fastapi import APIRouter, Depends, Query, status
import structlog

from api.auth import User, get_current_user
from api.models import AddMessageRequest, CreateConversationRequest
from libs.firestore.conversations import ConversationStore, get_conversation_store
from libs.models.firestore import ConversationPage, FirestoreConversation

router = APIRouter()
logger = structlog.get_logger(__name__)


@router.post(
    "/v1/conversations",
    response_model=FirestoreConversation,
    status_code=status.HTTP_201_CREATED,
    tags=["Conversations"],
    summary="Start a conversation",
)
async def create_conversation(
    request: CreateConversationRequest,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> FirestoreConversation:
    """Create a conversation seeded with the assistant's system message."""
    return await store.create(current_user.uid, request.title, request.description)


@router.get(
    "/v1/conversations",
    response_model=ConversationPage,
    tags=["Conversations"],
    summary="List my conversations",
)
async def list_conversations(
    status_filter: str = Query("active", alias="status"),
    limit: int = Query(10),
    page: int = Query(1),
    sort_by: str = Query("updated_at"),
    sort_order: str = Query("desc"),
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> ConversationPage:
    """List the caller's conversations, newest first by default."""
    return await store.list(
        current_user.uid,
        status=status_filter,
        limit=limit,
        page=page,
        sort_by=sort_by,
        sort_order=sort_order,
    )


@router.get(
    "/v1/conversations/{conversation_id}",
    response_model=FirestoreConversation,
    tags=["Conversations"],
    summary="Get one conversation",
)
async def get_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> FirestoreConversation:
    return await store.get_by_id(conversation_id, current_user.uid)


@router.post(
    "/v1/conversations/{conversation_id}/messages",
    response_model=FirestoreConversation,
    tags=["Conversations"],
    summary="Append a message",
)
async def add_message(
    conversation_id: str,
    request: AddMessageRequest,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> FirestoreConversation:
    return await store.append_message(
        conversation_id,
        current_user.uid,
        request.role,
        request.content,
        request.metadata,
    )


@router.post(
    "/v1/conversations/{conversation_id}/archive",
    response_model=FirestoreConversation,
    tags=["Conversations"],
    summary="Archive a conversation",
)
async def archive_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> FirestoreConversation:
    logger.info("Archiving conversation", conversation_id=conversation_id, uid=current_user.uid)
    return await store.archive(conversation_id, current_user.uid)


@router.post(
    "/v1/conversations/{conversation_id}/restore",
    response_model=FirestoreConversation,
    tags=["Conversations"],
    summary="Restore an archived conversation",
)
async def restore_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> FirestoreConversation:
    logger.info("Restoring conversation", conversation_id=conversation_id, uid=current_user.uid)
    return await store.restore(conversation_id, current_user.uid)


@router.delete(
    "/v1/conversations/{conversation_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["Conversations"],
    summary="Delete a conversation",
)
async def delete_conversation(
    conversation_id: str,
    current_user: User = Depends(get_current_user),
    store: ConversationStore = Depends(get_conversation_store),
) -> None:
    """Soft delete: the document stays but is hidden from every read."""
    logger.info("Deleting conversation", conversation_id=conversation_id, uid=current_user.uid)
    await store.soft_delete(conversation_id, current_user.uid)
