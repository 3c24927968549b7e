"""
Direct message API routes.
Provides endpoints for conversations, sending, editing and deleting direct messages.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.database import get_db
from collab_chat.core.rate_limit import SEND_LIMIT, limiter
from collab_chat.core.user_directory import UserDirectoryClient
from collab_chat.dependencies import get_current_user, get_user_directory
from collab_chat.schemas.conversation import (
    ConversationListResponse,
    ConversationMessagesResponse,
    ConversationRefResponse,
    ConversationResolveRequest,
    ConversationResponse,
)
from collab_chat.schemas.message import (
    DeleteResponse,
    DirectMessageCreate,
    MarkReadResponse,
    MessageResponse,
    MessageUpdate,
    UnreadCountResponse,
)
from collab_chat.services.conversation_service import ConversationService, PersistedConversation
from collab_chat.services.message_service import MessageService

router = APIRouter()


def _conversation_response(entry: Dict[str, Any]) -> ConversationResponse:
    last_message = entry["last_message"]
    return ConversationResponse(
        **{
            **entry,
            "last_message": MessageResponse.model_validate(last_message) if last_message else None,
        }
    )


@router.get(
    "/conversations",
    response_model=ConversationListResponse,
    summary="List conversations",
    description="Direct conversations of the current user, most recent activity first."
)
async def list_conversations(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = ConversationService(db, directory)
    entries = await service.list_conversations(current_user["id"])
    return ConversationListResponse(data=[_conversation_response(e) for e in entries])


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Direct unread total"
)
async def get_unread_count(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = ConversationService(db, directory)
    return UnreadCountResponse(unread_count=await service.unread_total(current_user["id"]))


@router.post(
    "/conversations/resolve",
    response_model=ConversationRefResponse,
    summary="Resolve the conversation with another user",
    description="Returns the existing conversation, or a prospective one that the first message will create."
)
async def resolve_conversation(
    body: ConversationResolveRequest,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = ConversationService(db, directory)
    ref = await service.resolve(current_user["id"], body.other_user_id)

    if isinstance(ref, PersistedConversation):
        return ConversationRefResponse(
            kind="persisted", id=ref.id, participant_ids=list(ref.participant_ids)
        )
    return ConversationRefResponse(kind="prospective", participant_ids=list(ref.participant_ids))


@router.get(
    "/conversations/{conversation_id}",
    response_model=ConversationMessagesResponse,
    summary="Get conversation messages",
    description="Messages in ascending time order. Marks received messages as read unless mark_read=false."
)
async def get_conversation_messages(
    conversation_id: str,
    mark_read: bool = Query(True, description="Mark received messages as read"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = ConversationService(db, directory)
    messages = await service.get_messages(conversation_id, current_user["id"], mark_read=mark_read)
    return ConversationMessagesResponse(
        conversation_id=conversation_id,
        data=[MessageResponse.model_validate(m) for m in messages]
    )


@router.post(
    "/conversations/{conversation_id}/read",
    response_model=MarkReadResponse,
    summary="Mark conversation as read"
)
async def mark_conversation_read(
    conversation_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = ConversationService(db, directory)
    updated = await service.mark_read(conversation_id, current_user["id"])
    return MarkReadResponse(updated_count=updated)


@router.post(
    "",
    response_model=MessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a direct message",
    description="Creates the conversation on the first message between two users."
)
@limiter.limit(SEND_LIMIT)
async def send_message(
    request: Request,
    message_data: DirectMessageCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    """
    Send a direct message.

    - **receiver_id**: Recipient user ID
    - **content**: Message text
    """
    service = MessageService(db, directory)
    message = await service.send_direct(
        current_user["id"], message_data.receiver_id, message_data.content
    )
    return MessageResponse.model_validate(message)


@router.put(
    "/{message_id}",
    response_model=MessageResponse,
    summary="Edit a direct message",
    description="Only the author can edit a message."
)
async def edit_message(
    message_id: str,
    message_data: MessageUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = MessageService(db, directory)
    message = await service.edit_message(message_id, current_user["id"], message_data.content)
    return MessageResponse.model_validate(message)


@router.delete(
    "/{message_id}",
    response_model=DeleteResponse,
    summary="Delete a direct message",
    description="Only the author can delete a message. Deletion is permanent."
)
async def delete_message(
    message_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = MessageService(db, directory)
    await service.delete_message(message_id, current_user["id"])
    return DeleteResponse(success=True, message_id=message_id)
