"""
Group chat API routes.
Provides endpoints for group creation, membership and group messages.
"""
from typing import Any, Dict

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.database import get_db
from collab_chat.core.rate_limit import SEND_LIMIT, limiter
from collab_chat.core.user_directory import UserDirectoryClient
from collab_chat.dependencies import get_current_user, get_user_directory
from collab_chat.schemas.group_chat import (
    GroupChatCreate,
    GroupChatListResponse,
    GroupChatMessagesResponse,
    GroupChatResponse,
    GroupChatUpdate,
    MembershipChangeResponse,
    ParticipantAdd,
)
from collab_chat.schemas.message import (
    DeleteResponse,
    GroupMessageCreate,
    GroupMessageResponse,
    MarkReadResponse,
    MessageUpdate,
    UnreadCountResponse,
)
from collab_chat.services.group_chat_service import GroupChatService
from collab_chat.services.message_service import MessageService

router = APIRouter()


def _group_chat_response(entry: Dict[str, Any]) -> GroupChatResponse:
    last_message = entry["last_message"]
    return GroupChatResponse(
        **{
            **entry,
            "last_message": GroupMessageResponse.from_model(last_message) if last_message else None,
        }
    )


@router.get(
    "",
    response_model=GroupChatListResponse,
    summary="List group chats",
    description="Group chats the current user participates in, most recent activity first."
)
async def list_group_chats(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    entries = await service.list_group_chats(current_user["id"])
    return GroupChatListResponse(data=[_group_chat_response(e) for e in entries])


@router.post(
    "",
    response_model=GroupChatResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group chat",
    description="Invitees are given by public ID; unknown IDs are skipped."
)
async def create_group_chat(
    body: GroupChatCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    """
    Create a group chat.

    - **name**: Group name
    - **description**: Optional description
    - **member_ids**: Public IDs of the members to invite
    """
    service = GroupChatService(db, directory)
    chat = await service.create(current_user["id"], body.name, body.description, body.member_ids)
    return _group_chat_response(await service.describe(chat))


@router.get(
    "/unread-count",
    response_model=UnreadCountResponse,
    summary="Group unread total"
)
async def get_group_unread_count(
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    return UnreadCountResponse(unread_count=await service.unread_total(current_user["id"]))


@router.put(
    "/messages/{message_id}",
    response_model=GroupMessageResponse,
    summary="Edit a group message",
    description="Only the author can edit a message."
)
async def edit_group_message(
    message_id: str,
    message_data: MessageUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = MessageService(db, directory)
    message = await service.edit_group_message(message_id, current_user["id"], message_data.content)
    return GroupMessageResponse.from_model(message)


@router.delete(
    "/messages/{message_id}",
    response_model=DeleteResponse,
    summary="Delete a group message",
    description="Only the author can delete a message. Deletion is permanent."
)
async def delete_group_message(
    message_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = MessageService(db, directory)
    await service.delete_group_message(message_id, current_user["id"])
    return DeleteResponse(success=True, message_id=message_id)


@router.put(
    "/{chat_id}",
    response_model=GroupChatResponse,
    summary="Rename or re-describe a group chat",
    description="Any current participant may update the name or description."
)
async def update_group_chat(
    chat_id: str,
    body: GroupChatUpdate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    chat = await service.update(chat_id, current_user["id"], body.name, body.description)
    return _group_chat_response(await service.describe(chat))


@router.post(
    "/{chat_id}/participants",
    response_model=MembershipChangeResponse,
    summary="Add a participant",
    description="Adding someone who is already a participant succeeds without changes."
)
async def add_participant(
    chat_id: str,
    body: ParticipantAdd,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    user_id, changed = await service.add_participant(chat_id, current_user["id"], body.public_id)
    return MembershipChangeResponse(group_chat_id=chat_id, user_id=user_id, changed=changed)


@router.post(
    "/{chat_id}/leave",
    response_model=MembershipChangeResponse,
    summary="Leave a group chat"
)
async def leave_group_chat(
    chat_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    left = await service.leave(chat_id, current_user["id"])
    return MembershipChangeResponse(group_chat_id=chat_id, user_id=current_user["id"], changed=left)


@router.get(
    "/{chat_id}/messages",
    response_model=GroupChatMessagesResponse,
    summary="Get group messages",
    description="Former participants see the history up to when they left."
)
async def get_group_messages(
    chat_id: str,
    mark_read: bool = Query(True, description="Mark messages as read"),
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    messages = await service.get_messages(chat_id, current_user["id"], mark_read=mark_read)
    return GroupChatMessagesResponse(
        group_chat_id=chat_id,
        data=[GroupMessageResponse.from_model(m) for m in messages]
    )


@router.post(
    "/{chat_id}/messages",
    response_model=GroupMessageResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a group message"
)
@limiter.limit(SEND_LIMIT)
async def send_group_message(
    request: Request,
    chat_id: str,
    message_data: GroupMessageCreate,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = MessageService(db, directory)
    message = await service.send_group(current_user["id"], chat_id, message_data.content)
    return GroupMessageResponse.from_model(message)


@router.post(
    "/{chat_id}/read",
    response_model=MarkReadResponse,
    summary="Mark group chat as read"
)
async def mark_group_read(
    chat_id: str,
    current_user: dict = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
    directory: UserDirectoryClient = Depends(get_user_directory)
):
    service = GroupChatService(db, directory)
    updated = await service.mark_read(chat_id, current_user["id"])
    return MarkReadResponse(updated_count=updated)
