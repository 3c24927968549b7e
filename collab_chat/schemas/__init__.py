"""
Pydantic schemas for request/response validation.
"""
from collab_chat.schemas.user import UserSummary
from collab_chat.schemas.message import (
    DirectMessageCreate,
    GroupMessageCreate,
    MessageUpdate,
    MessageResponse,
    GroupMessageResponse,
    MarkReadResponse,
    UnreadCountResponse,
    DeleteResponse,
)
from collab_chat.schemas.conversation import (
    ConversationResolveRequest,
    ConversationRefResponse,
    ConversationResponse,
    ConversationListResponse,
    ConversationMessagesResponse,
)
from collab_chat.schemas.group_chat import (
    GroupChatCreate,
    GroupChatUpdate,
    ParticipantAdd,
    GroupChatResponse,
    GroupChatListResponse,
    GroupChatMessagesResponse,
    MembershipChangeResponse,
)
from collab_chat.schemas.block import (
    BlockCreate,
    BlockResponse,
    BlockStatusResponse,
    BlockListResponse,
)

__all__ = [
    "UserSummary",
    "DirectMessageCreate",
    "GroupMessageCreate",
    "MessageUpdate",
    "MessageResponse",
    "GroupMessageResponse",
    "MarkReadResponse",
    "UnreadCountResponse",
    "DeleteResponse",
    "ConversationResolveRequest",
    "ConversationRefResponse",
    "ConversationResponse",
    "ConversationListResponse",
    "ConversationMessagesResponse",
    "GroupChatCreate",
    "GroupChatUpdate",
    "ParticipantAdd",
    "GroupChatResponse",
    "GroupChatListResponse",
    "GroupChatMessagesResponse",
    "MembershipChangeResponse",
    "BlockCreate",
    "BlockResponse",
    "BlockStatusResponse",
    "BlockListResponse",
]
