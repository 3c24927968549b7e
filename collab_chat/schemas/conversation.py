"""
Pydantic schemas for direct conversation requests and responses.
"""
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

from collab_chat.schemas.base import OptionalUTCDateTime, UTCDateTime
from collab_chat.schemas.message import MessageResponse
from collab_chat.schemas.user import UserSummary


class ConversationResolveRequest(BaseModel):
    """Schema for resolving the conversation with another user."""

    other_user_id: str = Field(..., description="The other participant's user ID")

    class Config:
        json_schema_extra = {
            "example": {"other_user_id": "user-456"}
        }


class ConversationRefResponse(BaseModel):
    """
    Resolved conversation reference.

    kind is "persisted" when the conversation already exists (id is set) and
    "prospective" when it will be created by the first message (id is null).
    """

    kind: Literal["persisted", "prospective"]
    id: Optional[str] = None
    participant_ids: List[str] = Field(serialization_alias="participantIds")

    model_config = ConfigDict(populate_by_name=True)


class ConversationResponse(BaseModel):
    """One entry of the conversation listing."""

    id: str
    participant_ids: List[str] = Field(serialization_alias="participantIds")
    other_participant: Optional[UserSummary] = Field(None, serialization_alias="otherParticipant")
    last_message: Optional[MessageResponse] = Field(None, serialization_alias="lastMessage")
    unread_count: int = Field(0, serialization_alias="unreadCount")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    last_message_at: OptionalUTCDateTime = Field(None, serialization_alias="lastMessageAt")

    model_config = ConfigDict(populate_by_name=True)


class ConversationListResponse(BaseModel):
    data: List[ConversationResponse]


class ConversationMessagesResponse(BaseModel):
    """A conversation thread as seen by one participant."""

    conversation_id: str = Field(serialization_alias="conversationId")
    data: List[MessageResponse]

    model_config = ConfigDict(populate_by_name=True)
