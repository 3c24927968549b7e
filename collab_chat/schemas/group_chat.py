"""
Pydantic schemas for group chat requests and responses.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from collab_chat.schemas.base import OptionalUTCDateTime, UTCDateTime
from collab_chat.schemas.message import GroupMessageResponse
from collab_chat.schemas.user import UserSummary


# ============================================================================
# Request Schemas
# ============================================================================

class GroupChatCreate(BaseModel):
    """
    Schema for creating a group chat.

    member_ids are public identifiers. Unknown ones and the creator's own
    are skipped; the creator is always added.
    """

    name: str = Field(..., description="Group name")
    description: Optional[str] = Field(None, description="Optional group description")
    member_ids: List[str] = Field(default_factory=list, description="Public IDs of members to invite")

    class Config:
        json_schema_extra = {
            "example": {
                "name": "Weekend Project",
                "description": "Planning the collab",
                "member_ids": ["alice01", "bob_02"]
            }
        }


class GroupChatUpdate(BaseModel):
    """Schema for renaming or re-describing a group chat."""

    name: Optional[str] = Field(None, description="Updated group name")
    description: Optional[str] = Field(None, description="Updated description")


class ParticipantAdd(BaseModel):
    """Schema for adding a participant by public ID."""

    public_id: str = Field(..., min_length=1, description="Public ID of the user to add")


# ============================================================================
# Response Schemas
# ============================================================================

class GroupChatResponse(BaseModel):
    """Group chat with participants and listing metadata."""

    id: str
    name: str
    description: Optional[str] = None
    created_by: str = Field(serialization_alias="createdBy")
    participant_ids: List[str] = Field(serialization_alias="participantIds")
    participants: List[UserSummary] = Field(default_factory=list)
    last_message: Optional[GroupMessageResponse] = Field(None, serialization_alias="lastMessage")
    unread_count: int = Field(0, serialization_alias="unreadCount")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    updated_at: UTCDateTime = Field(serialization_alias="updatedAt")
    last_message_at: OptionalUTCDateTime = Field(None, serialization_alias="lastMessageAt")

    model_config = ConfigDict(populate_by_name=True)


class GroupChatListResponse(BaseModel):
    data: List[GroupChatResponse]


class GroupChatMessagesResponse(BaseModel):
    """Messages of a group chat visible to the requester."""

    group_chat_id: str = Field(serialization_alias="groupChatId")
    data: List[GroupMessageResponse]

    model_config = ConfigDict(populate_by_name=True)


class MembershipChangeResponse(BaseModel):
    """Result of add-participant or leave."""

    group_chat_id: str = Field(serialization_alias="groupChatId")
    user_id: str = Field(serialization_alias="userId")
    changed: bool

    model_config = ConfigDict(populate_by_name=True)
