"""
Pydantic schemas for message requests and responses.
Handles direct and group message payloads.
"""
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from collab_chat.schemas.base import OptionalUTCDateTime, UTCDateTime


# ============================================================================
# Request Schemas
# ============================================================================

class DirectMessageCreate(BaseModel):
    """
    Schema for sending a direct message.

    Content rules (non-empty after trimming, length limit) are enforced by
    the message service so they surface as ValidationError.
    """

    receiver_id: str = Field(..., min_length=1, description="Recipient user ID")
    content: str = Field(..., description="Message text content")

    class Config:
        json_schema_extra = {
            "example": {
                "receiver_id": "user-456",
                "content": "Hello, how are you?"
            }
        }


class GroupMessageCreate(BaseModel):
    """Schema for sending a group message."""

    content: str = Field(..., description="Message text content")


class MessageUpdate(BaseModel):
    """Schema for editing a direct or group message."""

    content: str = Field(..., description="Updated message content")

    class Config:
        json_schema_extra = {
            "example": {
                "content": "Updated message content"
            }
        }


# ============================================================================
# Response Schemas
# ============================================================================

class MessageResponse(BaseModel):
    """Direct message."""

    id: str
    conversation_id: str = Field(serialization_alias="conversationId")
    sender_id: str = Field(serialization_alias="senderId")
    receiver_id: str = Field(serialization_alias="receiverId")
    content: str
    is_read: bool = Field(serialization_alias="read")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    updated_at: OptionalUTCDateTime = Field(None, serialization_alias="updatedAt")

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        json_schema_extra={
            "example": {
                "id": "123e4567-e89b-12d3-a456-426614174000",
                "conversationId": "123e4567-e89b-12d3-a456-426614174001",
                "senderId": "user-123",
                "receiverId": "user-456",
                "content": "Hello, how are you?",
                "read": False,
                "createdAt": "2025-10-10T10:00:00Z",
                "updatedAt": None
            }
        }
    )


class GroupMessageResponse(BaseModel):
    """Group message with the set of users who have read it."""

    id: str
    group_chat_id: str = Field(serialization_alias="groupChatId")
    sender_id: str = Field(serialization_alias="senderId")
    sender_username: str = Field(serialization_alias="senderUsername")
    content: str
    read_by: List[str] = Field(default_factory=list, serialization_alias="readBy")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")
    updated_at: OptionalUTCDateTime = Field(None, serialization_alias="updatedAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)

    @classmethod
    def from_model(cls, message) -> "GroupMessageResponse":
        return cls(
            id=message.id,
            group_chat_id=message.group_chat_id,
            sender_id=message.sender_id,
            sender_username=message.sender_username,
            content=message.content,
            read_by=sorted(message.read_by),
            created_at=message.created_at,
            updated_at=message.updated_at,
        )


class MarkReadResponse(BaseModel):
    """Result of a mark-read call."""

    updated_count: int = Field(serialization_alias="updatedCount")

    model_config = ConfigDict(populate_by_name=True)


class UnreadCountResponse(BaseModel):
    """Server-side unread badge."""

    unread_count: int = Field(serialization_alias="unreadCount")

    model_config = ConfigDict(populate_by_name=True)


class DeleteResponse(BaseModel):
    success: bool
    message_id: Optional[str] = Field(None, serialization_alias="messageId")

    model_config = ConfigDict(populate_by_name=True)
