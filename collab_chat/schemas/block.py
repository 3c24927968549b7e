"""
Pydantic schemas for user blocking.
"""
from typing import List

from pydantic import BaseModel, ConfigDict, Field

from collab_chat.schemas.base import UTCDateTime


class BlockCreate(BaseModel):
    """Schema for blocking a user."""

    user_id: str = Field(..., min_length=1, description="User ID to block")


class BlockResponse(BaseModel):
    blocker_id: str = Field(serialization_alias="blockerId")
    blocked_id: str = Field(serialization_alias="blockedId")
    created_at: UTCDateTime = Field(serialization_alias="createdAt")

    model_config = ConfigDict(from_attributes=True, populate_by_name=True)


class BlockStatusResponse(BaseModel):
    """Whether the requester blocks user_id."""

    user_id: str = Field(serialization_alias="userId")
    is_blocked: bool = Field(serialization_alias="isBlocked")

    model_config = ConfigDict(populate_by_name=True)


class BlockListResponse(BaseModel):
    blocked_user_ids: List[str] = Field(serialization_alias="blockedUserIds")

    model_config = ConfigDict(populate_by_name=True)
