"""
User schemas.
Maps user directory records to the summary shape embedded in messaging responses.
"""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """
    Minimal user profile as returned by the platform user service.

    The user service speaks camelCase (displayName, publicId, isActive);
    snake_case names are accepted too.
    """

    model_config = ConfigDict(populate_by_name=True)

    id: str
    display_name: str = Field(alias="displayName")
    public_id: Optional[str] = Field(None, alias="publicId")
    is_active: bool = Field(True, alias="isActive")

    @classmethod
    def from_directory(cls, data: Dict[str, Any]) -> "UserSummary":
        """
        Build a summary from a raw user service record.

        Falls back to username, then name, then id for the display name.
        """
        display_name = (
            data.get("displayName")
            or data.get("display_name")
            or data.get("username")
            or data.get("name")
            or data["id"]
        )
        return cls(
            id=data["id"],
            display_name=display_name,
            public_id=data.get("publicId") or data.get("public_id"),
            is_active=data.get("isActive", data.get("is_active", True)) is not False,
        )
