"""
UserBlock model for user blocking functionality.

Directed relation: blocker_id blocks blocked_id. The reverse direction is a
separate row (or absent).
"""
from datetime import datetime

from sqlalchemy import DateTime, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from collab_chat.models.base import Base
from collab_chat.utils.datetime_utils import utc_now


class UserBlock(Base):
    """
    UserBlock model - tracks which users have blocked whom.

    While a block exists in either direction:
    - neither user can send the other a direct message
    - the blocker no longer sees the conversation in their listing
    Existing history is never deleted.
    """

    __tablename__ = "user_blocks"

    # Composite primary key
    blocker_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        doc="User who is blocking"
    )

    blocked_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        doc="User who is being blocked"
    )

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the block was created"
    )

    def __repr__(self) -> str:
        return f"<UserBlock(blocker_id={self.blocker_id}, blocked_id={self.blocked_id})>"


Index("idx_user_blocks_blocked", UserBlock.blocked_id)
