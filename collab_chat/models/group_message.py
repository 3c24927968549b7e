"""
GroupMessage and GroupMessageRead models.

read_by is modelled as one row per reader so concurrent "mark read" calls
from different members are independent inserts.
"""
from datetime import datetime
from typing import TYPE_CHECKING, List, Set

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_chat.models.base import Base, IDMixin, CreatedAtMixin
from collab_chat.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from collab_chat.models.group_chat import GroupChat


class GroupMessage(Base, IDMixin, CreatedAtMixin):
    """A message posted to a group chat."""

    __tablename__ = "group_messages"

    group_chat_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("group_chats.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Group chat this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="User who sent the message (immutable)"
    )

    sender_username: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Sender display name at send time"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Message text"
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the message was last edited"
    )

    group_chat: Mapped["GroupChat"] = relationship(back_populates="messages")

    reads: Mapped[List["GroupMessageRead"]] = relationship(
        back_populates="message",
        cascade="all, delete-orphan",
        lazy="selectin"
    )

    @property
    def read_by(self) -> Set[str]:
        return {r.user_id for r in self.reads}

    def __repr__(self) -> str:
        return f"<GroupMessage(id={self.id}, sender={self.sender_id}, content='{self.content[:50]}')>"


class GroupMessageRead(Base):
    """Read receipt: user_id has seen message_id."""

    __tablename__ = "group_message_reads"

    message_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("group_messages.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Group message ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        doc="Reader user ID"
    )

    read_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the user read the message"
    )

    message: Mapped["GroupMessage"] = relationship(back_populates="reads")

    def __repr__(self) -> str:
        return f"<GroupMessageRead(message_id={self.message_id}, user_id={self.user_id})>"


Index("idx_group_messages_chat_created", GroupMessage.group_chat_id, GroupMessage.created_at)
Index("idx_group_message_reads_user", GroupMessageRead.user_id)
