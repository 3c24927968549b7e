"""
Direct message model.

Each message belongs to exactly one conversation and carries its receiver
explicitly, so unread counting is a single indexed filter on
(receiver_id, is_read).
"""
from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_chat.models.base import Base, IDMixin, CreatedAtMixin

if TYPE_CHECKING:
    from collab_chat.models.conversation import Conversation


class Message(Base, IDMixin, CreatedAtMixin):
    """A direct message from sender to receiver."""

    __tablename__ = "messages"

    conversation_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("conversations.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        doc="Conversation this message belongs to"
    )

    sender_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        index=True,
        doc="User who sent the message (immutable)"
    )

    receiver_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="The other participant of the conversation"
    )

    content: Mapped[str] = mapped_column(
        Text,
        nullable=False,
        doc="Message text"
    )

    is_read: Mapped[bool] = mapped_column(
        default=False,
        nullable=False,
        doc="Whether the receiver has read the message"
    )

    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the message was last edited"
    )

    conversation: Mapped["Conversation"] = relationship(back_populates="messages")

    def __repr__(self) -> str:
        return f"<Message(id={self.id}, sender={self.sender_id}, content='{self.content[:50]}')>"


Index("idx_messages_conversation_created", Message.conversation_id, Message.created_at)
Index("idx_messages_receiver_unread", Message.receiver_id, Message.is_read)
