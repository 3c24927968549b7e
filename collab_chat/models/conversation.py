"""
Conversation model for pairwise direct messages.

A conversation row stores its two participants in canonical sorted order
(user_low_id < user_high_id); the unique constraint on that pair is what
guarantees one conversation per pair even under concurrent first sends.
"""
from datetime import datetime
from typing import TYPE_CHECKING, List, Tuple

from sqlalchemy import CheckConstraint, DateTime, Index, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_chat.models.base import Base, IDMixin, CreatedAtMixin

if TYPE_CHECKING:
    from collab_chat.models.message import Message


def canonical_pair(user_a: str, user_b: str) -> Tuple[str, str]:
    """Return the two user ids in canonical (sorted) order."""
    return (user_a, user_b) if user_a < user_b else (user_b, user_a)


class Conversation(Base, IDMixin, CreatedAtMixin):
    """Durable direct-message thread between exactly two users."""

    __tablename__ = "conversations"

    user_low_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Lexicographically smaller participant id"
    )

    user_high_id: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Lexicographically larger participant id"
    )

    last_message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Most recent message in the conversation"
    )

    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Timestamp of the most recent message"
    )

    messages: Mapped[List["Message"]] = relationship(
        back_populates="conversation",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select"
    )

    __table_args__ = (
        UniqueConstraint("user_low_id", "user_high_id", name="uq_conversations_pair"),
        CheckConstraint("user_low_id < user_high_id", name="ck_conversations_pair_order"),
    )

    @property
    def participant_ids(self) -> List[str]:
        return [self.user_low_id, self.user_high_id]

    def other_participant(self, user_id: str) -> str:
        """Return the participant that is not user_id."""
        return self.user_high_id if user_id == self.user_low_id else self.user_low_id

    def has_participant(self, user_id: str) -> bool:
        return user_id in (self.user_low_id, self.user_high_id)

    def __repr__(self) -> str:
        return f"<Conversation(id={self.id}, pair=({self.user_low_id}, {self.user_high_id}))>"


Index("idx_conversations_user_low", Conversation.user_low_id)
Index("idx_conversations_user_high", Conversation.user_high_id)
