"""
GroupChat and GroupChatParticipant models.

Membership is one row per (group, user). Leaving sets left_at instead of
deleting the row, so former members keep a record that lets them read the
history they took part in.
"""
from datetime import datetime
from typing import TYPE_CHECKING, List

from sqlalchemy import DateTime, ForeignKey, Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from collab_chat.models.base import Base, IDMixin, CreatedAtMixin
from collab_chat.utils.datetime_utils import utc_now

if TYPE_CHECKING:
    from collab_chat.models.group_message import GroupMessage


class GroupChat(Base, IDMixin, CreatedAtMixin):
    """Multi-party chat with a mutable participant set and no admin role."""

    __tablename__ = "group_chats"

    name: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="Group name"
    )

    description: Mapped[str | None] = mapped_column(
        Text,
        nullable=True,
        doc="Optional group description"
    )

    created_by: Mapped[str] = mapped_column(
        String(255),
        nullable=False,
        doc="User who created the group"
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="Last change to name, description or membership"
    )

    last_message_id: Mapped[str | None] = mapped_column(
        String(255),
        nullable=True,
        doc="Most recent message in the group"
    )

    last_message_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="Timestamp of the most recent message"
    )

    participants: Mapped[List["GroupChatParticipant"]] = relationship(
        back_populates="group_chat",
        cascade="all, delete-orphan",
        lazy="selectin",
        order_by="GroupChatParticipant.joined_at"
    )

    messages: Mapped[List["GroupMessage"]] = relationship(
        back_populates="group_chat",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="select"
    )

    @property
    def participant_ids(self) -> List[str]:
        """Ids of current (not departed) participants, in join order."""
        return [p.user_id for p in self.participants if p.left_at is None]

    def is_participant(self, user_id: str) -> bool:
        return user_id in self.participant_ids

    def membership_for(self, user_id: str) -> "GroupChatParticipant | None":
        """Current or former membership record for user_id."""
        for participant in self.participants:
            if participant.user_id == user_id:
                return participant
        return None

    def __repr__(self) -> str:
        return f"<GroupChat(id={self.id}, name={self.name})>"


class GroupChatParticipant(Base):
    """Association row between a group chat and a user."""

    __tablename__ = "group_chat_participants"

    group_chat_id: Mapped[str] = mapped_column(
        String(255),
        ForeignKey("group_chats.id", ondelete="CASCADE"),
        primary_key=True,
        doc="Group chat ID"
    )

    user_id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        doc="User ID"
    )

    joined_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        doc="When the user (re)joined the group"
    )

    left_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True),
        nullable=True,
        doc="When the user left; null while the user is a participant"
    )

    group_chat: Mapped["GroupChat"] = relationship(back_populates="participants")

    @property
    def is_active(self) -> bool:
        return self.left_at is None

    def __repr__(self) -> str:
        return (
            f"<GroupChatParticipant(group_chat_id={self.group_chat_id}, "
            f"user_id={self.user_id}, active={self.is_active})>"
        )


Index("idx_group_chat_participants_user", GroupChatParticipant.user_id)
