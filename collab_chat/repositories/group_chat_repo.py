"""
Group chat repository for database operations.
Handles group creation, membership rows and last-message bookkeeping.
"""
import logging
from datetime import datetime
from typing import List, Optional

from sqlalchemy import select, update, and_, or_, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.models.group_chat import GroupChat, GroupChatParticipant
from collab_chat.models.group_message import GroupMessage
from collab_chat.repositories.base import BaseRepository
from collab_chat.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class GroupChatRepository(BaseRepository[GroupChat]):
    """Repository for group chat database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(GroupChat, db)

    async def get_with_participants(self, group_chat_id: str) -> Optional[GroupChat]:
        """
        Get a group chat with a freshly loaded participant list.

        Args:
            group_chat_id: Group chat ID

        Returns:
            GroupChat or None
        """
        result = await self.db.execute(
            select(GroupChat)
            .where(GroupChat.id == group_chat_id)
            .execution_options(populate_existing=True)
        )
        return result.scalar_one_or_none()

    async def create_with_participants(
        self,
        name: str,
        description: Optional[str],
        created_by: str,
        member_ids: List[str]
    ) -> GroupChat:
        """
        Create a group chat with its creator and members in one flush.

        Args:
            name: Group name
            description: Optional description
            created_by: Creator user ID (always a participant)
            member_ids: Other member user IDs; duplicates and the creator are ignored

        Returns:
            Created group chat with participants loaded
        """
        group_chat = GroupChat(
            name=name,
            description=description,
            created_by=created_by
        )
        self.db.add(group_chat)
        await self.db.flush()

        seen = {created_by}
        self.db.add(GroupChatParticipant(group_chat_id=group_chat.id, user_id=created_by))

        for member_id in member_ids:
            if member_id in seen:
                continue
            seen.add(member_id)
            self.db.add(GroupChatParticipant(group_chat_id=group_chat.id, user_id=member_id))

        await self.db.flush()
        return await self.get_with_participants(group_chat.id)

    async def get_participant(
        self, group_chat_id: str, user_id: str
    ) -> Optional[GroupChatParticipant]:
        """Get the membership row for a user, current or former."""
        result = await self.db.execute(
            select(GroupChatParticipant).where(
                and_(
                    GroupChatParticipant.group_chat_id == group_chat_id,
                    GroupChatParticipant.user_id == user_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def add_participant(self, group_chat_id: str, user_id: str) -> bool:
        """
        Make user_id a current participant.

        A former participant's row is re-activated. A concurrent add of the
        same user is treated as already done.

        Returns:
            True if membership changed, False if the user was already a participant
        """
        membership = await self.get_participant(group_chat_id, user_id)

        if membership is not None:
            if membership.left_at is None:
                return False
            membership.left_at = None
            membership.joined_at = utc_now()
            await self.db.flush()
            return True

        try:
            async with self.db.begin_nested():
                self.db.add(GroupChatParticipant(group_chat_id=group_chat_id, user_id=user_id))
                await self.db.flush()
        except IntegrityError:
            logger.info(f"[GROUP_CHAT_REPO] User {user_id} joined {group_chat_id} concurrently")
            return False

        return True

    async def mark_left(self, group_chat_id: str, user_id: str) -> bool:
        """
        Stamp left_at on an active membership.

        Returns:
            True if the user left, False if they were not a current participant
        """
        membership = await self.get_participant(group_chat_id, user_id)
        if membership is None or membership.left_at is not None:
            return False

        membership.left_at = utc_now()
        await self.db.flush()
        return True

    async def get_user_group_chats(self, user_id: str) -> List[GroupChat]:
        """
        Get group chats where user_id is a current participant.

        Ordered by last message time, newest first, falling back to creation time.
        """
        activity = func.coalesce(GroupChat.last_message_at, GroupChat.created_at)
        result = await self.db.execute(
            select(GroupChat)
            .join(GroupChatParticipant, GroupChatParticipant.group_chat_id == GroupChat.id)
            .where(
                and_(
                    GroupChatParticipant.user_id == user_id,
                    GroupChatParticipant.left_at.is_(None)
                )
            )
            .order_by(desc(activity), desc(GroupChat.id))
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().unique().all())

    async def get_active_group_ids(self, user_id: str) -> List[str]:
        result = await self.db.execute(
            select(GroupChatParticipant.group_chat_id).where(
                and_(
                    GroupChatParticipant.user_id == user_id,
                    GroupChatParticipant.left_at.is_(None)
                )
            )
        )
        return list(result.scalars().all())

    async def touch(self, group_chat_id: str) -> None:
        """Stamp updated_at after a change to name, description or membership."""
        await self.db.execute(
            update(GroupChat)
            .where(GroupChat.id == group_chat_id)
            .values(updated_at=utc_now())
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()

    async def advance_last_message(
        self, group_chat_id: str, message_id: str, message_at: datetime
    ) -> None:
        """Record a new last message unless a newer one is already recorded."""
        await self.db.execute(
            update(GroupChat)
            .where(
                and_(
                    GroupChat.id == group_chat_id,
                    or_(
                        GroupChat.last_message_at.is_(None),
                        GroupChat.last_message_at <= message_at
                    )
                )
            )
            .values(last_message_id=message_id, last_message_at=message_at)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()

    async def recompute_last_message(self, group_chat_id: str) -> None:
        """Reset last-message fields from the messages that remain."""
        result = await self.db.execute(
            select(GroupMessage.id, GroupMessage.created_at)
            .where(GroupMessage.group_chat_id == group_chat_id)
            .order_by(desc(GroupMessage.created_at), desc(GroupMessage.id))
            .limit(1)
        )
        row = result.first()

        await self.db.execute(
            update(GroupChat)
            .where(GroupChat.id == group_chat_id)
            .values(
                last_message_id=row.id if row else None,
                last_message_at=row.created_at if row else None
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
