"""
Message repositories for database operations.
Handles direct messages, group messages and their read state.
"""
import logging
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import select, update, delete, and_, func, exists, literal, DateTime, String
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.models.message import Message
from collab_chat.models.group_message import GroupMessage, GroupMessageRead
from collab_chat.repositories.base import BaseRepository
from collab_chat.utils.datetime_utils import utc_now

logger = logging.getLogger(__name__)


class MessageRepository(BaseRepository[Message]):
    """Repository for direct message database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize message repository."""
        super().__init__(Message, db)

    async def get_conversation_messages(self, conversation_id: str) -> List[Message]:
        """
        Get all messages of a conversation, oldest first.

        Args:
            conversation_id: Conversation ID

        Returns:
            Messages ordered by created_at, then id for identical timestamps
        """
        result = await self.db.execute(
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.created_at, Message.id)
        )
        return list(result.scalars().all())

    async def mark_conversation_read(self, conversation_id: str, user_id: str) -> int:
        """
        Flip read=true on every unread message received by user_id.

        Args:
            conversation_id: Conversation ID
            user_id: Receiver whose copy is marked read

        Returns:
            Number of messages updated
        """
        result = await self.db.execute(
            update(Message)
            .where(
                and_(
                    Message.conversation_id == conversation_id,
                    Message.receiver_id == user_id,
                    Message.is_read.is_(False)
                )
            )
            .values(is_read=True)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        return result.rowcount

    async def get_unread_counts(
        self, user_id: str, conversation_ids: List[str]
    ) -> Dict[str, int]:
        """
        Count unread received messages per conversation in one query.

        Returns:
            Mapping of conversation_id to unread count (missing ids mean 0)
        """
        if not conversation_ids:
            return {}

        result = await self.db.execute(
            select(Message.conversation_id, func.count())
            .where(
                and_(
                    Message.conversation_id.in_(conversation_ids),
                    Message.receiver_id == user_id,
                    Message.is_read.is_(False)
                )
            )
            .group_by(Message.conversation_id)
        )
        return {conversation_id: count for conversation_id, count in result.all()}

    async def count_unread_total(self, user_id: str) -> int:
        """Count every unread direct message received by user_id."""
        result = await self.db.execute(
            select(func.count())
            .select_from(Message)
            .where(
                and_(
                    Message.receiver_id == user_id,
                    Message.is_read.is_(False)
                )
            )
        )
        return result.scalar() or 0


class GroupMessageRepository(BaseRepository[GroupMessage]):
    """Repository for group message database operations."""

    def __init__(self, db: AsyncSession):
        """Initialize group message repository."""
        super().__init__(GroupMessage, db)

    async def create_with_sender_read(
        self,
        group_chat_id: str,
        sender_id: str,
        sender_username: str,
        content: str
    ) -> GroupMessage:
        """
        Create a group message whose read_by already contains the sender.

        Returns:
            Created group message with reads loaded
        """
        message = GroupMessage(
            group_chat_id=group_chat_id,
            sender_id=sender_id,
            sender_username=sender_username,
            content=content
        )
        message.reads.append(GroupMessageRead(user_id=sender_id))
        self.db.add(message)
        await self.db.flush()
        return message

    async def get_group_messages(
        self, group_chat_id: str, until: Optional[datetime] = None
    ) -> List[GroupMessage]:
        """
        Get messages of a group chat, oldest first.

        Args:
            group_chat_id: Group chat ID
            until: Only return messages created at or before this time

        Returns:
            Messages with read receipts loaded
        """
        query = select(GroupMessage).where(GroupMessage.group_chat_id == group_chat_id)

        if until is not None:
            query = query.where(GroupMessage.created_at <= until)

        # Receipts may have been written with Core since the rows were loaded
        result = await self.db.execute(
            query.order_by(GroupMessage.created_at, GroupMessage.id)
            .execution_options(populate_existing=True)
        )
        return list(result.scalars().all())

    def _unread_clause(self, user_id: str):
        return ~exists().where(
            and_(
                GroupMessageRead.message_id == GroupMessage.id,
                GroupMessageRead.user_id == user_id
            )
        )

    async def get_unread_counts(
        self, user_id: str, group_chat_ids: List[str]
    ) -> Dict[str, int]:
        """
        Count messages whose read_by excludes user_id, per group chat.

        Returns:
            Mapping of group_chat_id to unread count (missing ids mean 0)
        """
        if not group_chat_ids:
            return {}

        result = await self.db.execute(
            select(GroupMessage.group_chat_id, func.count())
            .where(
                and_(
                    GroupMessage.group_chat_id.in_(group_chat_ids),
                    self._unread_clause(user_id)
                )
            )
            .group_by(GroupMessage.group_chat_id)
        )
        return {group_chat_id: count for group_chat_id, count in result.all()}

    async def mark_group_read(self, group_chat_id: str, user_id: str) -> int:
        """
        Add user_id to read_by of every message in the group that lacks it.

        Runs as a single INSERT ... SELECT. If another session of the same
        user inserts the same receipts concurrently, the savepoint is rolled
        back and the statement retried once; the retry only sees what is
        still missing.

        Returns:
            Number of messages newly marked as read
        """
        statement = (
            GroupMessageRead.__table__.insert()
            .from_select(
                ["message_id", "user_id", "read_at"],
                select(
                    GroupMessage.id,
                    literal(user_id, String(255)),
                    literal(utc_now(), DateTime(timezone=True))
                ).where(
                    and_(
                        GroupMessage.group_chat_id == group_chat_id,
                        self._unread_clause(user_id)
                    )
                )
            )
        )

        for attempt in range(2):
            try:
                async with self.db.begin_nested():
                    result = await self.db.execute(statement)
                break
            except IntegrityError:
                if attempt == 1:
                    raise
                logger.info(f"[MESSAGE_REPO] Concurrent mark-read for user {user_id}, retrying")

        return max(result.rowcount or 0, 0)

    async def delete_with_reads(self, message_id: str) -> bool:
        """
        Hard delete a group message together with its read receipts.

        Returns:
            True if deleted, False if not found
        """
        await self.db.execute(
            delete(GroupMessageRead).where(GroupMessageRead.message_id == message_id)
        )
        return await self.delete(message_id)
