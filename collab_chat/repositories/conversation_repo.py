"""
Conversation repository for database operations.
Handles pair lookup, race-safe materialization and listing of direct conversations.
"""
import logging
from datetime import datetime
from typing import Optional, List, Tuple

from sqlalchemy import select, update, and_, or_, desc, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.models.conversation import Conversation, canonical_pair
from collab_chat.models.message import Message
from collab_chat.repositories.base import BaseRepository

logger = logging.getLogger(__name__)


class ConversationRepository(BaseRepository[Conversation]):
    """Repository for conversation database operations."""

    def __init__(self, db: AsyncSession):
        super().__init__(Conversation, db)

    async def find_by_participants(
        self, user1_id: str, user2_id: str
    ) -> Optional[Conversation]:
        """
        Find the conversation between two users, in either argument order.

        Args:
            user1_id: First user ID
            user2_id: Second user ID

        Returns:
            Conversation or None
        """
        low, high = canonical_pair(user1_id, user2_id)
        result = await self.db.execute(
            select(Conversation).where(
                and_(
                    Conversation.user_low_id == low,
                    Conversation.user_high_id == high
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create_for_pair(
        self, user1_id: str, user2_id: str
    ) -> Tuple[Conversation, bool]:
        """
        Return the pair's conversation, creating it if needed.

        The insert runs inside a savepoint. If a concurrent writer created the
        same pair first, the unique constraint rejects our row and the winner
        is read back, so both callers end up with the same conversation.

        Args:
            user1_id: First user ID
            user2_id: Second user ID

        Returns:
            Tuple of (conversation, created)
        """
        low, high = canonical_pair(user1_id, user2_id)

        existing = await self.find_by_participants(low, high)
        if existing:
            return existing, False

        try:
            async with self.db.begin_nested():
                conversation = Conversation(user_low_id=low, user_high_id=high)
                self.db.add(conversation)
                await self.db.flush()
        except IntegrityError:
            logger.info(f"[CONVERSATION_REPO] Pair ({low}, {high}) created concurrently, reusing it")
            existing = await self.find_by_participants(low, high)
            if existing is None:
                raise
            return existing, False

        return conversation, True

    async def get_user_conversations(self, user_id: str) -> List[Conversation]:
        """
        Get all conversations a user participates in.

        Ordered by last message time, newest first, falling back to creation
        time for conversations without messages.

        Args:
            user_id: User ID

        Returns:
            List of conversations
        """
        activity = func.coalesce(Conversation.last_message_at, Conversation.created_at)
        result = await self.db.execute(
            select(Conversation)
            .where(
                or_(
                    Conversation.user_low_id == user_id,
                    Conversation.user_high_id == user_id
                )
            )
            .order_by(desc(activity), desc(Conversation.id))
        )
        return list(result.scalars().all())

    async def advance_last_message(
        self, conversation_id: str, message_id: str, message_at: datetime
    ) -> None:
        """
        Record a new last message, never moving the pointer backwards.

        The guard in the WHERE clause makes this safe against a concurrent
        sender whose newer message already landed.
        """
        await self.db.execute(
            update(Conversation)
            .where(
                and_(
                    Conversation.id == conversation_id,
                    or_(
                        Conversation.last_message_at.is_(None),
                        Conversation.last_message_at <= message_at
                    )
                )
            )
            .values(last_message_id=message_id, last_message_at=message_at)
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()

    async def recompute_last_message(self, conversation_id: str) -> None:
        """Reset last-message fields from the messages that remain."""
        result = await self.db.execute(
            select(Message.id, Message.created_at)
            .where(Message.conversation_id == conversation_id)
            .order_by(desc(Message.created_at), desc(Message.id))
            .limit(1)
        )
        row = result.first()

        await self.db.execute(
            update(Conversation)
            .where(Conversation.id == conversation_id)
            .values(
                last_message_id=row.id if row else None,
                last_message_at=row.created_at if row else None
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
