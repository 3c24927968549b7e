"""
Block repository for database operations.
"""
import logging
from typing import List, Optional

from sqlalchemy import select, delete, and_, or_, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.models.user_block import UserBlock

logger = logging.getLogger(__name__)


class BlockRepository:
    """
    Repository for user block rows.

    UserBlock is keyed by (blocker_id, blocked_id) rather than a single id,
    so this does not extend BaseRepository.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def get_block(self, blocker_id: str, blocked_id: str) -> Optional[UserBlock]:
        result = await self.db.execute(
            select(UserBlock).where(
                and_(
                    UserBlock.blocker_id == blocker_id,
                    UserBlock.blocked_id == blocked_id
                )
            )
        )
        return result.scalar_one_or_none()

    async def create_block(self, blocker_id: str, blocked_id: str) -> UserBlock:
        """
        Create a block, returning the existing row if already present.

        Args:
            blocker_id: User who blocks
            blocked_id: User being blocked

        Returns:
            The block row
        """
        existing = await self.get_block(blocker_id, blocked_id)
        if existing:
            return existing

        try:
            async with self.db.begin_nested():
                block = UserBlock(blocker_id=blocker_id, blocked_id=blocked_id)
                self.db.add(block)
                await self.db.flush()
        except IntegrityError:
            existing = await self.get_block(blocker_id, blocked_id)
            if existing is None:
                raise
            return existing

        return block

    async def delete_block(self, blocker_id: str, blocked_id: str) -> bool:
        """
        Remove a block.

        Returns:
            True if a row was deleted, False if no block existed
        """
        result = await self.db.execute(
            delete(UserBlock)
            .where(
                and_(
                    UserBlock.blocker_id == blocker_id,
                    UserBlock.blocked_id == blocked_id
                )
            )
            .execution_options(synchronize_session="fetch")
        )
        await self.db.flush()
        return result.rowcount > 0

    async def is_blocked(self, blocker_id: str, blocked_id: str) -> bool:
        return await self.get_block(blocker_id, blocked_id) is not None

    async def is_either_blocked(self, user1_id: str, user2_id: str) -> bool:
        """Check for a block in either direction between two users."""
        result = await self.db.execute(
            select(func.count())
            .select_from(UserBlock)
            .where(
                or_(
                    and_(UserBlock.blocker_id == user1_id, UserBlock.blocked_id == user2_id),
                    and_(UserBlock.blocker_id == user2_id, UserBlock.blocked_id == user1_id)
                )
            )
        )
        return (result.scalar() or 0) > 0

    async def get_blocked_user_ids(self, blocker_id: str) -> List[str]:
        """Ids blocked by blocker_id, most recent first."""
        result = await self.db.execute(
            select(UserBlock.blocked_id)
            .where(UserBlock.blocker_id == blocker_id)
            .order_by(UserBlock.created_at.desc())
        )
        return list(result.scalars().all())

    async def get_blocks(self, blocker_id: str) -> List[UserBlock]:
        result = await self.db.execute(
            select(UserBlock)
            .where(UserBlock.blocker_id == blocker_id)
            .order_by(UserBlock.created_at.desc())
        )
        return list(result.scalars().all())
