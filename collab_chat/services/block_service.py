"""
Block service.

A block is directed: "A blocks B". While a block exists in either direction
no direct message can be sent between the pair. Group chats are not subject
to blocks.
"""
import logging
from typing import List

from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.exceptions import InvalidParticipant, NotFound
from collab_chat.core.user_directory import UserDirectoryClient, user_directory
from collab_chat.models.user_block import UserBlock
from collab_chat.repositories.block_repo import BlockRepository

logger = logging.getLogger(__name__)


class BlockService:
    """Service for creating, removing and querying user blocks."""

    def __init__(self, db: AsyncSession, directory: UserDirectoryClient = user_directory):
        self.db = db
        self.directory = directory
        self.block_repo = BlockRepository(db)

    async def block(self, blocker_id: str, target_id: str) -> UserBlock:
        """
        Block target_id on behalf of blocker_id. Blocking twice is a no-op.

        Raises:
            InvalidParticipant: If a user tries to block themselves
            NotFound: If target_id is unknown to the user directory
        """
        if not target_id or blocker_id == target_id:
            raise InvalidParticipant("You cannot block yourself")

        target = await self.directory.lookup_by_id(target_id)
        if target is None:
            raise NotFound("User not found")

        block = await self.block_repo.create_block(blocker_id, target_id)
        logger.info(f"[BLOCK_SERVICE] {blocker_id} blocked {target_id}")
        return block

    async def unblock(self, blocker_id: str, target_id: str) -> bool:
        """
        Remove a block. Unblocking a user who is not blocked is a no-op.

        Returns:
            True if a block was removed
        """
        removed = await self.block_repo.delete_block(blocker_id, target_id)
        if removed:
            logger.info(f"[BLOCK_SERVICE] {blocker_id} unblocked {target_id}")
        return removed

    async def is_blocked(self, user_id: str, other_id: str) -> bool:
        """True only when user_id blocks other_id (one direction)."""
        return await self.block_repo.is_blocked(user_id, other_id)

    async def is_either_blocked(self, user1_id: str, user2_id: str) -> bool:
        return await self.block_repo.is_either_blocked(user1_id, user2_id)

    async def blocked_user_ids(self, user_id: str) -> List[str]:
        return await self.block_repo.get_blocked_user_ids(user_id)
