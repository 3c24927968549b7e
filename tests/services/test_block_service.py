"""
Unit tests for BlockService.
"""
import pytest

from collab_chat.core.exceptions import InvalidParticipant, NotFound
from collab_chat.services.block_service import BlockService

from conftest import ALICE, BOB, CAROL


@pytest.mark.asyncio
class TestBlockService:
    """Test cases for BlockService."""

    async def test_block_is_directed(self, db_session, directory):
        service = BlockService(db_session, directory)

        await service.block(ALICE, BOB)

        assert await service.is_blocked(ALICE, BOB) is True
        assert await service.is_blocked(BOB, ALICE) is False
        assert await service.is_either_blocked(BOB, ALICE) is True

    async def test_block_twice_is_idempotent(self, db_session, directory):
        service = BlockService(db_session, directory)

        first = await service.block(ALICE, BOB)
        second = await service.block(ALICE, BOB)

        assert first is second
        assert await service.blocked_user_ids(ALICE) == [BOB]

    async def test_block_self(self, db_session, directory):
        with pytest.raises(InvalidParticipant):
            await BlockService(db_session, directory).block(ALICE, ALICE)

    async def test_block_unknown_user(self, db_session, directory):
        with pytest.raises(NotFound):
            await BlockService(db_session, directory).block(ALICE, "user-nobody")

    async def test_unblock(self, db_session, directory):
        service = BlockService(db_session, directory)
        await service.block(ALICE, BOB)

        assert await service.unblock(ALICE, BOB) is True
        assert await service.is_either_blocked(ALICE, BOB) is False

    async def test_unblock_when_not_blocked(self, db_session, directory):
        assert await BlockService(db_session, directory).unblock(ALICE, CAROL) is False

    async def test_blocked_user_ids_only_lists_own_blocks(self, db_session, directory):
        service = BlockService(db_session, directory)
        await service.block(ALICE, BOB)
        await service.block(ALICE, CAROL)
        await service.block(BOB, CAROL)

        assert sorted(await service.blocked_user_ids(ALICE)) == [BOB, CAROL]
        assert await service.blocked_user_ids(CAROL) == []
