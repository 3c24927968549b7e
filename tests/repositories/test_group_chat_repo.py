"""
Tests for GroupChatRepository and GroupMessageRepository.
"""
import pytest

from collab_chat.repositories.group_chat_repo import GroupChatRepository
from collab_chat.repositories.message_repo import GroupMessageRepository

from conftest import ALICE, BOB, CAROL


@pytest.fixture
async def chat(db_session):
    return await GroupChatRepository(db_session).create_with_participants(
        name="Crew", description=None, created_by=ALICE, member_ids=[BOB, ALICE, BOB]
    )


@pytest.mark.asyncio
class TestGroupChatRepository:

    async def test_create_deduplicates_members(self, chat):
        assert sorted(chat.participant_ids) == [ALICE, BOB]

    async def test_add_participant_twice(self, db_session, chat):
        repo = GroupChatRepository(db_session)

        assert await repo.add_participant(chat.id, CAROL) is True
        assert await repo.add_participant(chat.id, CAROL) is False

    async def test_concurrent_add_is_treated_as_done(self, db_session, chat, monkeypatch):
        """The primary key rejects a second row for the same member."""
        repo = GroupChatRepository(db_session)
        await repo.add_participant(chat.id, CAROL)
        # The competing writer's row is not in this session
        db_session.expunge_all()

        async def no_membership(group_chat_id, user_id):
            return None

        monkeypatch.setattr(repo, "get_participant", no_membership)

        assert await repo.add_participant(chat.id, CAROL) is False
        reloaded = await repo.get_with_participants(chat.id)
        assert reloaded.participant_ids.count(CAROL) == 1

    async def test_mark_left_then_rejoin(self, db_session, chat):
        repo = GroupChatRepository(db_session)

        assert await repo.mark_left(chat.id, BOB) is True
        assert await repo.mark_left(chat.id, BOB) is False
        assert await repo.get_active_group_ids(BOB) == []

        assert await repo.add_participant(chat.id, BOB) is True
        assert await repo.get_active_group_ids(BOB) == [chat.id]


@pytest.mark.asyncio
class TestGroupMessageRepository:

    async def test_unread_counts_per_chat(self, db_session, chat):
        repo = GroupMessageRepository(db_session)
        await repo.create_with_sender_read(chat.id, ALICE, "Alice", "one")
        await repo.create_with_sender_read(chat.id, ALICE, "Alice", "two")

        assert await repo.get_unread_counts(BOB, [chat.id]) == {chat.id: 2}
        assert await repo.get_unread_counts(ALICE, [chat.id]) == {}
        assert await repo.get_unread_counts(BOB, []) == {}

    async def test_mark_group_read_only_inserts_missing_receipts(self, db_session, chat):
        repo = GroupMessageRepository(db_session)
        await repo.create_with_sender_read(chat.id, ALICE, "Alice", "one")

        assert await repo.mark_group_read(chat.id, BOB) == 1
        await repo.create_with_sender_read(chat.id, ALICE, "Alice", "two")
        assert await repo.mark_group_read(chat.id, BOB) == 1
        assert await repo.mark_group_read(chat.id, BOB) == 0

        messages = await repo.get_group_messages(chat.id)
        assert [sorted(m.read_by) for m in messages] == [[ALICE, BOB], [ALICE, BOB]]

    async def test_delete_with_reads(self, db_session, chat):
        repo = GroupMessageRepository(db_session)
        message = await repo.create_with_sender_read(chat.id, ALICE, "Alice", "bye")

        assert await repo.delete_with_reads(message.id) is True
        assert await repo.get_group_messages(chat.id) == []
