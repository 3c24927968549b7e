"""
Unit tests for GroupChatService.
Tests creation, membership changes, reading and unread counts of group chats.
"""
import pytest

from collab_chat.core.exceptions import (
    EmptyMembership,
    InvalidParticipant,
    NotAMember,
    NotFound,
    ValidationError,
)
from collab_chat.services.group_chat_service import GroupChatService
from collab_chat.services.message_service import MessageService

from conftest import ALICE, BOB, CAROL, DAVE


@pytest.fixture
async def group_chat(db_session, directory):
    """Group of Alice (creator), Bob and Carol."""
    return await GroupChatService(db_session, directory).create(
        ALICE, "Launch crew", "Planning the launch", ["BOB02", "CAROL03"]
    )


@pytest.mark.asyncio
class TestCreate:
    """Test cases for creating group chats."""

    async def test_create_includes_creator_and_members(self, group_chat):
        assert sorted(group_chat.participant_ids) == [ALICE, BOB, CAROL]
        assert group_chat.created_by == ALICE
        assert group_chat.name == "Launch crew"
        assert group_chat.description == "Planning the launch"

    async def test_create_skips_unknown_and_duplicate_members(self, db_session, directory):
        chat = await GroupChatService(db_session, directory).create(
            ALICE, "Duo", None, ["BOB02", "NOBODY", "BOB02", "ALICE01"]
        )

        assert sorted(chat.participant_ids) == [ALICE, BOB]

    async def test_create_without_valid_members(self, db_session, directory):
        service = GroupChatService(db_session, directory)

        with pytest.raises(EmptyMembership):
            await service.create(ALICE, "Solo", None, ["ALICE01", "NOBODY"])

    async def test_create_with_blank_name(self, db_session, directory):
        with pytest.raises(ValidationError):
            await GroupChatService(db_session, directory).create(ALICE, "   ", None, ["BOB02"])


@pytest.mark.asyncio
class TestMembership:
    """Test cases for adding and leaving."""

    async def test_any_participant_can_add(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)

        user_id, changed = await service.add_participant(group_chat.id, BOB, "DAVE04")
        chat = await service.get_for_participant(group_chat.id, DAVE)

        assert (user_id, changed) == (DAVE, True)
        assert DAVE in chat.participant_ids

    async def test_add_existing_participant_is_noop(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)

        user_id, changed = await service.add_participant(group_chat.id, ALICE, "BOB02")
        chat = await service.get_for_participant(group_chat.id, ALICE)

        assert (user_id, changed) == (BOB, False)
        assert chat.participant_ids.count(BOB) == 1

    async def test_non_participant_cannot_add(self, db_session, directory, group_chat):
        with pytest.raises(NotAMember):
            await GroupChatService(db_session, directory).add_participant(group_chat.id, DAVE, "DAVE04")

    async def test_add_unknown_public_id(self, db_session, directory, group_chat):
        with pytest.raises(InvalidParticipant):
            await GroupChatService(db_session, directory).add_participant(group_chat.id, ALICE, "NOBODY")

    async def test_leave_removes_from_participants(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)

        assert await service.leave(group_chat.id, CAROL) is True
        chat = await service.get_for_participant(group_chat.id, ALICE)

        assert CAROL not in chat.participant_ids
        assert await service.leave(group_chat.id, CAROL) is False

    async def test_leave_unknown_chat(self, db_session, directory):
        with pytest.raises(NotFound):
            await GroupChatService(db_session, directory).leave("missing", ALICE)

    async def test_former_member_can_be_added_back(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)
        await service.leave(group_chat.id, CAROL)

        _, changed = await service.add_participant(group_chat.id, ALICE, "CAROL03")
        chat = await service.get_for_participant(group_chat.id, CAROL)

        assert changed is True
        assert CAROL in chat.participant_ids

    async def test_chat_stays_when_everyone_leaves(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)
        for user_id in (ALICE, BOB, CAROL):
            await service.leave(group_chat.id, user_id)

        chat = await service.group_repo.get_with_participants(group_chat.id)

        assert chat is not None
        assert chat.participant_ids == []

    async def test_update_name_and_clear_description(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)

        chat = await service.update(group_chat.id, BOB, name="  Liftoff  ", description="")

        assert chat.name == "Liftoff"
        assert chat.description is None

    async def test_update_by_non_participant(self, db_session, directory, group_chat):
        with pytest.raises(NotAMember):
            await GroupChatService(db_session, directory).update(group_chat.id, DAVE, name="Mine")


@pytest.mark.asyncio
class TestReading:
    """Test cases for reading group messages and unread counts."""

    async def test_unread_excludes_own_messages(self, db_session, directory, group_chat):
        messages = MessageService(db_session, directory)
        await messages.send_group(ALICE, group_chat.id, "one")
        await messages.send_group(ALICE, group_chat.id, "two")
        service = GroupChatService(db_session, directory)

        assert await service.unread_total(ALICE) == 0
        assert await service.unread_total(BOB) == 2

    async def test_reading_marks_messages_read(self, db_session, directory, group_chat):
        messages = MessageService(db_session, directory)
        await messages.send_group(ALICE, group_chat.id, "one")
        await messages.send_group(CAROL, group_chat.id, "two")
        service = GroupChatService(db_session, directory)

        result = await service.get_messages(group_chat.id, BOB)

        assert [m.content for m in result] == ["one", "two"]
        assert all(BOB in m.read_by for m in result)
        assert await service.unread_total(BOB) == 0
        assert await service.unread_total(CAROL) == 1

    async def test_reading_with_mark_read_false(self, db_session, directory, group_chat):
        await MessageService(db_session, directory).send_group(ALICE, group_chat.id, "one")
        service = GroupChatService(db_session, directory)

        result = await service.get_messages(group_chat.id, BOB, mark_read=False)

        assert BOB not in result[0].read_by
        assert await service.unread_total(BOB) == 1

    async def test_mark_read_reports_new_receipts(self, db_session, directory, group_chat):
        messages = MessageService(db_session, directory)
        await messages.send_group(ALICE, group_chat.id, "one")
        await messages.send_group(ALICE, group_chat.id, "two")
        service = GroupChatService(db_session, directory)

        assert await service.mark_read(group_chat.id, BOB) == 2
        assert await service.mark_read(group_chat.id, BOB) == 0
        assert await service.mark_read(group_chat.id, ALICE) == 0

    async def test_former_member_sees_history_until_leaving(self, db_session, directory, group_chat):
        messages = MessageService(db_session, directory)
        service = GroupChatService(db_session, directory)
        await messages.send_group(ALICE, group_chat.id, "before")
        await service.leave(group_chat.id, CAROL)
        await messages.send_group(ALICE, group_chat.id, "after")

        result = await service.get_messages(group_chat.id, CAROL)

        assert [m.content for m in result] == ["before"]
        # Former members neither mark read nor count unread
        assert CAROL not in result[0].read_by
        assert await service.unread_total(CAROL) == 0

    async def test_never_member_cannot_read(self, db_session, directory, group_chat):
        with pytest.raises(NotAMember):
            await GroupChatService(db_session, directory).get_messages(group_chat.id, DAVE)

    async def test_former_member_cannot_mark_read(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)
        await service.leave(group_chat.id, CAROL)

        with pytest.raises(NotAMember):
            await service.mark_read(group_chat.id, CAROL)


@pytest.mark.asyncio
class TestListGroupChats:
    """Test cases for the group chat listing."""

    async def test_list_only_current_memberships(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)
        other = await service.create(BOB, "Side project", None, ["DAVE04"])
        await service.leave(group_chat.id, CAROL)

        bob_chats = await service.list_group_chats(BOB)
        carol_chats = await service.list_group_chats(CAROL)

        assert {c["id"] for c in bob_chats} == {group_chat.id, other.id}
        assert carol_chats == []

    async def test_list_carries_unread_and_participants(self, db_session, directory, group_chat):
        message = await MessageService(db_session, directory).send_group(ALICE, group_chat.id, "hi")

        entries = await GroupChatService(db_session, directory).list_group_chats(BOB)

        assert entries[0]["unread_count"] == 1
        assert entries[0]["last_message"].id == message.id
        assert sorted(p.display_name for p in entries[0]["participants"]) == ["Alice", "Bob", "Carol"]

    async def test_list_orders_by_last_activity(self, db_session, directory, group_chat):
        service = GroupChatService(db_session, directory)
        other = await service.create(ALICE, "Later", None, ["BOB02"])
        await MessageService(db_session, directory).send_group(ALICE, group_chat.id, "bump")

        entries = await service.list_group_chats(ALICE)

        assert [e["id"] for e in entries] == [group_chat.id, other.id]
