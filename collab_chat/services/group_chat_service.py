"""
Group chat service.

Membership rules:
- the creator is always a participant and there is no admin role
- any current participant may add members, rename or re-describe the chat
- leaving stamps left_at; former members keep read access to the history
  up to the moment they left
- a chat may drop to zero participants, it then stays dormant
"""
import logging
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.exceptions import EmptyMembership, InvalidParticipant, NotAMember, NotFound
from collab_chat.core.user_directory import UserDirectoryClient, user_directory
from collab_chat.models.group_chat import GroupChat
from collab_chat.models.group_message import GroupMessage
from collab_chat.repositories.group_chat_repo import GroupChatRepository
from collab_chat.repositories.message_repo import GroupMessageRepository
from collab_chat.schemas.user import UserSummary
from collab_chat.utils.validators import validate_group_description, validate_group_name

logger = logging.getLogger(__name__)


class GroupChatService:
    """Service for group chat membership and reading."""

    def __init__(self, db: AsyncSession, directory: UserDirectoryClient = user_directory):
        self.db = db
        self.directory = directory
        self.group_repo = GroupChatRepository(db)
        self.group_message_repo = GroupMessageRepository(db)

    async def _get_chat(self, chat_id: str) -> GroupChat:
        chat = await self.group_repo.get_with_participants(chat_id)
        if chat is None:
            raise NotFound("Group chat not found")
        return chat

    async def get_for_participant(self, chat_id: str, user_id: str) -> GroupChat:
        """
        Get a chat the user currently participates in.

        Raises:
            NotFound: Unknown chat
            NotAMember: User is not a current participant
        """
        chat = await self._get_chat(chat_id)
        if not chat.is_participant(user_id):
            raise NotAMember()
        return chat

    async def create(
        self,
        owner_id: str,
        name: str,
        description: Optional[str],
        member_public_ids: List[str]
    ) -> GroupChat:
        """
        Create a group chat owned by owner_id.

        Args:
            owner_id: Creator, always a participant
            name: Group name, non-empty after trimming
            description: Optional description
            member_public_ids: Public ids of invitees

        Returns:
            The created chat

        Raises:
            ValidationError: Empty or oversized name or description
            EmptyMembership: No invitee resolved to a user other than the owner
        """
        name = validate_group_name(name)
        description = validate_group_description(description)

        member_ids: List[str] = []
        for public_id in dict.fromkeys(member_public_ids or []):
            user = await self.directory.lookup_by_public_id(public_id)
            if user is None:
                logger.info(f"[GROUP_CHAT_SERVICE] Skipping unknown public id {public_id!r}")
                continue
            if user.id == owner_id or user.id in member_ids:
                continue
            member_ids.append(user.id)

        if not member_ids:
            raise EmptyMembership()

        chat = await self.group_repo.create_with_participants(
            name=name,
            description=description,
            created_by=owner_id,
            member_ids=member_ids
        )
        logger.info(
            f"[GROUP_CHAT_SERVICE] {owner_id} created group {chat.id} with {len(member_ids)} members"
        )
        return chat

    async def add_participant(
        self, chat_id: str, requester_id: str, new_member_public_id: str
    ) -> Tuple[str, bool]:
        """
        Add a member by public id. Adding a current participant is a no-op.

        Returns:
            Tuple of (new member's user id, whether membership changed)

        Raises:
            NotFound: Unknown chat
            NotAMember: Requester is not a current participant
            InvalidParticipant: Public id is unknown
        """
        await self.get_for_participant(chat_id, requester_id)

        user = await self.directory.lookup_by_public_id(new_member_public_id)
        if user is None:
            raise InvalidParticipant("User not found")

        changed = await self.group_repo.add_participant(chat_id, user.id)
        if changed:
            await self.group_repo.touch(chat_id)
            logger.info(f"[GROUP_CHAT_SERVICE] {requester_id} added {user.id} to group {chat_id}")
        return user.id, changed

    async def leave(self, chat_id: str, requester_id: str) -> bool:
        """
        Leave a chat. Leaving a chat you are not in is a no-op.

        Returns:
            True if the requester was a participant and has now left
        """
        await self._get_chat(chat_id)

        left = await self.group_repo.mark_left(chat_id, requester_id)
        if left:
            await self.group_repo.touch(chat_id)
            logger.info(f"[GROUP_CHAT_SERVICE] {requester_id} left group {chat_id}")
        return left

    async def update(
        self,
        chat_id: str,
        requester_id: str,
        name: Optional[str] = None,
        description: Optional[str] = None
    ) -> GroupChat:
        """
        Rename or re-describe a chat. None leaves a field unchanged;
        a blank description clears it.
        """
        chat = await self.get_for_participant(chat_id, requester_id)

        if name is not None:
            chat.name = validate_group_name(name)
        if description is not None:
            chat.description = validate_group_description(description)

        await self.db.flush()
        await self.group_repo.touch(chat.id)
        return chat

    async def list_group_chats(self, user_id: str) -> List[Dict[str, Any]]:
        """
        List chats the user currently participates in, most recent activity first.
        """
        chats = await self.group_repo.get_user_group_chats(user_id)
        if not chats:
            return []

        unread_counts = await self.group_message_repo.get_unread_counts(
            user_id, [c.id for c in chats]
        )
        last_messages = {
            m.id: m
            for m in await self.group_message_repo.get_many(
                [c.last_message_id for c in chats if c.last_message_id]
            )
        }
        summaries = await self.directory.get_summaries(
            [uid for c in chats for uid in c.participant_ids]
        )

        return [
            self.to_dict(
                chat,
                summaries,
                last_message=last_messages.get(chat.last_message_id),
                unread_count=unread_counts.get(chat.id, 0)
            )
            for chat in chats
        ]

    async def describe(self, chat: GroupChat) -> Dict[str, Any]:
        """Response dict for a single chat, without listing metadata."""
        summaries = await self.directory.get_summaries(chat.participant_ids)
        return self.to_dict(chat, summaries)

    @staticmethod
    def to_dict(
        chat: GroupChat,
        summaries: Dict[str, UserSummary],
        last_message: Optional[GroupMessage] = None,
        unread_count: int = 0
    ) -> Dict[str, Any]:
        return {
            "id": chat.id,
            "name": chat.name,
            "description": chat.description,
            "created_by": chat.created_by,
            "participant_ids": chat.participant_ids,
            "participants": [summaries[uid] for uid in chat.participant_ids if uid in summaries],
            "last_message": last_message,
            "unread_count": unread_count,
            "created_at": chat.created_at,
            "updated_at": chat.updated_at,
            "last_message_at": chat.last_message_at,
        }

    async def get_messages(
        self, chat_id: str, user_id: str, mark_read: bool = True
    ) -> List[GroupMessage]:
        """
        Get the messages of a chat visible to user_id, oldest first.

        Current participants see the whole history and, unless mark_read is
        False, mark it read. Former participants see messages up to the
        moment they left and never mark anything read.

        Raises:
            NotFound: Unknown chat
            NotAMember: User has never been a participant
        """
        chat = await self._get_chat(chat_id)
        membership = chat.membership_for(user_id)
        if membership is None:
            raise NotAMember()

        if membership.is_active:
            if mark_read:
                await self.group_message_repo.mark_group_read(chat.id, user_id)
            return await self.group_message_repo.get_group_messages(chat.id)

        return await self.group_message_repo.get_group_messages(chat.id, until=membership.left_at)

    async def mark_read(self, chat_id: str, user_id: str) -> int:
        """
        Add user_id to read_by of every message in the chat.

        Returns:
            Number of messages newly marked read
        """
        chat = await self.get_for_participant(chat_id, user_id)
        return await self.group_message_repo.mark_group_read(chat.id, user_id)

    async def unread_total(self, user_id: str) -> int:
        """Unread group messages across the chats user_id currently participates in."""
        group_ids = await self.group_repo.get_active_group_ids(user_id)
        counts = await self.group_message_repo.get_unread_counts(user_id, group_ids)
        return sum(counts.values())
