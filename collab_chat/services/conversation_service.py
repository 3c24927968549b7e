"""
Conversation service.

Resolves the direct conversation between two users, materializes it on the
first message, and serves the listing and thread views of direct messages.
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Tuple, Union

from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.exceptions import Blocked, InvalidParticipant, NotAMember, NotFound
from collab_chat.core.user_directory import UserDirectoryClient, user_directory
from collab_chat.models.conversation import Conversation, canonical_pair
from collab_chat.models.message import Message
from collab_chat.repositories.block_repo import BlockRepository
from collab_chat.repositories.conversation_repo import ConversationRepository
from collab_chat.repositories.message_repo import MessageRepository

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PersistedConversation:
    """A conversation that already exists in storage."""

    id: str
    participant_ids: Tuple[str, str]


@dataclass(frozen=True)
class ProspectiveConversation:
    """A pair with no conversation yet; the first message will create it."""

    participant_ids: Tuple[str, str]


ConversationRef = Union[PersistedConversation, ProspectiveConversation]


class ConversationService:
    """Service for direct conversation operations."""

    def __init__(self, db: AsyncSession, directory: UserDirectoryClient = user_directory):
        """
        Initialize conversation service.

        Args:
            db: Database session
            directory: User directory client
        """
        self.db = db
        self.directory = directory
        self.conversation_repo = ConversationRepository(db)
        self.message_repo = MessageRepository(db)
        self.block_repo = BlockRepository(db)

    async def resolve(self, requester_id: str, other_id: str) -> ConversationRef:
        """
        Find the conversation between requester and other user without creating it.

        Args:
            requester_id: Acting user
            other_id: The other participant

        Returns:
            PersistedConversation if one exists, otherwise ProspectiveConversation

        Raises:
            InvalidParticipant: Ids are empty or equal, or other_id is unknown
            Blocked: A block exists in either direction
        """
        if not requester_id or not other_id:
            raise InvalidParticipant("Both participants are required")
        if requester_id == other_id:
            raise InvalidParticipant("You cannot start a conversation with yourself")

        other = await self.directory.lookup_by_id(other_id)
        if other is None:
            raise InvalidParticipant("User not found")

        if await self.block_repo.is_either_blocked(requester_id, other_id):
            raise Blocked()

        pair = canonical_pair(requester_id, other_id)
        conversation = await self.conversation_repo.find_by_participants(*pair)
        if conversation is not None:
            return PersistedConversation(id=conversation.id, participant_ids=pair)

        return ProspectiveConversation(participant_ids=pair)

    async def materialize(self, ref: ConversationRef) -> Conversation:
        """
        Return the stored conversation for ref, creating it if ref is prospective.

        Concurrent materializations of one pair all return the same row.

        Raises:
            NotFound: A persisted ref points at no stored conversation
            InvalidParticipant: The stored conversation belongs to another pair
        """
        if isinstance(ref, PersistedConversation):
            conversation = await self.conversation_repo.get(ref.id)
            if conversation is None:
                raise NotFound("Conversation not found")
            stored_pair = (conversation.user_low_id, conversation.user_high_id)
            if stored_pair != canonical_pair(*ref.participant_ids):
                raise InvalidParticipant("Conversation does not match its participants")
            return conversation

        conversation, created = await self.conversation_repo.get_or_create_for_pair(
            *ref.participant_ids
        )
        if created:
            logger.info(
                f"[CONVERSATION_SERVICE] Created conversation {conversation.id} "
                f"for pair {ref.participant_ids}"
            )
        return conversation

    async def _get_for_participant(self, conversation_id: str, user_id: str) -> Conversation:
        conversation = await self.conversation_repo.get(conversation_id)
        if conversation is None:
            raise NotFound("Conversation not found")
        if not conversation.has_participant(user_id):
            raise NotAMember("You are not a participant in this conversation")
        return conversation

    async def list_conversations(self, user_id: str) -> List[Dict[str, Any]]:
        """
        List a user's conversations, most recent activity first.

        Conversations with a user the requester has blocked are hidden.

        Returns:
            One dict per conversation with other_participant, last_message and unread_count
        """
        conversations = await self.conversation_repo.get_user_conversations(user_id)
        blocked = set(await self.block_repo.get_blocked_user_ids(user_id))
        visible = [c for c in conversations if c.other_participant(user_id) not in blocked]

        if not visible:
            return []

        unread_counts = await self.message_repo.get_unread_counts(
            user_id, [c.id for c in visible]
        )
        last_messages = {
            m.id: m
            for m in await self.message_repo.get_many(
                [c.last_message_id for c in visible if c.last_message_id]
            )
        }
        others = await self.directory.get_summaries(
            [c.other_participant(user_id) for c in visible]
        )

        return [
            {
                "id": c.id,
                "participant_ids": c.participant_ids,
                "other_participant": others.get(c.other_participant(user_id)),
                "last_message": last_messages.get(c.last_message_id),
                "unread_count": unread_counts.get(c.id, 0),
                "created_at": c.created_at,
                "last_message_at": c.last_message_at,
            }
            for c in visible
        ]

    async def get_messages(
        self, conversation_id: str, user_id: str, mark_read: bool = True
    ) -> List[Message]:
        """
        Get a conversation's messages in ascending time order.

        Messages from users the reader has blocked are left out; the reader's
        own messages are always included. Reading marks the reader's received
        messages as read unless mark_read is False.

        Raises:
            NotFound: Unknown conversation
            NotAMember: Reader is not one of the two participants
        """
        conversation = await self._get_for_participant(conversation_id, user_id)

        if mark_read:
            await self.message_repo.mark_conversation_read(conversation.id, user_id)

        messages = await self.message_repo.get_conversation_messages(conversation.id)
        blocked = set(await self.block_repo.get_blocked_user_ids(user_id))
        if not blocked:
            return messages

        return [m for m in messages if m.sender_id == user_id or m.sender_id not in blocked]

    async def mark_read(self, conversation_id: str, user_id: str) -> int:
        """
        Mark every message received by user_id in the conversation as read.

        Returns:
            Number of messages flipped to read
        """
        conversation = await self._get_for_participant(conversation_id, user_id)
        updated = await self.message_repo.mark_conversation_read(conversation.id, user_id)
        logger.debug(f"[CONVERSATION_SERVICE] Marked {updated} messages read in {conversation_id}")
        return updated

    async def unread_total(self, user_id: str) -> int:
        """Total unread direct messages received by user_id."""
        return await self.message_repo.count_unread_total(user_id)
