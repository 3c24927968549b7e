"""
Message service containing business logic for messaging operations.
Handles sending, editing and deleting direct and group messages.
"""
import logging
from typing import Union

from sqlalchemy.ext.asyncio import AsyncSession

from collab_chat.core.exceptions import Blocked, Forbidden, InvalidParticipant, NotFound
from collab_chat.core.user_directory import (
    UserDirectoryClient,
    UserDirectoryException,
    user_directory
)
from collab_chat.models.group_message import GroupMessage
from collab_chat.models.message import Message
from collab_chat.repositories.block_repo import BlockRepository
from collab_chat.repositories.conversation_repo import ConversationRepository
from collab_chat.repositories.group_chat_repo import GroupChatRepository
from collab_chat.repositories.message_repo import GroupMessageRepository, MessageRepository
from collab_chat.services.conversation_service import ConversationRef, ConversationService
from collab_chat.services.group_chat_service import GroupChatService
from collab_chat.utils.datetime_utils import utc_now
from collab_chat.utils.validators import validate_message_content

logger = logging.getLogger(__name__)


class MessageService:
    """Service for message operations with business logic."""

    def __init__(self, db: AsyncSession, directory: UserDirectoryClient = user_directory):
        """
        Initialize message service.

        Args:
            db: Database session
            directory: User directory client
        """
        self.db = db
        self.directory = directory
        self.message_repo = MessageRepository(db)
        self.group_message_repo = GroupMessageRepository(db)
        self.conversation_repo = ConversationRepository(db)
        self.group_repo = GroupChatRepository(db)
        self.block_repo = BlockRepository(db)
        self.conversations = ConversationService(db, directory)
        self.group_chats = GroupChatService(db, directory)

    # ------------------------------------------------------------------
    # Direct messages
    # ------------------------------------------------------------------

    async def send_direct(
        self,
        sender_id: str,
        target: Union[ConversationRef, str],
        content: str
    ) -> Message:
        """
        Send a direct message.

        Args:
            sender_id: Acting user
            target: A resolved ConversationRef, or the receiver's user id
            content: Message text

        Returns:
            The stored message (read=False)

        Raises:
            ValidationError: Empty or oversized content
            InvalidParticipant: Sender is not in the conversation, or receiver is invalid
            Blocked: A block exists in either direction
        """
        content = validate_message_content(content)

        if isinstance(target, str):
            ref = await self.conversations.resolve(sender_id, target)
        else:
            ref = target
            if sender_id not in ref.participant_ids:
                raise InvalidParticipant("You are not a participant in this conversation")

        receiver_id = next(uid for uid in ref.participant_ids if uid != sender_id)

        # Re-checked here since a ref may have been resolved before a block was created
        if await self.block_repo.is_either_blocked(sender_id, receiver_id):
            raise Blocked()

        conversation = await self.conversations.materialize(ref)

        message = await self.message_repo.create(
            conversation_id=conversation.id,
            sender_id=sender_id,
            receiver_id=receiver_id,
            content=content,
            is_read=False
        )
        await self.conversation_repo.advance_last_message(
            conversation.id, message.id, message.created_at
        )

        logger.info(
            f"[MESSAGE_SERVICE] Message {message.id} sent in conversation {conversation.id}"
        )
        return message

    async def _get_own_message(self, message_id: str, requester_id: str) -> Message:
        message = await self.message_repo.get(message_id)
        if message is None:
            raise NotFound("Message not found")
        if message.sender_id != requester_id:
            raise Forbidden()
        return message

    async def edit_message(self, message_id: str, requester_id: str, new_content: str) -> Message:
        """
        Replace the content of a direct message. Only the author may edit.

        Raises:
            NotFound: Unknown message
            Forbidden: Requester is not the author
            ValidationError: Empty or oversized content
        """
        message = await self._get_own_message(message_id, requester_id)

        message.content = validate_message_content(new_content)
        message.updated_at = utc_now()
        await self.db.flush()

        logger.info(f"[MESSAGE_SERVICE] Message {message_id} edited by {requester_id}")
        return message

    async def delete_message(self, message_id: str, requester_id: str) -> None:
        """
        Hard delete a direct message. Only the author may delete.

        If it was the conversation's last message, the conversation's
        last-message fields are recomputed from what remains.
        """
        message = await self._get_own_message(message_id, requester_id)
        conversation = await self.conversation_repo.get(message.conversation_id)
        was_last = conversation is not None and conversation.last_message_id == message.id

        await self.message_repo.delete(message.id)
        if was_last:
            await self.conversation_repo.recompute_last_message(conversation.id)

        logger.info(f"[MESSAGE_SERVICE] Message {message_id} deleted by {requester_id}")

    # ------------------------------------------------------------------
    # Group messages
    # ------------------------------------------------------------------

    async def _sender_username(self, sender_id: str) -> str:
        try:
            user = await self.directory.lookup_by_id(sender_id)
        except UserDirectoryException as e:
            logger.warning(f"[MESSAGE_SERVICE] Username lookup failed for {sender_id}: {e}")
            return sender_id
        return user.display_name if user else sender_id

    async def send_group(self, sender_id: str, chat_id: str, content: str) -> GroupMessage:
        """
        Send a message to a group chat.

        The sender is recorded as having read their own message. Group
        messages are not subject to blocks.

        Raises:
            NotFound: Unknown chat
            NotAMember: Sender is not a current participant
            ValidationError: Empty or oversized content
        """
        chat = await self.group_chats.get_for_participant(chat_id, sender_id)
        content = validate_message_content(content)

        message = await self.group_message_repo.create_with_sender_read(
            group_chat_id=chat.id,
            sender_id=sender_id,
            sender_username=await self._sender_username(sender_id),
            content=content
        )
        await self.group_repo.advance_last_message(chat.id, message.id, message.created_at)

        logger.info(f"[MESSAGE_SERVICE] Group message {message.id} sent in group {chat.id}")
        return message

    async def _get_own_group_message(self, message_id: str, requester_id: str) -> GroupMessage:
        message = await self.group_message_repo.get(message_id)
        if message is None:
            raise NotFound("Message not found")
        if message.sender_id != requester_id:
            raise Forbidden()
        return message

    async def edit_group_message(
        self, message_id: str, requester_id: str, new_content: str
    ) -> GroupMessage:
        """Replace the content of a group message. Only the author may edit."""
        message = await self._get_own_group_message(message_id, requester_id)

        message.content = validate_message_content(new_content)
        message.updated_at = utc_now()
        await self.db.flush()

        logger.info(f"[MESSAGE_SERVICE] Group message {message_id} edited by {requester_id}")
        return message

    async def delete_group_message(self, message_id: str, requester_id: str) -> None:
        """Hard delete a group message with its read receipts. Only the author may delete."""
        message = await self._get_own_group_message(message_id, requester_id)
        chat = await self.group_repo.get(message.group_chat_id)
        was_last = chat is not None and chat.last_message_id == message.id

        await self.group_message_repo.delete_with_reads(message.id)
        if was_last:
            await self.group_repo.recompute_last_message(chat.id)

        logger.info(f"[MESSAGE_SERVICE] Group message {message_id} deleted by {requester_id}")
