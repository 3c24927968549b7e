"""
Repository layer exports.
Provides database access layer for the application.
"""
from collab_chat.repositories.base import BaseRepository
from collab_chat.repositories.conversation_repo import ConversationRepository
from collab_chat.repositories.message_repo import (
    MessageRepository,
    GroupMessageRepository
)
from collab_chat.repositories.group_chat_repo import GroupChatRepository
from collab_chat.repositories.block_repo import BlockRepository

__all__ = [
    "BaseRepository",
    "ConversationRepository",
    "MessageRepository",
    "GroupMessageRepository",
    "GroupChatRepository",
    "BlockRepository",
]
