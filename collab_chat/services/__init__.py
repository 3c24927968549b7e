"""
Service layer exports.
Services hold the messaging business rules on top of the repositories.
"""
from collab_chat.services.block_service import BlockService
from collab_chat.services.conversation_service import (
    ConversationService,
    ConversationRef,
    PersistedConversation,
    ProspectiveConversation,
)
from collab_chat.services.group_chat_service import GroupChatService
from collab_chat.services.message_service import MessageService
from collab_chat.services.read_state import ThreadKind, ThreadSnapshot, thread_key, unread_count

__all__ = [
    "BlockService",
    "ConversationService",
    "ConversationRef",
    "PersistedConversation",
    "ProspectiveConversation",
    "GroupChatService",
    "MessageService",
    "ThreadKind",
    "ThreadSnapshot",
    "thread_key",
    "unread_count",
]
