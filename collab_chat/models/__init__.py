"""
SQLAlchemy models for the Collab Chat messaging server.

All models must be imported here for Alembic auto-generation to work.
"""

# Import Base first
from collab_chat.models.base import Base, IDMixin, CreatedAtMixin

# Import all models (order matters for relationships)
from collab_chat.models.conversation import Conversation, canonical_pair
from collab_chat.models.message import Message
from collab_chat.models.group_chat import GroupChat, GroupChatParticipant
from collab_chat.models.group_message import GroupMessage, GroupMessageRead
from collab_chat.models.user_block import UserBlock

__all__ = [
    # Base classes
    "Base",
    "IDMixin",
    "CreatedAtMixin",
    # Direct messages
    "Conversation",
    "canonical_pair",
    "Message",
    # Group chats
    "GroupChat",
    "GroupChatParticipant",
    "GroupMessage",
    "GroupMessageRead",
    # User blocking
    "UserBlock",
]
