"""
API v1 router exports.
Provides API endpoint routers.
"""
from collab_chat.api.v1 import messages, group_chats, blocks

__all__ = [
    "messages",
    "group_chats",
    "blocks",
]
