"""
Collab Chat messaging server.

Direct conversations, group chats, read state and blocking for the creator
community platform.
"""
__version__ = "1.0.0"
