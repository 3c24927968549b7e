"""
Polling sync client for messaging front ends.
"""
from collab_chat.sync.client import (
    APIClientError,
    MessagingAPIClient,
    SyncClient,
    ThreadSubscription,
    ThreadUpdate,
)
from collab_chat.sync.watermarks import WatermarkStore

__all__ = [
    "APIClientError",
    "MessagingAPIClient",
    "SyncClient",
    "ThreadSubscription",
    "ThreadUpdate",
    "WatermarkStore",
]
