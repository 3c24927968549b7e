"""
Read-state computation.

Pure functions shared by the server and the sync client. A thread counts
towards the unread badge only when it has unread messages, its latest
message was written by someone else, and that message arrived after the
user last viewed the thread.
"""
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Iterable, Mapping, Optional

from collab_chat.utils.datetime_utils import is_strictly_after


class ThreadKind(str, Enum):
    """Kind of message thread."""
    DIRECT = "direct"
    GROUP = "group"


def thread_key(kind: ThreadKind, thread_id: str) -> str:
    """Watermark key for a thread, e.g. "direct:<id>" or "group:<id>"."""
    return f"{ThreadKind(kind).value}:{thread_id}"


@dataclass(frozen=True)
class ThreadSnapshot:
    """What the listing endpoints report about one thread."""

    thread_id: str
    kind: ThreadKind
    unread_count: int
    last_message_sender_id: Optional[str] = None
    last_message_at: Optional[datetime] = None

    @property
    def key(self) -> str:
        return thread_key(self.kind, self.thread_id)


def thread_counts_as_unread(
    user_id: str,
    thread: ThreadSnapshot,
    watermark: Optional[datetime]
) -> bool:
    """
    Decide whether one thread contributes to user_id's badge.

    A thread with unread messages but no known last message and no
    watermark counts.
    """
    if thread.unread_count <= 0:
        return False
    if thread.last_message_sender_id == user_id:
        return False
    if watermark is None:
        return True
    return is_strictly_after(thread.last_message_at, watermark)


def unread_count(
    user_id: str,
    threads: Iterable[ThreadSnapshot],
    watermarks: Mapping[str, datetime]
) -> int:
    """
    Total unread messages for the badge.

    Args:
        user_id: Viewing user
        threads: Snapshots from the conversation and group listings
        watermarks: Last-viewed timestamps keyed by thread_key()

    Returns:
        Sum of unread_count over threads that count as unread
    """
    return sum(
        thread.unread_count
        for thread in threads
        if thread_counts_as_unread(user_id, thread, watermarks.get(thread.key))
    )
