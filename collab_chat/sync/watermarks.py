"""
Client-held read watermarks.

A watermark is the last time the user viewed a thread. It lives on the
client, keyed per thread kind, and can be persisted as JSON between runs.
"""
import json
from datetime import datetime
from typing import Dict, Iterator, Mapping, Optional

from collab_chat.services.read_state import ThreadKind, thread_key
from collab_chat.utils.datetime_utils import ensure_utc, parse_iso_utc, to_iso_utc, utc_now


class WatermarkStore(Mapping[str, datetime]):
    """
    Map of thread key ("direct:<id>", "group:<id>") to last-viewed time.

    Usable anywhere a Mapping of watermarks is expected, including
    read_state.unread_count().
    """

    def __init__(self, initial: Optional[Mapping[str, datetime]] = None):
        self._watermarks: Dict[str, datetime] = {
            key: ensure_utc(value) for key, value in (initial or {}).items()
        }

    def __getitem__(self, key: str) -> datetime:
        return self._watermarks[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._watermarks)

    def __len__(self) -> int:
        return len(self._watermarks)

    def mark_viewed(
        self, kind: ThreadKind, thread_id: str, at: Optional[datetime] = None
    ) -> datetime:
        """
        Record that the user viewed a thread.

        Args:
            kind: Thread kind
            thread_id: Conversation or group chat id
            at: View time, defaults to now

        Returns:
            The stored watermark
        """
        at = ensure_utc(at) if at is not None else utc_now()
        self._watermarks[thread_key(kind, thread_id)] = at
        return at

    def get_watermark(self, kind: ThreadKind, thread_id: str) -> Optional[datetime]:
        return self._watermarks.get(thread_key(kind, thread_id))

    def forget(self, kind: ThreadKind, thread_id: str) -> None:
        self._watermarks.pop(thread_key(kind, thread_id), None)

    def to_json(self) -> str:
        """Serialize as a JSON object of key to ISO 8601 UTC timestamp."""
        return json.dumps(
            {key: to_iso_utc(value) for key, value in self._watermarks.items()},
            sort_keys=True
        )

    @classmethod
    def from_json(cls, data: str) -> "WatermarkStore":
        """
        Load a store written by to_json().

        Raises:
            ValueError: If data is not a JSON object of timestamps
        """
        raw = json.loads(data) if data else {}
        if not isinstance(raw, dict):
            raise ValueError("Watermark data must be a JSON object")
        return cls({key: parse_iso_utc(value) for key, value in raw.items() if value})
