"""
Polling sync client.

Keeps a client's view of its conversations and group chats eventually
consistent with the server. While a thread is open it is polled on a fixed
interval; closing the thread cancels the poll task and waits for it to end.
The unread badge is refreshed by a separate, slower background poll for as
long as the client is open.

Example:
    ```python
    api = MessagingAPIClient("http://localhost:8000", token)
    async with SyncClient(api, user_id="user-123", on_unread_count=show_badge) as sync:
        await sync.open_thread(ThreadKind.DIRECT, conversation_id, on_update=render)
    ```
"""
import asyncio
import inspect
import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Dict, List, Optional, Union

import httpx

from collab_chat.config import settings
from collab_chat.services.read_state import ThreadKind, ThreadSnapshot, unread_count
from collab_chat.sync.watermarks import WatermarkStore
from collab_chat.utils.datetime_utils import parse_iso_utc

logger = logging.getLogger(__name__)


class APIClientError(Exception):
    """Raised when the messaging API answers with an error status."""

    def __init__(self, status_code: int, detail: str, code: Optional[str] = None):
        self.status_code = status_code
        self.detail = detail
        self.code = code
        super().__init__(f"{status_code} {code or 'Error'}: {detail}")


class MessagingAPIClient:
    """
    Thin async client for the messaging HTTP API.

    Args:
        base_url: Server root, e.g. "http://localhost:8000"
        token: Bearer token identifying the user
        timeout: Request timeout in seconds
        transport: Optional httpx transport (tests use httpx.MockTransport)
    """

    def __init__(
        self,
        base_url: str,
        token: str,
        timeout: float = 10.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self._client = httpx.AsyncClient(
            base_url=f"{base_url.rstrip('/')}/api/v1",
            headers={"Authorization": f"Bearer {token}"},
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def __aenter__(self) -> "MessagingAPIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def _request(self, method: str, path: str, key: Optional[str] = None, **kwargs) -> Any:
        """
        Send a request and decode its JSON body.

        Args:
            key: If given, return only this field of the body

        Raises:
            APIClientError: Error status, a body that is not JSON, or a missing key
        """
        response = await self._client.request(method, path, **kwargs)

        if not response.is_success:
            try:
                body = response.json()
            except ValueError:
                body = {}
            raise APIClientError(
                response.status_code,
                body.get("detail", response.text[:200]) if isinstance(body, dict) else str(body),
                body.get("code") if isinstance(body, dict) else None
            )

        if response.status_code == 204 or not response.content:
            body = None
        else:
            try:
                body = response.json()
            except ValueError as e:
                raise APIClientError(
                    response.status_code, f"Response is not valid JSON: {e}", "InvalidResponse"
                ) from e

        if key is None:
            return body
        if not isinstance(body, dict) or key not in body:
            raise APIClientError(
                response.status_code, f"Response has no '{key}' field", "InvalidResponse"
            )
        return body[key]

    # Listings

    async def list_conversations(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/messages/conversations", key="data")

    async def list_group_chats(self) -> List[Dict[str, Any]]:
        return await self._request("GET", "/group-chats", key="data")

    async def list_threads(self, kind: ThreadKind) -> List[Dict[str, Any]]:
        if kind == ThreadKind.DIRECT:
            return await self.list_conversations()
        return await self.list_group_chats()

    # Thread messages

    async def get_conversation_messages(
        self, conversation_id: str, mark_read: bool = True
    ) -> List[Dict[str, Any]]:
        return await self._request(
            "GET",
            f"/messages/conversations/{conversation_id}",
            key="data",
            params={"mark_read": str(mark_read).lower()}
        )

    async def get_group_messages(
        self, chat_id: str, mark_read: bool = True
    ) -> List[Dict[str, Any]]:
        return await self._request(
            "GET",
            f"/group-chats/{chat_id}/messages",
            key="data",
            params={"mark_read": str(mark_read).lower()}
        )

    async def fetch_thread(
        self, kind: ThreadKind, thread_id: str, mark_read: bool = True
    ) -> List[Dict[str, Any]]:
        if kind == ThreadKind.DIRECT:
            return await self.get_conversation_messages(thread_id, mark_read)
        return await self.get_group_messages(thread_id, mark_read)

    # Read state

    async def mark_thread_read(self, kind: ThreadKind, thread_id: str) -> int:
        if kind == ThreadKind.DIRECT:
            path = f"/messages/conversations/{thread_id}/read"
        else:
            path = f"/group-chats/{thread_id}/read"
        return await self._request("POST", path, key="updatedCount")

    # Sending

    async def send_direct(self, receiver_id: str, content: str) -> Dict[str, Any]:
        return await self._request(
            "POST", "/messages", json={"receiver_id": receiver_id, "content": content}
        )

    async def send_group(self, chat_id: str, content: str) -> Dict[str, Any]:
        return await self._request(
            "POST", f"/group-chats/{chat_id}/messages", json={"content": content}
        )


def snapshot_from_listing(kind: ThreadKind, entry: Dict[str, Any]) -> ThreadSnapshot:
    """Build a ThreadSnapshot from one conversation or group chat listing entry."""
    last_message = entry.get("lastMessage") or {}
    return ThreadSnapshot(
        thread_id=entry["id"],
        kind=kind,
        unread_count=entry.get("unreadCount", 0),
        last_message_sender_id=last_message.get("senderId"),
        last_message_at=parse_iso_utc(entry.get("lastMessageAt")),
    )


@dataclass
class ThreadUpdate:
    """Result of one successful poll of an open thread."""

    kind: ThreadKind
    thread_id: str
    messages: List[Dict[str, Any]]
    threads: List[ThreadSnapshot] = field(default_factory=list)


UpdateCallback = Callable[[ThreadUpdate], Union[Awaitable[None], None]]
CountCallback = Callable[[int], Union[Awaitable[None], None]]

# A 2xx answer whose body does not have the expected shape
MALFORMED_RESPONSE_ERRORS = (KeyError, TypeError, AttributeError, ValueError)


class PollingTask:
    """
    Cancellable loop that calls poll_once every poll_interval seconds.

    poll_once must not raise for expected failures; close() cancels the
    task and waits for it, logging anything the task died with.
    """

    def __init__(self, poll_interval: float):
        self.poll_interval = poll_interval
        self._task: Optional[asyncio.Task] = None

    @property
    def name(self) -> str:
        return "poll"

    @property
    def is_running(self) -> bool:
        return self._task is not None and not self._task.done()

    def start(self) -> None:
        """Start polling. Calling start on a running task does nothing."""
        if self.is_running:
            return
        self._task = asyncio.create_task(self._run(), name=f"sync-{self.name}")

    async def _run(self) -> None:
        while True:
            await self.poll_once()
            await asyncio.sleep(self.poll_interval)

    async def poll_once(self) -> Any:
        raise NotImplementedError

    async def _notify(self, callback: Optional[Callable], value: Any) -> None:
        """Hand value to callback; a failing callback does not stop polling."""
        if callback is None:
            return
        try:
            result = callback(value)
            if inspect.isawaitable(result):
                await result
        except Exception as e:
            logger.error(
                f"[SYNC] Callback of {self.name} failed: {type(e).__name__}: {e}",
                exc_info=True
            )

    async def close(self) -> None:
        """Cancel the poll task and wait until it has finished."""
        if self._task is None:
            return
        task, self._task = self._task, None
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass
        except Exception as e:
            logger.error(
                f"[SYNC] {self.name} had stopped with {type(e).__name__}: {e}",
                exc_info=True
            )
        logger.debug(f"[SYNC] Closed {self.name}")


class ThreadSubscription(PollingTask):
    """
    Poll loop for one open thread.

    Each tick fetches the thread's messages (marking them read) and the
    listing of the same kind, then hands a ThreadUpdate to on_update.
    Network errors, API errors and malformed responses are logged and the
    next tick tries again.
    """

    def __init__(
        self,
        api: MessagingAPIClient,
        kind: ThreadKind,
        thread_id: str,
        on_update: Optional[UpdateCallback] = None,
        poll_interval: Optional[float] = None,
        watermarks: Optional[WatermarkStore] = None
    ):
        super().__init__(
            poll_interval if poll_interval is not None else settings.sync_poll_interval_seconds
        )
        self.api = api
        self.kind = ThreadKind(kind)
        self.thread_id = thread_id
        self.on_update = on_update
        self.watermarks = watermarks
        self.last_update: Optional[ThreadUpdate] = None

    @property
    def name(self) -> str:
        return f"{self.kind.value}:{self.thread_id}"

    async def poll_once(self) -> Optional[ThreadUpdate]:
        """
        Run a single poll.

        Returns:
            The update, or None if the poll failed
        """
        try:
            messages = await self.api.fetch_thread(self.kind, self.thread_id, mark_read=True)
            listing = await self.api.list_threads(self.kind)
            threads = [snapshot_from_listing(self.kind, entry) for entry in listing]
        except (httpx.HTTPError, APIClientError) as e:
            logger.warning(f"[SYNC] Poll of {self.name} failed: {e}")
            return None
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.warning(f"[SYNC] Poll of {self.name} failed on a malformed listing: {e!r}")
            return None

        if self.watermarks is not None:
            self.watermarks.mark_viewed(self.kind, self.thread_id)

        update = ThreadUpdate(
            kind=self.kind,
            thread_id=self.thread_id,
            messages=messages,
            threads=threads,
        )
        self.last_update = update
        await self._notify(self.on_update, update)
        return update


class UnreadBadgeSubscription(PollingTask):
    """
    Background refresh of the unread badge while the user is signed in.

    Runs independently of the open thread, on its own slower interval.
    """

    def __init__(
        self,
        refresh: Callable[[], Awaitable[int]],
        on_count: Optional[CountCallback] = None,
        poll_interval: Optional[float] = None
    ):
        super().__init__(
            poll_interval if poll_interval is not None else settings.unread_poll_interval_seconds
        )
        self.refresh = refresh
        self.on_count = on_count
        self.count: Optional[int] = None

    @property
    def name(self) -> str:
        return "unread-badge"

    async def poll_once(self) -> Optional[int]:
        """Refresh the badge once; None if the refresh failed."""
        try:
            count = await self.refresh()
        except (httpx.HTTPError, APIClientError) as e:
            logger.warning(f"[SYNC] Unread badge refresh failed: {e}")
            return None
        except MALFORMED_RESPONSE_ERRORS as e:
            logger.warning(f"[SYNC] Unread badge refresh failed on a malformed listing: {e!r}")
            return None

        self.count = count
        await self._notify(self.on_count, count)
        return count


class SyncClient:
    """
    Owns the API client, the watermarks, the unread badge poller and at
    most one open thread.

    Args:
        api: Messaging API client
        user_id: The signed-in user
        watermarks: Existing watermarks, e.g. loaded with WatermarkStore.from_json
        poll_interval: Seconds between polls of the open thread
        unread_poll_interval: Seconds between unread badge refreshes
        on_unread_count: Called with each refreshed badge total
    """

    def __init__(
        self,
        api: MessagingAPIClient,
        user_id: str,
        watermarks: Optional[WatermarkStore] = None,
        poll_interval: Optional[float] = None,
        unread_poll_interval: Optional[float] = None,
        on_unread_count: Optional[CountCallback] = None
    ):
        self.api = api
        self.user_id = user_id
        self.watermarks = watermarks if watermarks is not None else WatermarkStore()
        self.poll_interval = poll_interval
        self.subscription: Optional[ThreadSubscription] = None
        self.badge = UnreadBadgeSubscription(
            self.refresh_unread_count,
            on_count=on_unread_count,
            poll_interval=unread_poll_interval,
        )

    async def __aenter__(self) -> "SyncClient":
        self.start_unread_polling()
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        await self.close_thread()
        await self.stop_unread_polling()
        await self.api.aclose()

    def start_unread_polling(self) -> None:
        """Start refreshing the unread badge in the background."""
        self.badge.start()

    async def stop_unread_polling(self) -> None:
        await self.badge.close()

    @property
    def unread_badge(self) -> Optional[int]:
        """Last badge total from the background poller, None before the first refresh."""
        return self.badge.count

    async def open_thread(
        self,
        kind: ThreadKind,
        thread_id: str,
        on_update: Optional[UpdateCallback] = None
    ) -> ThreadSubscription:
        """
        Open a thread: close any previous one, mark it viewed and start polling.

        The first poll runs immediately and marks the thread read on the server.
        """
        await self.close_thread()

        kind = ThreadKind(kind)
        self.watermarks.mark_viewed(kind, thread_id)

        subscription = ThreadSubscription(
            self.api,
            kind,
            thread_id,
            on_update=on_update,
            poll_interval=self.poll_interval,
            watermarks=self.watermarks,
        )
        subscription.start()
        self.subscription = subscription
        logger.info(f"[SYNC] Opened {subscription.name}")
        return subscription

    async def close_thread(self) -> None:
        """Stop polling the open thread, if any."""
        if self.subscription is None:
            return
        subscription, self.subscription = self.subscription, None
        await subscription.close()

    async def mark_thread_read(self, kind: ThreadKind, thread_id: str) -> int:
        """Set the thread's watermark to now and mark it read on the server."""
        self.watermarks.mark_viewed(kind, thread_id)
        return await self.api.mark_thread_read(ThreadKind(kind), thread_id)

    async def list_threads(self) -> List[ThreadSnapshot]:
        """Snapshots of every direct conversation and group chat."""
        conversations = await self.api.list_conversations()
        group_chats = await self.api.list_group_chats()
        return (
            [snapshot_from_listing(ThreadKind.DIRECT, c) for c in conversations]
            + [snapshot_from_listing(ThreadKind.GROUP, g) for g in group_chats]
        )

    async def refresh_unread_count(self) -> int:
        """Compute the unread badge from fresh listings and local watermarks."""
        threads = await self.list_threads()
        return unread_count(self.user_id, threads, self.watermarks)
