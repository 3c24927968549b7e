"""
Tests for the polling sync client.
Uses httpx.MockTransport in place of the messaging server.
"""
import asyncio
from datetime import datetime, timedelta, timezone

import httpx
import pytest

from collab_chat.config import settings
from collab_chat.services.read_state import ThreadKind
from collab_chat.sync.client import (
    APIClientError,
    MessagingAPIClient,
    SyncClient,
    ThreadSubscription,
    snapshot_from_listing,
)
from collab_chat.sync.watermarks import WatermarkStore

ME = "user-alice"
LAST_AT = "2026-10-18T09:00:00Z"


class FakeServer:
    """Answers the messaging API routes the sync client uses."""

    def __init__(self):
        self.requests = []
        self.fail_with = None
        # Served one per request before any other answer
        self.queued = []
        self.conversations = [
            {
                "id": "conv-1",
                "unreadCount": 2,
                "lastMessage": {"senderId": "user-bob"},
                "lastMessageAt": LAST_AT,
            },
            {
                "id": "conv-2",
                "unreadCount": 1,
                "lastMessage": {"senderId": ME},
                "lastMessageAt": LAST_AT,
            },
        ]
        self.group_chats = [
            {
                "id": "group-1",
                "unreadCount": 3,
                "lastMessage": {"senderId": "user-carol"},
                "lastMessageAt": LAST_AT,
            },
        ]

    def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.queued:
            return self.queued.pop(0)
        if self.fail_with is not None:
            return self.fail_with

        path = request.url.path
        if path == "/api/v1/messages/conversations":
            return httpx.Response(200, json={"data": self.conversations})
        if path == "/api/v1/group-chats":
            return httpx.Response(200, json={"data": self.group_chats})
        if path.startswith("/api/v1/messages/conversations/") and path.endswith("/read"):
            return httpx.Response(200, json={"updatedCount": 2})
        if path.startswith("/api/v1/messages/conversations/"):
            return httpx.Response(200, json={"conversationId": "conv-1", "data": [{"id": "m1"}]})
        if path.startswith("/api/v1/group-chats/") and path.endswith("/messages"):
            return httpx.Response(200, json={"groupChatId": "group-1", "data": [{"id": "g1"}]})
        return httpx.Response(404, json={"detail": "Not found", "code": "NotFound"})

    def paths(self):
        return [r.url.path for r in self.requests]


@pytest.fixture
def server():
    return FakeServer()


@pytest.fixture
async def api(server):
    client = MessagingAPIClient(
        "http://chat.test", token="token-123", transport=httpx.MockTransport(server.handler)
    )
    yield client
    await client.aclose()


class TestSnapshotFromListing:

    def test_reads_camel_case_entry(self):
        snapshot = snapshot_from_listing(ThreadKind.DIRECT, {
            "id": "conv-1",
            "unreadCount": 4,
            "lastMessage": {"senderId": "user-bob"},
            "lastMessageAt": LAST_AT,
        })

        assert snapshot.key == "direct:conv-1"
        assert snapshot.unread_count == 4
        assert snapshot.last_message_sender_id == "user-bob"
        assert snapshot.last_message_at == datetime(2026, 10, 18, 9, 0, tzinfo=timezone.utc)

    def test_entry_without_messages(self):
        snapshot = snapshot_from_listing(ThreadKind.GROUP, {"id": "g", "lastMessage": None})

        assert snapshot.unread_count == 0
        assert snapshot.last_message_sender_id is None
        assert snapshot.last_message_at is None


@pytest.mark.asyncio
class TestMessagingAPIClient:

    async def test_sends_bearer_token(self, api, server):
        await api.list_conversations()

        assert server.requests[0].headers["Authorization"] == "Bearer token-123"

    async def test_mark_read_flag_is_sent(self, api, server):
        await api.fetch_thread(ThreadKind.DIRECT, "conv-1", mark_read=False)

        assert server.requests[0].url.params["mark_read"] == "false"

    async def test_error_response_raises(self, api, server):
        server.fail_with = httpx.Response(403, json={"detail": "You are not a member", "code": "NotAMember"})

        with pytest.raises(APIClientError) as exc_info:
            await api.get_group_messages("group-1")

        assert exc_info.value.status_code == 403
        assert exc_info.value.code == "NotAMember"

    async def test_mark_thread_read_returns_count(self, api):
        assert await api.mark_thread_read(ThreadKind.DIRECT, "conv-1") == 2

    async def test_non_json_body_raises_api_error(self, api, server):
        server.queued = [httpx.Response(200, text="<html>proxy</html>")]

        with pytest.raises(APIClientError) as exc_info:
            await api.list_conversations()

        assert exc_info.value.code == "InvalidResponse"

    async def test_body_without_data_raises_api_error(self, api, server):
        server.queued = [httpx.Response(200, json={"items": []})]

        with pytest.raises(APIClientError) as exc_info:
            await api.get_group_messages("group-1")

        assert exc_info.value.code == "InvalidResponse"


@pytest.mark.asyncio
class TestSyncClient:

    async def test_unread_badge_without_watermarks(self, api):
        sync = SyncClient(api, ME)

        # conv-2's last message is our own, so it does not count
        assert await sync.refresh_unread_count() == 5

    async def test_watermark_hides_viewed_thread(self, api):
        watermarks = WatermarkStore()
        watermarks.mark_viewed(ThreadKind.GROUP, "group-1", at=datetime(2026, 10, 18, 9, 5, tzinfo=timezone.utc))
        sync = SyncClient(api, ME, watermarks=watermarks)

        assert await sync.refresh_unread_count() == 2

    async def test_mark_thread_read_sets_watermark(self, api, server):
        sync = SyncClient(api, ME)

        await sync.mark_thread_read(ThreadKind.DIRECT, "conv-1")

        assert sync.watermarks.get_watermark(ThreadKind.DIRECT, "conv-1") is not None
        assert server.paths() == ["/api/v1/messages/conversations/conv-1/read"]

    async def test_open_thread_polls_until_closed(self, api, server):
        updates = []
        sync = SyncClient(api, ME, poll_interval=0.01)

        subscription = await sync.open_thread(ThreadKind.GROUP, "group-1", on_update=updates.append)
        for _ in range(100):
            if len(updates) >= 2:
                break
            await asyncio.sleep(0.01)
        await sync.close_thread()
        seen = len(server.requests)
        await asyncio.sleep(0.05)

        assert len(updates) >= 2
        assert updates[0].messages == [{"id": "g1"}]
        assert [t.thread_id for t in updates[0].threads] == ["group-1"]
        assert subscription.is_running is False
        assert sync.subscription is None
        # Nothing is polled after close returns
        assert len(server.requests) == seen

    async def test_opening_another_thread_closes_the_first(self, api):
        sync = SyncClient(api, ME, poll_interval=60)

        first = await sync.open_thread(ThreadKind.DIRECT, "conv-1")
        second = await sync.open_thread(ThreadKind.GROUP, "group-1")

        assert first.is_running is False
        assert second.is_running is True
        await sync.close_thread()

    async def test_context_manager_closes_everything(self, server):
        api = MessagingAPIClient("http://chat.test", "t", transport=httpx.MockTransport(server.handler))

        async with SyncClient(api, ME, poll_interval=60) as sync:
            subscription = await sync.open_thread(ThreadKind.DIRECT, "conv-1")

        assert subscription.is_running is False


@pytest.mark.asyncio
class TestThreadSubscription:

    async def test_poll_failure_is_logged_and_survived(self, api, server, caplog):
        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1", poll_interval=60)
        server.fail_with = httpx.Response(500, text="boom")

        assert await subscription.poll_once() is None
        assert "failed" in caplog.text

        server.fail_with = None
        update = await subscription.poll_once()
        assert update.messages == [{"id": "m1"}]

    async def test_transport_error_is_survived(self, server):
        def broken(request):
            raise httpx.ConnectError("unreachable", request=request)

        api = MessagingAPIClient("http://chat.test", "t", transport=httpx.MockTransport(broken))
        subscription = ThreadSubscription(api, ThreadKind.GROUP, "group-1", poll_interval=60)

        assert await subscription.poll_once() is None
        await api.aclose()

    async def test_poll_advances_watermark(self, api):
        watermarks = WatermarkStore()
        before = datetime.now(timezone.utc) - timedelta(seconds=1)
        subscription = ThreadSubscription(
            api, ThreadKind.DIRECT, "conv-1", poll_interval=60, watermarks=watermarks
        )

        await subscription.poll_once()

        assert watermarks.get_watermark(ThreadKind.DIRECT, "conv-1") > before

    async def test_async_callback_is_awaited(self, api):
        received = []

        async def on_update(update):
            received.append(update.thread_id)

        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1", on_update=on_update, poll_interval=60)
        await subscription.poll_once()

        assert received == ["conv-1"]

    async def test_close_before_start_is_noop(self, api):
        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1")

        await subscription.close()

        assert subscription.is_running is False

    async def test_bad_body_is_retried_on_next_tick(self, api, server):
        server.queued = [
            httpx.Response(200, text="<html>proxy</html>"),
            httpx.Response(200, text="<html>proxy</html>"),
        ]
        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1", poll_interval=0.01)

        subscription.start()
        for _ in range(100):
            if subscription.last_update is not None:
                break
            await asyncio.sleep(0.01)

        assert subscription.is_running is True
        assert subscription.last_update.messages == [{"id": "m1"}]
        assert len(server.requests) > 2
        await subscription.close()

    async def test_malformed_listing_entry_is_survived(self, api, server, caplog):
        server.conversations = [{"unreadCount": 1}]
        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1", poll_interval=60)

        assert await subscription.poll_once() is None
        assert "malformed" in caplog.text

    async def test_failing_callback_does_not_stop_polling(self, api, caplog):
        calls = []

        def on_update(update):
            calls.append(update)
            raise RuntimeError("render failed")

        subscription = ThreadSubscription(
            api, ThreadKind.DIRECT, "conv-1", on_update=on_update, poll_interval=0.01
        )
        subscription.start()
        for _ in range(100):
            if len(calls) >= 2:
                break
            await asyncio.sleep(0.01)

        assert len(calls) >= 2
        assert subscription.is_running is True
        assert "render failed" in caplog.text
        await subscription.close()

    async def test_close_after_task_died_does_not_raise(self, api, caplog):
        subscription = ThreadSubscription(api, ThreadKind.DIRECT, "conv-1", poll_interval=60)

        async def broken_poll():
            raise RuntimeError("unexpected")

        subscription.poll_once = broken_poll
        subscription.start()
        for _ in range(100):
            if not subscription.is_running:
                break
            await asyncio.sleep(0.01)

        await subscription.close()

        assert subscription.is_running is False
        assert "stopped with RuntimeError" in caplog.text


@pytest.mark.asyncio
class TestUnreadBadgePolling:

    async def test_default_interval_comes_from_settings(self, api):
        sync = SyncClient(api, ME)

        assert sync.badge.poll_interval == settings.unread_poll_interval_seconds
        assert settings.unread_poll_interval_seconds == 10.0

    async def test_badge_refreshes_in_background_while_open(self, server):
        counts = []
        api = MessagingAPIClient("http://chat.test", "t", transport=httpx.MockTransport(server.handler))

        async with SyncClient(api, ME, unread_poll_interval=0.01, on_unread_count=counts.append) as sync:
            for _ in range(100):
                if len(counts) >= 2:
                    break
                await asyncio.sleep(0.01)
            assert sync.badge.is_running is True

        assert counts[:2] == [5, 5]
        assert sync.unread_badge == 5
        assert sync.badge.is_running is False

    async def test_badge_keeps_running_across_threads(self, api):
        sync = SyncClient(api, ME, poll_interval=60, unread_poll_interval=60)
        sync.start_unread_polling()

        await sync.open_thread(ThreadKind.DIRECT, "conv-1")
        await sync.close_thread()

        assert sync.badge.is_running is True
        await sync.stop_unread_polling()
        assert sync.badge.is_running is False

    async def test_failed_refresh_keeps_last_count(self, api, server):
        sync = SyncClient(api, ME)

        assert await sync.badge.poll_once() == 5
        server.fail_with = httpx.Response(502, text="bad gateway")

        assert await sync.badge.poll_once() is None
        assert sync.unread_badge == 5
