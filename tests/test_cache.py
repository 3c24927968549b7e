"""
Tests for the Redis cache wrapper.
"""
import httpx
import pytest
from redis.exceptions import ConnectionError as RedisConnectionError

from collab_chat.core.cache import RedisCache, cache
from collab_chat.core.user_directory import UserDirectoryClient


@pytest.fixture
def broken_redis(mocker):
    redis = mocker.AsyncMock()
    redis.get.side_effect = RedisConnectionError("connection reset")
    redis.set.side_effect = RedisConnectionError("connection reset")
    redis.setex.side_effect = RedisConnectionError("connection reset")
    return redis


@pytest.mark.asyncio
class TestRedisCache:

    async def test_disabled_cache_is_a_miss(self):
        disabled = RedisCache()

        assert await disabled.get("user:u1") is None
        assert await disabled.set("user:u1", {"id": "u1"}) is False

    async def test_round_trips_json(self, mocker):
        enabled = RedisCache()
        enabled.redis = mocker.AsyncMock()
        enabled.redis.get.return_value = '{"id": "u1"}'

        assert await enabled.get("user:u1") == {"id": "u1"}

    async def test_redis_error_on_get_is_a_miss(self, broken_redis, caplog):
        dropped = RedisCache()
        dropped.redis = broken_redis

        assert await dropped.get("user:u1") is None
        assert "GET user:u1 failed" in caplog.text

    async def test_redis_error_on_set_returns_false(self, broken_redis):
        dropped = RedisCache()
        dropped.redis = broken_redis

        assert await dropped.set("user:u1", {"id": "u1"}, ttl=60) is False
        assert await dropped.set("user:u1", {"id": "u1"}) is False

    async def test_lookup_survives_redis_outage(self, broken_redis, monkeypatch):
        monkeypatch.setattr(cache, "redis", broken_redis)
        client = UserDirectoryClient(
            base_url="http://users.test",
            api_key="secret",
            transport=httpx.MockTransport(
                lambda request: httpx.Response(200, json={"user": {"id": "u1", "displayName": "Ada"}})
            ),
        )

        user = await client.lookup_by_id("u1")

        assert user.display_name == "Ada"
