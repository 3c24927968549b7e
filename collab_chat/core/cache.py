"""
Redis cache management.
Provides connection pooling and helper functions for caching operations.
An empty redis_url disables caching; every call then degrades to a miss.
"""
import json
import logging
from typing import Any, Optional

from redis import asyncio as aioredis
from redis.exceptions import RedisError

from collab_chat.config import settings

logger = logging.getLogger(__name__)


class RedisCache:
    """Redis cache manager with connection pooling."""

    def __init__(self):
        """Initialize Redis connection pool."""
        self.redis: Optional[aioredis.Redis] = None

    async def connect(self) -> None:
        """Establish connection to Redis."""
        if not settings.redis_url:
            logger.info("[CACHE] No Redis URL provided - running without Redis cache")
            self.redis = None
            return

        try:
            self.redis = aioredis.from_url(
                settings.redis_url,
                password=settings.redis_password if settings.redis_password else None,
                encoding="utf-8",
                decode_responses=True,
                max_connections=50,
            )
            await self.redis.ping()
            logger.info("[CACHE] Connected to Redis successfully")
        except (RedisError, OSError) as e:
            logger.warning(f"[CACHE] Could not connect to Redis: {e}; running without cache")
            self.redis = None

    async def disconnect(self) -> None:
        """Close Redis connection."""
        if self.redis:
            await self.redis.aclose()
            self.redis = None

    async def get(self, key: str) -> Optional[Any]:
        """
        Get value from cache.

        Args:
            key: Cache key

        Returns:
            Cached value, or None on a miss or a Redis error
        """
        if not self.redis:
            return None

        try:
            value = await self.redis.get(key)
        except RedisError as e:
            logger.warning(f"[CACHE] GET {key} failed: {e}")
            return None

        if value:
            try:
                return json.loads(value)
            except json.JSONDecodeError:
                return value
        return None

    async def set(
        self,
        key: str,
        value: Any,
        ttl: Optional[int] = None
    ) -> bool:
        """
        Set value in cache with optional TTL.

        Args:
            key: Cache key
            value: Value to cache
            ttl: Time to live in seconds

        Returns:
            True if stored, False when caching is off or Redis fails
        """
        if not self.redis:
            return False

        if isinstance(value, (dict, list)):
            value = json.dumps(value)

        try:
            if ttl:
                return bool(await self.redis.setex(key, ttl, value))
            return bool(await self.redis.set(key, value))
        except RedisError as e:
            logger.warning(f"[CACHE] SET {key} failed: {e}")
            return False


# Global cache instance
cache = RedisCache()


async def cache_user_data(user_id: str, user_data: dict) -> bool:
    """Cache a user directory record."""
    return await cache.set(f"user:{user_id}", user_data, ttl=settings.cache_user_ttl)


async def get_cached_user_data(user_id: str) -> Optional[dict]:
    """Get a cached user directory record."""
    return await cache.get(f"user:{user_id}")

