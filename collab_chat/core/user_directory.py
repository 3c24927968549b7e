"""
User directory API client.

The platform's user service owns identities, display names, public ids and
account status. Messaging never stores users locally; it asks this client.
"""
import logging
from typing import Any, Dict, List, Optional

import httpx

from collab_chat.config import settings
from collab_chat.core.cache import cache_user_data, get_cached_user_data
from collab_chat.schemas.user import UserSummary

logger = logging.getLogger(__name__)


class UserDirectoryException(Exception):
    """Raised when the user service cannot be reached or answers with an error."""
    pass


class UserDirectoryClient:
    """
    Client for the platform user service.

    Uses API key authentication (server-to-server). Lookups by internal id
    are cached in Redis when a cache is configured.
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        """
        Initialize the client.

        Args:
            base_url: User service base URL (defaults to settings)
            api_key: API key sent as X-API-Key (defaults to settings)
            timeout: Request timeout in seconds (defaults to settings)
            transport: Optional httpx transport, used by tests
        """
        self.base_url = (base_url or settings.user_directory_api_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.user_directory_api_key
        self.timeout = timeout or settings.user_directory_timeout
        self._transport = transport

    def _get_headers(self) -> Dict[str, str]:
        return {
            "X-API-Key": self.api_key,
            "Content-Type": "application/json",
        }

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.base_url,
            headers=self._get_headers(),
            timeout=self.timeout,
            transport=self._transport,
        )

    async def _get_json(self, path: str, params: Optional[Dict[str, Any]] = None) -> Optional[Dict[str, Any]]:
        """
        GET a user service resource.

        Returns:
            Decoded JSON body, or None on 404

        Raises:
            UserDirectoryException: On transport errors or non-404 error statuses
        """
        async with self._client() as client:
            try:
                response = await client.get(path, params=params)
            except httpx.RequestError as e:
                raise UserDirectoryException(f"User service unavailable: {str(e)}")

        if response.status_code == 404:
            return None

        if not response.is_success:
            raise UserDirectoryException(
                f"User service error: {response.status_code} - {response.text[:200]}"
            )

        return response.json()

    async def lookup_by_id(self, user_id: str, use_cache: bool = True) -> Optional[UserSummary]:
        """
        Look up a user by internal id.

        Args:
            user_id: Internal user ID
            use_cache: Whether to check the cache first

        Returns:
            UserSummary or None if the user does not exist

        Example:
            ```python
            user = await user_directory.lookup_by_id("user-123")
            print(user.display_name)
            ```
        """
        if not user_id:
            return None

        if use_cache:
            cached = await get_cached_user_data(user_id)
            if cached:
                return UserSummary.from_directory(cached)

        data = await self._get_json(f"/api/v1/users/{user_id}")
        if data is None:
            return None

        record = data.get("user", data)
        await cache_user_data(user_id, record)
        return UserSummary.from_directory(record)

    async def lookup_by_public_id(self, public_id: str) -> Optional[UserSummary]:
        """
        Look up a user by the public (display) identifier users share with each other.

        Returns:
            UserSummary or None for an exact-match miss
        """
        public_id = (public_id or "").strip()
        if not public_id:
            return None

        data = await self._get_json("/api/v1/users/search", params={"publicId": public_id})
        if not data or not data.get("user"):
            return None

        return UserSummary.from_directory(data["user"])

    async def lookup_by_username(self, query: str, limit: int = 20) -> List[UserSummary]:
        """
        Search users by username fragment.

        Args:
            query: Search text
            limit: Maximum number of results (clamped to 1..100)

        Returns:
            Matching users, possibly empty
        """
        query = (query or "").strip()
        if not query:
            return []

        limit = max(1, min(limit, 100))
        data = await self._get_json(
            "/api/v1/users/search",
            params={"username": query, "limit": limit}
        )
        if not data:
            return []

        return [UserSummary.from_directory(user) for user in data.get("users", [])]

    async def is_active(self, user_id: str) -> bool:
        """
        Check whether a user's account may act.

        Unknown users are treated as inactive. Account status is never read
        from cache.
        """
        user = await self.lookup_by_id(user_id, use_cache=False)
        return user is not None and user.is_active

    async def get_summaries(self, user_ids: List[str]) -> Dict[str, UserSummary]:
        """
        Resolve several ids, skipping unknown ones.

        Returns:
            Mapping of user id to summary
        """
        summaries: Dict[str, UserSummary] = {}
        for user_id in dict.fromkeys(user_ids):
            user = await self.lookup_by_id(user_id)
            if user is not None:
                summaries[user_id] = user
        return summaries

    async def health_check(self) -> bool:
        """
        Check if the user service is available.

        Returns:
            True if healthy, False otherwise
        """
        async with self._client() as client:
            try:
                response = await client.get("/health")
                return response.status_code == 200
            except httpx.RequestError as e:
                logger.warning(f"[USER_DIRECTORY] Health check failed: {e}")
                return False


# Global user directory client instance
user_directory = UserDirectoryClient()
