"""
Dependency injection for FastAPI routes.
Provides reusable dependencies for authentication and the user directory.
"""
import logging
from typing import Optional

from fastapi import Depends, Header, HTTPException, status

from collab_chat.core.exceptions import AccountSuspended
from collab_chat.core.security import (
    JWTValidationError,
    SecurityException,
    decode_access_token,
    extract_token_from_header,
)
from collab_chat.core.user_directory import UserDirectoryClient, user_directory

logger = logging.getLogger(__name__)


def get_user_directory() -> UserDirectoryClient:
    """User directory client; overridden in tests."""
    return user_directory


async def get_current_user(
    authorization: Optional[str] = Header(None),
    directory: UserDirectoryClient = Depends(get_user_directory)
) -> dict:
    """
    Dependency to get the current authenticated user.

    Flow:
    1. Decode the Bearer JWT locally (the "sub" claim is the user id)
    2. Ask the user directory whether the account is active

    Returns:
        Dictionary with the caller's "id"

    Raises:
        HTTPException: 401 if the token is missing or invalid
        AccountSuspended: If the account is inactive or unknown

    Example:
        ```python
        @router.get("/protected")
        async def protected_route(current_user: dict = Depends(get_current_user)):
            return {"user": current_user["id"]}
        ```
    """
    if not authorization:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing authorization header",
            headers={"WWW-Authenticate": "Bearer"},
        )

    try:
        token = extract_token_from_header(authorization)
        payload = decode_access_token(token)
    except (SecurityException, JWTValidationError) as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )

    user_id = payload["user_id"]
    if not await directory.is_active(user_id):
        logger.info(f"[AUTH] Refused inactive or unknown account {user_id}")
        raise AccountSuspended()

    return {"id": user_id}
