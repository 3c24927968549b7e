"""
JWT token validation.
Decodes caller identity tokens locally with the shared secret.
"""
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt

from collab_chat.config import settings


class JWTValidationError(Exception):
    """Raised when JWT validation fails."""
    pass


def decode_access_token(token: str) -> Dict[str, Any]:
    """
    Decode and validate an access token.

    Args:
        token: JWT token string (from Authorization: Bearer header)

    Returns:
        Decoded payload with "user_id" taken from the "sub" claim
        (or "id" as a fallback)

    Raises:
        JWTValidationError: If token is invalid, expired or has no user id

    Example:
        ```python
        try:
            payload = decode_access_token(token)
            user_id = payload["user_id"]
        except JWTValidationError as e:
            raise HTTPException(401, detail=str(e))
        ```
    """
    try:
        payload = jwt.decode(
            token,
            settings.jwt_secret,
            algorithms=[settings.jwt_algorithm],
            options={"verify_exp": True, "verify_signature": True}
        )
    except jwt.ExpiredSignatureError:
        raise JWTValidationError("Token has expired - please login again")
    except jwt.InvalidSignatureError:
        raise JWTValidationError("Invalid token signature")
    except jwt.DecodeError as e:
        raise JWTValidationError(f"Failed to decode token: {str(e)}")
    except jwt.InvalidTokenError as e:
        raise JWTValidationError(f"Invalid token: {str(e)}")

    user_id = payload.get("sub") or payload.get("id")
    if not user_id:
        raise JWTValidationError(
            f"Token missing user ID claim ('sub' or 'id'). Available claims: {list(payload.keys())}"
        )

    return {**payload, "user_id": str(user_id)}


def create_access_token(user_id: str, expires_delta: Optional[timedelta] = None) -> str:
    """
    Issue a token for user_id.

    Token issuance belongs to the platform's auth service; this exists for
    local development and tests.
    """
    now = datetime.now(timezone.utc)
    payload = {
        "sub": user_id,
        "iat": now,
        "exp": now + (expires_delta or timedelta(hours=1)),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


class SecurityException(Exception):
    """Raised when the Authorization header is malformed."""
    pass


def extract_token_from_header(authorization: str) -> str:
    """
    Extract JWT token from Authorization header.

    Args:
        authorization: Authorization header value (e.g., "Bearer <token>")

    Returns:
        Extracted token

    Raises:
        SecurityException: If header format is invalid
    """
    if not authorization:
        raise SecurityException("Missing authorization header")

    parts = authorization.split()

    if len(parts) != 2 or parts[0].lower() != "bearer":
        raise SecurityException("Invalid authorization header format")

    return parts[1]
