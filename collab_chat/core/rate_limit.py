"""
Rate limiting shared by the app and the routers.
"""
from slowapi import Limiter
from slowapi.util import get_remote_address

from collab_chat.config import settings

limiter = Limiter(
    key_func=get_remote_address,
    default_limits=[f"{settings.rate_limit_per_minute}/minute"],
    enabled=settings.rate_limit_enabled,
)

SEND_LIMIT = f"{settings.rate_limit_send_per_minute}/minute"
