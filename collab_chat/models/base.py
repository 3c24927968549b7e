"""
Base model classes and mixins for SQLAlchemy ORM.
Provides common functionality for all messaging models.
"""
import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.ext.asyncio import AsyncAttrs
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from collab_chat.utils.datetime_utils import utc_now


def generate_id() -> str:
    """Generate a new opaque string id (UUID4 text)."""
    return str(uuid.uuid4())


class Base(AsyncAttrs, DeclarativeBase):
    """
    Base class for all SQLAlchemy models.

    Includes AsyncAttrs mixin for async relationship access.
    """
    pass


class IDMixin:
    """
    Mixin for string ID primary key.

    User ids come from the external user directory and are plain strings,
    so every local id is a string as well.
    """

    id: Mapped[str] = mapped_column(
        String(255),
        primary_key=True,
        default=generate_id,
        doc="String ID primary key"
    )


class CreatedAtMixin:
    """
    Mixin for a Python-side created_at timestamp.

    Set from the application clock (microsecond precision) rather than a
    server default so message order within a thread is stable.
    """

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        default=utc_now,
        nullable=False,
        index=True,
        doc="Timestamp when the record was created"
    )
