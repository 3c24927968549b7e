"""
Custom validators for message and group chat text.
Provides reusable validation functions shared by the services.
"""
import re
from typing import Optional

from collab_chat.config import settings
from collab_chat.core.exceptions import ValidationError


def sanitize_text(text: str, max_length: Optional[int] = None) -> str:
    """
    Strip script-like markup from user text.

    Args:
        text: Text to sanitize
        max_length: Optional maximum length

    Returns:
        Sanitized text
    """
    if not text:
        return text

    text = re.sub(r'<script[^>]*>.*?</script>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'<iframe[^>]*>.*?</iframe>', '', text, flags=re.DOTALL | re.IGNORECASE)
    text = re.sub(r'javascript:', '', text, flags=re.IGNORECASE)

    if max_length and len(text) > max_length:
        text = text[:max_length]

    return text.strip()


def validate_message_content(content: Optional[str]) -> str:
    """
    Validate message content for send and edit.

    Args:
        content: Raw message text

    Returns:
        Content with surrounding whitespace removed

    Raises:
        ValidationError: If content is empty, whitespace only, or too long
    """
    if content is None or len(content.strip()) == 0:
        raise ValidationError("Message content cannot be empty")

    content = content.strip()
    if len(content) > settings.max_message_length:
        raise ValidationError(
            f"Message content exceeds {settings.max_message_length} characters"
        )

    return content


def validate_group_name(name: Optional[str]) -> str:
    """Validate a group chat name; returns the trimmed name."""
    if name is None or len(name.strip()) == 0:
        raise ValidationError("Group chat name cannot be empty")

    name = sanitize_text(name)
    if not name:
        raise ValidationError("Group chat name cannot be empty")
    if len(name) > settings.max_group_name_length:
        raise ValidationError(
            f"Group chat name exceeds {settings.max_group_name_length} characters"
        )

    return name


def validate_group_description(description: Optional[str]) -> Optional[str]:
    """Validate an optional group description; blank becomes None."""
    if description is None:
        return None

    description = sanitize_text(description)
    if not description:
        return None
    if len(description) > settings.max_group_description_length:
        raise ValidationError(
            f"Group chat description exceeds {settings.max_group_description_length} characters"
        )

    return description
