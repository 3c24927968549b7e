"""
Messaging error taxonomy.

Every error is terminal: services raise it, nothing inside the core retries,
and the API layer renders it through a single exception handler registered
in main.py. Details are written to be shown to end users as-is.
"""
from fastapi import status


class MessagingError(Exception):
    """Base class for all caller-visible messaging failures."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    default_detail: str = "Request could not be completed"

    def __init__(self, detail: str | None = None):
        self.detail = detail or self.default_detail
        super().__init__(self.detail)

    @property
    def code(self) -> str:
        return type(self).__name__


class InvalidParticipant(MessagingError):
    """Participants are equal, empty, or unknown to the user directory."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "Invalid conversation participant"


class Blocked(MessagingError):
    """
    A block relation exists between sender and receiver.

    The detail is intentionally generic so callers cannot learn
    which side of the pair created the block.
    """

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Message could not be sent"

    def __init__(self, detail: str | None = None):
        # Never accept a custom detail that might leak block direction
        super().__init__(None)


class NotAMember(MessagingError):
    """Requester is not a current participant of the thread."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You are not a member of this chat"


class EmptyMembership(MessagingError):
    """No invited member resolved to a valid user other than the creator."""

    status_code = status.HTTP_400_BAD_REQUEST
    default_detail = "A group chat needs at least one other valid member"


class Forbidden(MessagingError):
    """Requester tried to mutate a message they did not author."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "You can only modify your own messages"


class NotFound(MessagingError):
    """Unknown conversation, group chat, message or user id."""

    status_code = status.HTTP_404_NOT_FOUND
    default_detail = "Not found"


class AccountSuspended(MessagingError):
    """Acting user's account is inactive."""

    status_code = status.HTTP_403_FORBIDDEN
    default_detail = "Your account is not active"


class ValidationError(MessagingError):
    """Empty or oversized content, names or descriptions."""

    status_code = status.HTTP_422_UNPROCESSABLE_ENTITY
    default_detail = "Invalid content"
