"""Domain errors raised by the chat and notification services."""


class ChatServiceError(Exception):
    """Base class for errors surfaced to the caller."""


class InvalidMessageError(ChatServiceError, ValueError):
    """The message failed validation and was not persisted."""


class NotParticipantError(ChatServiceError):
    """The acting user is not a party of the conversation."""


class NotFoundError(ChatServiceError):
    """A referenced conversation, user or notification does not exist."""


class ConflictError(ChatServiceError):
    """Concurrent creation kept colliding; the caller should re-resolve."""


class InvalidConversationError(ChatServiceError, ValueError):
    """The two parties cannot form a conversation."""
