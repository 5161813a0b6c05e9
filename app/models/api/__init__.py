# API models for request/response contracts
from .conversations import (
    ConversationResponse,
    ConversationSummary,
    FindOrCreateConversationRequest,
    LastMessagePreview,
)
from .events import (
    EventRsvpEvent,
    EventAcknowledgement,
    MentorshipAcceptedEvent,
    MentorshipRequestedEvent,
    SessionBookedEvent,
)
from .messages import MarkReadResponse, MessageResponse, SendMessageRequest
from .notifications import (
    MarkNotificationsReadResponse,
    NotificationResponse,
    UnreadCountResponse,
)
from .profiles import ProfileResponse

__all__ = [
    "FindOrCreateConversationRequest",
    "ConversationResponse",
    "ConversationSummary",
    "LastMessagePreview",
    "SendMessageRequest",
    "MessageResponse",
    "MarkReadResponse",
    "NotificationResponse",
    "UnreadCountResponse",
    "MarkNotificationsReadResponse",
    "ProfileResponse",
    "MentorshipRequestedEvent",
    "MentorshipAcceptedEvent",
    "SessionBookedEvent",
    "EventRsvpEvent",
    "EventAcknowledgement",
]
