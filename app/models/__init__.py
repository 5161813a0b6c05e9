# Export all models
from .api import (
    ConversationResponse,
    ConversationSummary,
    FindOrCreateConversationRequest,
    MessageResponse,
    NotificationResponse,
    ProfileResponse,
    SendMessageRequest,
)
from .db import (
    ConversationModel,
    MessageModel,
    NotificationModel,
    ProfileModel,
)

__all__ = [
    # API models
    "FindOrCreateConversationRequest",
    "ConversationResponse",
    "ConversationSummary",
    "SendMessageRequest",
    "MessageResponse",
    "NotificationResponse",
    "ProfileResponse",
    # DB models
    "ConversationModel",
    "MessageModel",
    "NotificationModel",
    "ProfileModel",
]
