# SQLAlchemy database models
from .conversation_model import ConversationModel
from .message_model import MessageModel
from .notification_model import NotificationModel
from .profile_model import ProfileModel

__all__ = ["ConversationModel", "MessageModel", "NotificationModel", "ProfileModel"]
