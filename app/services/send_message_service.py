import logging
import os
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import InvalidMessageError, NotFoundError, NotParticipantError
from app.models.api.conversations import ConversationResponse
from app.models.api.messages import MAX_BODY_LENGTH, MessageResponse
from app.realtime.change_feed import ChangeFeed
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository
from app.repositories.profile_repository import ProfileRepository
from app.services.notification_emitter import NotificationEmitter

logger = logging.getLogger(__name__)

NOTIFICATION_PREVIEW_LENGTH = int(os.getenv("NOTIFICATION_PREVIEW_LENGTH", "50"))
NEW_MESSAGE_TITLE = "New Message"


def build_message_notification(
    sender_name: str,
    body: str,
    preview_length: int = NOTIFICATION_PREVIEW_LENGTH,
) -> str:
    """Notification text for a new message: a truncated preview, or a file label."""
    if not body:
        return f"{sender_name} sent a file"
    if len(body) > preview_length:
        body = body[:preview_length].rstrip() + "..."
    return f"{sender_name}: {body}"


class SendMessageService:
    """Service for appending messages to a conversation."""

    def __init__(
        self,
        db: AsyncSession,
        feed: Optional[ChangeFeed] = None,
        emitter: Optional[NotificationEmitter] = None,
    ):
        self.db = db
        self.message_repo = MessageRepository(db, feed)
        self.conversation_repo = ConversationRepository(db, feed)
        self.profile_repo = ProfileRepository(db, feed)
        self.emitter = emitter or NotificationEmitter(db, feed)

    async def send_message(
        self,
        conversation_id: UUID,
        sender_id: UUID,
        body: str,
        file_url: Optional[str] = None,
    ) -> MessageResponse:
        """
        Main business logic for sending a message:
        1. Validate content (text or attachment required)
        2. Verify the conversation exists and the sender is a party of it
        3. Save the message and bump the conversation
        4. Notify the other party (best-effort)
        5. Return the persisted message
        """
        # Step 1: Validate before touching the store
        body = (body or "").strip()
        file_url = (file_url or "").strip() or None
        if not body and not file_url:
            raise InvalidMessageError("Message must have text or a file attachment")
        if len(body) > MAX_BODY_LENGTH:
            raise InvalidMessageError(
                f"Message must be at most {MAX_BODY_LENGTH} characters"
            )

        # Step 2: Conversation and membership
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if not conversation.has_participant(sender_id):
            raise NotParticipantError(
                f"User {sender_id} is not part of conversation {conversation_id}"
            )

        # Step 3: Primary write
        message = await self.message_repo.append(
            MessageResponse(
                id=uuid4(),
                conversation_id=conversation.id,
                sender_id=sender_id,
                body=body,
                file_url=file_url,
                is_read=False,
                created_at=utcnow(),
            )
        )

        # Step 4: Secondary write, never rolls back the message
        await self._notify_recipient(conversation, message)

        return message

    async def _notify_recipient(
        self, conversation: ConversationResponse, message: MessageResponse
    ) -> None:
        recipient_id = conversation.counterpart_of(message.sender_id)
        try:
            sender = await self.profile_repo.get_by_id(message.sender_id)
            sender_name = sender.full_name if sender else "Someone"
            await self.emitter.emit(
                recipient_id,
                NEW_MESSAGE_TITLE,
                build_message_notification(sender_name, message.body),
            )
        except Exception:
            logger.warning(
                "Message %s saved but notifying %s failed",
                message.id,
                recipient_id,
                exc_info=True,
            )
            await self.db.rollback()
