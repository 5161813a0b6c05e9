from typing import Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, NotParticipantError
from app.realtime.change_feed import ChangeFeed
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository


class MarkMessagesReadService:
    """Flips read state for messages addressed to the reader."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.conversation_repo = ConversationRepository(db, feed)
        self.message_repo = MessageRepository(db, feed)

    async def mark_read(self, conversation_id: UUID, reader_id: UUID) -> int:
        """Mark read every message in the conversation not sent by reader_id.

        Idempotent; returns how many messages changed state.
        """
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if not conversation.has_participant(reader_id):
            raise NotParticipantError(
                f"User {reader_id} is not part of conversation {conversation_id}"
            )

        updated = await self.message_repo.mark_read(conversation_id, reader_id)
        return len(updated)
