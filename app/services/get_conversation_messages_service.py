from typing import Awaitable, Callable, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, NotParticipantError
from app.models.api.messages import MessageResponse
from app.models.db.message_model import MessageModel
from app.realtime.change_feed import (
    ChangeEvent,
    ChangeFeed,
    DedupingCallback,
    EventType,
    Subscription,
    get_change_feed,
)
from app.repositories.conversation_repository import ConversationRepository
from app.repositories.message_repository import MessageRepository


class GetConversationMessagesService:
    """Service for reading a conversation's history and following new messages."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.feed = feed or get_change_feed()
        self.conversation_repo = ConversationRepository(db, self.feed)
        self.message_repo = MessageRepository(db, self.feed)

    async def get_conversation_messages(
        self, conversation_id: UUID, actor_id: UUID
    ) -> List[MessageResponse]:
        """
        Get messages for a specific conversation:

        1. Verify conversation exists and the actor is a party of it
        2. Return every message, oldest first
        """
        conversation = await self.conversation_repo.get_by_id(conversation_id)
        if not conversation:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        if not conversation.has_participant(actor_id):
            raise NotParticipantError(
                f"User {actor_id} is not part of conversation {conversation_id}"
            )

        return await self.message_repo.get_by_conversation(conversation_id)

    async def subscribe(
        self,
        conversation_id: UUID,
        on_message: Callable[[MessageResponse], Awaitable[None]],
        dedupe: bool = True,
    ) -> Subscription:
        """Deliver every message inserted into the conversation from now on.

        Delivery is at-least-once; with dedupe a redelivered message id is
        passed to on_message only once. Close the returned subscription to
        stop delivery.
        """
        deliver = DedupingCallback(on_message) if dedupe else on_message

        async def on_change(event: ChangeEvent) -> None:
            await deliver(event.row)

        return await self.feed.subscribe(
            MessageModel.__tablename__,
            {"conversation_id": conversation_id},
            [EventType.INSERT],
            on_change,
        )
