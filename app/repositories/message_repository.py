from typing import Any, Dict, Iterable, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.messages import MessageResponse
from app.models.db.conversation_model import ConversationModel
from app.models.db.message_model import MessageModel
from app.realtime.change_feed import ChangeFeed, EventType
from app.repositories.base_repository import BaseRepository
from app.repositories.conversation_repository import ConversationRepository


class MessageRepository(BaseRepository[MessageModel, MessageResponse]):
    """Repository for message operations."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        super().__init__(db, MessageModel, feed)

    async def get_by_conversation(
        self, conversation_id: UUID
    ) -> List[MessageResponse]:
        """Get all messages for a conversation in creation order."""
        query = (
            select(self.model_class)
            .where(self.model_class.conversation_id == conversation_id)
            .order_by(self.model_class.created_at, self.model_class.id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        db_models = result.scalars().all()
        return [self._to_pydantic(db_model) for db_model in db_models]

    async def append(self, message: MessageResponse) -> MessageResponse:
        """Insert a message and bump its conversation in one commit."""
        db_model = self._from_pydantic(message)
        self.db.add(db_model)
        # A send stamped earlier may commit later; never move updated_at back
        await self.db.execute(
            update(ConversationModel)
            .where(
                ConversationModel.id == message.conversation_id,
                ConversationModel.updated_at < message.created_at,
            )
            .values(updated_at=message.created_at)
        )
        await self.db.commit()
        await self.db.refresh(db_model)

        created = self._to_pydantic(db_model)
        await self._publish(EventType.INSERT, [created])

        conversation_repo = ConversationRepository(self.db, self.feed)
        conversation = await conversation_repo.get_by_id(message.conversation_id)
        if conversation:
            await conversation_repo._publish(EventType.UPDATE, [conversation])
        return created

    async def mark_read(
        self, conversation_id: UUID, reader_id: UUID
    ) -> List[MessageResponse]:
        """Flip is_read on every unread message the reader did not send.

        Returns only the rows this call changed, so concurrent readers never
        both claim the same message.
        """
        result = await self.db.execute(
            update(self.model_class)
            .where(
                self.model_class.conversation_id == conversation_id,
                self.model_class.sender_id != reader_id,
                self.model_class.is_read.is_(False),
            )
            .values(is_read=True)
            .returning(self.model_class.id)
        )
        ids = list(result.scalars().all())
        await self.db.commit()
        if not ids:
            return []

        updated = await self.get_by_ids(ids)
        await self._publish(EventType.UPDATE, updated)
        return updated

    async def latest_by_conversation(
        self, conversation_ids: Iterable[UUID]
    ) -> Dict[UUID, MessageResponse]:
        """Latest message of each conversation, keyed by conversation id."""
        conversation_ids = list(conversation_ids)
        if not conversation_ids:
            return {}
        latest = (
            select(
                self.model_class.conversation_id,
                func.max(self.model_class.created_at).label("latest_at"),
            )
            .where(self.model_class.conversation_id.in_(conversation_ids))
            .group_by(self.model_class.conversation_id)
            .subquery()
        )
        query = select(self.model_class).join(
            latest,
            (self.model_class.conversation_id == latest.c.conversation_id)
            & (self.model_class.created_at == latest.c.latest_at),
        ).execution_options(populate_existing=True)
        result = await self.db.execute(query)

        previews: Dict[UUID, MessageResponse] = {}
        for db_model in result.scalars().all():
            current = previews.get(db_model.conversation_id)
            # Same-timestamp ties resolve the way get_by_conversation orders them
            if current is None or str(db_model.id) > str(current.id):
                previews[db_model.conversation_id] = self._to_pydantic(db_model)
        return previews

    async def unread_counts(
        self, conversation_ids: Iterable[UUID], reader_id: UUID
    ) -> Dict[UUID, int]:
        """Unread messages addressed to reader_id, per conversation."""
        conversation_ids = list(conversation_ids)
        if not conversation_ids:
            return {}
        query = (
            select(self.model_class.conversation_id, func.count(self.model_class.id))
            .where(
                self.model_class.conversation_id.in_(conversation_ids),
                self.model_class.sender_id != reader_id,
                self.model_class.is_read.is_(False),
            )
            .group_by(self.model_class.conversation_id)
        )
        result = await self.db.execute(query)
        return {conversation_id: count for conversation_id, count in result.all()}

    def _to_pydantic(self, db_model: Any) -> MessageResponse:
        """Convert SQLAlchemy MessageModel to Pydantic MessageResponse."""
        return MessageResponse(
            id=db_model.id,
            conversation_id=db_model.conversation_id,
            sender_id=db_model.sender_id,
            body=db_model.body,
            file_url=db_model.file_url,
            is_read=db_model.is_read,
            created_at=db_model.created_at,
        )

    def _from_pydantic(self, pydantic_model: MessageResponse) -> MessageModel:
        """Convert Pydantic MessageResponse to SQLAlchemy MessageModel."""
        return MessageModel(
            id=pydantic_model.id,
            conversation_id=pydantic_model.conversation_id,
            sender_id=pydantic_model.sender_id,
            body=pydantic_model.body,
            file_url=pydantic_model.file_url,
            is_read=pydantic_model.is_read,
            created_at=pydantic_model.created_at,
        )
