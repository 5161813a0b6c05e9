from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.conversations import ConversationResponse
from app.models.db.conversation_model import ConversationModel, participant_pair
from app.realtime.change_feed import ChangeFeed
from app.repositories.base_repository import BaseRepository


class ConversationRepository(BaseRepository[ConversationModel, ConversationResponse]):
    """Repository for conversation operations."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        super().__init__(db, ConversationModel, feed)

    async def get_by_pair(
        self, first_id: UUID, second_id: UUID
    ) -> Optional[ConversationResponse]:
        """Find the conversation between two users, whichever role each holds."""
        query = select(self.model_class).where(
            self.model_class.participant_pair == participant_pair(first_id, second_id)
        ).execution_options(populate_existing=True)
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def list_for_user(
        self,
        user_id: UUID,
        limit: Optional[int] = 50,
        offset: Optional[int] = 0,
    ) -> List[ConversationResponse]:
        """List the user's conversations, most recently active first."""
        query = (
            select(self.model_class)
            .where(
                or_(
                    self.model_class.mentor_id == user_id,
                    self.model_class.student_id == user_id,
                )
            )
            .order_by(self.model_class.updated_at.desc(), self.model_class.id)
            .execution_options(populate_existing=True)
        )

        # Apply pagination
        if limit is not None:
            query = query.limit(limit)
        if offset is not None:
            query = query.offset(offset)

        result = await self.db.execute(query)
        db_models = result.scalars().all()
        return [self._to_pydantic(db_model) for db_model in db_models]

    def _to_pydantic(self, db_model: Any) -> ConversationResponse:
        """Convert SQLAlchemy ConversationModel to Pydantic ConversationResponse."""
        return ConversationResponse(
            id=db_model.id,
            mentor_id=db_model.mentor_id,
            student_id=db_model.student_id,
            mentorship_request_id=db_model.mentorship_request_id,
            created_at=db_model.created_at,
            updated_at=db_model.updated_at,
        )

    def _from_pydantic(self, pydantic_model: ConversationResponse) -> ConversationModel:
        """Convert Pydantic ConversationResponse to SQLAlchemy ConversationModel."""
        return ConversationModel(
            id=pydantic_model.id,
            mentor_id=pydantic_model.mentor_id,
            student_id=pydantic_model.student_id,
            participant_pair=participant_pair(
                pydantic_model.mentor_id, pydantic_model.student_id
            ),
            mentorship_request_id=pydantic_model.mentorship_request_id,
            created_at=pydantic_model.created_at,
            updated_at=pydantic_model.updated_at,
        )
