from typing import Any, List, Optional
from uuid import UUID

from sqlalchemy import func, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.models.api.notifications import NotificationResponse
from app.models.db.notification_model import NotificationModel
from app.realtime.change_feed import ChangeFeed, EventType
from app.repositories.base_repository import BaseRepository


class NotificationRepository(BaseRepository[NotificationModel, NotificationResponse]):
    """Repository for notification operations."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        super().__init__(db, NotificationModel, feed)

    async def count_unread(self, user_id: UUID) -> int:
        """Count the user's unread notifications."""
        query = select(func.count(self.model_class.id)).where(
            self.model_class.user_id == user_id,
            self.model_class.is_read.is_(False),
        )
        result = await self.db.execute(query)
        return result.scalar_one()

    async def list_for_user(
        self,
        user_id: UUID,
        limit: Optional[int] = 50,
        offset: Optional[int] = 0,
        unread_only: bool = False,
    ) -> List[NotificationResponse]:
        """List the user's notifications, newest first."""
        query = select(self.model_class).where(self.model_class.user_id == user_id)
        if unread_only:
            query = query.where(self.model_class.is_read.is_(False))
        query = query.order_by(
            self.model_class.created_at.desc(), self.model_class.id.desc()
        ).execution_options(populate_existing=True)

        # Apply pagination
        if limit is not None:
            query = query.limit(limit)
        if offset is not None:
            query = query.offset(offset)

        result = await self.db.execute(query)
        return [self._to_pydantic(db_model) for db_model in result.scalars().all()]

    async def mark_read(
        self, notification_id: UUID, user_id: UUID
    ) -> Optional[NotificationResponse]:
        """Mark one of the user's notifications read.

        Returns None when the notification does not exist or belongs to
        another user.
        """
        notification = await self.get_by_id(notification_id)
        if notification is None or notification.user_id != user_id:
            return None
        if notification.is_read:
            return notification

        result = await self.db.execute(
            update(self.model_class)
            .where(
                self.model_class.id == notification_id,
                self.model_class.is_read.is_(False),
            )
            .values(is_read=True)
            .returning(self.model_class.id)
        )
        changed = result.scalar_one_or_none() is not None
        await self.db.commit()

        updated = await self.get_by_id(notification_id)
        if updated and changed:
            await self._publish(EventType.UPDATE, [updated])
        return updated

    async def mark_all_read(self, user_id: UUID) -> List[NotificationResponse]:
        """Mark every unread notification of the user read.

        Returns only the rows this call changed.
        """
        result = await self.db.execute(
            update(self.model_class)
            .where(
                self.model_class.user_id == user_id,
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

    def _to_pydantic(self, db_model: Any) -> NotificationResponse:
        """Convert SQLAlchemy NotificationModel to Pydantic NotificationResponse."""
        return NotificationResponse(
            id=db_model.id,
            user_id=db_model.user_id,
            title=db_model.title,
            message=db_model.message,
            is_read=db_model.is_read,
            created_at=db_model.created_at,
        )

    def _from_pydantic(self, pydantic_model: NotificationResponse) -> NotificationModel:
        """Convert Pydantic NotificationResponse to SQLAlchemy NotificationModel."""
        return NotificationModel(
            id=pydantic_model.id,
            user_id=pydantic_model.user_id,
            title=pydantic_model.title,
            message=pydantic_model.message,
            is_read=pydantic_model.is_read,
            created_at=pydantic_model.created_at,
        )
