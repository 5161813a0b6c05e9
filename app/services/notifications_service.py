from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.api.notifications import NotificationResponse
from app.realtime.change_feed import ChangeFeed
from app.repositories.notification_repository import NotificationRepository


class NotificationsService:
    """The recipient's view of their notifications."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.notification_repo = NotificationRepository(db, feed)

    async def list_notifications(
        self,
        user_id: UUID,
        limit: Optional[int] = 50,
        offset: Optional[int] = 0,
        unread_only: bool = False,
    ) -> List[NotificationResponse]:
        # Validate parameters
        if limit is not None and (limit <= 0 or limit > 1000):
            raise ValueError("Limit must be between 1 and 1000")
        if offset is not None and offset < 0:
            raise ValueError("Offset must be non-negative")

        return await self.notification_repo.list_for_user(
            user_id, limit=limit or 50, offset=offset or 0, unread_only=unread_only
        )

    async def mark_read(
        self, notification_id: UUID, user_id: UUID
    ) -> NotificationResponse:
        """Mark one notification read; only its recipient may do so."""
        notification = await self.notification_repo.mark_read(notification_id, user_id)
        if not notification:
            raise NotFoundError(f"Notification {notification_id} not found")
        return notification

    async def mark_all_read(self, user_id: UUID) -> int:
        """Mark all of the user's unread notifications read."""
        updated = await self.notification_repo.mark_all_read(user_id)
        return len(updated)
