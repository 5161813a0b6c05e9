import logging
from typing import Optional
from uuid import UUID, uuid4

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.api.notifications import NotificationResponse
from app.realtime.change_feed import ChangeFeed
from app.repositories.notification_repository import NotificationRepository

logger = logging.getLogger(__name__)


class NotificationEmitter:
    """Writes one notification row per domain event.

    No batching or deduplication: rapid events each produce their own row.
    """

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        self.db = db
        self.notification_repo = NotificationRepository(db, feed)

    async def emit(
        self, recipient_id: UUID, title: str, message: str
    ) -> NotificationResponse:
        """Persist a notification addressed to recipient_id."""
        return await self.notification_repo.create(
            NotificationResponse(
                id=uuid4(),
                user_id=recipient_id,
                title=title,
                message=message,
                is_read=False,
                created_at=utcnow(),
            )
        )

    async def emit_best_effort(
        self, recipient_id: UUID, title: str, message: str
    ) -> Optional[NotificationResponse]:
        """Emit, logging and swallowing any failure.

        Used after the triggering write has committed, so a failure here
        must not surface to the caller.
        """
        try:
            return await self.emit(recipient_id, title, message)
        except Exception:
            logger.warning(
                "Failed to emit notification %r to %s", title, recipient_id, exc_info=True
            )
            await self.db.rollback()
            return None
