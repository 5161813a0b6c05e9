from typing import Awaitable, Callable, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.database import AsyncSessionLocal
from app.models.db.notification_model import NotificationModel
from app.realtime.change_feed import (
    ChangeEvent,
    ChangeFeed,
    EventType,
    Subscription,
    get_change_feed,
)
from app.repositories.notification_repository import NotificationRepository


class UnreadCounterService:
    """Live count of a user's unread notifications.

    The count is always recomputed from the notifications table; no counter
    state is kept that could drift from it.
    """

    def __init__(
        self,
        session_factory: Optional[async_sessionmaker[AsyncSession]] = None,
        feed: Optional[ChangeFeed] = None,
    ):
        self.session_factory = session_factory or AsyncSessionLocal
        self.feed = feed or get_change_feed()

    async def get_count(self, user_id: UUID) -> int:
        async with self.session_factory() as session:
            return await NotificationRepository(session, self.feed).count_unread(
                user_id
            )

    async def subscribe(
        self, user_id: UUID, on_change: Callable[[int], Awaitable[None]]
    ) -> Subscription:
        """Emit a fresh count after any insert or update of the user's notifications.

        Bursts are coalesced, so consumers see the latest count rather than
        every intermediate value.
        """

        async def recount(event: ChangeEvent) -> None:
            await on_change(await self.get_count(user_id))

        return await self.feed.subscribe(
            NotificationModel.__tablename__,
            {"user_id": user_id},
            [EventType.INSERT, EventType.UPDATE],
            recount,
            coalesce=True,
        )
