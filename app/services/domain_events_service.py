"""Notifications raised by the mentorship, session and club subsystems."""

from typing import Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from app.models.api.events import (
    EventRsvpEvent,
    MentorshipAcceptedEvent,
    MentorshipRequestedEvent,
    SessionBookedEvent,
)
from app.realtime.change_feed import ChangeFeed
from app.repositories.profile_repository import ProfileRepository
from app.services.conversation_directory_service import ConversationDirectoryService
from app.services.notification_emitter import NotificationEmitter

SESSION_DATE_FORMAT = "%b %d, %Y %H:%M"


class DomainEventsService:
    def __init__(
        self,
        db: AsyncSession,
        feed: Optional[ChangeFeed] = None,
        emitter: Optional[NotificationEmitter] = None,
    ):
        self.db = db
        self.feed = feed
        self.profile_repo = ProfileRepository(db, feed)
        self.emitter = emitter or NotificationEmitter(db, feed)

    async def mentorship_requested(self, event: MentorshipRequestedEvent) -> bool:
        requester = await self._display_name(event.requester_id)
        notification = await self.emitter.emit_best_effort(
            event.mentor_id,
            "New Mentorship Request",
            f"{requester} has requested mentorship from you.",
        )
        return notification is not None

    async def mentorship_accepted(
        self, event: MentorshipAcceptedEvent
    ) -> Tuple[bool, UUID]:
        """Open the pair's conversation, then tell the student."""
        directory = ConversationDirectoryService(self.db, self.feed)
        conversation = await directory.find_or_create(
            event.mentor_id, event.student_id, event.mentorship_request_id
        )

        mentor = await self._display_name(event.mentor_id)
        notification = await self.emitter.emit_best_effort(
            event.student_id,
            "Mentorship Request Accepted",
            f"{mentor} accepted your mentorship request.",
        )
        return notification is not None, conversation.id

    async def session_booked(self, event: SessionBookedEvent) -> bool:
        student = await self._display_name(event.student_id)
        session_date = event.session_date.strftime(SESSION_DATE_FORMAT)
        notification = await self.emitter.emit_best_effort(
            event.mentor_id,
            "New Session Booked",
            f"{student} has booked a session with you on {session_date}.",
        )
        return notification is not None

    async def event_rsvp(self, event: EventRsvpEvent) -> bool:
        member = await self._display_name(event.member_id)
        notification = await self.emitter.emit_best_effort(
            event.leader_id,
            "New Event RSVP",
            f"{member} is attending {event.event_title}.",
        )
        return notification is not None

    async def _display_name(self, user_id: UUID) -> str:
        profile = await self.profile_repo.get_by_id(user_id)
        return profile.full_name if profile else "Someone"
