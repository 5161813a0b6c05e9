from datetime import datetime, timezone
from unittest.mock import patch
from uuid import uuid4

import pytest
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError
from app.models.api.events import (
    EventRsvpEvent,
    MentorshipAcceptedEvent,
    MentorshipRequestedEvent,
    SessionBookedEvent,
)
from app.realtime.change_feed import ChangeFeed
from app.repositories.notification_repository import NotificationRepository
from app.services.conversation_directory_service import ConversationDirectoryService
from app.services.domain_events_service import DomainEventsService


class TestDomainEventsService:
    """Tests for notifications raised by other subsystems."""

    @pytest.mark.asyncio
    async def test_mentorship_requested(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        service = DomainEventsService(test_db, feed)

        notified = await service.mentorship_requested(
            MentorshipRequestedEvent(
                requester_id=profiles["student"].id, mentor_id=profiles["mentor"].id
            )
        )

        assert notified is True
        [notification] = await NotificationRepository(test_db, feed).list_for_user(
            profiles["mentor"].id
        )
        assert notification.title == "New Mentorship Request"
        assert notification.message == "Sam Student has requested mentorship from you."

    @pytest.mark.asyncio
    async def test_mentorship_accepted_opens_conversation(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        """Test that acceptance lazily creates the pair's conversation."""
        service = DomainEventsService(test_db, feed)
        request_id = uuid4()

        notified, conversation_id = await service.mentorship_accepted(
            MentorshipAcceptedEvent(
                mentor_id=profiles["mentor"].id,
                student_id=profiles["student"].id,
                mentorship_request_id=request_id,
            )
        )

        assert notified is True
        directory = ConversationDirectoryService(test_db, feed)
        existing = await directory.find_or_create(profiles["mentor"].id, profiles["student"].id)
        assert existing.id == conversation_id
        assert existing.mentorship_request_id == request_id
        [notification] = await NotificationRepository(test_db, feed).list_for_user(
            profiles["student"].id
        )
        assert notification.message == "Maya Mentor accepted your mentorship request."

    @pytest.mark.asyncio
    async def test_mentorship_accepted_unknown_student(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        service = DomainEventsService(test_db, feed)

        with pytest.raises(NotFoundError):
            await service.mentorship_accepted(
                MentorshipAcceptedEvent(mentor_id=profiles["mentor"].id, student_id=uuid4())
            )

    @pytest.mark.asyncio
    async def test_session_booked(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        service = DomainEventsService(test_db, feed)

        await service.session_booked(
            SessionBookedEvent(
                student_id=profiles["student"].id,
                mentor_id=profiles["mentor"].id,
                session_date=datetime(2026, 11, 3, 15, 30, tzinfo=timezone.utc),
            )
        )

        [notification] = await NotificationRepository(test_db, feed).list_for_user(
            profiles["mentor"].id
        )
        assert notification.title == "New Session Booked"
        assert notification.message == (
            "Sam Student has booked a session with you on Nov 03, 2026 15:30."
        )

    @pytest.mark.asyncio
    async def test_event_rsvp(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        service = DomainEventsService(test_db, feed)

        await service.event_rsvp(
            EventRsvpEvent(
                member_id=profiles["student"].id,
                leader_id=profiles["outsider"].id,
                event_title="Hack Night",
            )
        )

        [notification] = await NotificationRepository(test_db, feed).list_for_user(
            profiles["outsider"].id
        )
        assert notification.message == "Sam Student is attending Hack Night."

    @pytest.mark.asyncio
    async def test_unknown_actor_named_someone(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        service = DomainEventsService(test_db, feed)

        await service.mentorship_requested(
            MentorshipRequestedEvent(requester_id=uuid4(), mentor_id=profiles["mentor"].id)
        )

        [notification] = await NotificationRepository(test_db, feed).list_for_user(
            profiles["mentor"].id
        )
        assert notification.message.startswith("Someone ")

    @pytest.mark.asyncio
    async def test_emit_failure_reported_not_raised(
        self, test_db: AsyncSession, feed: ChangeFeed, profiles
    ) -> None:
        """Test that a failed notification is advisory only."""
        service = DomainEventsService(test_db, feed)

        with patch.object(
            service.emitter.notification_repo, "create", side_effect=RuntimeError("down")
        ):
            notified = await service.mentorship_requested(
                MentorshipRequestedEvent(
                    requester_id=profiles["student"].id, mentor_id=profiles["mentor"].id
                )
            )

        assert notified is False
