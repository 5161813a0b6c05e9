"""Hooks through which other subsystems raise notifications."""

import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import db_session
from app.exceptions import ConflictError, InvalidConversationError, NotFoundError
from app.models.api.events import (
    EventAcknowledgement,
    EventRsvpEvent,
    MentorshipAcceptedEvent,
    MentorshipRequestedEvent,
    SessionBookedEvent,
)
from app.services.domain_events_service import DomainEventsService

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/mentorship-requested", response_model=EventAcknowledgement)
async def mentorship_requested(
    event: MentorshipRequestedEvent, db: AsyncSession = Depends(db_session)
) -> EventAcknowledgement:
    service = DomainEventsService(db)
    return EventAcknowledgement(notified=await service.mentorship_requested(event))


@router.post("/mentorship-accepted", response_model=EventAcknowledgement)
async def mentorship_accepted(
    event: MentorshipAcceptedEvent, db: AsyncSession = Depends(db_session)
) -> EventAcknowledgement:
    """Opens the pair's conversation and notifies the student."""
    try:
        service = DomainEventsService(db)
        notified, conversation_id = await service.mentorship_accepted(event)
        return EventAcknowledgement(notified=notified, conversation_id=conversation_id)
    except InvalidConversationError as e:
        raise HTTPException(status_code=400, detail=str(e))
    except NotFoundError as e:
        raise HTTPException(status_code=404, detail=str(e))
    except ConflictError as e:
        raise HTTPException(status_code=409, detail=str(e))
    except Exception:
        logger.exception("Failed to handle accepted mentorship")
        raise HTTPException(status_code=500, detail="Internal server error")


@router.post("/session-booked", response_model=EventAcknowledgement)
async def session_booked(
    event: SessionBookedEvent, db: AsyncSession = Depends(db_session)
) -> EventAcknowledgement:
    service = DomainEventsService(db)
    return EventAcknowledgement(notified=await service.session_booked(event))


@router.post("/event-rsvp", response_model=EventAcknowledgement)
async def event_rsvp(
    event: EventRsvpEvent, db: AsyncSession = Depends(db_session)
) -> EventAcknowledgement:
    service = DomainEventsService(db)
    return EventAcknowledgement(notified=await service.event_rsvp(event))
