from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, Field


class MentorshipRequestedEvent(BaseModel):
    """A student asked a mentor for mentorship."""

    requester_id: UUID
    mentor_id: UUID
    mentorship_request_id: Optional[UUID] = None


class MentorshipAcceptedEvent(BaseModel):
    """A mentor accepted a student's mentorship request."""

    mentor_id: UUID
    student_id: UUID
    mentorship_request_id: Optional[UUID] = None


class SessionBookedEvent(BaseModel):
    """A student booked one of a mentor's session slots."""

    student_id: UUID
    mentor_id: UUID
    session_date: datetime


class EventRsvpEvent(BaseModel):
    """A club member RSVP'd to a club event."""

    member_id: UUID
    leader_id: UUID
    event_title: str = Field(..., min_length=1, max_length=200)


class EventAcknowledgement(BaseModel):
    """Result of a domain-event hook."""

    notified: bool
    conversation_id: Optional[UUID] = None
