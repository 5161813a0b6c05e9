from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FindOrCreateConversationRequest(BaseModel):
    """Request model for resolving the conversation of a mentor/student pair."""

    mentor_id: UUID = Field(..., description="Profile id of the mentor party")
    student_id: UUID = Field(..., description="Profile id of the student party")
    mentorship_request_id: Optional[UUID] = Field(
        default=None, description="Mentorship request that led to this conversation"
    )


class ConversationResponse(BaseModel):
    """Response model for conversation data."""

    id: UUID
    mentor_id: UUID
    student_id: UUID
    mentorship_request_id: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(from_attributes=True)

    def has_participant(self, user_id: UUID) -> bool:
        return user_id in (self.mentor_id, self.student_id)

    def counterpart_of(self, user_id: UUID) -> UUID:
        """Return the other party of the conversation."""
        return self.student_id if user_id == self.mentor_id else self.mentor_id


class ParticipantProfile(BaseModel):
    """Counterpart identity shown in the conversation list."""

    id: UUID
    full_name: str
    avatar_url: Optional[str] = None


class LastMessagePreview(BaseModel):
    """Latest message of a conversation, projected at query time."""

    id: UUID
    sender_id: UUID
    body: str
    file_url: Optional[str] = None
    created_at: datetime


class ConversationSummary(ConversationResponse):
    """Conversation annotated for the directory listing."""

    other_user: Optional[ParticipantProfile] = None
    last_message: Optional[LastMessagePreview] = None
    unread_count: int = 0
