from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, field_validator

MAX_BODY_LENGTH = 1000
MAX_FILE_URL_LENGTH = 2048


class SendMessageRequest(BaseModel):
    """Request model for sending a message into a conversation."""

    body: str = Field(
        default="", max_length=MAX_BODY_LENGTH, description="Message text"
    )
    file_url: Optional[str] = Field(
        default=None,
        max_length=MAX_FILE_URL_LENGTH,
        description="Reference returned by file storage for an attachment",
    )

    @field_validator("body")
    @classmethod
    def strip_body(cls, value: str) -> str:
        return value.strip()

    @field_validator("file_url")
    @classmethod
    def validate_file_url(cls, value: Optional[str]) -> Optional[str]:
        if value is None or not value.strip():
            return None
        value = value.strip()
        if not value.startswith(("http://", "https://")):
            raise ValueError("file_url must be an http(s) URL")
        return value


class MessageResponse(BaseModel):
    """Response model for message data."""

    id: UUID
    conversation_id: UUID
    sender_id: UUID
    body: str
    file_url: Optional[str] = None
    is_read: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class MarkReadResponse(BaseModel):
    """Number of messages flipped from unread to read."""

    updated: int
