from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict


class ProfileResponse(BaseModel):
    """Response model for the public part of a user profile."""

    id: UUID
    full_name: str
    avatar_url: Optional[str] = None
    role: str  # 'student', 'mentor', 'startup', 'club_leader', 'admin'
    created_at: Optional[datetime] = None

    model_config = ConfigDict(from_attributes=True)
