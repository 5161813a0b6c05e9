import uuid
from typing import Any

from sqlalchemy import Column, DateTime, ForeignKey, String, UniqueConstraint, Uuid
from sqlalchemy.orm import relationship

from app.database import Base, utcnow


def participant_pair(first_id: Any, second_id: Any) -> str:
    """Key of a two-party conversation, independent of which role each holds."""
    low, high = sorted((str(first_id), str(second_id)))
    return f"{low}:{high}"


class ConversationModel(Base):
    """SQLAlchemy model for chat_conversations table."""

    __tablename__ = "chat_conversations"
    __table_args__ = (
        UniqueConstraint("participant_pair", name="uq_chat_conversations_pair"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    mentor_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    student_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    # One conversation per unordered pair; see participant_pair()
    participant_pair = Column(String(73), nullable=False)
    mentorship_request_id = Column(Uuid(as_uuid=True), nullable=True)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)
    # Bumped on every new message, never backwards; directory sort key
    updated_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    messages = relationship(
        "MessageModel", back_populates="conversation", cascade="all, delete-orphan"
    )
