import uuid

from sqlalchemy import Boolean, Column, DateTime, ForeignKey, Index, String, Text, Uuid
from sqlalchemy.orm import relationship

from app.database import Base, utcnow


class MessageModel(Base):
    """SQLAlchemy model for chat_messages table."""

    __tablename__ = "chat_messages"
    __table_args__ = (
        Index("idx_chat_messages_conversation_created", "conversation_id", "created_at"),
    )

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    conversation_id = Column(
        Uuid(as_uuid=True),
        ForeignKey("chat_conversations.id", ondelete="CASCADE"),
        nullable=False,
    )
    sender_id = Column(Uuid(as_uuid=True), ForeignKey("profiles.id"), nullable=False)
    body = Column(Text, nullable=False, default="")
    file_url = Column(String(2048), nullable=True)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), default=utcnow, nullable=False)

    # Relationships
    conversation = relationship("ConversationModel", back_populates="messages")

    # Constraints (enforced by database CHECK constraint in the migration)
    # body <> '' OR file_url IS NOT NULL
