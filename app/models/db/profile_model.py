import uuid

from sqlalchemy import Column, DateTime, String, Uuid

from app.database import Base, utcnow


class ProfileModel(Base):
    """SQLAlchemy model for profiles table.

    Rows are owned by the identity subsystem; this service only reads them.
    """

    __tablename__ = "profiles"

    id = Column(Uuid(as_uuid=True), primary_key=True, default=uuid.uuid4)
    full_name = Column(String(255), nullable=False)
    avatar_url = Column(String(2048), nullable=True)
    role = Column(String(20), nullable=False)
    created_at = Column(DateTime(timezone=True), default=utcnow)

    # Constraints (enforced by database CHECK constraint in the migration)
    # role IN ('student', 'mentor', 'startup', 'club_leader', 'admin')
