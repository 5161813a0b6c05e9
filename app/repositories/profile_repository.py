from typing import Any, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.models.api.profiles import ProfileResponse
from app.models.db.profile_model import ProfileModel
from app.realtime.change_feed import ChangeFeed
from app.repositories.base_repository import BaseRepository


class ProfileRepository(BaseRepository[ProfileModel, ProfileResponse]):
    """Read access to user profiles owned by the identity subsystem."""

    def __init__(self, db: AsyncSession, feed: Optional[ChangeFeed] = None):
        super().__init__(db, ProfileModel, feed)

    def _to_pydantic(self, db_model: Any) -> ProfileResponse:
        return ProfileResponse(
            id=db_model.id,
            full_name=db_model.full_name,
            avatar_url=db_model.avatar_url,
            role=db_model.role,
            created_at=db_model.created_at,
        )

    def _from_pydantic(self, pydantic_model: ProfileResponse) -> ProfileModel:
        return ProfileModel(
            id=pydantic_model.id,
            full_name=pydantic_model.full_name,
            avatar_url=pydantic_model.avatar_url,
            role=pydantic_model.role,
            created_at=pydantic_model.created_at or utcnow(),
        )
