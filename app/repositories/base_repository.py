from typing import Any, Generic, Iterable, List, Optional, TypeVar
from uuid import UUID

from pydantic import BaseModel
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from app.database import Base
from app.realtime.change_feed import ChangeFeed, EventType, get_change_feed

ModelType = TypeVar("ModelType", bound=Base)
PydanticType = TypeVar("PydanticType", bound=BaseModel)


class BaseRepository(Generic[ModelType, PydanticType]):
    """Generic base repository with common CRUD operations.

    Writes are published to the change feed once committed.
    """

    def __init__(
        self, db: AsyncSession, model_class: Any, feed: Optional[ChangeFeed] = None
    ):
        self.db = db
        self.model_class = model_class
        self.feed = feed or get_change_feed()

    @property
    def table_name(self) -> str:
        return self.model_class.__tablename__

    async def get_by_id(self, id: UUID) -> Optional[PydanticType]:
        """Get a single record by ID."""
        query = (
            select(self.model_class)
            .where(self.model_class.id == id)
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        db_model = result.scalar_one_or_none()
        return self._to_pydantic(db_model) if db_model else None

    async def get_by_ids(self, ids: Iterable[UUID]) -> List[PydanticType]:
        """Get every record whose ID is in ids."""
        ids = list(ids)
        if not ids:
            return []
        query = (
            select(self.model_class)
            .where(self.model_class.id.in_(ids))
            .execution_options(populate_existing=True)
        )
        result = await self.db.execute(query)
        return [self._to_pydantic(db_model) for db_model in result.scalars().all()]

    async def create(self, pydantic_model: PydanticType) -> PydanticType:
        """Create a new record."""
        db_model = self._from_pydantic(pydantic_model)
        self.db.add(db_model)
        await self.db.commit()
        await self.db.refresh(db_model)
        created = self._to_pydantic(db_model)
        await self._publish(EventType.INSERT, [created])
        return created

    async def _publish(
        self, event_type: EventType, rows: Iterable[PydanticType]
    ) -> None:
        await self.feed.publish(self.table_name, event_type, rows)

    def _to_pydantic(self, db_model: ModelType) -> PydanticType:
        """Convert SQLAlchemy model to Pydantic model.

        This should be overridden in subclasses for specific conversion logic.
        """
        raise NotImplementedError

    def _from_pydantic(self, pydantic_model: PydanticType) -> ModelType:
        """Convert Pydantic model to SQLAlchemy model.

        This should be overridden in subclasses for specific conversion logic.
        """
        raise NotImplementedError
