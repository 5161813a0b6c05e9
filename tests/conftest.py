import os
from typing import Any, AsyncGenerator, Dict, Generator
from unittest.mock import AsyncMock, MagicMock
from uuid import uuid4

import pytest
from dotenv import load_dotenv

load_dotenv()
# app.database requires a URL at import time; unit tests never touch it
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

import app.models.db  # noqa: E402,F401
from app.database import Base  # noqa: E402
from app.main import app  # noqa: E402
from app.models.db.profile_model import ProfileModel  # noqa: E402
from app.realtime.change_feed import ChangeFeed  # noqa: E402


@pytest.fixture(scope="function")
async def test_engine(tmp_path: Any) -> AsyncGenerator[AsyncEngine, None]:
    """On-disk SQLite database so concurrent sessions use separate connections."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'chat.db'}",
        echo=os.getenv("SQL_DEBUG", "false").lower() == "true",
    )

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Clean up
    await engine.dispose()


@pytest.fixture(scope="function")
def session_factory(test_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(scope="function")
async def test_db(
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession, None]:
    """Database session for store-backed tests."""
    async with session_factory() as session:
        yield session


@pytest.fixture(scope="function")
def feed() -> ChangeFeed:
    """Change feed isolated from the process-wide one."""
    return ChangeFeed()


@pytest.fixture(scope="function")
async def profiles(test_db: AsyncSession) -> Dict[str, ProfileModel]:
    """A mentor, a student and a user outside their conversation."""
    people = {
        "mentor": ProfileModel(id=uuid4(), full_name="Maya Mentor", role="mentor"),
        "student": ProfileModel(id=uuid4(), full_name="Sam Student", role="student"),
        "outsider": ProfileModel(id=uuid4(), full_name="Olu Outsider", role="student"),
    }
    test_db.add_all(people.values())
    await test_db.commit()
    return people


@pytest.fixture(scope="function")
async def mock_db() -> AsyncGenerator[AsyncMock, None]:
    """Create a mock database session for unit tests."""
    mock_session = AsyncMock()
    mock_session.commit = AsyncMock()
    mock_session.rollback = AsyncMock()
    mock_session.close = AsyncMock()
    mock_session.refresh = AsyncMock()
    mock_session.execute = AsyncMock()
    mock_session.add = MagicMock()  # add is sync, not async

    yield mock_session


@pytest.fixture
def client() -> Generator[TestClient, Any, None]:
    """Create a test client for the FastAPI app."""
    with TestClient(app) as test_client:
        yield test_client
