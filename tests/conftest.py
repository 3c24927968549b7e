"""
Pytest configuration and fixtures for tests.
Provides reusable test fixtures for database, users, and data setup.
"""
import pytest
from typing import AsyncGenerator, Dict, List, Optional
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.pool import StaticPool
from httpx import AsyncClient, ASGITransport

from collab_chat.main import app
from collab_chat.core.database import enable_sqlite_savepoints, get_db
from collab_chat.core.rate_limit import limiter
from collab_chat.core.security import create_access_token
from collab_chat.core.user_directory import UserDirectoryClient
from collab_chat.dependencies import get_user_directory
from collab_chat.models.base import Base
from collab_chat.schemas.user import UserSummary


# Test database URL (use separate test database)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"  # In-memory SQLite for tests

ALICE = "user-alice"
BOB = "user-bob"
CAROL = "user-carol"
DAVE = "user-dave"
EVE = "user-eve"  # suspended account


class FakeUserDirectory(UserDirectoryClient):
    """In-memory stand-in for the platform user service."""

    def __init__(self, users: List[UserSummary]):
        super().__init__(base_url="http://users.test", api_key="test-key")
        self.users: Dict[str, UserSummary] = {u.id: u for u in users}

    async def lookup_by_id(self, user_id: str, use_cache: bool = True) -> Optional[UserSummary]:
        return self.users.get(user_id)

    async def lookup_by_public_id(self, public_id: str) -> Optional[UserSummary]:
        for user in self.users.values():
            if user.public_id == public_id:
                return user
        return None

    async def health_check(self) -> bool:
        return True


@pytest.fixture
def directory() -> FakeUserDirectory:
    """User directory with four active users and one suspended account."""
    return FakeUserDirectory([
        UserSummary(id=ALICE, display_name="Alice", public_id="ALICE01"),
        UserSummary(id=BOB, display_name="Bob", public_id="BOB02"),
        UserSummary(id=CAROL, display_name="Carol", public_id="CAROL03"),
        UserSummary(id=DAVE, display_name="Dave", public_id="DAVE04"),
        UserSummary(id=EVE, display_name="Eve", public_id="EVE05", is_active=False),
    ])


@pytest.fixture(autouse=True)
def disable_rate_limit():
    """Requests in tests all come from one address."""
    previous = limiter.enabled
    limiter.enabled = False
    yield
    limiter.enabled = previous


@pytest.fixture(scope="function")
async def test_engine():
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    enable_sqlite_savepoints(engine)

    # Create all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    # Drop all tables
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture(scope="function")
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    """Create test database session."""
    TestSessionLocal = async_sessionmaker(
        test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autocommit=False,
        autoflush=False,
    )

    async with TestSessionLocal() as session:
        yield session
        await session.rollback()


@pytest.fixture(scope="function")
async def client(db_session: AsyncSession, directory) -> AsyncGenerator[AsyncClient, None]:
    """Create test HTTP client with dependency overrides."""

    async def override_get_db():
        yield db_session

    # Override dependencies
    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_user_directory] = lambda: directory

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    # Clear overrides after test
    app.dependency_overrides.clear()


def auth_headers_for(user_id: str) -> Dict[str, str]:
    """Authorization header carrying a token for user_id."""
    return {"Authorization": f"Bearer {create_access_token(user_id)}"}


@pytest.fixture
def alice_headers():
    return auth_headers_for(ALICE)


@pytest.fixture
def bob_headers():
    return auth_headers_for(BOB)


@pytest.fixture
def carol_headers():
    return auth_headers_for(CAROL)
