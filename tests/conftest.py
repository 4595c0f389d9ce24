"""
Test infrastructure for Newsdesk.

Strategy
--------
- SQLite in-memory via aiosqlite keeps the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- ``get_db`` and ``get_session_factory`` are overridden so request
  sessions and post-response view increments both hit the test engine.
- All tables are created (and the default admin seeded) before each test
  and dropped after, giving each test a clean isolated state.
- Sessions use the in-process backend; the store is emptied per test.
- bcrypt runs at its minimum cost so logins stay fast.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import select
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from newsdesk.config import settings
from newsdesk.database import Base, get_db, get_session_factory, init_db
from newsdesk.main import app
from newsdesk.models import User
from newsdesk.services.auth_service import hash_password
from newsdesk.sessions import sessions

settings.BCRYPT_ROUNDS = 4

ADMIN_EMAIL = settings.DEFAULT_ADMIN_EMAIL
ADMIN_PASSWORD = settings.DEFAULT_ADMIN_PASSWORD

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


# ---------------------------------------------------------------------------
# Dependency overrides — replace production sessions with the test factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db
app.dependency_overrides[get_session_factory] = lambda: async_session_test


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables and the default admin before each test, drop after."""
    await init_db(engine_test, async_session_test)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture(autouse=True)
def isolated_state(tmp_path, monkeypatch):
    """Per-test upload directory and an empty in-process session store."""
    monkeypatch.setattr(settings, "UPLOAD_DIR", str(tmp_path / "uploads"))
    sessions._redis = None
    sessions.clear()
    yield
    sessions.clear()


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """An anonymous httpx.AsyncClient wired to the app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def admin_client(async_client: AsyncClient) -> AsyncClient:
    """``async_client`` logged in with the seeded default admin credentials."""
    resp = await async_client.post(
        "/admin/login", data={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD}
    )
    assert resp.status_code == 303
    return async_client


@pytest_asyncio.fixture
async def reader_user(db_session: AsyncSession) -> User:
    """An ordinary (non-admin) user with password ``reader-pass``."""
    user = User(
        name="Reader",
        email="reader@example.com",
        password_hash=await hash_password("reader-pass"),
        role="user",
    )
    db_session.add(user)
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def admin_id(db_session: AsyncSession) -> int:
    result = await db_session.execute(select(User.id).where(User.email == ADMIN_EMAIL))
    return result.scalar_one()


@pytest.fixture
def session_factory():
    """The session factory the app uses for post-response work."""
    return async_session_test


@pytest.fixture
def test_engine():
    return engine_test
