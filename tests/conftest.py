"""
Test infrastructure for the Newsroom API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Concurrency tests need real independent connections, so ``file_engine``
  provides a file-backed SQLite database with an ordinary connection pool.
- Both engines run with ``PRAGMA foreign_keys=ON`` so FK references and
  ``ON DELETE`` rules behave as they do on PostgreSQL.
- Bearer tokens are minted with ``app.security.create_access_token``; the
  users they refer to are seeded through ``db_session`` and committed so
  the request sessions can see them.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.database import Base, enable_sqlite_foreign_keys, get_db
from app.main import app
from app.middleware import install_query_counter
from app.models import Category, Role, User

from factories import auth_headers, make_category, make_user

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)
enable_sqlite_foreign_keys(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)


async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------

@pytest_asyncio.fixture(autouse=True)
async def setup_db():
    """Create all tables before each test, drop after to guarantee isolation."""
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine_test.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


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
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest_asyncio.fixture
async def editor(db_session: AsyncSession) -> User:
    user = await make_user(
        db_session, "editor@example.com", Role.EDITOR, first_name="Erin", last_name="Editor"
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def reader(db_session: AsyncSession) -> User:
    user = await make_user(
        db_session, "reader@example.com", Role.USER, first_name="Rory", last_name="Reader"
    )
    await db_session.commit()
    return user


@pytest_asyncio.fixture
async def category(db_session: AsyncSession) -> Category:
    cat = await make_category(db_session, "World", "International news")
    await db_session.commit()
    return cat


@pytest.fixture
def editor_headers(editor: User) -> dict[str, str]:
    return auth_headers(editor)


@pytest.fixture
def reader_headers(reader: User) -> dict[str, str]:
    return auth_headers(reader)


@pytest_asyncio.fixture
async def file_engine(tmp_path):
    """A file-backed SQLite engine whose sessions get their own connections."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'newsroom.db'}",
        connect_args={"timeout": 30},
    )
    enable_sqlite_foreign_keys(engine)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()
