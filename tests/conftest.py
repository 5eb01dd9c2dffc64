"""
Test infrastructure for the Blog API.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running
  database server, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- The app's get_db dependency is overridden so every test-time request uses
  the test session factory rather than the lazily created production one.
  The ``no_db`` fixture swaps in a dependency that yields None to exercise
  the storage-unavailable mode.
- All tables are created fresh before each test and dropped after, giving
  each test a clean isolated state without needing transactions or truncation.
- Callers are identified through the ``X-User-Open-Id`` header; ``seeded``
  provides one admin and one member plus categories and tags.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from app.config import settings
from app.database import Base, get_db
from app.main import app
from app.middleware import install_query_counter
from app.models import Category, Role, Tag, User

# ---------------------------------------------------------------------------
# Test database engine — SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

install_query_counter(engine_test)


@event.listens_for(engine_test.sync_engine, "connect")
def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite leaves FK enforcement off per connection unless asked.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

ADMIN_OPEN_ID = "owner-open-id"
MEMBER_OPEN_ID = "member-open-id"


# ---------------------------------------------------------------------------
# Dependency override — replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise


async def unavailable_get_db():
    yield None


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


@pytest.fixture(autouse=True)
def default_settings(monkeypatch):
    """Pin the settings the tests rely on, whatever the local .env says."""
    monkeypatch.setattr(settings, "OWNER_OPEN_ID", ADMIN_OPEN_ID)
    monkeypatch.setattr(settings, "DEGRADE_READS_WITHOUT_DB", True)
    monkeypatch.setattr(settings, "EXPOSE_DRAFTS_BY_LOOKUP", False)
    monkeypatch.setattr(settings, "RECENT_ARTICLES_LIMIT", 5)


@pytest.fixture
def no_db():
    """Serve requests as if no database were configured."""
    app.dependency_overrides[get_db] = unavailable_get_db
    yield
    app.dependency_overrides[get_db] = override_get_db


@pytest_asyncio.fixture
async def db_session() -> AsyncSession:
    """
    Yield a live AsyncSession for tests that need to interact with the
    database directly (e.g. seeding data, asserting ORM state).
    """
    async with async_session_test() as session:
        yield session


@pytest_asyncio.fixture
async def seeded() -> dict:
    """
    Commit an admin, a member, three categories and three tags.

    Returns a dict of their ids keyed by a short name.
    """
    async with async_session_test() as session:
        admin = User(open_id=ADMIN_OPEN_ID, name="Owner", role=Role.ADMIN)
        member = User(open_id=MEMBER_OPEN_ID, name="Reader", role=Role.MEMBER)
        categories = [Category(name=n) for n in ("Python", "Databases", "Essays")]
        tags = [Tag(name=n) for n in ("asyncio", "sql", "testing")]
        session.add_all([admin, member, *categories, *tags])
        await session.commit()
        return {
            "admin": admin.id,
            "member": member.id,
            "python": categories[0].id,
            "databases": categories[1].id,
            "essays": categories[2].id,
            "asyncio": tags[0].id,
            "sql": tags[1].id,
            "testing": tags[2].id,
        }


@pytest.fixture
def statements():
    """Record every SQL statement the test engine runs while the test is active."""
    captured: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        captured.append(statement)

    event.listen(engine_test.sync_engine, "before_cursor_execute", _record)
    yield captured
    event.remove(engine_test.sync_engine, "before_cursor_execute", _record)


@pytest.fixture
def admin_headers() -> dict:
    return {"X-User-Open-Id": ADMIN_OPEN_ID}


@pytest.fixture
def member_headers() -> dict:
    return {"X-User-Open-Id": MEMBER_OPEN_ID}


@pytest_asyncio.fixture
async def async_client() -> AsyncClient:
    """Yield an httpx.AsyncClient wired to the FastAPI app via ASGITransport."""
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
