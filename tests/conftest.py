"""
Test infrastructure for the Article and Review services.

Strategy
--------
- SQLite in-memory via aiosqlite eliminates the need for a running Postgres
  instance in CI, keeping the suite fast and self-contained.
- StaticPool forces all async tasks to share the same in-memory database
  connection, which is required because SQLite in-memory databases are
  connection-scoped; a new connection would see an empty database.
- Both apps' get_db dependency is overridden so every test-time request
  uses the test session factory rather than the production one.
- All tables are created fresh before each test and dropped after.
- The ASGI transport does not run the lifespan, so each client fixture
  puts a fresh MemoryCache (and, for the Review app, an article checker)
  on ``app.state`` itself.  Caching is therefore live in every test.
"""
import pytest
import pytest_asyncio
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from article_review.cache import CacheTTL, MemoryCache
from article_review.database import Base, get_db
from article_review.errors import DependencyUnavailableError
from article_review.main import article_app, review_app
from article_review.middleware import install_query_counter

# ---------------------------------------------------------------------------
# Test database engine: SQLite in-memory with aiosqlite
# ---------------------------------------------------------------------------

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

engine_test = create_async_engine(
    TEST_DATABASE_URL,
    connect_args={"check_same_thread": False},
    poolclass=StaticPool,
)

# Register the per-request SQL query counter on the test engine.
install_query_counter(engine_test)

async_session_test = async_sessionmaker(
    engine_test,
    class_=AsyncSession,
    expire_on_commit=False,
)

TEST_TTL = CacheTTL(absolute=60, sliding=60)


# ---------------------------------------------------------------------------
# Dependency override: replace production get_db with the test session factory
# ---------------------------------------------------------------------------

async def override_get_db():
    async with async_session_test() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


article_app.dependency_overrides[get_db] = override_get_db
review_app.dependency_overrides[get_db] = override_get_db


# ---------------------------------------------------------------------------
# Article service stand-in
# ---------------------------------------------------------------------------

class StubArticleChecker:
    """
    In-memory stand-in for the Article service client.

    ``known`` holds the article ids that resolve; setting ``unavailable``
    makes every call behave like a connection failure.
    """

    def __init__(self) -> None:
        self.known: set[str] = set()
        self.unavailable = False
        self.calls: list[str] = []

    async def exists(self, article_id: str) -> bool:
        self.calls.append(article_id)
        if self.unavailable:
            raise DependencyUnavailableError("Article service is unreachable.")
        return article_id in self.known


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
    Yield a live AsyncSession for tests that call service functions directly.
    """
    async with async_session_test() as session:
        yield session


@pytest.fixture
def cache() -> MemoryCache:
    return MemoryCache(TEST_TTL)


@pytest.fixture
def article_checker() -> StubArticleChecker:
    return StubArticleChecker()


@pytest_asyncio.fixture
async def article_client() -> AsyncClient:
    """httpx.AsyncClient wired to the Article app, with its own fresh cache."""
    article_app.state.cache = MemoryCache(TEST_TTL)
    transport = ASGITransport(app=article_app)
    async with AsyncClient(transport=transport, base_url="http://articles") as client:
        yield client


@pytest_asyncio.fixture
async def review_client(article_checker: StubArticleChecker) -> AsyncClient:
    """httpx.AsyncClient wired to the Review app, checking articles via the stub."""
    review_app.state.cache = MemoryCache(TEST_TTL)
    review_app.state.article_client = article_checker
    transport = ASGITransport(app=review_app)
    async with AsyncClient(transport=transport, base_url="http://reviews") as client:
        yield client
