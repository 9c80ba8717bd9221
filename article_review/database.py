from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from article_review.config import settings
from article_review.middleware import install_query_counter

# Module-level engine variable allows tests to override with a test engine.
# Each deployed service points DATABASE_URL at its own database.
engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.DEBUG,
    pool_pre_ping=True,
)

# Register the per-request SQL query counter on the production engine.
install_query_counter(engine)

async_session = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db():
    async with async_session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise


async def create_tables(*tables) -> None:
    """Create *tables* on the service's engine if they do not exist yet."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all, tables=[t.__table__ for t in tables])
