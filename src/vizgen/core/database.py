"""Database session factory setup."""

from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlmodel import SQLModel

# Register every table with SQLModel metadata
import vizgen.models  # noqa: F401


def setup_db_session(db_url: str, pool_size: int = 20) -> async_sessionmaker[AsyncSession]:
    """Create async database session factory.

    Args:
        db_url: Async connection URL (postgresql+psycopg://... or sqlite+aiosqlite://...)
        pool_size: Maximum number of connections in the pool (ignored for SQLite)

    Returns:
        Async session factory for creating database sessions
    """
    engine_kwargs: dict = {"echo": False}  # Don't log SQL queries (use structlog instead)
    if not db_url.startswith("sqlite"):
        engine_kwargs.update(
            pool_size=pool_size,
            max_overflow=0,  # No overflow beyond pool_size
            pool_pre_ping=True,  # Verify connections before using
        )

    engine = create_async_engine(db_url, **engine_kwargs)

    session_factory = async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,  # Prevent lazy loading issues after commit
    )

    return session_factory


async def create_schema(session_factory: async_sessionmaker[AsyncSession]) -> None:
    """Create all tables that do not exist yet."""
    engine = session_factory.kw["bind"]
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
