"""Database connection and session management."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from walletsigner.config import Settings
from walletsigner.ledger.models import Base


def normalize_database_url(db_url: str) -> str:
    """Convert sqlite:/// to sqlite+aiosqlite:/// if needed."""
    if db_url.startswith("sqlite:///") and "aiosqlite" not in db_url:
        return db_url.replace("sqlite:///", "sqlite+aiosqlite:///")
    return db_url


class Database:
    """Owns the async engine and session factory for one process.

    Usage:
        db = Database.from_settings(settings)
        await db.init()
        async with db.session() as session:
            ...
        await db.close()
    """

    def __init__(self, engine: AsyncEngine):
        self.engine = engine
        self.session_factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
            bind=engine,
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    @classmethod
    def from_settings(cls, settings: Settings) -> "Database":
        engine = create_async_engine(
            normalize_database_url(settings.database_url),
            echo=settings.debug and not settings.is_production,
            future=True,
        )
        return cls(engine)

    @classmethod
    def from_url(cls, db_url: str) -> "Database":
        return cls(create_async_engine(normalize_database_url(db_url), future=True))

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Get a database session that commits on success and rolls back on error."""
        async with self.session_factory() as session:
            try:
                yield session
                await session.commit()
            except Exception:
                await session.rollback()
                raise

    async def init(self) -> None:
        """Initialize the database by creating all tables."""
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)

    async def close(self) -> None:
        """Close database connections."""
        await self.engine.dispose()
