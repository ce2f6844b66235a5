"""Database configuration and session management."""

from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import DeclarativeBase

from utilbill.core.config import settings

# Create SQLAlchemy async engine
engine = create_async_engine(settings.DATABASE_URL)

# Create AsyncSessionLocal class
AsyncSessionLocal = async_sessionmaker(engine, expire_on_commit=False)


# Base class for models
class Base(DeclarativeBase):
    """Base class for all database models."""

    pass


async def create_tables(bind: AsyncEngine = engine) -> None:
    """Create all tables registered on Base.metadata."""
    async with bind.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
