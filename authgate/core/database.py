"""authgate Database Configuration - Async SQLAlchemy.

The engine and session factory are built once by the application factory
and stored on ``app.state``; nothing here opens connections at import time.
"""

from collections.abc import AsyncGenerator

from fastapi import Request
from sqlalchemy import text
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.orm import declarative_base

from authgate.core.config import Settings
from authgate.core.logging import get_logger

logger = get_logger("database")

# Base class for models
Base = declarative_base()


def create_engine(settings: Settings) -> AsyncEngine:
    """Create the async engine described by the settings.

    Pool sizing (DB_POOL_SIZE, DB_MAX_OVERFLOW, DB_POOL_TIMEOUT, DB_POOL_RECYCLE)
    only applies to server databases; SQLite picks its own pool.
    """
    # Only echo SQL when debug is explicitly enabled
    echo = settings.debug and settings.log_level == "DEBUG"

    if settings.is_sqlite:
        return create_async_engine(settings.database_url, echo=echo)

    return create_async_engine(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
        pool_timeout=settings.db_pool_timeout,
        pool_recycle=settings.db_pool_recycle,
        pool_pre_ping=True,  # Verify connection before use
        echo=echo,
    )


def create_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the engine."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )


async def get_db(request: Request) -> AsyncGenerator[AsyncSession, None]:
    """Dependency to get a database session from the app's session factory."""
    session_maker: async_sessionmaker[AsyncSession] = request.app.state.session_maker
    async with session_maker() as session:
        try:
            yield session
            await session.commit()
        except (Exception, BaseException):
            # Catch both regular exceptions and BaseExceptions (e.g., asyncio.CancelledError)
            # to ensure rollback happens even on cancellation
            await session.rollback()
            raise
        finally:
            await session.close()


async def check_db_connection(session_maker: async_sessionmaker[AsyncSession]) -> bool:
    """Check if database is reachable."""
    try:
        async with session_maker() as session:
            await session.execute(text("SELECT 1"))
            return True
    except (OSError, ConnectionError) as e:
        logger.debug(f"Database connection check failed: {e}")
        return False
    except Exception as e:
        logger.warning(f"Unexpected error checking database connection: {e}")
        return False
