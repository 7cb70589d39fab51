"""
PostgreSQL Database Connection Manager
The engine is created lazily on first use
"""
from typing import AsyncGenerator
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import AsyncAdaptedQueuePool, NullPool
from sqlalchemy.orm import declarative_base
import logging

from .config import postgres_settings

logger = logging.getLogger(__name__)

# Create Base class for models
Base = declarative_base()

# Global engine variable - created on first use
_engine = None
_async_session_maker = None


def get_engine():
    """Get or create the database engine"""
    global _engine

    if _engine is None:
        use_null_pool = postgres_settings.use_null_pool
        pool_options = {}
        if not use_null_pool:
            pool_options = {
                "pool_size": postgres_settings.pool_size,
                "max_overflow": postgres_settings.max_overflow,
                "pool_recycle": postgres_settings.pool_recycle,
            }

        try:
            _engine = create_async_engine(
                postgres_settings.database_url,
                poolclass=NullPool if use_null_pool else AsyncAdaptedQueuePool,
                pool_pre_ping=postgres_settings.pool_pre_ping,
                echo=False,
                **pool_options,
            )
            logger.info("Database engine created successfully")
        except Exception as e:
            logger.error(f"Failed to create database engine: {e}")
            raise

    return _engine


def get_session_maker():
    """Get or create the session maker"""
    global _async_session_maker

    if _async_session_maker is None:
        _async_session_maker = async_sessionmaker(
            get_engine(),
            class_=AsyncSession,
            expire_on_commit=False,
            autoflush=False,
        )

    return _async_session_maker


async def init_postgres_db() -> None:
    """
    Initialize database by creating all tables defined in models.
    This should be called during application startup.
    """
    try:
        async with get_engine().begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("PostgreSQL tables initialized successfully")
    except Exception as e:
        logger.error(f"Failed to initialize PostgreSQL tables: {e}")
        raise


async def get_postgres_session() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency function that provides a database session to routes.
    The session is automatically closed after the request completes.
    """
    session_maker = get_session_maker()
    async with session_maker() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()


async def close_postgres_db() -> None:
    """Close the database connection pool when the application shuts down."""
    global _engine, _async_session_maker
    if _engine is not None:
        await _engine.dispose()
        logger.info("PostgreSQL connection pool closed")
    _engine = None
    _async_session_maker = None
