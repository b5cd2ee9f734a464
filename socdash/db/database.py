import logging
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from fastapi import HTTPException
from socdash.core import tracing as logger
from socdash.core.config import settings

# Configure logging for SQLAlchemy (ORM logs only)
logging.basicConfig()
logging.getLogger("sqlalchemy.engine").setLevel(logging.WARNING)


def build_engine(database_url: str, **overrides):
    """Create the async engine with dialect-appropriate pool and connect settings"""
    if database_url.startswith("sqlite"):
        options = {
            "echo": False,
            "connect_args": {"check_same_thread": False, "timeout": 30},
        }
    else:
        options = {
            "echo": False,
            "pool_size": settings.DB_POOL_SIZE,
            "max_overflow": settings.DB_MAX_OVERFLOW,
            "pool_pre_ping": True,
            "pool_recycle": 300,
            "connect_args": {
                "server_settings": {"application_name": "socdash"},
                "command_timeout": settings.QUERY_TIMEOUT_SECONDS,
            },
        }
    options.update(overrides)
    engine = create_async_engine(database_url, **options)

    if database_url.startswith("sqlite"):
        # Cascading deletes on incident links rely on enforced foreign keys
        @event.listens_for(engine.sync_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return engine


def build_session_factory(bind) -> async_sessionmaker:
    return async_sessionmaker(
        bind=bind,
        class_=AsyncSession,
        autoflush=False,
        expire_on_commit=False
    )


engine = build_engine(settings.DATABASE_URL)
AsyncSessionLocal = build_session_factory(engine)

# Declarative base class
Base = declarative_base()


async def init_db():
    """Create database tables with trace-aware logging."""
    # Registers every model on Base.metadata
    from socdash.db import models  # noqa: F401

    try:
        async with engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("Database tables initialized successfully")
    except Exception as e:
        logger.error("Database initialization failed", error=str(e), type=type(e).__name__)
        raise


async def get_db():
    """Async session dependency with trace-aware error logging."""
    async with AsyncSessionLocal() as session:
        try:
            yield session
        except Exception as e:
            if isinstance(e, HTTPException):
                logger.error(
                    "Database session error",
                    error=e.detail or str(e),
                    type=type(e).__name__,
                    status_code=e.status_code
                )
            else:
                logger.warning(
                    "Database session closed on error",
                    error=str(e),
                    type=type(e).__name__
                )
            await session.rollback()
            raise
