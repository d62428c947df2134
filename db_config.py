"""
Database configuration module using centralized settings.
"""

from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import declarative_base
from core.config import settings
from core.logging import get_logger

logger = get_logger("database")

ASYNC_SQLALCHEMY_DATABASE_URL = settings.async_database_url
IS_SQLITE = ASYNC_SQLALCHEMY_DATABASE_URL.startswith("sqlite")

logger.info("Database configuration loaded",
            backend=ASYNC_SQLALCHEMY_DATABASE_URL.split(":", 1)[0],
            host=None if IS_SQLITE else settings.db_host,
            database=None if IS_SQLITE else settings.db_name)

engine_options = {"echo": settings.enable_sql_logging}
if not IS_SQLITE:
    engine_options.update(pool_size=10, max_overflow=20, pool_pre_ping=True, pool_recycle=3600)

async_engine = create_async_engine(ASYNC_SQLALCHEMY_DATABASE_URL, **engine_options)


def enable_sqlite_foreign_keys(sync_engine):
    """SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection."""

    @event.listens_for(sync_engine, "connect")
    def _set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


if IS_SQLITE:
    enable_sqlite_foreign_keys(async_engine.sync_engine)

AsyncSessionLocal = async_sessionmaker(
    bind=async_engine,
    class_=AsyncSession,
    autoflush=False,
    expire_on_commit=False
)

# Create Base class
Base = declarative_base()


# Dependency to get async database session
async def get_async_db():
    async with AsyncSessionLocal() as db:
        try:
            logger.debug("Async database session created")
            yield db
        except Exception as e:
            logger.error("Async database session error", error=str(e), exc_info=True)
            await db.rollback()
            raise
        finally:
            await db.close()
            logger.debug("Async database session closed")
