import logging

from sqlalchemy.ext.asyncio import create_async_engine, AsyncSession
from sqlalchemy.orm import sessionmaker
from sqlalchemy.engine import make_url
from sqlalchemy import text
from employee_api.core.config import settings

logger = logging.getLogger("employee_api.db")


def _engine_options(database_url: str) -> dict:
    """
    Connection pooling and timeout configuration.

    - pool_size / max_overflow: persistent and burst connections
    - pool_pre_ping: verify connections are alive before use
    - pool_recycle: recycle connections after 1 hour to prevent DB-side timeouts
    - pool_timeout: bounded wait for a pooled connection
    - command_timeout: asyncpg cancels statements running longer than this
    """
    url = make_url(database_url)
    options: dict = {"echo": settings.SQLALCHEMY_ECHO, "pool_pre_ping": True}
    if url.get_backend_name() == "sqlite":
        return options
    options.update(
        pool_size=settings.DB_POOL_SIZE,
        max_overflow=settings.DB_MAX_OVERFLOW,
        pool_recycle=3600,
        pool_timeout=settings.DB_POOL_TIMEOUT,
    )
    if url.get_driver_name() == "asyncpg":
        options["connect_args"] = {"command_timeout": settings.DB_COMMAND_TIMEOUT}
    return options


engine = create_async_engine(settings.DATABASE_URL, **_engine_options(settings.DATABASE_URL))

AsyncSessionLocal = sessionmaker(
    engine, class_=AsyncSession, expire_on_commit=False
)


async def init_db() -> None:
    """Create tables and indexes that do not exist yet."""
    from employee_api.db.base import Base

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database tables ensured")


async def check_db_connection() -> bool:
    """
    Verify database connectivity. Used by health checks.
    Returns True if connection is successful, False otherwise.
    """
    try:
        async with engine.connect() as conn:
            await conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.warning(f"Database health check failed: {e}")
        return False
