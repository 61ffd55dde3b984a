from typing import Any, AsyncGenerator, Dict

from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import NullPool

from core.config import config


def get_engine_config(database_url: str) -> Dict[str, Any]:
    """Get database engine configuration based on database type.

    Args:
        database_url: Database connection URL

    Returns:
        Dict of engine configuration parameters
    """
    config_dict: Dict[str, Any] = {
        "echo": False,
        "future": True,
    }

    if "postgresql" in database_url:
        # Hosted PostgreSQL: pooled, with bounded waits on checkout and connect
        config_dict.update({
            "pool_size": config.DATABASE_POOL_SIZE,
            "max_overflow": config.DATABASE_MAX_OVERFLOW,
            "pool_timeout": config.DATABASE_TIMEOUT_SECONDS,
            "pool_recycle": 1800,
            "pool_pre_ping": True,
            "connect_args": {"timeout": config.DATABASE_TIMEOUT_SECONDS},
        })
    elif "sqlite" in database_url:
        config_dict.update({
            "connect_args": {
                "check_same_thread": False,
                "timeout": config.DATABASE_TIMEOUT_SECONDS,
            },
            "poolclass": NullPool,
        })

    return config_dict


engine = create_async_engine(
    config.DATABASE_URL,
    **get_engine_config(config.DATABASE_URL)
)

# supersedes_id and decided_by rely on SQLite enforcing foreign keys
if "sqlite" in config.DATABASE_URL:
    @event.listens_for(engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


async_session_factory = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that provides an async database session.

    Usage:
        @router.get("/applications")
        async def list_applications(db_session: AsyncSession = Depends(get_db)):
            ...
    """
    async with async_session_factory() as session:
        try:
            yield session
        finally:
            await session.close()
