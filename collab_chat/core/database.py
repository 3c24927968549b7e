"""
Database configuration and session management.
Uses SQLAlchemy 2.0 with async support.
"""
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from collab_chat.config import settings


def _engine_options(url: str) -> dict:
    """Pool options only apply to server databases, not SQLite files."""
    if url.startswith("sqlite"):
        return {}
    return {"pool_pre_ping": True, "pool_size": 20, "max_overflow": 10}


def enable_sqlite_savepoints(async_engine: AsyncEngine) -> None:
    """
    Let SQLite honour SAVEPOINT.

    The sqlite3 driver manages transactions itself and breaks nested
    transactions, so BEGIN is handed over to SQLAlchemy.
    """
    @event.listens_for(async_engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(async_engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


# Create async engine
engine = create_async_engine(
    settings.database_url,
    echo=settings.debug,
    **_engine_options(settings.database_url),
)

if settings.database_url.startswith("sqlite"):
    enable_sqlite_savepoints(engine)

# Create async session factory
AsyncSessionLocal = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
    autocommit=False,
    autoflush=False,
)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency for getting async database sessions.

    Commits when the request handler returns and rolls back on any error,
    so a failed send leaves no partial conversation or message behind.

    Yields:
        AsyncSession: Database session
    """
    async with AsyncSessionLocal() as session:
        try:
            yield session
            await session.commit()
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()
