from typing import AsyncGenerator

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base

from app.core.config import settings


def _engine_options(database_url: str) -> dict:
    # SQLite (local dev, CLI dry runs) needs no pool tuning
    if database_url.startswith("sqlite"):
        return {}
    # pool_pre_ping: check connection is alive before use.
    # pool_recycle: discard connections after this many seconds to avoid stale connections.
    return {"pool_pre_ping": True, "pool_recycle": 300}


def enable_sqlite_savepoints(engine: AsyncEngine) -> None:
    """Let SQLAlchemy own transactions on pysqlite so begin_nested() issues real SAVEPOINTs."""

    @event.listens_for(engine.sync_engine, "connect")
    def _disable_driver_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")


def create_engine_for(database_url: str, **kwargs) -> AsyncEngine:
    new_engine = create_async_engine(database_url, echo=False, **_engine_options(database_url), **kwargs)
    if database_url.startswith("sqlite"):
        enable_sqlite_savepoints(new_engine)
    return new_engine


engine = create_engine_for(settings.database_url)

AsyncSessionLocal = async_sessionmaker(
    bind=engine,
    class_=AsyncSession,
    expire_on_commit=False,
)

Base = declarative_base()


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    async with AsyncSessionLocal() as session:
        yield session
