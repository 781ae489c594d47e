"""Async SQLAlchemy engine and session factory for FastAPI."""

import os

from sqlalchemy import event, text
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.orm import DeclarativeBase

from config import Config
from logging_config import get_logger

logger = get_logger(__name__)

DATABASE_URL = os.getenv("DATABASE_URL", Config.DATABASE_URL)
_is_sqlite = DATABASE_URL.startswith("sqlite")


class Base(DeclarativeBase):
    pass


def _ensure_sqlite_dir() -> None:
    """Create the parent directory of a file-backed SQLite URL."""
    if not _is_sqlite or ":memory:" in DATABASE_URL:
        return
    path = DATABASE_URL.split(":///", 1)[-1]
    parent = os.path.dirname(os.path.abspath(path))
    os.makedirs(parent, exist_ok=True)


_ensure_sqlite_dir()

engine = create_async_engine(
    DATABASE_URL,
    # check_same_thread is a SQLite-only option
    connect_args={"check_same_thread": False} if _is_sqlite else {},
    echo=False,
)

if _is_sqlite:
    @event.listens_for(engine.sync_engine, "connect")
    def _enable_sqlite_fks(dbapi_connection, connection_record):
        # ON DELETE SET NULL / CASCADE are no-ops in SQLite unless this is on
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


AsyncSessionLocal = async_sessionmaker(
    engine,
    expire_on_commit=False,
    class_=AsyncSession,
)


async def get_db():
    async with AsyncSessionLocal() as session:
        yield session


async def init_db():
    """Create all tables and enable WAL mode for SQLite."""
    async with engine.begin() as conn:
        if _is_sqlite:
            try:
                await conn.execute(text("PRAGMA journal_mode=WAL"))
            except Exception as wal_exc:
                # the default rollback journal is still fully usable
                logger.warning("database.wal_mode.failed", error=str(wal_exc))
        import models  # noqa: F401  registers mapped classes on Base
        await conn.run_sync(Base.metadata.create_all)
