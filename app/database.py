"""
Database Configuration

One async engine for the process. Surveys and responses live in two tables
tied by a foreign key; SQLite connections are told to enforce it so local
runs fail deletes the same way PostgreSQL does.

SQL echo is off in production: statements carry respondent answers.
"""

import logging
import time

from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import DeclarativeBase
from app.config import settings

logger = logging.getLogger(__name__)

SLOW_QUERY_THRESHOLD_MS = 500


def _is_sqlite(url: str) -> bool:
    return url.startswith("sqlite")


def _engine_options(url: str) -> dict:
    if _is_sqlite(url):
        return {}
    return {
        "pool_size": 10,
        "max_overflow": 5,
        "pool_recycle": 3600,
        "pool_pre_ping": True,
    }


def enable_sqlite_foreign_keys(async_engine: AsyncEngine) -> None:
    """SQLite ignores REFERENCES clauses unless each connection opts in."""

    @event.listens_for(async_engine.sync_engine, "connect")
    def _set_foreign_keys(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


def _before_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    conn.info["query_start_time"] = time.monotonic()


def _after_cursor_execute(conn, cursor, statement, parameters, context, executemany):
    start = conn.info.pop("query_start_time", None)
    if start is None:
        return
    duration_ms = (time.monotonic() - start) * 1000
    if duration_ms >= SLOW_QUERY_THRESHOLD_MS:
        # Statement text only, parameters hold answers
        logger.warning("Slow query (%.0fms): %s", duration_ms, statement[:200])


engine = create_async_engine(
    settings.DATABASE_URL,
    echo=settings.sqlalchemy_echo,
    future=True,
    **_engine_options(settings.DATABASE_URL),
)

if _is_sqlite(settings.DATABASE_URL):
    enable_sqlite_foreign_keys(engine)

event.listen(engine.sync_engine, "before_cursor_execute", _before_cursor_execute)
event.listen(engine.sync_engine, "after_cursor_execute", _after_cursor_execute)

async_session_maker = async_sessionmaker(
    engine,
    class_=AsyncSession,
    expire_on_commit=False,
)


class Base(DeclarativeBase):
    pass


async def get_db() -> AsyncSession:
    """Request-scoped session.

    survey_store functions commit their own work; this only opens and closes.
    """
    session = async_session_maker()
    try:
        yield session
    finally:
        await session.close()


async def init_db():
    """Create the survey tables if they do not exist yet."""
    # Registers Survey and SurveyResponse on Base.metadata
    from app import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
