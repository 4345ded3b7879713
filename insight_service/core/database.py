"""Async database engine and session management."""

from typing import Optional

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, async_sessionmaker, create_async_engine
from sqlalchemy.orm import declarative_base
import structlog

from insight_service.core.config import settings

logger = structlog.get_logger()

Base = declarative_base()


def build_engine(database_url: Optional[str] = None) -> AsyncEngine:
    """Create the async engine for the configured database."""
    url = database_url or settings.DATABASE_URL

    # SQLite pools reject sizing arguments
    if url.startswith("sqlite"):
        return create_async_engine(url)

    return create_async_engine(
        url,
        pool_size=settings.DATABASE_POOL_SIZE,
        max_overflow=settings.DATABASE_MAX_OVERFLOW,
        pool_pre_ping=True,
    )


def build_session_factory(engine: AsyncEngine) -> async_sessionmaker:
    """Create a session factory bound to an engine."""
    return async_sessionmaker(engine, expire_on_commit=False)


async def init_db(engine: AsyncEngine, include_records: bool = False):
    """Create the tables owned by this service.

    The record tables (subjects, marks, study_sessions, goals, users) belong to
    the record store and are only created when ``include_records`` is set,
    e.g. for local development and tests.
    """
    # Import models so they register with the metadata
    from insight_service.models import insights, records

    tables = [insights.AIInsight.__table__, insights.AISuggestion.__table__]
    if include_records:
        tables = list(Base.metadata.sorted_tables)

    async with engine.begin() as conn:
        await conn.run_sync(lambda sync_conn: Base.metadata.create_all(sync_conn, tables=tables))

    logger.info("Database initialized", tables=[t.name for t in tables])


async def check_db(session_factory: async_sessionmaker) -> None:
    """Run a trivial query; raises if the database is unreachable."""
    async with session_factory() as session:
        await session.execute(text("SELECT 1"))

