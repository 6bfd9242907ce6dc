"""Database Sessions — async engine for the indicator tables, users and request log.

Invariants:
    - A session rolls back when the block raises; a failed upsert batch leaves nothing behind
    - SQLAlchemy failures leave this module as DatabaseError (503 envelope), never raw
    - Postgres connections run in UTC so timestamptz columns (dollar dates, EMBI closings,
      api_requests.created_at) round-trip unchanged; local-day logic lives in core.periods
    - get_db without an initialized manager is a DatabaseError, not a crash

Design Decisions:
    - One module-level db_manager, built by the lifespan; the access middleware and the cron
      execution log open their own sessions through it, routes use get_db
    - SQLite (tests) skips the pool sizing arguments, which its pool class rejects
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, async_sessionmaker, create_async_engine,
)

from app.core.errors import DatabaseError

logger = logging.getLogger(__name__)

APPLICATION_NAME = "argenstats-api"


def _describe(exc: SQLAlchemyError) -> tuple[str, str]:
    """(message, operation) for a SQLAlchemy failure; most specific type first."""
    if isinstance(exc, IntegrityError):
        return "Natural key or constraint violated", "commit"
    if isinstance(exc, OperationalError):
        return "Database unreachable or operation aborted", "execute"
    if isinstance(exc, DBAPIError):
        return "Database driver error", "query"
    return "Database operation failed", "unknown"


def _engine_kwargs(database_url: str, pool_size: int, max_overflow: int) -> dict:
    if database_url.startswith("sqlite"):
        return {"pool_pre_ping": True}
    return {
        "pool_pre_ping": True,
        "pool_size": pool_size,
        "max_overflow": max_overflow,
        "pool_recycle": 3600,
        "connect_args": {
            "server_settings": {"timezone": "UTC", "application_name": APPLICATION_NAME},
        },
    }


class DatabaseSessionManager:
    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        self.engine = create_async_engine(
            database_url, **_engine_kwargs(database_url, pool_size, max_overflow),
        )
        self._session_factory = async_sessionmaker(
            self.engine, class_=AsyncSession, expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            message, operation = _describe(e)
            logger.error(
                f"DB {operation} error: {e}", extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(message, operation)
        finally:
            await session.close()

    async def health_check(self) -> bool:
        """True when a trivial query answers; used by /health/ready."""
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
        except (DatabaseError, OSError) as e:
            logger.error(f"DB health check failed: {e}")
            return False
        return True

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs) -> DatabaseSessionManager:
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)
    return db_manager


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if db_manager is None:
        raise DatabaseError("Database not initialized", "connect")
    async with db_manager.session() as session:
        yield session
