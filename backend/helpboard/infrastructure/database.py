"""Database Session Manager — async engine, request sessions and readiness checks for help_posts.

Invariants:
    - A session that raises is rolled back before the error leaves the context
    - SQLAlchemy failures leave this module only as DatabaseError (core/errors.py),
      labelled with the phase that failed; the driver message stays in logs
    - Readiness means two things: the server answers, and help_posts is queryable
      (migrations applied)

Design Decisions:
    - Singleton db_manager initialized by the FastAPI lifespan
    - expire_on_commit=False: HelpPost documents are mapped to core objects after
      commit, so rows must stay readable without a refresh
    - Pool sizing only for server databases; SQLite (tests) keeps its default pool
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncGenerator

from sqlalchemy import select, text
from sqlalchemy.exc import (
    DBAPIError, IntegrityError, OperationalError, SQLAlchemyError,
)
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)

from helpboard.core.errors import DatabaseError
from helpboard.models.help_post import HelpPostRow

logger = logging.getLogger(__name__)

# Most specific first: IntegrityError and OperationalError are DBAPIErrors
_FAILED_PHASE = (
    (IntegrityError, "constraint"),
    (OperationalError, "connection"),
    (DBAPIError, "driver"),
    (SQLAlchemyError, "orm"),
)


def failed_phase(error: SQLAlchemyError) -> str:
    return next(label for kind, label in _FAILED_PHASE if isinstance(error, kind))


class DatabaseSessionManager:
    """Owns the engine and hands out help-post sessions."""

    def __init__(
        self, database_url: str, pool_size: int = 20, max_overflow: int = 10,
    ):
        engine_kwargs: dict = {"pool_pre_ping": True}
        if not database_url.startswith("sqlite"):
            engine_kwargs.update(
                pool_size=pool_size, max_overflow=max_overflow, pool_recycle=3600,
            )
        self.engine = create_async_engine(database_url, **engine_kwargs)
        self._session_factory = async_sessionmaker(
            self.engine,
            class_=AsyncSession,
            expire_on_commit=False,
        )

    @asynccontextmanager
    async def session(self) -> AsyncGenerator[AsyncSession, None]:
        """Session that rolls back on any error and maps SQLAlchemy errors."""
        session = self._session_factory()
        try:
            yield session
        except SQLAlchemyError as e:
            await session.rollback()
            phase = failed_phase(e)
            logger.error(
                f"help_posts {phase} failure: {e}",
                extra={"error_code": "DATABASE_ERROR"},
            )
            raise DatabaseError(str(e), phase) from e
        except Exception:
            await session.rollback()
            raise
        finally:
            await session.close()

    async def readiness(self) -> dict[str, bool]:
        """{"database": server answers, "help_posts": table is queryable}."""
        checks = {"database": False, "help_posts": False}
        try:
            async with self.session() as db:
                await db.execute(text("SELECT 1"))
                checks["database"] = True
                await db.execute(select(HelpPostRow.id).limit(1))
                checks["help_posts"] = True
        except Exception as e:
            logger.warning(f"Readiness check failed: {checks}: {e}")
        return checks

    async def dispose(self) -> None:
        await self.engine.dispose()


db_manager: DatabaseSessionManager | None = None


def init_db(database_url: str, **kwargs):
    global db_manager
    db_manager = DatabaseSessionManager(database_url, **kwargs)


async def get_db() -> AsyncGenerator[AsyncSession, None]:
    """FastAPI dependency: one session per request."""
    if not db_manager:
        raise RuntimeError("Database not initialized")
    async with db_manager.session() as session:
        yield session
