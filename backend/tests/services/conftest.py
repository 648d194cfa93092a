"""Service test fixtures — lifecycle engine over an in-memory store, plus a real SQL store.

Invariants:
    - Every test gets a fresh store (in-memory fake or in-memory SQLite)
    - The clock ticks one second per call, so created_at ordering is deterministic
    - RecordingObserver captures every notification the engine emits

Design Decisions:
    - StaticPool: aiosqlite ":memory:" is per-connection, so one shared connection
      keeps the schema visible to every session in the test
"""

import pytest
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from sqlalchemy.pool import StaticPool

from helpboard.db.base import Base
from helpboard.infrastructure.help_post_store import SqlHelpPostStore
import helpboard.models  # noqa: F401
from helpboard.services.help_post_lifecycle import HelpPostLifecycle
from tests.factories import TickingClock
from tests.services.fake_store import InMemoryHelpPostStore


class RecordingObserver:
    def __init__(self):
        self.succeeded = []
        self.failed = []
        self.retries = []

    def operation_succeeded(self, operation, caller_id, post_id, **fields):
        self.succeeded.append((operation, caller_id, post_id, fields))

    def operation_failed(self, operation, caller_id, post_id, error):
        self.failed.append((operation, caller_id, post_id, error))

    def conflict_retried(self, operation, post_id, attempt):
        self.retries.append((operation, post_id, attempt))


@pytest.fixture
def observer():
    return RecordingObserver()


@pytest.fixture
def memory_store():
    return InMemoryHelpPostStore()


@pytest.fixture
def lifecycle(memory_store, observer):
    return HelpPostLifecycle(
        memory_store, observer, clock=TickingClock(), max_attempts=3,
        max_page_size=50,
    )


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False, poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
async def test_session_factory(test_engine):
    return async_sessionmaker(
        test_engine, class_=AsyncSession, expire_on_commit=False,
    )


@pytest.fixture
async def test_db(test_session_factory):
    async with test_session_factory() as session:
        yield session


@pytest.fixture
def sql_store(test_db):
    return SqlHelpPostStore(test_db)


@pytest.fixture
def sql_lifecycle(sql_store, observer):
    return HelpPostLifecycle(sql_store, observer, clock=TickingClock())
