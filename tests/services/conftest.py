"""Service test fixtures — async DB, wired InvitationService and FastAPI test client.

Invariants:
    - Every test gets a fresh in-memory SQLite database
    - get_db dependency overridden to use the test session factory
    - The app's InvitationRuntime is replaced per test with a MemoryInvitationCache
    - statement_log records every SELECT sent to the invitations table

Design Decisions:
    - SQLite in-memory: fast, no external dependency; it supports the partial
      unique index the store relies on for duplicate detection
    - Cache is a real MemoryInvitationCache (not a mock) so hit/miss behavior is exercised
"""

import pytest
from sqlalchemy import event
from sqlalchemy.ext.asyncio import (
    AsyncSession, create_async_engine, async_sessionmaker,
)
from httpx import ASGITransport, AsyncClient

import invitations.models  # noqa: F401
from invitations.db.base import Base
from invitations.infrastructure.cache import MemoryInvitationCache
from invitations.infrastructure.database import get_db, install_sqlite_functions
from invitations.main import app
from invitations.services.runtime import InvitationRuntime


@pytest.fixture
async def test_engine():
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:", echo=False,
    )
    install_sqlite_functions(engine)
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
def memory_cache():
    return MemoryInvitationCache()


@pytest.fixture
def runtime(memory_cache):
    return InvitationRuntime(cache=memory_cache)


@pytest.fixture
def hooks(runtime):
    return runtime.hooks


@pytest.fixture
def service(runtime, test_db):
    return runtime.service_for(test_db)


@pytest.fixture
def statement_log(test_engine):
    """List of SELECT statements against the invitations table, in order."""
    log: list[str] = []

    def _record(conn, cursor, statement, parameters, context, executemany):
        if statement.lstrip().upper().startswith("SELECT") and "invitations" in statement:
            log.append(statement)

    event.listen(test_engine.sync_engine, "before_cursor_execute", _record)
    yield log
    event.remove(test_engine.sync_engine, "before_cursor_execute", _record)


@pytest.fixture
async def client(test_session_factory, runtime):
    """FastAPI test client with DB dependency and runtime overridden."""
    async def override_get_db():
        async with test_session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    original_runtime = getattr(app.state, "runtime", None)
    app.state.runtime = runtime

    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test",
    ) as c:
        yield c

    app.dependency_overrides.clear()
    app.state.runtime = original_runtime
