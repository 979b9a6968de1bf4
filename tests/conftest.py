"""Shared test fixtures.

Every test gets its own in-memory SQLite database and its own
LedgerApplicationService (and therefore its own write lock).
"""

import os

# Must be set before config.settings is imported anywhere
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite://")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from src.et_balance.api.dependencies import get_ledger_service  # noqa: E402
from src.et_balance.application.service import LedgerApplicationService  # noqa: E402
from src.et_common.database import Base, get_db_session  # noqa: E402
from src.et_ledger.infrastructure import db_models  # noqa: E402, F401
from src.main import app  # noqa: E402


@pytest.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def ledger_service() -> LedgerApplicationService:
    return LedgerApplicationService()


@pytest.fixture
async def db(
    session_factory: async_sessionmaker[AsyncSession],
    ledger_service: LedgerApplicationService,
) -> AsyncGenerator[AsyncSession, None]:
    """A session on a fresh ledger that already holds Income and Expense."""
    async with session_factory() as session:
        await ledger_service.ensure_reserved_accounts(session)
        yield session


@pytest.fixture
async def client(
    session_factory: async_sessionmaker[AsyncSession],
    ledger_service: LedgerApplicationService,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the per-test database and service."""
    async with session_factory() as session:
        await ledger_service.ensure_reserved_accounts(session)

    async def _session() -> AsyncGenerator[AsyncSession, None]:
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db_session] = _session
    app.dependency_overrides[get_ledger_service] = lambda: ledger_service
    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()
