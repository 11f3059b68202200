"""
Pytest fixtures for EventDesk tests.
"""

import os

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

# Ensure test config is set before importing eventdesk modules.
os.environ.setdefault("EVENTDESK_ALLOW_INSECURE_DEV", "true")
os.environ.setdefault("EVENTDESK_ENV", "development")
os.environ.setdefault(
    "EVENTDESK_DATABASE_URL",
    os.getenv("EVENTDESK_TEST_DATABASE_URL", "sqlite+aiosqlite:///:memory:"),
)

from eventdesk.config import settings
from eventdesk.db.base import Base, build_engine
import eventdesk.db.tables  # noqa: F401
from eventdesk.engine import EventDeskEngine, TabGate
from eventdesk.models import Actor


def _ensure_test_database_url(database_url: str) -> None:
    if database_url.startswith("sqlite"):
        return
    if "test" not in database_url:
        raise RuntimeError(
            "Refusing to run EventDesk tests against a non-test database. "
            "Set EVENTDESK_TEST_DATABASE_URL to a dedicated test database."
        )


@pytest.fixture
async def engine():
    """Create a test engine and wire it into eventdesk.db.base."""
    _ensure_test_database_url(settings.database_url)
    engine = build_engine(settings.database_url, echo=settings.debug)

    # Override global engine/session factory for dependency injection.
    from eventdesk import db as db_module

    db_module.base.engine = engine
    db_module.base.async_session_factory = async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False
    )

    yield engine
    await engine.dispose()


@pytest.fixture
async def session(engine):
    """Provide a clean database session per test."""
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
        await conn.run_sync(Base.metadata.create_all)

    async_session = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture
def owner() -> Actor:
    return Actor(id="owner-1", display_name="Olivia Owner")


@pytest.fixture
def stranger() -> Actor:
    return Actor(id="stranger-1", display_name="Sam Stranger")


@pytest.fixture
def desk(session) -> EventDeskEngine:
    return EventDeskEngine(session)


@pytest.fixture
def tab_gate() -> TabGate:
    return TabGate(debounce_seconds=settings.tab_lock_debounce_seconds)


@pytest.fixture
async def client(session, tab_gate):
    """Async test client with overridden dependencies."""
    from eventdesk.api.deps import get_db_session, get_tab_gate, verify_api_key
    from eventdesk.auth.context import AuthContext
    from eventdesk.main import app

    async def override_get_db_session():
        yield session

    async def override_verify_api_key():
        return AuthContext(auth_type="insecure_dev")

    app.dependency_overrides[get_db_session] = override_get_db_session
    app.dependency_overrides[verify_api_key] = override_verify_api_key
    app.dependency_overrides[get_tab_gate] = lambda: tab_gate

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()
