"""
Pytest configuration and fixtures for the archive API tests
"""

import os
import sys
from collections.abc import AsyncGenerator
from datetime import timedelta

import httpx
import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), "..")))  # noqa: PTH100, PTH118, PTH120

from app.auth import create_access_token  # noqa: E402
from app.database import Base, get_db  # noqa: E402
from app.models.user import User  # noqa: E402
from utils.fixtures import create_role_set, create_test_user  # noqa: E402


@pytest.fixture(scope="function")
async def test_engine(tmp_path):
    """
    File-backed SQLite database per test.

    A file rather than :memory: so the background page-view writer and the
    request under test each get their own connection.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'archive_test.db'}", echo=False)
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
async def test_db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for tests that need it."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def roles(test_db: AsyncSession):
    return await create_role_set(test_db)


@pytest.fixture
async def test_user(test_db: AsyncSession, roles) -> User:
    """Registered visitor with the 'user' role"""
    return await create_test_user(test_db, roles["user"], email="reader@example.com", full_name="Anna Reader")


@pytest.fixture
async def test_moderator(test_db: AsyncSession, roles) -> User:
    return await create_test_user(test_db, roles["moderator"], email="moderator@example.com", full_name="Olga Moderator")


@pytest.fixture
async def test_admin(test_db: AsyncSession, roles) -> User:
    return await create_test_user(test_db, roles["admin"], email="admin@example.com", full_name="Pavel Admin")


def bearer_headers(user: User) -> dict:
    access_token = create_access_token(data={"sub": user.email}, expires_delta=timedelta(minutes=30))
    return {"Authorization": f"Bearer {access_token}"}


@pytest.fixture
def auth_headers(test_user: User) -> dict:
    return bearer_headers(test_user)


@pytest.fixture
def moderator_headers(test_moderator: User) -> dict:
    return bearer_headers(test_moderator)


@pytest.fixture
def admin_headers(test_admin: User) -> dict:
    return bearer_headers(test_admin)


class FakeClock:
    """Monotonic clock the tests move by hand."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def app(session_factory):
    """Application wired to the test database; lifespan (scheduler) is not run."""
    from main import create_app

    application = create_app(session_factory=session_factory)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db] = override_get_db
    yield application
    application.dependency_overrides.clear()


@pytest.fixture
async def client(app) -> AsyncGenerator[httpx.AsyncClient, None]:
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as test_client:
        yield test_client
    await app.state.view_recorder.drain()
