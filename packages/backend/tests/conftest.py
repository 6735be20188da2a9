"""Test fixtures — a fresh in-memory database per test.

Learn: Testing pattern for async SQLAlchemy + FastAPI:

1. Each test gets its own in-memory SQLite engine (aiosqlite) with the
   full schema created from Base.metadata.
2. The app's get_db dependency is overridden to hand out sessions from
   that engine, one per request, exactly like production.
3. The engine is disposed after the test — all test data vanishes.

Services commit for real (no savepoint trick needed), and tests never
see each other's rows.
"""

import os

# Must be set before recordgate.config is imported.
os.environ.setdefault("RECORDGATE_DATABASE_URL", "sqlite+aiosqlite://")
os.environ.setdefault("RECORDGATE_BCRYPT_ROUNDS", "4")

import uuid  # noqa: E402

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy.ext.asyncio import (  # noqa: E402
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool  # noqa: E402

from recordgate.db.engine import create_schema, get_db  # noqa: E402
from recordgate.main import app  # noqa: E402


@pytest_asyncio.fixture()
async def db_engine():
    """One in-memory database shared by every connection of this test."""
    engine = create_async_engine(
        "sqlite+aiosqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    await create_schema(engine)
    try:
        yield engine
    finally:
        await engine.dispose()


@pytest_asyncio.fixture()
async def session_factory(db_engine):
    return async_sessionmaker(db_engine, class_=AsyncSession, expire_on_commit=False)


@pytest_asyncio.fixture()
async def db_session(session_factory):
    """A session for tests that seed or inspect rows directly."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture()
async def client(session_factory):
    """HTTP client running the real app (real auth gate) on the test DB."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest.fixture()
def codec():
    """The app's token codec, for minting tokens directly."""
    return app.state.token_codec


@pytest_asyncio.fixture()
async def make_user(client):
    """Register a user through the API; returns (auth_headers, user dict).

    Usage: headers, user = await make_user("guardian")
    """

    async def _make(role: str = "submitter", username: str | None = None):
        username = username or f"{role}-{uuid.uuid4().hex[:8]}"
        r = await client.post(
            "/api/v1/auth/register",
            json={
                "username": username,
                "email": f"{username}@example.com",
                "password": "password_123",
                "role": role,
            },
        )
        assert r.status_code == 201, r.text
        body = r.json()
        return {"Authorization": f"Bearer {body['token']}"}, body["user"]

    return _make
