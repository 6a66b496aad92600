import os
from collections.abc import AsyncGenerator
from unittest.mock import patch

import fakeredis
import fakeredis.aioredis
import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

# Set test env vars before importing app modules
os.environ["SECRET_KEY"] = "test-secret-key-must-be-at-least-32-characters-long"
os.environ["REDIS_URL"] = "memory://"

# Shared FakeServer holds state; each call creates a fresh client
# bound to the current event loop (avoids pytest-asyncio loop mismatch).
_fake_server = fakeredis.FakeServer()


def _make_fake_redis():
    """Create a fakeredis instance bound to the shared server."""
    return fakeredis.aioredis.FakeRedis(server=_fake_server, decode_responses=True)


async def _mock_get_redis():
    return _make_fake_redis()


# Patch the module-level get_redis() used as fallback in non-DI contexts.
# security imports it by name, so it needs its own patch.
patch("app.core.redis.get_redis", _mock_get_redis).start()
patch("app.core.security.get_redis", _mock_get_redis).start()

# Test database URL (use SQLite for tests)
TEST_DATABASE_URL = "sqlite+aiosqlite:///./test.db"

engine = create_async_engine(TEST_DATABASE_URL, echo=False)
TestingSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture(autouse=True)
async def setup_database():
    import app.models  # noqa: F401
    from app.core.limiter import limiter
    from app.db.base import Base

    # Rate limiting is off in tests
    limiter.enabled = False

    await _make_fake_redis().flushall()

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


@pytest.fixture
async def fake_redis():
    """Provide a fakeredis instance for direct use in tests."""
    return _make_fake_redis()


@pytest.fixture
async def db_session() -> AsyncGenerator[AsyncSession, None]:
    async with TestingSessionLocal() as session:
        yield session


@pytest.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    from app.core.redis import get_redis_dep
    from app.db.session import get_db
    from app.main import app

    async def override_get_db():
        yield db_session

    async def override_get_redis_dep():
        return _make_fake_redis()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_redis_dep] = override_get_redis_dep
    app.state.redis = _make_fake_redis()

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


async def _create_user(db_session: AsyncSession, email: str, full_name: str, plan: str = "free"):
    from app.schemas.user import UserCreate
    from app.services.user_service import UserService

    service = UserService(db_session)
    user = await service.create(
        UserCreate(email=email, password="TestPassword123!", full_name=full_name)
    )
    if plan != "free":
        user = await service.set_plan(user, plan)
    await db_session.commit()
    return user


async def _headers_for(user) -> dict:
    from app.core.security import ACCESS, access_token_ttl_seconds, create_access_token, store_token

    token, jti = create_access_token(subject=user.id)
    # No redis kwarg: falls back to the patched get_redis() (fakeredis)
    await store_token(ACCESS, user.id, jti, access_token_ttl_seconds())
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
async def test_user(db_session: AsyncSession):
    """Create a free-plan user for authenticated tests."""
    return await _create_user(db_session, "testuser@example.com", "Test User")


@pytest.fixture
async def auth_headers(test_user) -> dict:
    return await _headers_for(test_user)


@pytest.fixture
async def other_user(db_session: AsyncSession):
    """A second account, used to check project isolation."""
    return await _create_user(db_session, "other@example.com", "Other User")


@pytest.fixture
async def other_headers(other_user) -> dict:
    return await _headers_for(other_user)


@pytest.fixture
async def pro_user(db_session: AsyncSession):
    return await _create_user(db_session, "pro@example.com", "Pro User", plan="pro")


@pytest.fixture
async def pro_headers(pro_user) -> dict:
    return await _headers_for(pro_user)


@pytest.fixture
async def project(client: AsyncClient, auth_headers: dict) -> dict:
    """A project owned by ``test_user``; includes the plaintext ``api_key``."""
    resp = await client.post(
        "/api/v1/projects/", headers=auth_headers, json={"name": "Test Site"}
    )
    assert resp.status_code == 201
    return resp.json()
