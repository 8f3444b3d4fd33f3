"""
Centralized Test Configuration.

Every test gets a fresh in-memory SQLite database, an in-process Redis
stand-in and a temporary upload directory. Accounts are created through the
API the way clients create them; admins are inserted directly and log in.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from loadmate.app.main import app
from loadmate.app.db.session import get_db, Base
from loadmate.app.models.user import User
from loadmate.app.models.enums import UserRole
from loadmate.app.core.security import get_password_hash
from loadmate.app.services.media_storage import LocalDiskStorage, get_media_storage
import loadmate.app.core.redis_client as redis_client_module
from loadmate.tests.helpers import register_customer, register_owner, add_vehicle, create_booking

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, seconds, value):
        self.store[key] = value
        return True

    async def delete(self, key):
        if key in self.store:
            del self.store[key]
            return 1
        return 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(
        engine, class_=AsyncSession, expire_on_commit=False, autoflush=False
    )


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture
def upload_dir(tmp_path):
    return tmp_path / "uploads"


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis, upload_dir, monkeypatch):
    """Point the app at the test database, the mock Redis and a temp upload dir."""
    monkeypatch.setattr(redis_client_module, "redis_client", mock_redis)

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_media_storage] = lambda: LocalDiskStorage(upload_dir)
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture
async def db_session(session_factory):
    """Session for inspecting and preparing rows directly."""
    async with session_factory() as session:
        yield session


@pytest.fixture
async def customer_token(client):
    """Create a customer and return (token, user_id)."""
    return await register_customer(client, "customer@test.com")


@pytest.fixture
async def customer2_token(client):
    """Second customer for cross-account tests."""
    return await register_customer(client, "customer2@test.com", name="Other Customer")


@pytest.fixture
async def owner_token(client):
    """Create a vehicle owner and return (token, user_id)."""
    return await register_owner(client, "owner@test.com")


@pytest.fixture
async def owner2_token(client):
    """Second owner for cross-tenant tests."""
    return await register_owner(client, "owner2@test.com", business_name="Other Transport")


@pytest.fixture
async def admin_token(client, db_session):
    """Create admin user and return (token, user_id)."""
    admin = User(
        name="Admin",
        email="admin@test.com",
        hashed_password=get_password_hash("admin123"),
        role=UserRole.ADMIN,
        vehicles_owned=[]
    )
    db_session.add(admin)
    await db_session.commit()

    response = await client.post("/api/v1/auth/login", json={
        "email": "admin@test.com",
        "password": "admin123"
    })
    assert response.status_code == 200
    return response.json()["access_token"], admin.id


@pytest.fixture
async def owner_vehicle(client, owner_token):
    """Tata Ace listed by ``owner_token``: capacity 750, 12/km, loading 200."""
    token, _ = owner_token
    return await add_vehicle(client, token)


@pytest.fixture
async def pending_booking(client, customer_token, owner_vehicle):
    """A 50 km booking by ``customer_token`` on ``owner_vehicle``."""
    token, _ = customer_token
    return await create_booking(client, token, owner_vehicle["id"])
