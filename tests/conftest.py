"""Shared fixtures: an in-memory store, a session on it, and an HTTP client."""
import httpx
import pytest_asyncio

from api.main import create_app
from core.config import Settings
from core.database import Database

TEST_SETTINGS = Settings(
    database_url="sqlite+aiosqlite:///:memory:",
    store_timeout_seconds=5.0,
    log_level="WARNING",
)


@pytest_asyncio.fixture
async def database():
    db = Database(TEST_SETTINGS)
    await db.init_models()
    yield db
    await db.close()


@pytest_asyncio.fixture
async def session(database):
    async with database.session() as session:
        yield session


@pytest_asyncio.fixture
async def client(database):
    app = create_app(TEST_SETTINGS)
    app.state.database = database
    transport = httpx.ASGITransport(app=app)
    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        yield client
