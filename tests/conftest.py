import os

os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["ADMIN_PASSWORD"] = "admin-pass"
os.environ["CRON_SECRET"] = "cron-secret"
os.environ["DISPLAY_TIMEZONE"] = "America/Chicago"
os.environ["GOOGLE_SERVICE_ACCOUNT_KEY"] = ""
os.environ["GOOGLE_SHEET_ID"] = ""

from typing import AsyncGenerator

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker
from sqlalchemy.pool import StaticPool

from app.api.v1.sheets_sync.dependencies import get_sheets_client, get_sync_throttle
from app.api.v1.sheets_sync.throttle import SyncThrottle
from app.db.session import Base, create_engine_for, get_db
from app.main import app

from helpers import FakeSheetsClient


TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture()
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Fresh in-memory SQLite DB per test, with working SAVEPOINTs."""
    engine = create_engine_for(TEST_DATABASE_URL, poolclass=StaticPool)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield engine
    await engine.dispose()


@pytest.fixture()
async def db_session(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a database session for a test and override FastAPI dependency."""
    async_session = async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
    )

    async with async_session() as session:

        async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
            yield session

        app.dependency_overrides[get_db] = override_get_db
        yield session

    app.dependency_overrides.clear()


@pytest.fixture()
def sheets() -> FakeSheetsClient:
    return FakeSheetsClient()


@pytest.fixture()
def throttle() -> SyncThrottle:
    return SyncThrottle(min_interval_seconds=60)


@pytest.fixture()
async def client(
    db_session: AsyncSession,
    sheets: FakeSheetsClient,
    throttle: SyncThrottle,
) -> AsyncGenerator[AsyncClient, None]:
    """Async HTTP client bound to the FastAPI app."""
    app.dependency_overrides[get_sheets_client] = lambda: sheets
    app.dependency_overrides[get_sync_throttle] = lambda: throttle
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


@pytest.fixture()
async def admin_headers(client: AsyncClient) -> dict:
    response = await client.post("/api/v1/auth/admin/login", json={"password": "admin-pass"})
    assert response.status_code == 200
    return {"Authorization": f"Bearer {response.json()['access_token']}"}
