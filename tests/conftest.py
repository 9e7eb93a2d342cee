"""Shared pytest fixtures for API, store and component tests."""

import datetime
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncEngine

from shorturls.config import Settings
from shorturls.database import close_db, create_engine_from_url, create_session_factory, init_db
from shorturls.dependencies import ServiceManager, get_service_manager
from shorturls.main import app
from shorturls.models import Link
from shorturls.store import LinkStore

BASE_URL = "http://test"


@pytest.fixture
def settings(tmp_path) -> Settings:
    return Settings(
        _env_file=None,
        BASE_URL=BASE_URL,
        DATABASE_URL=f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        REDIS_URL=None,
        LOG_DIR=str(tmp_path / "logs"),
        LOG_LEVEL="DEBUG",
    )


@pytest_asyncio.fixture(scope="function")
async def engine(settings: Settings) -> AsyncGenerator[AsyncEngine, None]:
    engine = create_engine_from_url(settings.DATABASE_URL)
    await init_db(engine)
    yield engine
    await close_db(engine)


@pytest.fixture
def store(engine: AsyncEngine) -> LinkStore:
    return LinkStore(create_session_factory(engine))


@pytest_asyncio.fixture(scope="function")
async def manager(settings: Settings) -> AsyncGenerator[ServiceManager, None]:
    manager = ServiceManager()
    await manager.initialize(settings)
    yield manager
    await manager.cleanup()


@pytest_asyncio.fixture(scope="function")
async def client(manager: ServiceManager) -> AsyncGenerator[AsyncClient, None]:
    async def override_get_service_manager() -> ServiceManager:
        return manager

    app.dependency_overrides[get_service_manager] = override_get_service_manager

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url=BASE_URL) as ac:
        yield ac

    app.dependency_overrides.clear()


def _make_link(
    shortcode: str,
    url: str = "https://example.com",
    created_at: datetime.datetime | None = None,
    minutes: int = 30,
) -> Link:
    created_at = created_at or datetime.datetime.now(datetime.timezone.utc)
    return Link(
        shortcode=shortcode,
        original_url=url,
        created_at=created_at,
        expires_at=created_at + datetime.timedelta(minutes=minutes),
    )


@pytest.fixture
def make_link():
    return _make_link
