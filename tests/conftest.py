"""Shared test fixtures and configuration."""

from __future__ import annotations

import os
from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

os.environ.setdefault("CONTACTBOOK_ENV", "test")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("CONTACTBOOK_LOG_LEVEL", "WARNING")

from contactbook.config import Settings
from contactbook.database import Base, create_tables
from contactbook.modules.contacts.repository import InMemoryContactRepository, ProviderContactRepository
from contactbook.modules.contacts.store import ContactsProvider
from contactbook.modules.permissions.service import PermissionService


@pytest.fixture
def settings() -> Settings:
    """Return test settings."""
    return Settings(
        contactbook_env="test",
        database_url="sqlite+aiosqlite:///:memory:",
        contactbook_log_level="WARNING",
        _env_file=None,
    )


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """Provide a clean in-memory contacts store for each test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
    )
    await create_tables(engine)

    yield async_sessionmaker(bind=engine, class_=AsyncSession, expire_on_commit=False)

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


@pytest.fixture
def provider(session_factory) -> ContactsProvider:
    return ContactsProvider(session_factory)


@pytest.fixture
def store_repository(provider) -> ProviderContactRepository:
    return ProviderContactRepository(provider)


@pytest.fixture
def memory_repository() -> InMemoryContactRepository:
    return InMemoryContactRepository()


@pytest.fixture(params=["store", "memory"])
def repository(request, session_factory):
    """Each repository implementation, checked against the same contract."""
    if request.param == "store":
        return ProviderContactRepository(ContactsProvider(session_factory))
    return InMemoryContactRepository()


@pytest_asyncio.fixture
async def permissions(session_factory) -> PermissionService:
    """Permission service with contacts access already granted."""
    service = PermissionService(session_factory)
    await service.grant()
    return service

