"""Pytest configuration and shared fixtures."""

from collections.abc import AsyncGenerator
from unittest.mock import MagicMock

import pytest
from fastapi import FastAPI
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)
from sqlalchemy.pool import StaticPool

from tenantcore.core.auth.dependencies import get_api_key_usage_recorder
from tenantcore.core.auth.principal import Role
from tenantcore.core.database import Base, get_db
from tenantcore.main import create_app

# Import all models to ensure they're registered with Base.metadata
from tenantcore.modules.plans.models import SubscriptionPlan
from tenantcore.modules.subscriptions.models import TenantSubscription  # noqa: F401
from tenantcore.modules.tenants.models import Tenant
from tenantcore.modules.users.models import User, UserTenant  # noqa: F401
from tests.factories.models import create_plan, create_tenant, create_user


# Shared in-memory database; StaticPool keeps the single connection alive
TEST_DATABASE_URL = "sqlite+aiosqlite://"


@pytest.fixture(scope="function")
async def engine() -> AsyncGenerator[AsyncEngine, None]:
    """Create test database engine."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        poolclass=StaticPool,
        connect_args={"check_same_thread": False},
        echo=False,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest.fixture
async def db(engine: AsyncEngine) -> AsyncGenerator[AsyncSession, None]:
    """Provide a transactional database session for tests.

    Each test runs in its own transaction that is rolled back
    after the test completes, ensuring test isolation.
    """
    async with engine.connect() as conn:
        await conn.begin()

        async with AsyncSession(
            bind=conn,
            expire_on_commit=False,
            autoflush=False,
        ) as session:
            yield session

        await conn.rollback()


@pytest.fixture
def session_factory(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Committing session factory for code that opens its own sessions.

    Do not combine with ``db`` in one test; both share the connection.
    """
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
def usage_recorder() -> MagicMock:
    """Stand-in for the API key last-used recorder."""
    return MagicMock()


@pytest.fixture
async def app(db: AsyncSession, usage_recorder: MagicMock) -> AsyncGenerator[FastAPI, None]:
    """Create test application instance."""
    application = create_app()

    # Override database dependency
    async def override_get_db() -> AsyncGenerator[AsyncSession, None]:
        yield db

    application.dependency_overrides[get_db] = override_get_db
    application.dependency_overrides[get_api_key_usage_recorder] = lambda: usage_recorder

    yield application

    application.dependency_overrides.clear()


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient, None]:
    """Provide async HTTP client for API testing."""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as client:
        yield client


# ============================================================
# Tenant, Plan and User Fixtures
# ============================================================


@pytest.fixture
async def plan(db: AsyncSession) -> SubscriptionPlan:
    """An active plan."""
    return await create_plan(db)


@pytest.fixture
async def tenant_and_key(db: AsyncSession) -> tuple[Tenant, str]:
    """A persisted tenant and the plaintext of its API key."""
    return await create_tenant(db)


@pytest.fixture
def tenant(tenant_and_key: tuple[Tenant, str]) -> Tenant:
    return tenant_and_key[0]


@pytest.fixture
def tenant_api_key(tenant_and_key: tuple[Tenant, str]) -> str:
    return tenant_and_key[1]


@pytest.fixture
async def other_tenant(db: AsyncSession) -> Tenant:
    """A second tenant, for isolation checks."""
    tenant, _ = await create_tenant(db)
    return tenant


@pytest.fixture
async def tenant_admin(db: AsyncSession, tenant: Tenant) -> User:
    return await create_user(db, tenant, role=Role.TENANT_ADMIN)


@pytest.fixture
async def tenant_user(db: AsyncSession, tenant: Tenant) -> User:
    return await create_user(db, tenant, role=Role.TENANT_USER)


@pytest.fixture
async def other_tenant_admin(db: AsyncSession, other_tenant: Tenant) -> User:
    return await create_user(db, other_tenant, role=Role.TENANT_ADMIN)


@pytest.fixture
async def superadmin(db: AsyncSession) -> User:
    """A platform super-admin (no home tenant)."""
    return await create_user(db, None, role=Role.SUPER_ADMIN)
