from typing import AsyncGenerator

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from libs.auth.dependencies import get_current_user, require_staff
from libs.auth.models import AuthUser
from libs.db.base import Base
from libs.db.session import get_async_db

# Import all models so metadata includes every table
from services.membership_service import models as _membership_models  # noqa: F401
from services.orders_service import models as _orders_models  # noqa: F401

TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture
async def test_engine():
    """
    Fresh in-memory database per test.
    StaticPool keeps the single connection alive so every session sees
    the same tables.
    """
    engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(test_engine) -> AsyncGenerator[AsyncSession, None]:
    session_factory = async_sessionmaker(
        bind=test_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )
    async with session_factory() as session:
        yield session


@pytest.fixture
def staff_user() -> AuthUser:
    return AuthUser(user_id="staff-1", email="staff@hometownpharmacy.in", role="staff")


@pytest.fixture
def customer_user() -> AuthUser:
    return AuthUser(user_id="customer-1", email="asha@example.com", role="authenticated")


def _override_app(app, db_session, current_user, staff_user):
    async def _db():
        yield db_session

    app.dependency_overrides[get_async_db] = _db
    app.dependency_overrides[get_current_user] = lambda: current_user
    app.dependency_overrides[require_staff] = lambda: staff_user


@pytest_asyncio.fixture
async def membership_client(
    db_session, customer_user, staff_user
) -> AsyncGenerator[AsyncClient, None]:
    """
    Membership service client. Customer routes see ``customer_user``,
    staff routes see ``staff_user``.
    """
    from services.membership_service.app.main import app

    _override_app(app, db_session, customer_user, staff_user)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def orders_client(
    db_session, customer_user, staff_user
) -> AsyncGenerator[AsyncClient, None]:
    from services.orders_service.app.main import app

    _override_app(app, db_session, customer_user, staff_user)
    async with AsyncClient(
        transport=ASGITransport(app=app), base_url="http://test"
    ) as ac:
        yield ac

    app.dependency_overrides.clear()
