"""Pytest configuration and shared fixtures for all tests."""

import os
import sys
from pathlib import Path

# Minimal environment for app.config.settings
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///./test.db")
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("LOG_FILE", "")
os.environ.setdefault("REDIS_HOST", "localhost")

# Add project root to PYTHONPATH
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root))

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock

import pytest
import pytest_asyncio
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from app.models import Base, PaymentType, Product, ProductType, User
from app.services.order import OrderService
from app.services.user import UserService


@pytest.fixture
def mock_session():
    """Mock AsyncSession for tests without a database."""
    session = AsyncMock(spec=AsyncSession)
    session.execute = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.flush = AsyncMock()
    session.add = MagicMock()
    session.refresh = AsyncMock()
    return session


@pytest_asyncio.fixture
async def engine(tmp_path):
    """
    File-backed SQLite engine with the full schema.

    Every transaction starts with BEGIN IMMEDIATE, so concurrent sessions
    serialize on the database write lock the way row locks serialize them
    on PostgreSQL.
    """
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'storefront.db'}")

    @event.listens_for(engine.sync_engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        # Let SQLAlchemy emit BEGIN itself (see _on_begin)
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    @event.listens_for(engine.sync_engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine):
    """Session factory configured like app.config.database."""
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest_asyncio.fixture
async def session(session_factory):
    """Database session for one test."""
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def register_user(session):
    """Register users through UserService; returns an async factory."""
    counter = {"telegram_id": 1000}

    async def _register(invite_code: str | None = None, **profile) -> User:
        counter["telegram_id"] += 1
        profile.setdefault("username", f"user{counter['telegram_id']}")
        return await UserService(session).register_user(
            counter["telegram_id"], invite_code=invite_code, **profile
        )

    return _register


@pytest_asyncio.fixture
async def coin_product(session):
    """Active COIN product: 100 coins for 10.00."""
    product = Product(
        name="100 Coins",
        type=ProductType.COIN,
        value=100,
        price=Decimal("10.00"),
    )
    session.add(product)
    await session.commit()
    return product


@pytest_asyncio.fixture
async def subscription_product(session):
    """Active SUBSCRIPTION product: 30 VIP days for 5.00."""
    product = Product(
        name="VIP - 30 Days",
        type=ProductType.SUBSCRIPTION,
        value=0,
        vip_days=30,
        price=Decimal("5.00"),
    )
    session.add(product)
    await session.commit()
    return product


@pytest_asyncio.fixture
async def create_order(session, register_user):
    """Create plain orders through OrderService.create; returns an async factory."""

    async def _create(
        user: User | None = None,
        rate_valid_seconds: int = 600,
        custom_expiration: int = 3600,
        amount: Decimal = Decimal("25"),
    ):
        if user is None:
            user = await register_user()
        return await OrderService(session).create(
            user_id=user.id,
            payment_type=PaymentType.TON,
            amount=amount,
            fiat_amount=Decimal("10.00"),
            exchange_rate=Decimal("2.5"),
            rate_valid_seconds=rate_valid_seconds,
            custom_expiration=custom_expiration,
        )

    return _create


@pytest.fixture
def one_second():
    """A timedelta of one second, for stepping past expiry boundaries."""
    return timedelta(seconds=1)
