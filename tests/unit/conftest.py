"""
Shared fixtures for unit tests.

This module provides common fixtures used across multiple test modules:
- Unsaved order and invite code objects
- OrderService wired to mocked repositories
"""

from datetime import UTC, datetime, timedelta
from decimal import Decimal
from unittest.mock import AsyncMock

import pytest

from app.models import InviteCode, Order, OrderStatus, PaymentType
from app.services.order import OrderService


@pytest.fixture
def now():
    """Fixed reference time."""
    return datetime(2026, 10, 17, 12, 0, 0, tzinfo=UTC)


@pytest.fixture
def order(now):
    """
    Create an unsaved order in CREATED status.

    Default values:
    - id: 1
    - amount: 25 (payment currency)
    - fiat_amount: 10.00
    - expire_at: now + 10 minutes

    Returns:
        Order: Transient order object
    """
    return Order(
        id=1,
        user_id=100,
        payment_type=PaymentType.TON,
        amount=Decimal("25"),
        fiat_amount=Decimal("10.00"),
        exchange_rate=Decimal("2.5"),
        rate_valid_seconds=600,
        custom_expiration=3600,
        expire_at=now + timedelta(minutes=10),
        status=OrderStatus.CREATED,
        version=1,
    )


@pytest.fixture
def invite_code(now):
    """Unsaved invite code issued an hour ago with a one-day TTL."""
    return InviteCode(
        id=1,
        code="abc123defg",
        user_id=100,
        created_at=now - timedelta(hours=1),
        expires_at=now + timedelta(hours=23),
        is_used=False,
    )


@pytest.fixture
def order_service(mock_session, order):
    """
    Create OrderService with mocked repositories.

    The order repository returns the `order` fixture for row-locked reads.

    Args:
        mock_session: Mocked database session
        order: Order returned by the repository

    Returns:
        OrderService: Service instance for testing
    """
    service = OrderService(mock_session)
    service.order_repo = AsyncMock()
    service.order_repo.get_by_id_for_update.return_value = order
    service.history_recorder = AsyncMock()
    return service
