"""Integration tests for order creation, transitions and expiry."""

import asyncio
from datetime import timedelta
from decimal import Decimal

import pytest

from app.config.settings import settings
from app.models import FulfillmentStatus, OrderStatus, PaymentType
from app.repositories.order_status_history_repository import (
    OrderStatusHistoryRepository,
)
from app.repositories.user_order_repository import UserOrderRepository
from app.services.order import OrderService
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import (
    InvalidTransitionError,
    MissingTransactionIdError,
    OrderLimitReachedError,
    OrderNotFoundError,
    ProductNotFoundError,
    UserNotFoundError,
    ValidationError,
)

pytestmark = pytest.mark.integration


async def _pay(service: OrderService, order_id: int, transaction_id: str = "tx-1"):
    """Drive an order through AWAITING_PAYMENT to PAID."""
    await service.transition(order_id, OrderStatus.AWAITING_PAYMENT)
    return await service.transition(
        order_id, OrderStatus.PAID, {"transaction_id": transaction_id}
    )


class TestCreate:
    """Tests for OrderService.create."""

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("rate_valid_seconds", "custom_expiration", "window"),
        [(600, 3600, 600), (3600, 120, 120), (900, 900, 900)],
    )
    async def test_expire_at_uses_shorter_window(
        self, create_order, rate_valid_seconds, custom_expiration, window
    ):
        """expire_at = created_at + min(rate window, expiration)."""
        order = await create_order(
            rate_valid_seconds=rate_valid_seconds,
            custom_expiration=custom_expiration,
        )

        assert order.status == OrderStatus.CREATED
        assert as_utc(order.expire_at) - as_utc(order.created_at) == timedelta(
            seconds=window
        )

    @pytest.mark.asyncio
    async def test_creation_recorded(self, session, create_order):
        """Creation writes a history entry with no source status."""
        order = await create_order()

        history = await OrderService(session).history(order.id)

        assert len(history) == 1
        assert history[0].from_status is None
        assert history[0].to_status == OrderStatus.CREATED
        assert "expire_at" in history[0].transition_metadata

    @pytest.mark.asyncio
    async def test_unknown_user(self, session):
        """Orders need an existing user."""
        with pytest.raises(UserNotFoundError):
            await OrderService(session).create(
                user_id=31337,
                payment_type=PaymentType.TON,
                amount=Decimal("1"),
                fiat_amount=Decimal("1"),
                exchange_rate=Decimal("1"),
                rate_valid_seconds=60,
                custom_expiration=60,
            )


class TestProductOrders:
    """Tests for OrderService.create_product_order."""

    @pytest.mark.asyncio
    async def test_amounts_derived_from_price_and_rate(
        self, session, register_user, coin_product
    ):
        """fiat = price * quantity, amount = fiat * rate."""
        user = await register_user()

        order = await OrderService(session).create_product_order(
            user.id,
            coin_product.id,
            PaymentType.TON,
            exchange_rate="2.5",
            quantity=2,
        )

        assert order.fiat_amount == Decimal("20.00")
        assert order.amount == Decimal("50")
        assert order.external_payment_id
        assert as_utc(order.expire_at) - as_utc(order.created_at) == timedelta(
            seconds=settings.order_default_expiration
        )

        user_order = await UserOrderRepository(session).get_by_order_id(order.id)
        assert user_order.product_id == coin_product.id
        assert user_order.quantity == 2
        assert user_order.status == FulfillmentStatus.PENDING

    @pytest.mark.asyncio
    async def test_explicit_amount(self, session, register_user, coin_product):
        """An explicit amount overrides the derived one."""
        user = await register_user()

        order = await OrderService(session).create_product_order(
            user.id,
            coin_product.id,
            PaymentType.STARS,
            exchange_rate="1",
            amount="12.5",
        )

        assert order.amount == Decimal("12.5")
        assert order.fiat_amount == Decimal("10.00")

    @pytest.mark.asyncio
    async def test_open_order_limit(
        self, session, register_user, coin_product, monkeypatch
    ):
        """Open orders per product are capped."""
        monkeypatch.setattr(settings, "order_max_open_per_product", 2)
        user = await register_user()
        user_id, product_id = user.id, coin_product.id
        service = OrderService(session)

        for _ in range(2):
            await service.create_product_order(
                user_id, product_id, PaymentType.TON, exchange_rate="1"
            )

        with pytest.raises(OrderLimitReachedError):
            await service.create_product_order(
                user_id, product_id, PaymentType.TON, exchange_rate="1"
            )

    @pytest.mark.asyncio
    async def test_closed_orders_free_the_limit(
        self, session, register_user, coin_product, monkeypatch
    ):
        """Failed orders no longer count as open."""
        monkeypatch.setattr(settings, "order_max_open_per_product", 1)
        user = await register_user()
        service = OrderService(session)

        first = await service.create_product_order(
            user.id, coin_product.id, PaymentType.TON, exchange_rate="1"
        )
        await service.transition(first.id, OrderStatus.FAILED)

        second = await service.create_product_order(
            user.id, coin_product.id, PaymentType.TON, exchange_rate="1"
        )
        assert second.id != first.id

    @pytest.mark.asyncio
    async def test_inactive_product(self, session, register_user, coin_product):
        """Inactive products cannot be ordered."""
        user = await register_user()
        user_id, product_id = user.id, coin_product.id
        coin_product.is_active = False
        await session.commit()

        with pytest.raises(ProductNotFoundError):
            await OrderService(session).create_product_order(
                user_id, product_id, PaymentType.TON, exchange_rate="1"
            )

    @pytest.mark.asyncio
    async def test_invalid_quantity(self, session, register_user, coin_product):
        """Input is validated before anything is read."""
        user = await register_user()

        with pytest.raises(ValidationError):
            await OrderService(session).create_product_order(
                user.id, coin_product.id, PaymentType.TON, exchange_rate="1", quantity=0
            )


class TestTransitions:
    """Tests for OrderService.transition against the database."""

    @pytest.mark.asyncio
    async def test_expire_respects_window(self, session, create_order, one_second):
        """EXPIRED is refused at expire_at and accepted one second later."""
        order = await create_order()
        order_id, expire_at = order.id, as_utc(order.expire_at)
        service = OrderService(session)

        with pytest.raises(InvalidTransitionError):
            await service.transition(order_id, OrderStatus.EXPIRED, now=expire_at)

        expired = await service.transition(
            order_id, OrderStatus.EXPIRED, now=expire_at + one_second
        )
        assert expired.status == OrderStatus.EXPIRED

    @pytest.mark.asyncio
    async def test_paid_without_transaction_id(self, session, create_order):
        """Nothing changes when PAID is missing its transaction id."""
        order = await create_order()
        order_id = order.id
        service = OrderService(session)
        await service.transition(order_id, OrderStatus.AWAITING_PAYMENT)

        with pytest.raises(MissingTransactionIdError):
            await service.transition(order_id, OrderStatus.PAID, {"note": "manual"})

        reloaded = await service.get(order_id)
        assert reloaded.status == OrderStatus.AWAITING_PAYMENT
        assert reloaded.transaction_id is None

    @pytest.mark.asyncio
    async def test_paid_is_idempotent(self, session, create_order):
        """Paying twice records a single PAID entry."""
        order = await create_order()
        service = OrderService(session)

        paid = await _pay(service, order.id, "tx-77")
        again = await service.transition(
            order.id, OrderStatus.PAID, {"transaction_id": "tx-77"}
        )

        assert paid.status == again.status == OrderStatus.PAID
        assert again.transaction_id == "tx-77"
        assert again.paid_at is not None
        history_repo = OrderStatusHistoryRepository(session)
        assert await history_repo.count_transitions_to(order.id, OrderStatus.PAID) == 1

    @pytest.mark.asyncio
    async def test_history_follows_transitions(self, session, create_order):
        """Each applied change is recorded in order."""
        order = await create_order()
        service = OrderService(session)

        await _pay(service, order.id, "tx-5")
        await service.transition(order.id, OrderStatus.REFUNDED, {"reason": "customer"})

        history = await service.history(order.id)
        assert [(h.from_status, h.to_status) for h in history] == [
            (None, OrderStatus.CREATED),
            (OrderStatus.CREATED, OrderStatus.AWAITING_PAYMENT),
            (OrderStatus.AWAITING_PAYMENT, OrderStatus.PAID),
            (OrderStatus.PAID, OrderStatus.REFUNDED),
        ]
        assert history[2].transition_metadata == {"transaction_id": "tx-5"}
        assert history[3].transition_metadata == {"reason": "customer"}

    @pytest.mark.asyncio
    async def test_terminal_status_is_final(self, session, create_order):
        """Paid orders cannot expire."""
        order = await create_order()
        order_id = order.id
        service = OrderService(session)
        await _pay(service, order_id)

        with pytest.raises(InvalidTransitionError):
            await service.transition(
                order_id, OrderStatus.EXPIRED, now=utc_now() + timedelta(days=1)
            )

        assert (await service.get(order_id)).status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_unknown_order(self, session):
        """Transitions on missing orders fail."""
        with pytest.raises(OrderNotFoundError):
            await OrderService(session).transition(404, OrderStatus.FAILED)

    @pytest.mark.asyncio
    async def test_mark_checked_keeps_status(self, session, create_order):
        """Recording a provider check never moves the order."""
        order = await create_order()
        version = order.version

        checked = await OrderService(session).mark_checked(
            order.id, {"status": "PENDING"}
        )

        assert checked.status == OrderStatus.CREATED
        assert checked.payment_data == {"status": "PENDING"}
        assert checked.last_checked_at is not None
        assert checked.version == version

    @pytest.mark.asyncio
    async def test_concurrent_pay_and_expire(
        self, session, session_factory, create_order
    ):
        """Racing PAID and EXPIRED: exactly one wins."""
        order = await create_order()
        order_id = order.id
        await OrderService(session).transition(order_id, OrderStatus.AWAITING_PAYMENT)
        later = utc_now() + timedelta(days=1)

        async def attempt(target, metadata, now=None):
            async with session_factory() as own_session:
                return await OrderService(own_session).transition(
                    order_id, target, metadata, now=now
                )

        results = await asyncio.gather(
            attempt(OrderStatus.PAID, {"transaction_id": "tx-race"}),
            attempt(OrderStatus.EXPIRED, {"reason": "sweep"}, now=later),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], InvalidTransitionError)

        history = await OrderService(session).history(order_id)
        terminal = [
            h for h in history
            if h.to_status in (OrderStatus.PAID, OrderStatus.EXPIRED)
        ]
        assert len(terminal) == 1

    @pytest.mark.asyncio
    async def test_repeated_status_releases_order(
        self, session_factory, create_order
    ):
        """A duplicate request ends its transaction so others can move the order."""
        order = await create_order()
        order_id = order.id

        async with session_factory() as first, session_factory() as second:
            await OrderService(first).transition(order_id, OrderStatus.CREATED)
            assert not first.in_transaction()

            moved = await OrderService(second).transition(
                order_id, OrderStatus.AWAITING_PAYMENT
            )

        assert moved.status == OrderStatus.AWAITING_PAYMENT

    @pytest.mark.asyncio
    async def test_unknown_status_rejected(self, session, create_order):
        """Unknown status strings raise a validation error."""
        order = await create_order()
        order_id = order.id
        service = OrderService(session)

        with pytest.raises(ValidationError):
            await service.transition(order_id, "SHIPPED")

        assert (await service.get(order_id)).status == OrderStatus.CREATED


class TestExpireOverdue:
    """Tests for the expiration sweep."""

    @pytest.mark.asyncio
    async def test_sweep_expires_open_orders_only(
        self, session, register_user, create_order
    ):
        """Open orders past expiry expire; paid orders are untouched."""
        user = await register_user()
        created = await create_order(user=user)
        awaiting = await create_order(user=user)
        paid = await create_order(user=user)
        service = OrderService(session)
        await service.transition(awaiting.id, OrderStatus.AWAITING_PAYMENT)
        await _pay(service, paid.id)

        stats = await service.expire_overdue(now=utc_now() + timedelta(hours=2))

        assert stats == {"found": 2, "expired": 2, "skipped": 0}
        assert (await service.get(created.id)).status == OrderStatus.EXPIRED
        assert (await service.get(awaiting.id)).status == OrderStatus.EXPIRED
        assert (await service.get(paid.id)).status == OrderStatus.PAID

    @pytest.mark.asyncio
    async def test_sweep_ignores_orders_within_window(self, session, create_order):
        """Nothing expires before expire_at."""
        await create_order()

        stats = await OrderService(session).expire_overdue()

        assert stats == {"found": 0, "expired": 0, "skipped": 0}

    @pytest.mark.asyncio
    async def test_sweep_is_repeatable(self, session, create_order):
        """A second sweep finds nothing left to do."""
        await create_order()
        service = OrderService(session)
        later = utc_now() + timedelta(hours=2)

        await service.expire_overdue(now=later)
        stats = await service.expire_overdue(now=later)

        assert stats["found"] == 0
