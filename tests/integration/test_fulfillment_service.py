"""Integration tests for product delivery."""

from datetime import timedelta
from decimal import Decimal

import pytest

from app.models import FulfillmentStatus, OrderStatus, PaymentType, Product, ProductType
from app.services.fulfillment_service import FulfillmentService
from app.services.order import OrderService
from app.services.user import UserService
from app.services.user.membership import end_of_day
from app.utils.datetime_utils import as_utc, utc_now
from app.utils.exceptions import InvalidTransitionError, OrderNotFoundError

pytestmark = pytest.mark.integration


@pytest.fixture
def paid_order(session, register_user):
    """Create and pay a product order; returns an async factory."""

    async def _create(product, quantity=1, user=None):
        if user is None:
            user = await register_user()
        service = OrderService(session)
        order = await service.create_product_order(
            user.id, product.id, PaymentType.TON, exchange_rate="1", quantity=quantity
        )
        await service.transition(order.id, OrderStatus.AWAITING_PAYMENT)
        await service.transition(
            order.id, OrderStatus.PAID, {"transaction_id": f"tx-{order.id}"}
        )
        return order, user

    return _create


class TestComplete:
    """Tests for FulfillmentService.complete."""

    @pytest.mark.asyncio
    async def test_coin_delivery(self, session, paid_order, coin_product):
        """COIN products add value * quantity coins."""
        order, user = await paid_order(coin_product, quantity=2)

        user_order = await FulfillmentService(session).complete(order.id)

        assert user_order.status == FulfillmentStatus.COMPLETED
        assert user_order.completed_at is not None
        assert (await UserService(session).get_or_raise(user.id)).coins == 200

    @pytest.mark.asyncio
    async def test_complete_is_idempotent(self, session, paid_order, coin_product):
        """Completing twice delivers once."""
        order, user = await paid_order(coin_product)
        service = FulfillmentService(session)

        await service.complete(order.id)
        again = await service.complete(order.id)

        assert again.status == FulfillmentStatus.COMPLETED
        assert (await UserService(session).get_or_raise(user.id)).coins == 100

    @pytest.mark.asyncio
    async def test_subscription_delivery(
        self, session, paid_order, subscription_product
    ):
        """SUBSCRIPTION products extend VIP by vip_days * quantity."""
        before = utc_now()
        order, user = await paid_order(subscription_product, quantity=2)

        await FulfillmentService(session).complete(order.id)

        after = utc_now()
        refreshed = await UserService(session).get_or_raise(user.id)
        await session.refresh(refreshed)
        assert refreshed.is_vip
        assert as_utc(refreshed.vip_expire_at) in {
            end_of_day(before + timedelta(days=60)),
            end_of_day(after + timedelta(days=60)),
        }

    @pytest.mark.asyncio
    async def test_bundle_delivers_both(self, session, paid_order):
        """COIN_AND_SUBSCRIPTION adds coins and VIP days."""
        bundle = Product(
            name="Starter bundle",
            type=ProductType.COIN_AND_SUBSCRIPTION,
            value=50,
            vip_days=7,
            price=Decimal("10.00"),
        )
        session.add(bundle)
        await session.commit()
        order, user = await paid_order(bundle)

        await FulfillmentService(session).complete(order.id)

        refreshed = await UserService(session).get_or_raise(user.id)
        await session.refresh(refreshed)
        assert refreshed.coins == 50
        assert refreshed.is_vip

    @pytest.mark.asyncio
    async def test_unpaid_order_rejected(self, session, register_user, coin_product):
        """Orders that are not PAID are not delivered."""
        user = await register_user()
        order = await OrderService(session).create_product_order(
            user.id, coin_product.id, PaymentType.TON, exchange_rate="1"
        )
        order_id, user_id = order.id, user.id

        with pytest.raises(InvalidTransitionError):
            await FulfillmentService(session).complete(order_id)

        assert (await UserService(session).get_or_raise(user_id)).coins == 0

    @pytest.mark.asyncio
    async def test_order_without_product(self, session, create_order):
        """Plain orders have nothing to deliver."""
        order = await create_order()

        with pytest.raises(OrderNotFoundError):
            await FulfillmentService(session).complete(order.id)


class TestCancel:
    """Tests for FulfillmentService.cancel."""

    @pytest.mark.asyncio
    async def test_cancel_pending(self, session, paid_order, coin_product):
        """Cancelled deliveries cannot be completed later."""
        order, user = await paid_order(coin_product)
        order_id, user_id = order.id, user.id
        service = FulfillmentService(session)

        cancelled = await service.cancel(order_id, reason="fraud check")
        again = await service.cancel(order_id)

        assert cancelled.status == again.status == FulfillmentStatus.CANCELLED
        with pytest.raises(InvalidTransitionError):
            await service.complete(order_id)
        assert (await UserService(session).get_or_raise(user_id)).coins == 0

    @pytest.mark.asyncio
    async def test_cannot_cancel_completed(self, session, paid_order, coin_product):
        """Delivered products stay delivered."""
        order, _ = await paid_order(coin_product)
        service = FulfillmentService(session)
        await service.complete(order.id)

        with pytest.raises(InvalidTransitionError):
            await service.cancel(order.id)


class TestBatch:
    """Tests for FulfillmentService.fulfill_paid_orders."""

    @pytest.mark.asyncio
    async def test_delivers_all_paid_orders(
        self, session, register_user, paid_order, coin_product
    ):
        """Every paid pending order is completed, unpaid ones are left."""
        user = await register_user()
        await paid_order(coin_product, user=user)
        await paid_order(coin_product, user=user)
        await OrderService(session).create_product_order(
            user.id, coin_product.id, PaymentType.TON, exchange_rate="1"
        )
        user_id = user.id

        stats = await FulfillmentService(session).fulfill_paid_orders()

        assert stats == {"found": 2, "completed": 2, "skipped": 0}
        assert (await UserService(session).get_or_raise(user_id)).coins == 200
        assert (await FulfillmentService(session).fulfill_paid_orders())["found"] == 0
