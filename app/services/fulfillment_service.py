"""
Fulfillment service.

Delivers purchased products once an order is paid. Delivery state lives
on the UserOrder and is independent of the order's payment status: the
order state machine never calls into this module.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.constants import DEFAULT_SUBSCRIPTION_DAYS
from app.config.settings import settings
from app.models.enums import FulfillmentStatus, OrderStatus, ProductType
from app.models.user_order import UserOrder
from app.repositories.order_repository import OrderRepository
from app.repositories.user_order_repository import UserOrderRepository
from app.services.user import UserService
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import (
    CONCURRENCY_ERRORS,
    InvalidTransitionError,
    OrderNotFoundError,
)

COIN_PRODUCTS = (ProductType.COIN, ProductType.COIN_AND_SUBSCRIPTION)
SUBSCRIPTION_PRODUCTS = (
    ProductType.SUBSCRIPTION,
    ProductType.COIN_AND_SUBSCRIPTION,
)


class FulfillmentService:
    """
    Per-order delivery tracker.

    States: PENDING -> COMPLETED or PENDING -> CANCELLED. Repeating the
    current state is a no-op.
    """

    def __init__(self, session: AsyncSession) -> None:
        """Initialize fulfillment service."""
        self.session = session
        self.order_repo = OrderRepository(session)
        self.user_order_repo = UserOrderRepository(session)
        self.user_service = UserService(session)

    async def _get_locked(self, order_id: int) -> UserOrder:
        """Load and lock the user order of an order."""
        user_order = await self.user_order_repo.get_by_order_id(
            order_id, for_update=True
        )
        if user_order is None:
            raise OrderNotFoundError(
                "Order has no product to fulfill", order_id=order_id
            )
        return user_order

    @with_rollback_on_error
    async def complete(self, order_id: int, commit: bool = True) -> UserOrder:
        """
        Deliver the product of a paid order.

        COIN products add value * quantity coins; SUBSCRIPTION products
        extend VIP by vip_days * quantity days; COIN_AND_SUBSCRIPTION does
        both. Delivery and the status change commit together.

        Args:
            order_id: Order ID
            commit: Commit on success

        Returns:
            Completed user order

        Raises:
            OrderNotFoundError: No user order for this order
            InvalidTransitionError: Order not PAID, or user order cancelled
        """
        user_order = await self._get_locked(order_id)

        if user_order.status == FulfillmentStatus.COMPLETED:
            logger.debug(f"Order {order_id} already fulfilled")
            return user_order

        if user_order.status != FulfillmentStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot complete a {user_order.status} user order",
                order_id=order_id,
            )

        order = await self.order_repo.get_by_id(order_id)
        if order is None or order.status != OrderStatus.PAID:
            raise InvalidTransitionError(
                "Only paid orders can be fulfilled",
                order_id=order_id,
                order_status=str(order.status) if order else None,
            )

        product = user_order.product
        coins = 0
        vip_days = 0

        if product.type in COIN_PRODUCTS:
            coins = product.value * user_order.quantity
            if coins:
                await self.user_service.adjust_coins(
                    user_order.user_id, coins, commit=False
                )

        if product.type in SUBSCRIPTION_PRODUCTS:
            days_per_unit = product.vip_days or DEFAULT_SUBSCRIPTION_DAYS
            vip_days = days_per_unit * user_order.quantity
            await self.user_service.grant_vip_days(
                user_order.user_id, vip_days, commit=False
            )

        user_order.status = FulfillmentStatus.COMPLETED
        user_order.completed_at = utc_now()
        await self.session.flush()

        if commit:
            await self.session.commit()

        logger.info(
            f"Order {order_id} fulfilled",
            extra={
                "order_id": order_id,
                "user_id": user_order.user_id,
                "product_id": product.id,
                "coins": coins,
                "vip_days": vip_days,
            },
        )
        return user_order

    @with_rollback_on_error
    async def cancel(
        self,
        order_id: int,
        reason: str | None = None,
        commit: bool = True,
    ) -> UserOrder:
        """
        Cancel delivery of an order.

        Args:
            order_id: Order ID
            reason: Free-form reason, logged
            commit: Commit on success

        Returns:
            Cancelled user order

        Raises:
            OrderNotFoundError: No user order for this order
            InvalidTransitionError: Already completed
        """
        user_order = await self._get_locked(order_id)

        if user_order.status == FulfillmentStatus.CANCELLED:
            return user_order

        if user_order.status != FulfillmentStatus.PENDING:
            raise InvalidTransitionError(
                f"Cannot cancel a {user_order.status} user order",
                order_id=order_id,
            )

        user_order.status = FulfillmentStatus.CANCELLED
        await self.session.flush()

        if commit:
            await self.session.commit()

        logger.info(
            f"Fulfillment of order {order_id} cancelled",
            extra={"order_id": order_id, "reason": reason},
        )
        return user_order

    async def fulfill_paid_orders(self, limit: int | None = None) -> dict[str, int]:
        """
        Complete every paid order still awaiting delivery.

        Each order is fulfilled in its own transaction.

        Args:
            limit: Max orders (defaults to settings.fulfillment_batch_size)

        Returns:
            Dict with "found", "completed" and "skipped" counts
        """
        limit = limit or settings.fulfillment_batch_size
        order_ids = await self.order_repo.get_ids_awaiting_fulfillment(limit)
        stats = {"found": len(order_ids), "completed": 0, "skipped": 0}

        for order_id in order_ids:
            try:
                await self.complete(order_id)
                stats["completed"] += 1
            except CONCURRENCY_ERRORS as e:
                stats["skipped"] += 1
                logger.warning(
                    f"Skipped fulfilling order {order_id}: {e.message}",
                    extra=e.to_dict(),
                )

        return stats
