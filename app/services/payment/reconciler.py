"""Payment reconciliation.

Applies provider snapshots to open orders through the order state
machine. Every check is recorded; status only moves on a decisive
snapshot.
"""

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession

from app.config.settings import settings
from app.models.enums import OrderStatus
from app.models.order import Order
from app.repositories.order_repository import OPEN_STATUSES, OrderRepository
from app.services.order import OrderService
from app.services.payment.provider import (
    PaymentProvider,
    PaymentSnapshot,
    SnapshotStatus,
)
from app.utils.exceptions import (
    CONCURRENCY_ERRORS,
    FATAL_ERRORS,
    MissingTransactionIdError,
)


class PaymentReconciler:
    """Matches provider state against the order ledger.

    A PAID snapshot whose amount is below the order amount fails the order;
    overpayment is accepted.
    """

    def __init__(self, session: AsyncSession, provider: PaymentProvider) -> None:
        """Initialize reconciler for one provider."""
        self.session = session
        self.provider = provider
        self.order_repo = OrderRepository(session)
        self.order_service = OrderService(session)

    async def apply(self, order_id: int, snapshot: PaymentSnapshot | None) -> Order:
        """Record a snapshot and move the order if it is decisive.

        Args:
            order_id: Order ID
            snapshot: Provider state, None when the provider knows nothing yet

        Returns:
            Order after reconciliation

        Raises:
            OrderNotFoundError: Unknown order
            ConflictError, InvalidTransitionError: Lost a race
            MissingTransactionIdError: PAID snapshot without transaction id
        """
        if snapshot is None:
            order = await self.order_service.get(order_id)
            return await self.order_service.mark_checked(
                order_id, order.payment_data
            )

        order = await self.order_service.mark_checked(
            order_id, snapshot.to_payment_data()
        )

        if order.status not in OPEN_STATUSES:
            return order

        if snapshot.status == SnapshotStatus.FAILED:
            return await self.order_service.transition(
                order_id,
                OrderStatus.FAILED,
                {"reason": "provider_failed", "transaction_id": snapshot.transaction_id},
            )

        if snapshot.status != SnapshotStatus.PAID:
            return order

        if snapshot.amount is not None and snapshot.amount < order.amount:
            logger.warning(
                f"Order {order_id} underpaid: expected {order.amount}, got {snapshot.amount}"
            )
            return await self.order_service.transition(
                order_id,
                OrderStatus.FAILED,
                {
                    "reason": "amount_mismatch",
                    "expected": str(order.amount),
                    "received": str(snapshot.amount),
                    "transaction_id": snapshot.transaction_id,
                },
            )

        transaction_id = (snapshot.transaction_id or "").strip()
        if not transaction_id:
            logger.critical(
                f"Provider reported order {order_id} paid without a transaction id",
                extra={"order_id": order_id, "payment_type": str(order.payment_type)},
            )
            raise MissingTransactionIdError(order_id=order_id)

        if order.status == OrderStatus.CREATED:
            await self.order_service.transition(
                order_id,
                OrderStatus.AWAITING_PAYMENT,
                {"reason": "payment_observed"},
            )

        return await self.order_service.transition(
            order_id,
            OrderStatus.PAID,
            {
                "transaction_id": transaction_id,
                "amount": str(snapshot.amount) if snapshot.amount is not None else None,
            },
        )

    async def poll(self, limit: int | None = None) -> dict[str, int]:
        """Check open orders of this provider's payment type.

        Args:
            limit: Max orders (defaults to settings.payment_poll_batch_size)

        Returns:
            Dict with "checked", "paid", "failed", "skipped" and "errors"
        """
        limit = limit or settings.payment_poll_batch_size
        orders = await self.order_repo.get_open_for_polling(
            limit, payment_type=self.provider.payment_type
        )
        order_ids = [order.id for order in orders]
        stats = {"checked": 0, "paid": 0, "failed": 0, "skipped": 0, "errors": 0}

        for order_id in order_ids:
            order = await self.order_service.get(order_id)
            try:
                snapshot = await self.provider.fetch_snapshot(order)
            except Exception as e:
                stats["errors"] += 1
                logger.error(
                    f"Provider {self.provider.payment_type} failed for order {order_id}: {e}"
                )
                continue

            try:
                order = await self.apply(order_id, snapshot)
            except CONCURRENCY_ERRORS as e:
                stats["skipped"] += 1
                logger.warning(
                    f"Skipped reconciling order {order_id}: {e.message}",
                    extra=e.to_dict(),
                )
                continue
            except FATAL_ERRORS:
                stats["errors"] += 1
                continue

            stats["checked"] += 1
            if order.status == OrderStatus.PAID:
                stats["paid"] += 1
            elif order.status == OrderStatus.FAILED:
                stats["failed"] += 1

        return stats
