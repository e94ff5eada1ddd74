"""
Order service.

Creates orders with a locked exchange rate and drives every status change
through the transition table, recording each applied change.
"""

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Any

from loguru import logger
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.orm.exc import StaleDataError

from app.config.constants import (
    AMOUNT_QUANTUM,
    EXTERNAL_PAYMENT_ID_MAX_ATTEMPTS,
    FIAT_QUANTUM,
)
from app.config.settings import settings
from app.models.enums import FulfillmentStatus, OrderStatus, PaymentType
from app.models.order import Order
from app.models.order_status_history import OrderStatusHistory
from app.repositories.order_repository import OrderRepository
from app.repositories.user_order_repository import UserOrderRepository
from app.repositories.user_repository import UserRepository
from app.services.order.state_machine import ensure_transition
from app.services.order.status_history import StatusHistoryRecorder
from app.services.product_service import ProductService
from app.utils.code_generator import generate_external_payment_id
from app.utils.datetime_utils import utc_now
from app.utils.db_decorators import with_rollback_on_error
from app.utils.exceptions import (
    CONCURRENCY_ERRORS,
    ConflictError,
    InvalidTransitionError,
    MissingTransactionIdError,
    OrderLimitReachedError,
    OrderNotFoundError,
    UserNotFoundError,
    ValidationError,
)
from app.validators.order import ensure_order_input


class OrderService:
    """
    Order ledger and state machine.

    Transitions lock the order row (SELECT ... FOR UPDATE) and the order's
    version counter rejects a flush against a row changed in between, so
    racing writers resolve as: first valid transition wins, repeats are
    no-ops, conflicting transitions fail.
    """

    def __init__(self, session: AsyncSession) -> None:
        """
        Initialize order service.

        Args:
            session: Database session
        """
        self.session = session
        self.order_repo = OrderRepository(session)
        self.user_order_repo = UserOrderRepository(session)
        self.user_repo = UserRepository(session)
        self.product_service = ProductService(session)
        self.history_recorder = StatusHistoryRecorder(session)

    # ------------------------------------------------------------------
    # Creation
    # ------------------------------------------------------------------

    @with_rollback_on_error
    async def create(
        self,
        user_id: int,
        payment_type: PaymentType,
        amount: Decimal,
        fiat_amount: Decimal,
        exchange_rate: Decimal,
        rate_valid_seconds: int,
        custom_expiration: int,
        external_payment_id: str | None = None,
        payment_data: dict[str, Any] | None = None,
        payment_link: str | None = None,
        commit: bool = True,
    ) -> Order:
        """
        Create an order in CREATED status.

        The order stays payable until the shorter of the rate-lock window
        and the requested expiration has passed. Input is expected to be
        validated by the caller (see app.validators.order).

        Args:
            user_id: Owning user ID
            payment_type: Payment method
            amount: Amount in the payment currency
            fiat_amount: Amount in fiat
            exchange_rate: Payment currency units per fiat unit
            rate_valid_seconds: Rate-lock window
            custom_expiration: Requested expiration window
            external_payment_id: Provider reference (optional)
            payment_data: Initial provider data (optional)
            payment_link: Payment URL shown to the user (optional)
            commit: Commit on success

        Returns:
            Created order

        Raises:
            UserNotFoundError: Unknown user
        """
        if not await self.user_repo.exists(id=user_id):
            raise UserNotFoundError(user_id=user_id)

        now = utc_now()
        window = min(rate_valid_seconds, custom_expiration)
        expire_at = now + timedelta(seconds=window)

        order = await self.order_repo.create(
            user_id=user_id,
            payment_type=PaymentType(payment_type),
            external_payment_id=external_payment_id,
            payment_link=payment_link,
            amount=amount,
            fiat_amount=fiat_amount,
            exchange_rate=exchange_rate,
            rate_valid_seconds=rate_valid_seconds,
            custom_expiration=custom_expiration,
            expire_at=expire_at,
            status=OrderStatus.CREATED,
            payment_data=payment_data,
            created_at=now,
            updated_at=now,
        )
        await self.history_recorder.record(
            order.id,
            None,
            OrderStatus.CREATED,
            {"expire_at": expire_at.isoformat()},
        )

        if commit:
            await self.session.commit()

        logger.info(
            f"Order {order.id} created for user {user_id}",
            extra={
                "order_id": order.id,
                "payment_type": str(order.payment_type),
                "amount": str(amount),
                "expire_at": expire_at.isoformat(),
            },
        )
        return order

    async def _generate_external_payment_id(self) -> str:
        """Generate a provider reference not used by any order."""
        for _ in range(EXTERNAL_PAYMENT_ID_MAX_ATTEMPTS):
            candidate = generate_external_payment_id()
            if await self.order_repo.get_by_external_payment_id(candidate) is None:
                return candidate

        raise ConflictError("Could not generate a unique external payment id")

    @with_rollback_on_error
    async def create_product_order(
        self,
        user_id: int,
        product_id: int,
        payment_type: PaymentType,
        exchange_rate: Any,
        quantity: Any = 1,
        amount: Any = None,
        rate_valid_seconds: Any = None,
        custom_expiration: Any = None,
        payment_link: str | None = None,
    ) -> Order:
        """
        Create an order for a catalog product together with its user order.

        Args:
            user_id: Buyer user ID
            product_id: Product ID
            payment_type: Payment method
            exchange_rate: Payment currency units per fiat unit
            quantity: Units to buy
            amount: Explicit payment amount; derived from price and rate if None
            rate_valid_seconds: Rate-lock window (defaults to settings)
            custom_expiration: Expiration window (defaults to settings)
            payment_link: Payment URL (optional)

        Returns:
            Created order

        Raises:
            ValidationError: Invalid input
            ProductNotFoundError: Missing or inactive product
            UserNotFoundError: Unknown user
            OrderLimitReachedError: Too many open orders for this product
        """
        parsed = ensure_order_input(
            quantity=quantity,
            exchange_rate=exchange_rate,
            rate_valid_seconds=(
                rate_valid_seconds
                if rate_valid_seconds is not None
                else settings.order_default_expiration
            ),
            custom_expiration=(
                custom_expiration
                if custom_expiration is not None
                else settings.order_default_expiration
            ),
            amount=amount,
        )

        product = await self.product_service.get_active_or_raise(product_id)

        # Lock the buyer so concurrent purchases see each other's orders
        user = await self.user_repo.get_by_id_for_update(user_id)
        if user is None:
            raise UserNotFoundError(user_id=user_id)

        open_orders = await self.order_repo.count_open_for_product(
            user_id, product_id
        )
        if open_orders >= settings.order_max_open_per_product:
            raise OrderLimitReachedError(
                user_id=user_id,
                product_id=product_id,
                open_orders=open_orders,
            )

        fiat_amount = (product.price * parsed["quantity"]).quantize(FIAT_QUANTUM)
        payment_amount = parsed["amount"]
        if payment_amount is None:
            payment_amount = (fiat_amount * parsed["exchange_rate"]).quantize(
                AMOUNT_QUANTUM
            )

        order = await self.create(
            user_id=user_id,
            payment_type=payment_type,
            amount=payment_amount,
            fiat_amount=fiat_amount,
            exchange_rate=parsed["exchange_rate"],
            rate_valid_seconds=parsed["rate_valid_seconds"],
            custom_expiration=parsed["custom_expiration"],
            external_payment_id=await self._generate_external_payment_id(),
            payment_link=payment_link,
            commit=False,
        )
        await self.user_order_repo.create(
            order_id=order.id,
            user_id=user_id,
            product_id=product.id,
            quantity=parsed["quantity"],
            status=FulfillmentStatus.PENDING,
        )
        await self.session.commit()

        logger.info(
            f"Product order {order.id} created",
            extra={
                "order_id": order.id,
                "product_id": product.id,
                "quantity": parsed["quantity"],
                "fiat_amount": str(fiat_amount),
            },
        )
        return order

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @with_rollback_on_error
    async def mark_checked(
        self,
        order_id: int,
        provider_snapshot: dict[str, Any] | None,
        commit: bool = True,
    ) -> Order:
        """
        Record a provider check. Never changes status.

        Args:
            order_id: Order ID
            provider_snapshot: Opaque provider data to store
            commit: Commit on success

        Returns:
            Refreshed order

        Raises:
            OrderNotFoundError: Unknown order
        """
        if not await self.order_repo.record_check(
            order_id, utc_now(), provider_snapshot
        ):
            raise OrderNotFoundError(order_id=order_id)

        order = await self.order_repo.get_by_id(order_id)
        await self.session.refresh(order)

        if commit:
            await self.session.commit()

        logger.debug(f"Order {order_id} checked against provider")
        return order

    @with_rollback_on_error
    async def transition(
        self,
        order_id: int,
        to: OrderStatus,
        metadata: dict[str, Any] | None = None,
        now: datetime | None = None,
        commit: bool = True,
    ) -> Order:
        """
        Move an order to a new status.

        Re-requesting the current status is a successful no-op and records
        nothing. Anything else must be an edge of the transition table.

        Args:
            order_id: Order ID
            to: Target status
            metadata: Transition context; PAID requires "transaction_id"
            now: Reference time for the expiry guard (defaults to now)
            commit: Commit on success

        Returns:
            Order in its new (or unchanged) status

        Raises:
            OrderNotFoundError: Unknown order
            InvalidTransitionError: Illegal edge, or EXPIRED before expire_at
            MissingTransactionIdError: PAID without a transaction id
            ConflictError: Order changed concurrently
            ValidationError: Unknown target status
        """
        try:
            target = OrderStatus(to)
        except ValueError as e:
            raise ValidationError(
                f"Unknown order status: {to}", field="to", order_id=order_id
            ) from e
        metadata = dict(metadata or {})

        order = await self.order_repo.get_by_id_for_update(order_id)
        if order is None:
            raise OrderNotFoundError(order_id=order_id)

        current = order.status
        if current == target:
            logger.debug(
                f"Order {order_id} already {target}, transition ignored"
            )
            if commit:
                await self.session.commit()
            return order

        ensure_transition(current, target, order_id=order_id)

        now = now or utc_now()

        if target == OrderStatus.EXPIRED and not order.is_past_expiry(now):
            raise InvalidTransitionError(
                "Order validity window has not ended",
                order_id=order_id,
                expire_at=order.expire_at.isoformat(),
            )

        if target == OrderStatus.PAID:
            transaction_id = metadata.get("transaction_id")
            if transaction_id is None or not str(transaction_id).strip():
                logger.critical(
                    f"Order {order_id} marked PAID without a transaction id",
                    extra={"order_id": order_id, "metadata": metadata},
                )
                raise MissingTransactionIdError(order_id=order_id)
            order.transaction_id = str(transaction_id).strip()
            order.paid_at = now

        order.status = target

        try:
            await self.history_recorder.record(
                order.id, current, target, metadata or None
            )
            if commit:
                await self.session.commit()
        except StaleDataError as e:
            logger.warning(
                f"Order {order_id} changed concurrently during {current} -> {target}"
            )
            raise ConflictError(
                "Order was modified concurrently",
                order_id=order_id,
                to_status=str(target),
            ) from e

        logger.info(
            f"Order {order_id}: {current} -> {target}",
            extra={"order_id": order_id, "metadata": metadata},
        )
        return order

    async def expire_overdue(
        self,
        now: datetime | None = None,
        limit: int | None = None,
    ) -> dict[str, int]:
        """
        Expire open orders past their validity window.

        Each order is expired in its own transaction; orders that were
        paid or expired concurrently are skipped.

        Args:
            now: Reference time (defaults to now)
            limit: Max orders to process (defaults to settings.sweep_batch_size)

        Returns:
            Dict with "found", "expired" and "skipped" counts
        """
        now = now or utc_now()
        limit = limit or settings.sweep_batch_size

        order_ids = await self.order_repo.get_ids_past_expiry(now, limit)
        stats = {"found": len(order_ids), "expired": 0, "skipped": 0}

        for order_id in order_ids:
            try:
                await self.transition(
                    order_id,
                    OrderStatus.EXPIRED,
                    {"reason": "expiration_sweep"},
                    now=now,
                )
                stats["expired"] += 1
            except CONCURRENCY_ERRORS as e:
                stats["skipped"] += 1
                logger.warning(
                    f"Skipped expiring order {order_id}: {e.message}",
                    extra=e.to_dict(),
                )

        if order_ids:
            logger.info(
                f"Expiration sweep: {stats['expired']} expired, "
                f"{stats['skipped']} skipped"
            )
        return stats

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    async def get(self, order_id: int) -> Order:
        """
        Get order by ID.

        Raises:
            OrderNotFoundError: Unknown order
        """
        order = await self.order_repo.get_by_id(order_id)
        if order is None:
            raise OrderNotFoundError(order_id=order_id)
        return order

    async def find_by_external_id(self, external_payment_id: str) -> Order | None:
        """Get order by provider reference."""
        return await self.order_repo.get_by_external_payment_id(external_payment_id)

    async def history(self, order_id: int) -> list[OrderStatusHistory]:
        """Get the recorded transitions of an order, oldest first."""
        return await self.history_recorder.history(order_id)
