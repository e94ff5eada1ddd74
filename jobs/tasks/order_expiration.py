"""
Order expiration task.

Moves CREATED / AWAITING_PAYMENT orders past expire_at to EXPIRED.
Safe to run concurrently: each order is locked and re-checked against
the transition table, so an order paid in the meantime is skipped.

Runs every settings.expiration_sweep_interval_seconds via scheduler.
"""

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_STANDARD,
)
from app.services.order import OrderService
from jobs.async_runner import create_local_session, run_async


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_STANDARD)
def expire_overdue_orders() -> dict:
    """
    Expire overdue orders.

    Returns:
        {
            "found": int,    # Orders past expire_at
            "expired": int,  # Moved to EXPIRED
            "skipped": int,  # Lost a race (paid / expired elsewhere)
            "errors": int
        }
    """
    logger.info("Starting order expiration sweep...")

    try:
        result = run_async(_expire_overdue_orders_async())
        logger.info(f"Order expiration sweep complete: {result}")
        return result
    except Exception as e:
        logger.exception(f"Order expiration sweep failed: {e}")
        return {"found": 0, "expired": 0, "skipped": 0, "errors": 1}


async def _expire_overdue_orders_async() -> dict:
    """Async implementation of the expiration sweep."""
    async with create_local_session() as session:
        stats = await OrderService(session).expire_overdue()
    return {**stats, "errors": 0}
