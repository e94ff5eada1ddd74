"""
Fulfillment task.

Delivers products of PAID orders whose user order is still PENDING.

Runs every settings.fulfillment_interval_seconds via scheduler.
"""

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DEFAULT_MAX_RETRIES,
    DRAMATIQ_TIME_LIMIT_STANDARD,
)
from app.services.fulfillment_service import FulfillmentService
from jobs.async_runner import create_local_session, run_async


@dramatiq.actor(max_retries=DEFAULT_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_STANDARD)
def fulfill_paid_orders() -> dict:
    """
    Deliver paid orders.

    Returns:
        {
            "found": int,      # Paid orders awaiting delivery
            "completed": int,  # Delivered
            "skipped": int,    # Lost a race
            "errors": int
        }
    """
    logger.info("Starting fulfillment run...")

    try:
        result = run_async(_fulfill_paid_orders_async())
        logger.info(f"Fulfillment run complete: {result}")
        return result
    except Exception as e:
        logger.exception(f"Fulfillment run failed: {e}")
        return {"found": 0, "completed": 0, "skipped": 0, "errors": 1}


async def _fulfill_paid_orders_async() -> dict:
    """Async implementation of the fulfillment run."""
    async with create_local_session() as session:
        stats = await FulfillmentService(session).fulfill_paid_orders()
    return {**stats, "errors": 0}
