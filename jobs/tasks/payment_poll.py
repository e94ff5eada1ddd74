"""
Payment polling task.

Asks every registered payment provider for the state of its open orders
and applies the snapshots (see PaymentReconciler). Provider modules named
in settings.payment_provider_modules are imported when the worker loads
this module.

Runs every settings.payment_poll_interval_seconds via scheduler.
"""

import dramatiq
from loguru import logger

from app.config.operational_constants import (
    DRAMATIQ_TIME_LIMIT_LONG,
    PAYMENT_POLL_MAX_RETRIES,
)
from app.config.settings import settings
from app.services.payment import (
    PaymentReconciler,
    get_providers,
    load_provider_modules,
)
from jobs.async_runner import create_local_session, run_async

EMPTY_RESULT = {"checked": 0, "paid": 0, "failed": 0, "skipped": 0, "errors": 0}


def setup_payment_providers() -> int:
    """Register the configured providers for this worker process."""
    count = load_provider_modules(settings.get_payment_provider_modules())
    if count == 0:
        logger.warning("No payment providers configured (PAYMENT_PROVIDER_MODULES)")
    return count


setup_payment_providers()


@dramatiq.actor(max_retries=PAYMENT_POLL_MAX_RETRIES, time_limit=DRAMATIQ_TIME_LIMIT_LONG)
def poll_pending_payments() -> dict:
    """
    Reconcile open orders with their payment providers.

    Returns:
        {
            "checked": int,  # Snapshots applied
            "paid": int,     # Orders now PAID
            "failed": int,   # Orders now FAILED
            "skipped": int,  # Lost a race
            "errors": int    # Provider or integrity errors
        }
    """
    logger.info("Starting payment polling...")

    try:
        result = run_async(_poll_pending_payments_async())
        logger.info(f"Payment polling complete: {result}")
        return result
    except Exception as e:
        logger.exception(f"Payment polling failed: {e}")
        return {**EMPTY_RESULT, "errors": 1}


async def _poll_pending_payments_async() -> dict:
    """Async implementation of payment polling."""
    providers = get_providers()
    if not providers:
        logger.warning("No payment providers registered, nothing to poll")
        return dict(EMPTY_RESULT)

    totals = dict(EMPTY_RESULT)
    async with create_local_session() as session:
        for provider in providers:
            stats = await PaymentReconciler(session, provider).poll()
            for key, value in stats.items():
                totals[key] += value
    return totals
