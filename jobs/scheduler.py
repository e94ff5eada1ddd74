"""
Job scheduler.

Enqueues the periodic order lifecycle actors on the dramatiq broker and
serves health checks. Workers run separately:

    dramatiq jobs.broker jobs.tasks.order_expiration
        jobs.tasks.payment_poll jobs.tasks.fulfillment

Usage:
    python -m jobs.scheduler
"""

import asyncio
import signal

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from loguru import logger

from app.config.logging import setup_logging
from app.config.settings import settings
from jobs.broker import broker  # noqa: F401  (sets the default broker)
from jobs.health import (
    set_scheduler,
    start_health_server,
    stop_health_server,
)
from jobs.tasks.fulfillment import fulfill_paid_orders
from jobs.tasks.order_expiration import expire_overdue_orders
from jobs.tasks.payment_poll import poll_pending_payments


def create_scheduler() -> AsyncIOScheduler:
    """
    Build the scheduler with one interval job per actor.

    Jobs only enqueue messages; max_instances=1 and coalesce keep a slow
    broker from piling up duplicate sends.

    Returns:
        Configured (not started) scheduler
    """
    scheduler = AsyncIOScheduler(timezone="UTC")

    scheduler.add_job(
        expire_overdue_orders.send,
        "interval",
        seconds=settings.expiration_sweep_interval_seconds,
        id="expire_overdue_orders",
        name="Order expiration sweep",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        poll_pending_payments.send,
        "interval",
        seconds=settings.payment_poll_interval_seconds,
        id="poll_pending_payments",
        name="Payment provider polling",
        max_instances=1,
        coalesce=True,
    )
    scheduler.add_job(
        fulfill_paid_orders.send,
        "interval",
        seconds=settings.fulfillment_interval_seconds,
        id="fulfill_paid_orders",
        name="Paid order fulfillment",
        max_instances=1,
        coalesce=True,
    )

    return scheduler


async def main() -> None:
    """Run the scheduler until SIGINT / SIGTERM."""
    setup_logging("scheduler")

    scheduler = create_scheduler()
    scheduler.start()
    set_scheduler(scheduler)
    logger.info(f"Scheduler started with {len(scheduler.get_jobs())} jobs")

    runner, _ = await start_health_server(port=settings.health_check_port)

    stop_event = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        loop.add_signal_handler(sig, stop_event.set)

    try:
        await stop_event.wait()
    finally:
        logger.info("Shutting down scheduler...")
        scheduler.shutdown(wait=False)
        await stop_health_server(runner)


if __name__ == "__main__":
    asyncio.run(main())
