"""Expire Available/Accepted donations whose perishability window has elapsed."""
import asyncio
import logging
from collections.abc import Awaitable, Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime

from foodshare.config import settings
from foodshare.database import async_session
from foodshare.services import transaction
from foodshare.services.clock import Clock, system_clock
from foodshare.services.errors import ConflictingTransition, DonationNotFound, InvalidTransition
from foodshare.services.notifications import DbNotificationTrigger
from foodshare.services.state_machine import EXPIRABLE_STATUSES, LifecycleStateMachine, is_overdue
from foodshare.services.store import DonationFilter, SqlStore, Store

logger = logging.getLogger(__name__)


@dataclass
class SweepReport:
    expired: list[int] = field(default_factory=list)
    skipped: list[int] = field(default_factory=list)
    failed: list[int] = field(default_factory=list)


async def find_due(store: Store, now: datetime) -> list[int]:
    candidates = await store.fetch(DonationFilter(statuses=EXPIRABLE_STATUSES))
    return [d.id for d in candidates if is_overdue(d, now)]


async def sweep(donation_ids: Iterable[int], expire_one: Callable[[int], Awaitable[object]]) -> SweepReport:
    """Expire each donation on its own; a conflict or error on one is recorded and the pass moves on."""
    report = SweepReport()
    for donation_id in donation_ids:
        try:
            await expire_one(donation_id)
        except (ConflictingTransition, DonationNotFound, InvalidTransition):
            # Moved on (picked up, cancelled) between fetch and commit
            logger.info("Donation %s changed during sweep, skipping", donation_id)
            report.skipped.append(donation_id)
        except Exception:
            logger.exception("Failed to expire donation %s", donation_id)
            report.failed.append(donation_id)
        else:
            report.expired.append(donation_id)
    return report


async def run_expiry_sweep_once(clock: Clock = system_clock) -> SweepReport:
    async with async_session() as db:
        due = await find_due(SqlStore(db), clock.now())

    async def expire_in_own_transaction(donation_id: int) -> None:
        # Leaving the block without commit rolls back this donation only
        async with async_session() as db:
            machine = LifecycleStateMachine(SqlStore(db), DbNotificationTrigger(db), clock)
            try:
                await machine.expire(donation_id)
                await db.commit()
            except Exception:
                await transaction.finish(db, committed=False)
                raise
            await transaction.finish(db, committed=True)

    report = await sweep(due, expire_in_own_transaction)
    if report.expired or report.failed:
        logger.info(
            "Expiry sweep: %d expired, %d skipped, %d failed",
            len(report.expired), len(report.skipped), len(report.failed),
        )
    return report


async def run_expiry_sweep_loop() -> None:
    while True:
        try:
            await run_expiry_sweep_once()
        except Exception:
            logger.exception("Expiry sweep pass failed")
        await asyncio.sleep(settings.EXPIRY_SWEEP_INTERVAL_SECONDS)
