"""Notification trigger: fire-and-forget messages about donation state changes.

DbNotificationTrigger writes Notification rows in the caller's session, so they commit
(or roll back) together with the status change. Connected clients are pinged to refetch
only after that commit.
"""
import logging
from dataclasses import dataclass, field
from typing import Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from foodshare.models.notification import Notification
from foodshare.services import transaction
from foodshare.services.ws_updates import updates_manager

logger = logging.getLogger(__name__)

DONATION_ACCEPTED = "donation.accepted"
DONATION_COMPLETED = "donation.completed"
DONATION_CANCELLED = "donation.cancelled"
DONATION_EXPIRED = "donation.expired"
DONATION_URGENT = "donation.urgent"

_MESSAGES = {
    DONATION_ACCEPTED: "Your donation #{id} was accepted.",
    DONATION_COMPLETED: "Donation #{id} has been delivered and confirmed.",
    DONATION_CANCELLED: "Donation #{id} was cancelled.",
    DONATION_EXPIRED: "Donation #{id} expired before it was picked up.",
    DONATION_URGENT: "Donation #{id} nearby is about to spoil.",
}


@dataclass(frozen=True)
class NotificationEvent:
    type: str
    donation_id: int
    target_actor_ids: tuple[int, ...] = field(default_factory=tuple)
    # False after a removal: the row must not reference the deleted donation
    donation_exists: bool = True

    @property
    def message(self) -> str:
        return _MESSAGES.get(self.type, "Donation #{id} was updated.").format(id=self.donation_id)


class NotificationTrigger(Protocol):
    async def notify(self, event: NotificationEvent) -> None: ...


class DbNotificationTrigger:
    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def notify(self, event: NotificationEvent) -> None:
        targets = sorted(set(event.target_actor_ids))
        if not targets:
            return
        for actor_id in targets:
            self.db.add(
                Notification(
                    actor_id=actor_id,
                    donation_id=event.donation_id if event.donation_exists else None,
                    type=event.type,
                    message=event.message,
                )
            )
        await self.db.flush()
        logger.info("Queued %s for donation %s to actors %s", event.type, event.donation_id, targets)
        message = {"type": "notifications", "event": event.type}
        transaction.after_commit(self.db, lambda: updates_manager.ping_many(targets, message))
