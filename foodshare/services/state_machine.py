"""Donation state machine: declarative, role-gated transitions with compare-and-swap commits.

Available -> Accepted -> PickedUp -> Delivered -> Completed, with Expired reachable from
Available or Accepted. Completed and Expired are terminal. An admin may also cancel food
in transit, but only under the remove cancel policy, since Expired is off limits there.
"""
import enum
import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from foodshare.config import settings
from foodshare.models.actor import Actor, Role
from foodshare.models.donation import Donation, DonationStatus
from foodshare.services.clock import Clock
from foodshare.services.errors import (
    AlreadyExpired,
    ConflictingTransition,
    DonationNotFound,
    Forbidden,
    InvalidTransition,
)
from foodshare.services.notifications import (
    DONATION_ACCEPTED,
    DONATION_CANCELLED,
    DONATION_COMPLETED,
    DONATION_EXPIRED,
    NotificationEvent,
    NotificationTrigger,
)
from foodshare.services.store import Store

logger = logging.getLogger(__name__)


class Event(str, enum.Enum):
    ACCEPT = "Accept"
    PICK_UP = "PickUp"
    DELIVER = "Deliver"
    COMPLETE = "Complete"
    EXPIRE = "Expire"
    CANCEL = "Cancel"


class CancelPolicy(str, enum.Enum):
    EXPIRE = "expire"
    REMOVE = "remove"


# (actor, donation) -> allowed
Permission = Callable[[Actor, Donation], bool]
# donation after the change -> actor ids to notify
Targets = Callable[[Donation], tuple[int, ...]]


def _roles(*roles: Role) -> Permission:
    return lambda actor, donation: actor.role in roles


def _acceptor_or_admin(actor: Actor, donation: Donation) -> bool:
    return actor.role == Role.ADMIN or (donation.accepted_by is not None and actor.id == donation.accepted_by)


def _confirms_receipt(actor: Actor, donation: Donation) -> bool:
    """
    Admin, the owning donor, or the receiving NGO. An NGO that accepted the donation is the
    receiver. A volunteer acceptor delivers to an organization that is not recorded, so
    any NGO may confirm in that case.
    """
    if actor.role == Role.ADMIN:
        return True
    if actor.role == Role.DONOR:
        return actor.id == donation.donor_id
    if actor.role != Role.NGO:
        return False
    if actor.id == donation.accepted_by:
        return True
    return donation.acceptor is not None and donation.acceptor.role == Role.VOLUNTEER


def _admin_or_owner_while_available(actor: Actor, donation: Donation) -> bool:
    if actor.role == Role.ADMIN:
        return True
    return (
        actor.role == Role.DONOR
        and actor.id == donation.donor_id
        and donation.status == DonationStatus.AVAILABLE
    )


def _system_only(actor: Actor, donation: Donation) -> bool:
    return False


def _donor(d: Donation) -> tuple[int, ...]:
    return (d.donor_id,)


def _donor_and_acceptor(d: Donation) -> tuple[int, ...]:
    return tuple(i for i in (d.donor_id, d.accepted_by) if i is not None)


@dataclass(frozen=True)
class TransitionRule:
    # None: the edge only exists as a removal under CancelPolicy.REMOVE
    to: DonationStatus | None
    allowed: Permission
    timestamp_field: str | None = None
    notify: str | None = None
    targets: Targets | None = None
    # Accept records who took it
    records_acceptor: bool = False


TRANSITIONS: dict[tuple[DonationStatus, Event], TransitionRule] = {
    (DonationStatus.AVAILABLE, Event.ACCEPT): TransitionRule(
        DonationStatus.ACCEPTED, _roles(Role.NGO, Role.VOLUNTEER), "accepted_at",
        DONATION_ACCEPTED, _donor, records_acceptor=True,
    ),
    (DonationStatus.ACCEPTED, Event.PICK_UP): TransitionRule(
        DonationStatus.PICKED_UP, _acceptor_or_admin, "picked_up_at",
    ),
    (DonationStatus.PICKED_UP, Event.DELIVER): TransitionRule(
        DonationStatus.DELIVERED, _acceptor_or_admin, "delivered_at",
    ),
    (DonationStatus.DELIVERED, Event.COMPLETE): TransitionRule(
        DonationStatus.COMPLETED, _confirms_receipt, "completed_at",
        DONATION_COMPLETED, _donor_and_acceptor,
    ),
    (DonationStatus.AVAILABLE, Event.EXPIRE): TransitionRule(
        DonationStatus.EXPIRED, _system_only, "expired_at", DONATION_EXPIRED, _donor_and_acceptor,
    ),
    (DonationStatus.ACCEPTED, Event.EXPIRE): TransitionRule(
        DonationStatus.EXPIRED, _system_only, "expired_at", DONATION_EXPIRED, _donor_and_acceptor,
    ),
    (DonationStatus.AVAILABLE, Event.CANCEL): TransitionRule(
        DonationStatus.EXPIRED, _admin_or_owner_while_available, "expired_at",
        DONATION_CANCELLED, _donor_and_acceptor,
    ),
    (DonationStatus.ACCEPTED, Event.CANCEL): TransitionRule(
        DonationStatus.EXPIRED, _admin_or_owner_while_available, "expired_at",
        DONATION_CANCELLED, _donor_and_acceptor,
    ),
    # Food in transit cannot become Expired, so these are removals only
    (DonationStatus.PICKED_UP, Event.CANCEL): TransitionRule(
        None, _roles(Role.ADMIN), None, DONATION_CANCELLED, _donor_and_acceptor,
    ),
    (DonationStatus.DELIVERED, Event.CANCEL): TransitionRule(
        None, _roles(Role.ADMIN), None, DONATION_CANCELLED, _donor_and_acceptor,
    ),
}

# Statuses the expiry sweep looks at
EXPIRABLE_STATUSES = frozenset(s for (s, e) in TRANSITIONS if e == Event.EXPIRE)


def is_overdue(donation: Donation, now: datetime) -> bool:
    """True once the perishability window has fully elapsed since creation."""
    return now - donation.created_at >= donation.perishability_window


def allowed_events(donation: Donation, actor: Actor, cancel_policy: CancelPolicy | None = None) -> list[Event]:
    """Events this actor could request right now (for UIs; ignores expiry timing)."""
    removes = CancelPolicy(cancel_policy or settings.CANCEL_POLICY) == CancelPolicy.REMOVE
    return [
        event
        for (status, event), rule in TRANSITIONS.items()
        if status == donation.status
        and event != Event.EXPIRE
        and (rule.to is not None or removes)
        and rule.allowed(actor, donation)
    ]


class LifecycleStateMachine:
    def __init__(
        self,
        store: Store,
        notifier: NotificationTrigger,
        clock: Clock,
        cancel_policy: CancelPolicy | None = None,
    ) -> None:
        self.store = store
        self.notifier = notifier
        self.clock = clock
        self.cancel_policy = CancelPolicy(cancel_policy or settings.CANCEL_POLICY)

    async def _load(self, donation_id: int) -> Donation:
        donation = await self.store.fetch_one(donation_id)
        if donation is None:
            raise DonationNotFound(f"Donation {donation_id} not found")
        return donation

    async def apply(self, donation_id: int, event: Event, actor: Actor) -> Donation | None:
        """
        Apply an actor-requested event. Returns the updated donation, or None when a
        cancel removed it. Raises AlreadyExpired, InvalidTransition, Forbidden or
        ConflictingTransition; nothing is written on failure.
        """
        donation = await self._load(donation_id)
        current = donation.status
        if current == DonationStatus.EXPIRED:
            raise AlreadyExpired(f"Donation {donation_id} has expired")
        rule = TRANSITIONS.get((current, event))
        if rule is None:
            raise InvalidTransition(f"{event.value} not allowed from {current.value}")
        if rule.to is None and self.cancel_policy != CancelPolicy.REMOVE:
            raise InvalidTransition(
                f"{event.value} from {current.value} needs the 'remove' cancel policy "
                f"(current: '{self.cancel_policy.value}')"
            )
        if event == Event.EXPIRE or not rule.allowed(actor, donation):
            raise Forbidden(f"{actor.role.value} {actor.id} may not {event.value} donation {donation_id}")
        now = self.clock.now()
        if event != Event.CANCEL and current in EXPIRABLE_STATUSES and is_overdue(donation, now):
            raise AlreadyExpired(f"Donation {donation_id} is past its perishability window")

        if rule.to is None or (event == Event.CANCEL and self.cancel_policy == CancelPolicy.REMOVE):
            return await self._remove(donation, rule, actor)
        values = {"accepted_by": actor.id} if rule.records_acceptor else None
        return await self._commit(donation, rule, now, values, actor_id=actor.id)

    async def expire(self, donation_id: int) -> Donation:
        """System path used by the expiry sweep. Never reachable from an actor request."""
        donation = await self._load(donation_id)
        rule = TRANSITIONS.get((donation.status, Event.EXPIRE))
        if rule is None:
            raise InvalidTransition(f"Expire not allowed from {donation.status.value}")
        now = self.clock.now()
        if not is_overdue(donation, now):
            raise InvalidTransition(f"Donation {donation_id} is still within its perishability window")
        return await self._commit(donation, rule, now, None, actor_id=None)

    async def _commit(
        self,
        donation: Donation,
        rule: TransitionRule,
        now: datetime,
        values: dict[str, Any] | None,
        actor_id: int | None,
    ) -> Donation:
        from_status = donation.status
        donation_id = donation.id
        ok = await self.store.commit_transition(
            donation_id, from_status, rule.to, rule.timestamp_field, now, values
        )
        if not ok:
            raise ConflictingTransition(
                f"Donation {donation_id} is no longer {from_status.value}; reload and retry"
            )
        updated = await self._load(donation_id)
        logger.info(
            "Donation %s: %s -> %s (actor=%s)",
            donation_id, from_status.value, rule.to.value, actor_id if actor_id is not None else "system",
        )
        if rule.notify:
            targets = rule.targets(updated) if rule.targets else ()
            if actor_id is not None and rule.notify == DONATION_COMPLETED:
                targets = tuple(targets) + (actor_id,)
            await self.notifier.notify(NotificationEvent(rule.notify, donation_id, tuple(targets)))
        return updated

    async def _remove(self, donation: Donation, rule: TransitionRule, actor: Actor) -> None:
        targets = rule.targets(donation) if rule.targets else ()
        if not await self.store.remove(donation.id, donation.status):
            raise ConflictingTransition(f"Donation {donation.id} changed before it could be removed")
        logger.info("Donation %s removed by %s %s", donation.id, actor.role.value, actor.id)
        await self.notifier.notify(
            NotificationEvent(DONATION_CANCELLED, donation.id, tuple(targets), donation_exists=False)
        )
        return None
