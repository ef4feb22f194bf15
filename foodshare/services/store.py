"""Persistence collaborator: query donations/actors and commit status changes.

Status changes are a compare-and-swap on `status`, so two actors racing on the same
donation cannot both win.
"""
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Protocol

from sqlalchemy import delete, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from foodshare.models.actor import Actor, Role
from foodshare.models.donation import Donation, DonationStatus


@dataclass
class DonationFilter:
    statuses: Iterable[DonationStatus] | None = None
    donor_id: int | None = None
    accepted_by: int | None = None


@dataclass
class ActorFilter:
    roles: Iterable[Role] | None = None
    with_location: bool = False
    ids: Iterable[int] | None = None


class Store(Protocol):
    async def fetch(self, flt: DonationFilter) -> Sequence[Donation]: ...

    async def fetch_one(self, donation_id: int) -> Donation | None: ...

    async def fetch_actors(self, flt: ActorFilter) -> Sequence[Actor]: ...

    async def add_donation(self, donation: Donation) -> Donation: ...

    async def commit_transition(
        self,
        donation_id: int,
        expected_from: DonationStatus,
        new_status: DonationStatus,
        timestamp_field: str | None,
        at: datetime,
        values: dict[str, Any] | None = None,
    ) -> bool: ...

    async def remove(self, donation_id: int, expected_from: DonationStatus) -> bool: ...


class SqlStore:
    """Store over the request's AsyncSession. Commit/rollback is left to the session owner."""

    def __init__(self, db: AsyncSession) -> None:
        self.db = db

    async def fetch(self, flt: DonationFilter) -> Sequence[Donation]:
        q = select(Donation)
        if flt.statuses is not None:
            q = q.where(Donation.status.in_(list(flt.statuses)))
        if flt.donor_id is not None:
            q = q.where(Donation.donor_id == flt.donor_id)
        if flt.accepted_by is not None:
            q = q.where(Donation.accepted_by == flt.accepted_by)
        result = await self.db.execute(q.order_by(Donation.created_at.desc()))
        return result.scalars().all()

    async def fetch_one(self, donation_id: int) -> Donation | None:
        result = await self.db.execute(select(Donation).where(Donation.id == donation_id))
        return result.scalar_one_or_none()

    async def fetch_actors(self, flt: ActorFilter) -> Sequence[Actor]:
        q = select(Actor)
        if flt.roles is not None:
            q = q.where(Actor.role.in_(list(flt.roles)))
        if flt.ids is not None:
            q = q.where(Actor.id.in_(list(flt.ids)))
        if flt.with_location:
            q = q.where(Actor.latitude.is_not(None)).where(Actor.longitude.is_not(None))
        result = await self.db.execute(q)
        return result.scalars().all()

    async def add_donation(self, donation: Donation) -> Donation:
        self.db.add(donation)
        await self.db.flush()
        await self.db.refresh(donation)
        return donation

    async def commit_transition(
        self,
        donation_id: int,
        expected_from: DonationStatus,
        new_status: DonationStatus,
        timestamp_field: str | None,
        at: datetime,
        values: dict[str, Any] | None = None,
    ) -> bool:
        changes: dict[str, Any] = {"status": new_status}
        if timestamp_field:
            changes[timestamp_field] = at
        if values:
            changes.update(values)
        result = await self.db.execute(
            update(Donation)
            .where(Donation.id == donation_id)
            .where(Donation.status == expected_from)
            .values(**changes)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1

    async def remove(self, donation_id: int, expected_from: DonationStatus) -> bool:
        result = await self.db.execute(
            delete(Donation)
            .where(Donation.id == donation_id)
            .where(Donation.status == expected_from)
            .execution_options(synchronize_session="fetch")
        )
        return result.rowcount == 1
