# tests/conftest.py
from datetime import datetime, timedelta, timezone
from itertools import count

import pytest

from foodshare.models import Actor, Donation, DonationStatus, Role
from foodshare.services.notifications import NotificationEvent
from foodshare.services.store import ActorFilter, DonationFilter

T0 = datetime(2026, 3, 1, 12, 0, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime = T0) -> None:
        self.current = now

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class MemoryStore:
    """Dict-backed Store with the same compare-and-swap semantics as SqlStore."""

    def __init__(self) -> None:
        self.donations: dict[int, Donation] = {}
        self.actors: dict[int, Actor] = {}
        self._ids = count(1000)
        self.commits: list[tuple[int, DonationStatus, DonationStatus]] = []

    async def fetch(self, flt: DonationFilter):
        rows = list(self.donations.values())
        if flt.statuses is not None:
            statuses = set(flt.statuses)
            rows = [d for d in rows if d.status in statuses]
        if flt.donor_id is not None:
            rows = [d for d in rows if d.donor_id == flt.donor_id]
        if flt.accepted_by is not None:
            rows = [d for d in rows if d.accepted_by == flt.accepted_by]
        return rows

    async def fetch_one(self, donation_id: int):
        return self.donations.get(donation_id)

    async def fetch_actors(self, flt: ActorFilter):
        rows = list(self.actors.values())
        if flt.roles is not None:
            roles = set(flt.roles)
            rows = [a for a in rows if a.role in roles]
        if flt.ids is not None:
            ids = set(flt.ids)
            rows = [a for a in rows if a.id in ids]
        if flt.with_location:
            rows = [a for a in rows if a.latitude is not None and a.longitude is not None]
        return rows

    async def add_donation(self, donation: Donation) -> Donation:
        if donation.id is None:
            donation.id = next(self._ids)
        self.donations[donation.id] = donation
        return donation

    async def commit_transition(self, donation_id, expected_from, new_status, timestamp_field, at, values=None):
        donation = self.donations.get(donation_id)
        if donation is None or donation.status != expected_from:
            return False
        donation.status = new_status
        if timestamp_field:
            setattr(donation, timestamp_field, at)
        for key, value in (values or {}).items():
            setattr(donation, key, value)
        self.commits.append((donation_id, expected_from, new_status))
        return True

    async def remove(self, donation_id, expected_from):
        donation = self.donations.get(donation_id)
        if donation is None or donation.status != expected_from:
            return False
        del self.donations[donation_id]
        return True


class RecordingNotifier:
    def __init__(self) -> None:
        self.events: list[NotificationEvent] = []

    async def notify(self, event: NotificationEvent) -> None:
        self.events.append(event)

    def types(self) -> list[str]:
        return [e.type for e in self.events]


class MemoryAlertLog:
    def __init__(self) -> None:
        self.claimed: set[tuple[int, int]] = set()

    async def claim(self, donation_id: int, tier: int) -> bool:
        if (donation_id, tier) in self.claimed:
            return False
        self.claimed.add((donation_id, tier))
        return True

    async def release(self, donation_id: int, tier: int) -> None:
        self.claimed.discard((donation_id, tier))


def make_actor(actor_id: int, role: Role, lat: float | None = None, lng: float | None = None, name: str | None = None) -> Actor:
    return Actor(
        id=actor_id,
        email=f"actor{actor_id}@example.org",
        hashed_password="x",
        name=name or f"{role.value} {actor_id}",
        role=role,
        latitude=lat,
        longitude=lng,
    )


def make_donation(
    donation_id: int,
    donor_id: int = 1,
    lat: float | None = 0.0,
    lng: float | None = 0.0,
    created_at: datetime = T0,
    window_minutes: int = 240,
    status: DonationStatus = DonationStatus.AVAILABLE,
    accepted_by: int | None = None,
) -> Donation:
    return Donation(
        id=donation_id,
        donor_id=donor_id,
        title=f"Donation {donation_id}",
        food_category="bakery",
        quantity="10 loaves",
        latitude=lat,
        longitude=lng,
        perishability_minutes=window_minutes,
        status=status,
        accepted_by=accepted_by,
        created_at=created_at,
    )


@pytest.fixture(scope="session")
def anyio_backend():
    # keep AnyIO on asyncio for the whole test session
    return "asyncio"


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def store():
    return MemoryStore()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def alert_log():
    return MemoryAlertLog()


@pytest.fixture
def donor():
    return make_actor(1, Role.DONOR, 0.0, 0.0)


@pytest.fixture
def ngo():
    return make_actor(2, Role.NGO, 0.0, 0.03)


@pytest.fixture
def volunteer():
    return make_actor(3, Role.VOLUNTEER, 0.01, 0.01)


@pytest.fixture
def admin():
    return make_actor(4, Role.ADMIN)
