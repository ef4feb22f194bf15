"""Find donations (and organizations) near an observer, ranked by urgency then distance.

Results are a read-time snapshot: a donation whose status changes while the query runs
may still show up with its old status.
"""
import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass

from foodshare.config import settings
from foodshare.models.actor import Actor, Role
from foodshare.models.donation import Donation, DonationStatus
from foodshare.services import urgency
from foodshare.services.alert_log import UrgencyAlertLog
from foodshare.services.clock import Clock
from foodshare.services.errors import InvalidArgument
from foodshare.services.geo import Coordinate, distance
from foodshare.services.notifications import DONATION_URGENT, NotificationEvent, NotificationTrigger
from foodshare.services.store import ActorFilter, DonationFilter, Store

logger = logging.getLogger(__name__)

# What the map shows: anything not yet delivered
DEFAULT_CANDIDATE_STATUSES = frozenset(
    {DonationStatus.AVAILABLE, DonationStatus.ACCEPTED, DonationStatus.PICKED_UP}
)


@dataclass
class MatchResult:
    donation: Donation
    distance_km: float
    urgency: int


@dataclass
class ActorMatch:
    actor: Actor
    distance_km: float


def _check_radius(radius_km: float) -> None:
    if not isinstance(radius_km, (int, float)) or not math.isfinite(radius_km) or radius_km <= 0:
        raise InvalidArgument(f"radius_km must be a positive number, got {radius_km!r}")


class MatchEngine:
    def __init__(
        self,
        store: Store,
        clock: Clock,
        notifier: NotificationTrigger | None = None,
        alert_log: UrgencyAlertLog | None = None,
        high_urgency_threshold: int | None = None,
    ) -> None:
        self.store = store
        self.clock = clock
        self.notifier = notifier
        self.alert_log = alert_log
        self.high_urgency_threshold = (
            settings.HIGH_URGENCY_THRESHOLD if high_urgency_threshold is None else high_urgency_threshold
        )

    async def find_matches(
        self,
        observer: Coordinate,
        radius_km: float,
        candidate_statuses: Iterable[DonationStatus] = DEFAULT_CANDIDATE_STATUSES,
        observer_id: int | None = None,
    ) -> list[MatchResult]:
        """
        Donations with status in candidate_statuses within radius_km of observer.
        Order: urgency desc, distance asc, id asc. Donations without a usable pickup
        point are left out rather than failing the query.
        """
        _check_radius(radius_km)
        # Re-validate in case the caller built it bypassing __post_init__
        observer = Coordinate(observer.lat, observer.lng)
        statuses = set(candidate_statuses)
        if not statuses:
            return []

        candidates = await self.store.fetch(DonationFilter(statuses=statuses))
        now = self.clock.now()
        results = []
        for donation in candidates:
            point = donation.coordinate
            if point is None:
                logger.debug("Skipping donation %s: no valid pickup coordinate", donation.id)
                continue
            d_km = distance(observer, point)
            if d_km > radius_km:
                continue
            results.append(MatchResult(donation, d_km, urgency.score_donation(donation, now)))

        results.sort(key=lambda r: (-r.urgency, r.distance_km, r.donation.id))
        await self._alert_urgent(results, observer_id)
        return results

    async def _alert_urgent(self, results: list[MatchResult], observer_id: int | None) -> None:
        if self.notifier is None or self.alert_log is None:
            return
        for r in results:
            if r.urgency < self.high_urgency_threshold:
                # Sorted by urgency, nothing further down qualifies
                break
            tier = urgency.tier(r.urgency, [self.high_urgency_threshold])
            if not await self.alert_log.claim(r.donation.id, tier):
                continue
            target = observer_id if observer_id is not None else r.donation.donor_id
            try:
                await self.notifier.notify(NotificationEvent(DONATION_URGENT, r.donation.id, (target,)))
            except Exception:
                # Undelivered; let the next query for this tier try again
                await self.alert_log.release(r.donation.id, tier)
                raise

    async def find_nearby_actors(
        self,
        observer: Coordinate,
        radius_km: float,
        roles: Iterable[Role] = (Role.NGO,),
    ) -> list[ActorMatch]:
        """Actors of the given roles whose operating location is within radius_km, nearest first."""
        _check_radius(radius_km)
        observer = Coordinate(observer.lat, observer.lng)
        actors = await self.store.fetch_actors(ActorFilter(roles=set(roles), with_location=True))
        matches = []
        for actor in actors:
            try:
                point = actor.coordinate
            except InvalidArgument:
                point = None
            if point is None:
                continue
            d_km = distance(observer, point)
            if d_km <= radius_km:
                matches.append(ActorMatch(actor, d_km))
        matches.sort(key=lambda m: (m.distance_km, m.actor.id))
        return matches
