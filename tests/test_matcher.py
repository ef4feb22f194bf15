from datetime import timedelta

import pytest

from conftest import T0, make_actor, make_donation
from foodshare.models import DonationStatus, Role
from foodshare.services.errors import InvalidArgument, InvalidCoordinate
from foodshare.services.geo import Coordinate
from foodshare.services.matcher import MatchEngine
from foodshare.services.notifications import DONATION_URGENT

pytestmark = pytest.mark.anyio

NGO_POINT = Coordinate(0.0, 0.03)


def _seed(store, *donations):
    for d in donations:
        store.donations[d.id] = d


def _ids(results):
    return [r.donation.id for r in results]


async def test_ngo_sees_donation_within_five_km_but_not_one(store, clock):
    _seed(store, make_donation(1, lat=0.0, lng=0.0))
    engine = MatchEngine(store, clock)

    results = await engine.find_matches(NGO_POINT, 5)
    assert _ids(results) == [1]
    assert results[0].distance_km == pytest.approx(3.34, abs=0.01)

    assert await engine.find_matches(NGO_POINT, 1) == []


async def test_smaller_radius_is_subset_of_larger(store, clock):
    _seed(
        store,
        make_donation(1, lat=0.0, lng=0.0),
        make_donation(2, lat=0.0, lng=0.05),
        make_donation(3, lat=0.05, lng=0.05),
        make_donation(4, lat=0.1, lng=0.2),
        make_donation(5, lat=0.0, lng=0.3),
    )
    engine = MatchEngine(store, clock)
    radii = [1, 3, 5, 10, 25]
    sets = [set(_ids(await engine.find_matches(NGO_POINT, r))) for r in radii]
    for smaller, larger in zip(sets, sets[1:]):
        assert smaller <= larger
    for r in radii:
        assert all(m.distance_km <= r for m in await engine.find_matches(NGO_POINT, r))


async def test_ordered_by_urgency_then_distance_then_id(store, clock):
    clock.advance(minutes=90)
    _seed(
        store,
        # same urgency, different distance
        make_donation(10, lat=0.0, lng=0.02),
        make_donation(11, lat=0.0, lng=0.01),
        # same urgency and distance, tie broken by id
        make_donation(13, lat=0.0, lng=0.04),
        make_donation(12, lat=0.0, lng=0.04),
        # most urgent: 90 of 100 minutes gone
        make_donation(20, lat=0.0, lng=0.05, window_minutes=100),
    )
    engine = MatchEngine(store, clock)
    results = await engine.find_matches(Coordinate(0.0, 0.0), 10)

    assert _ids(results) == [20, 11, 10, 12, 13]
    for a, b in zip(results, results[1:]):
        assert a.urgency >= b.urgency
        if a.urgency == b.urgency:
            assert a.distance_km <= b.distance_km


async def test_missing_or_bad_coordinates_are_skipped(store, clock):
    _seed(
        store,
        make_donation(1, lat=None, lng=None),
        make_donation(2, lat=0.0, lng=None),
        make_donation(3, lat=95.0, lng=0.0),
        make_donation(4, lat=0.0, lng=0.01),
    )
    results = await MatchEngine(store, clock).find_matches(Coordinate(0.0, 0.0), 5)
    assert _ids(results) == [4]


async def test_filters_by_candidate_status(store, clock):
    _seed(
        store,
        make_donation(1, status=DonationStatus.AVAILABLE),
        make_donation(2, status=DonationStatus.ACCEPTED, accepted_by=2),
        make_donation(3, status=DonationStatus.COMPLETED),
        make_donation(4, status=DonationStatus.EXPIRED),
    )
    engine = MatchEngine(store, clock)
    assert _ids(await engine.find_matches(Coordinate(0.0, 0.0), 1)) == [1, 2]
    only_available = await engine.find_matches(Coordinate(0.0, 0.0), 1, {DonationStatus.AVAILABLE})
    assert _ids(only_available) == [1]
    assert await engine.find_matches(Coordinate(0.0, 0.0), 1, set()) == []


async def test_no_candidates_returns_empty(store, clock):
    assert await MatchEngine(store, clock).find_matches(Coordinate(0.0, 0.0), 25) == []


@pytest.mark.parametrize("radius", [0, -1, float("nan"), float("inf")])
async def test_bad_radius_rejected(store, clock, radius):
    with pytest.raises(InvalidArgument):
        await MatchEngine(store, clock).find_matches(Coordinate(0.0, 0.0), radius)


async def test_bad_observer_rejected(store, clock):
    bad = object.__new__(Coordinate)
    object.__setattr__(bad, "lat", 0.0)
    object.__setattr__(bad, "lng", 200.0)
    with pytest.raises(InvalidCoordinate):
        await MatchEngine(store, clock).find_matches(bad, 5)


async def test_urgency_is_computed_at_query_time(store, clock):
    _seed(store, make_donation(1, window_minutes=60))
    engine = MatchEngine(store, clock)
    first = (await engine.find_matches(Coordinate(0.0, 0.0), 1))[0].urgency
    clock.advance(minutes=45)
    later = (await engine.find_matches(Coordinate(0.0, 0.0), 1))[0].urgency
    assert first == 10
    assert later > first


async def test_high_urgency_alerts_once_per_donation(store, clock, notifier, alert_log):
    _seed(
        store,
        make_donation(1, window_minutes=60),
        make_donation(2, window_minutes=600),
    )
    clock.advance(minutes=58)
    engine = MatchEngine(store, clock, notifier, alert_log, high_urgency_threshold=80)

    await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=2)
    await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=2)
    clock.advance(minutes=1)
    await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=3)

    assert len(notifier.events) == 1
    event = notifier.events[0]
    assert event.type == DONATION_URGENT
    assert event.donation_id == 1
    assert event.target_actor_ids == (2,)


async def test_failed_alert_is_sent_by_the_next_query(store, clock, alert_log):
    class FlakyNotifier:
        def __init__(self):
            self.events = []
            self.fail_next = True

        async def notify(self, event):
            if self.fail_next:
                self.fail_next = False
                raise RuntimeError("notification store unavailable")
            self.events.append(event)

    notifier = FlakyNotifier()
    _seed(store, make_donation(1, created_at=T0 - timedelta(hours=5), window_minutes=60))
    engine = MatchEngine(store, clock, notifier, alert_log)

    with pytest.raises(RuntimeError):
        await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=2)
    assert alert_log.claimed == set()

    await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=2)
    await engine.find_matches(Coordinate(0.0, 0.0), 5, observer_id=2)
    assert [(e.type, e.donation_id) for e in notifier.events] == [(DONATION_URGENT, 1)]


async def test_anonymous_observer_alerts_donor(store, clock, notifier, alert_log):
    _seed(store, make_donation(1, donor_id=7, created_at=T0 - timedelta(hours=5), window_minutes=60))
    engine = MatchEngine(store, clock, notifier, alert_log)
    await engine.find_matches(Coordinate(0.0, 0.0), 5)
    assert [e.target_actor_ids for e in notifier.events] == [(7,)]


async def test_no_alert_without_collaborators(store, clock):
    _seed(store, make_donation(1, created_at=T0 - timedelta(hours=5), window_minutes=60))
    results = await MatchEngine(store, clock).find_matches(Coordinate(0.0, 0.0), 5)
    assert results[0].urgency == 100


async def test_nearby_actors_ranked_by_distance(store, clock):
    for actor in (
        make_actor(1, Role.NGO, 0.0, 0.02),
        make_actor(2, Role.NGO, 0.0, 0.01),
        make_actor(3, Role.NGO, None, None),
        make_actor(4, Role.VOLUNTEER, 0.0, 0.005),
        make_actor(5, Role.NGO, 1.0, 1.0),
    ):
        store.actors[actor.id] = actor
    engine = MatchEngine(store, clock)

    ngos = await engine.find_nearby_actors(Coordinate(0.0, 0.0), 5)
    assert [m.actor.id for m in ngos] == [2, 1]

    everyone = await engine.find_nearby_actors(Coordinate(0.0, 0.0), 5, roles=(Role.NGO, Role.VOLUNTEER))
    assert [m.actor.id for m in everyone] == [4, 2, 1]
