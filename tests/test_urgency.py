from datetime import timedelta

import pytest

from conftest import T0, make_donation
from foodshare.models import DonationStatus
from foodshare.services.urgency import score, score_donation, tier

HOUR = timedelta(hours=1)


def test_fresh_donation_scores_floor():
    assert score(T0, 2 * HOUR, T0, floor=10, exponent=2.0) == 10


def test_expired_donation_scores_100():
    assert score(T0, 2 * HOUR, T0 + 2 * HOUR, floor=10, exponent=2.0) == 100
    assert score(T0, 2 * HOUR, T0 + 5 * HOUR, floor=10, exponent=2.0) == 100


def test_about_to_expire_is_near_100():
    s = score(T0, 2 * HOUR, T0 + 2 * HOUR - timedelta(minutes=1), floor=10, exponent=2.0)
    assert 95 <= s < 100


def test_non_positive_window_counts_as_spoiled():
    assert score(T0, timedelta(0), T0) == 100


def test_created_in_future_counts_as_fresh():
    assert score(T0 + HOUR, HOUR, T0, floor=10) == 10


@pytest.mark.parametrize("window_minutes", [30, 60, 240, 24 * 60])
def test_monotonic_as_remaining_time_shrinks(window_minutes):
    window = timedelta(minutes=window_minutes)
    scores = [score(T0, window, T0 + window * (i / 50)) for i in range(0, 60)]
    assert scores == sorted(scores)
    assert all(0 <= s <= 100 for s in scores)


def test_scaled_against_own_window():
    # 30 minutes left of a 1-hour window vs 30 minutes left of a 24-hour window
    short = score(T0, HOUR, T0 + timedelta(minutes=30))
    long = score(T0, 24 * HOUR, T0 + 24 * HOUR - timedelta(minutes=30))
    assert long > short
    fresh_short = score(T0, HOUR, T0 + timedelta(minutes=30))
    fresh_long = score(T0, 24 * HOUR, T0 + timedelta(minutes=30))
    assert fresh_short > fresh_long


def test_idempotent_at_same_instant():
    now = T0 + timedelta(minutes=77)
    assert len({score(T0, 2 * HOUR, now) for _ in range(5)}) == 1


def test_linear_curve():
    assert score(T0, 2 * HOUR, T0 + HOUR, floor=0, exponent=1.0) == 50


def test_score_donation_ignores_status():
    d = make_donation(1, window_minutes=120)
    now = T0 + timedelta(minutes=90)
    before = score_donation(d, now)
    d.status = DonationStatus.COMPLETED
    assert score_donation(d, now) == before


def test_tier():
    assert tier(79, [80]) == 0
    assert tier(80, [80]) == 1
    assert tier(95, [90, 60, 80]) == 3
