"""Urgency score: 0-100 priority from how much of a donation's perishability window has elapsed.

score = floor + (100 - floor) * f ** exponent, with f = elapsed / window clamped to [0, 1].
A fresh donation scores `floor`; one at or past its window scores 100. The window is the
donation's own, so 30 minutes left of a 1-hour window outranks 30 minutes left of 24 hours.
"""
from collections.abc import Sequence
from datetime import datetime, timedelta

from foodshare.config import settings
from foodshare.models.donation import Donation

MAX_SCORE = 100


def score(
    created_at: datetime,
    perishability_window: timedelta,
    now: datetime,
    floor: int | None = None,
    exponent: float | None = None,
) -> int:
    """Pure function of creation time, window and now; status plays no part."""
    floor = settings.URGENCY_FLOOR if floor is None else floor
    exponent = settings.URGENCY_CURVE_EXPONENT if exponent is None else exponent
    floor = max(0, min(MAX_SCORE, floor))
    if exponent <= 0:
        exponent = 1.0
    window = perishability_window.total_seconds()
    if window <= 0:
        return MAX_SCORE
    elapsed = (now - created_at).total_seconds()
    fraction = min(1.0, max(0.0, elapsed / window))
    return int(round(floor + (MAX_SCORE - floor) * fraction ** exponent))


def score_donation(donation: Donation, now: datetime) -> int:
    return score(donation.created_at, donation.perishability_window, now)


def tier(value: int, thresholds: Sequence[int]) -> int:
    """Number of thresholds the score has reached (0 = below all of them)."""
    return sum(1 for t in sorted(thresholds) if value >= t)
