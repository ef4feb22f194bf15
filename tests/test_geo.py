import math

import pytest

from foodshare.services.errors import InvalidArgument, InvalidCoordinate
from foodshare.services.geo import Coordinate, distance

POINTS = [
    Coordinate(0.0, 0.0),
    Coordinate(14.5995, 120.9842),
    Coordinate(-33.8688, 151.2093),
    Coordinate(51.5074, -0.1278),
    Coordinate(89.9, 179.9),
    Coordinate(-90.0, -180.0),
]


@pytest.mark.parametrize("a", POINTS)
@pytest.mark.parametrize("b", POINTS)
def test_distance_is_symmetric(a, b):
    assert distance(a, b) == pytest.approx(distance(b, a), abs=1e-9)


@pytest.mark.parametrize("a", POINTS)
def test_distance_to_self_is_zero(a):
    assert distance(a, a) == 0.0


def test_small_offset_matches_expected_km():
    # 0.03 degrees of longitude at the equator
    d = distance(Coordinate(0.0, 0.0), Coordinate(0.0, 0.03))
    assert d == pytest.approx(3.3358, abs=0.001)


def test_known_city_pair():
    london = Coordinate(51.5074, -0.1278)
    paris = Coordinate(48.8566, 2.3522)
    assert distance(london, paris) == pytest.approx(343.5, abs=1.0)


def test_antipodes_are_half_circumference():
    d = distance(Coordinate(0.0, 0.0), Coordinate(0.0, 180.0))
    assert d == pytest.approx(math.pi * 6371.0, rel=1e-9)
    assert d >= 0


@pytest.mark.parametrize(
    "lat,lng",
    [(90.1, 0.0), (-90.5, 0.0), (0.0, 180.01), (0.0, -181.0), (float("nan"), 0.0)],
)
def test_out_of_range_coordinate_rejected(lat, lng):
    with pytest.raises(InvalidCoordinate):
        Coordinate(lat, lng)


def test_invalid_coordinate_is_an_invalid_argument():
    with pytest.raises(InvalidArgument):
        Coordinate(100.0, 0.0)


def test_of_returns_none_when_missing():
    assert Coordinate.of(None, 10.0) is None
    assert Coordinate.of(10.0, None) is None
    assert Coordinate.of(10, 20) == Coordinate(10.0, 20.0)


def test_distance_revalidates_inputs():
    bad = object.__new__(Coordinate)
    object.__setattr__(bad, "lat", 123.0)
    object.__setattr__(bad, "lng", 0.0)
    with pytest.raises(InvalidCoordinate):
        distance(Coordinate(0.0, 0.0), bad)
