"""Coordinates and great-circle distance (haversine on a spherical Earth)."""
import math
from dataclasses import dataclass

from foodshare.services.errors import InvalidCoordinate

EARTH_RADIUS_KM = 6371.0


def _check(lat: float, lng: float) -> None:
    if not isinstance(lat, (int, float)) or not isinstance(lng, (int, float)):
        raise InvalidCoordinate(f"Coordinate must be numeric, got ({lat!r}, {lng!r})")
    if math.isnan(lat) or math.isnan(lng) or not -90.0 <= lat <= 90.0 or not -180.0 <= lng <= 180.0:
        raise InvalidCoordinate(f"Coordinate out of range: ({lat}, {lng})")


@dataclass(frozen=True)
class Coordinate:
    """WGS84 point in decimal degrees."""
    lat: float
    lng: float

    def __post_init__(self) -> None:
        _check(self.lat, self.lng)

    @classmethod
    def of(cls, lat: float | None, lng: float | None) -> "Coordinate | None":
        """Build from nullable columns; None when either part is missing."""
        if lat is None or lng is None:
            return None
        return cls(float(lat), float(lng))


def distance(a: Coordinate, b: Coordinate) -> float:
    """Distance in km between two points. Symmetric; distance(a, a) == 0."""
    _check(a.lat, a.lng)
    _check(b.lat, b.lng)
    phi1, phi2 = math.radians(a.lat), math.radians(b.lat)
    dphi = math.radians(b.lat - a.lat)
    dlam = math.radians(b.lng - a.lng)
    h = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlam / 2) ** 2
    # Rounding can push h a hair past 1 for antipodal points
    h = min(1.0, max(0.0, h))
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
