"""Radius queries: donations near the observer (urgent first) and nearby organizations."""
from fastapi import APIRouter, Depends, HTTPException, Query, status

from foodshare.api.donations import donation_to_response
from foodshare.api.errors import to_http
from foodshare.config import settings
from foodshare.deps import get_current_actor, get_match_engine
from foodshare.models.actor import Actor, Role
from foodshare.models.donation import DonationStatus
from foodshare.schemas.match import DonationMatchResponse, OrganizationMatchResponse
from foodshare.services.errors import DonationError
from foodshare.services.geo import Coordinate
from foodshare.services.matcher import DEFAULT_CANDIDATE_STATUSES, MatchEngine

router = APIRouter(prefix="/matches", tags=["matches"])


def _observer(lat: float | None, lng: float | None, actor: Actor) -> Coordinate:
    """Explicit lat/lng wins; otherwise the actor's stored operating location."""
    try:
        if lat is not None and lng is not None:
            return Coordinate(lat, lng)
        if lat is not None or lng is not None:
            raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Give both lat and lng or neither")
        point = actor.coordinate
    except DonationError as e:
        raise to_http(e)
    if point is None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Location required: pass lat/lng or set your location",
        )
    return point


def _check_radius_choice(radius_km: float) -> None:
    if radius_km not in settings.ALLOWED_RADII_KM:
        allowed = ", ".join(f"{r:g}" for r in settings.ALLOWED_RADII_KM)
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=f"radius_km must be one of {allowed}")


@router.get("", response_model=list[DonationMatchResponse])
async def find_donations(
    lat: float | None = None,
    lng: float | None = None,
    radius_km: float = settings.DEFAULT_RADIUS_KM,
    status_in: list[DonationStatus] | None = Query(default=None, alias="status"),
    engine: MatchEngine = Depends(get_match_engine),
    current_actor: Actor = Depends(get_current_actor),
):
    """Donations within radius_km, most urgent first, then nearest."""
    observer = _observer(lat, lng, current_actor)
    _check_radius_choice(radius_km)
    statuses = set(status_in) if status_in else DEFAULT_CANDIDATE_STATUSES
    try:
        results = await engine.find_matches(observer, radius_km, statuses, observer_id=current_actor.id)
    except DonationError as e:
        raise to_http(e)
    now = engine.clock.now()
    return [
        DonationMatchResponse(
            donation=donation_to_response(r.donation, now, current_actor, urgency=r.urgency),
            distance_km=round(r.distance_km, 2),
            urgency_score=r.urgency,
            is_urgent=r.urgency >= engine.high_urgency_threshold,
        )
        for r in results
    ]


@router.get("/organizations", response_model=list[OrganizationMatchResponse])
async def find_organizations(
    lat: float | None = None,
    lng: float | None = None,
    radius_km: float = settings.DEFAULT_RADIUS_KM,
    engine: MatchEngine = Depends(get_match_engine),
    current_actor: Actor = Depends(get_current_actor),
):
    """NGOs with an operating location within radius_km, nearest first."""
    observer = _observer(lat, lng, current_actor)
    _check_radius_choice(radius_km)
    try:
        matches = await engine.find_nearby_actors(observer, radius_km, roles=(Role.NGO,))
    except DonationError as e:
        raise to_http(e)
    return [
        OrganizationMatchResponse(
            id=m.actor.id,
            name=m.actor.name,
            role=m.actor.role,
            latitude=m.actor.latitude,
            longitude=m.actor.longitude,
            distance_km=round(m.distance_km, 2),
        )
        for m in matches
    ]
