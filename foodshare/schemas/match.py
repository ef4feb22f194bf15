"""Pydantic schemas for radius queries."""
from pydantic import BaseModel

from foodshare.models.actor import Role
from foodshare.schemas.donation import DonationResponse


class DonationMatchResponse(BaseModel):
    """One donation within the radius, with distance and urgency at query time."""
    donation: DonationResponse
    distance_km: float
    urgency_score: int
    is_urgent: bool


class OrganizationMatchResponse(BaseModel):
    id: int
    name: str | None = None
    role: Role
    latitude: float
    longitude: float
    distance_km: float
