"""Pydantic schemas for donations. urgency_score is computed at response time, never stored."""
from datetime import datetime

from pydantic import BaseModel, Field

from foodshare.models.donation import DonationStatus


class DonationCreate(BaseModel):
    """Request body for POST /donations."""
    title: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    food_category: str = Field(..., min_length=1, max_length=64)
    quantity: str = Field(..., min_length=1, max_length=64)
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    perishability_minutes: int = Field(..., ge=1, le=60 * 24 * 14)  # up to two weeks


class DonationResponse(BaseModel):
    id: int
    donor_id: int
    title: str
    description: str | None = None
    food_category: str
    quantity: str
    latitude: float | None
    longitude: float | None
    perishability_minutes: int
    status: DonationStatus
    urgency_score: int
    accepted_by: int | None = None
    created_at: datetime
    accepted_at: datetime | None = None
    picked_up_at: datetime | None = None
    delivered_at: datetime | None = None
    completed_at: datetime | None = None
    expired_at: datetime | None = None
    allowed_events: list[str] = []
