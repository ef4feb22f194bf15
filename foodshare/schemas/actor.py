"""Pydantic schemas for auth: register, login, actor response, token."""
from pydantic import BaseModel, EmailStr, Field

from foodshare.models.actor import Role


class ActorCreate(BaseModel):
    """Request body for POST /auth/register. Admins are not self-registered."""
    email: EmailStr
    password: str = Field(..., min_length=6)
    name: str | None = Field(default=None, max_length=255)
    role: Role
    latitude: float | None = Field(default=None, ge=-90, le=90)
    longitude: float | None = Field(default=None, ge=-180, le=180)


class ActorResponse(BaseModel):
    """Actor in API responses (no password)."""
    id: int
    email: str
    name: str | None = None
    role: Role
    latitude: float | None = None
    longitude: float | None = None

    class Config:
        from_attributes = True


class ActorLocationUpdate(BaseModel):
    """Request body for PATCH /auth/me: operating location used as the default map center."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    name: str | None = Field(default=None, max_length=255)


class Token(BaseModel):
    """Response for login: access_token and type."""
    access_token: str
    token_type: str = "bearer"


class LoginRequest(BaseModel):
    """Request body for POST /auth/login."""
    email: EmailStr
    password: str
