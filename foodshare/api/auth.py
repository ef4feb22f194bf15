"""Auth routes: register, login, profile (GET/PATCH /me)."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodshare.auth.jwt import create_access_token
from foodshare.auth.password import hash_password, verify_password
from foodshare.database import get_db
from foodshare.deps import get_current_actor
from foodshare.models.actor import Actor, Role
from foodshare.schemas.actor import ActorCreate, ActorLocationUpdate, ActorResponse, LoginRequest, Token

router = APIRouter(prefix="/auth", tags=["auth"])


@router.post("/register", response_model=ActorResponse)
async def register(body: ActorCreate, db: AsyncSession = Depends(get_db)):
    """Create a Donor, NGO or Volunteer account. Returns the actor (no password)."""
    if body.role == Role.ADMIN:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Admins cannot self-register")
    if (body.latitude is None) != (body.longitude is None):
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Give both latitude and longitude or neither")
    result = await db.execute(select(Actor).where(Actor.email == body.email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail="Email already registered")
    actor = Actor(
        email=body.email,
        hashed_password=hash_password(body.password),
        name=(body.name or "").strip() or None,
        role=body.role,
        latitude=body.latitude,
        longitude=body.longitude,
    )
    db.add(actor)
    await db.flush()
    await db.refresh(actor)
    return actor


@router.post("/login", response_model=Token)
async def login(body: LoginRequest, db: AsyncSession = Depends(get_db)):
    """Login with email + password; returns JWT access_token."""
    result = await db.execute(select(Actor).where(Actor.email == body.email))
    actor = result.scalar_one_or_none()
    if not actor or not verify_password(body.password, actor.hashed_password):
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid email or password")
    return Token(access_token=create_access_token(actor))


@router.get("/me", response_model=ActorResponse)
async def me(current_actor: Actor = Depends(get_current_actor)):
    """Return the currently authenticated actor (requires Bearer token)."""
    return current_actor


@router.patch("/me", response_model=ActorResponse)
async def update_me(
    body: ActorLocationUpdate,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """Set operating location (and optionally name)."""
    current_actor.latitude = body.latitude
    current_actor.longitude = body.longitude
    if body.name is not None:
        current_actor.name = body.name.strip() or None
    await db.flush()
    await db.refresh(current_actor)
    return current_actor
