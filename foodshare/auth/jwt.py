"""Access tokens for actors (HS256 JWT; `sub` = actor id, `role` = actor role)."""
from datetime import datetime, timedelta, timezone
from typing import Any

from jose import JWTError, jwt

from foodshare.config import settings
from foodshare.models.actor import Actor


def create_access_token(actor: Actor, expires_delta: timedelta | None = None) -> str:
    lifetime = expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    claims: dict[str, Any] = {
        "sub": str(actor.id),
        "role": actor.role.value,
        "exp": datetime.now(timezone.utc) + lifetime,
    }
    return jwt.encode(claims, settings.SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def actor_id_from_token(token: str) -> int | None:
    """Actor id from a valid, unexpired token; None otherwise. The role claim is not trusted."""
    try:
        payload = jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError:
        return None
    try:
        return int(payload["sub"])
    except (KeyError, TypeError, ValueError):
        return None
