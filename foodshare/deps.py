"""Shared dependencies: current actor and the collaborators the services need."""
from typing import Annotated

from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodshare.auth.jwt import actor_id_from_token
from foodshare.database import get_db
from foodshare.models.actor import Actor
from foodshare.redis_client import get_redis
from foodshare.services.alert_log import RedisAlertLog, UrgencyAlertLog
from foodshare.services.clock import Clock, system_clock
from foodshare.services.matcher import MatchEngine
from foodshare.services.notifications import DbNotificationTrigger, NotificationTrigger
from foodshare.services.state_machine import LifecycleStateMachine
from foodshare.services.store import SqlStore, Store

security = HTTPBearer(auto_error=False)


async def get_current_actor(
    credentials: Annotated[HTTPAuthorizationCredentials | None, Depends(security)],
    db: Annotated[AsyncSession, Depends(get_db)],
) -> Actor:
    """Validate JWT from Authorization: Bearer <token> and return the Actor. Raises 401 if missing/invalid."""
    if not credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Not authenticated")
    actor_id = actor_id_from_token(credentials.credentials)
    if actor_id is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Invalid or expired token")
    result = await db.execute(select(Actor).where(Actor.id == actor_id))
    actor = result.scalar_one_or_none()
    if not actor:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Actor not found")
    return actor


def get_store(db: Annotated[AsyncSession, Depends(get_db)]) -> Store:
    return SqlStore(db)


def get_notifier(db: Annotated[AsyncSession, Depends(get_db)]) -> NotificationTrigger:
    # Same session as the store, so notifications commit with the status change
    return DbNotificationTrigger(db)


def get_clock() -> Clock:
    return system_clock


async def get_alert_log(db: Annotated[AsyncSession, Depends(get_db)]) -> UrgencyAlertLog:
    # Claims are handed back if this request rolls back
    return RedisAlertLog(await get_redis(), db=db)


def get_state_machine(
    store: Annotated[Store, Depends(get_store)],
    notifier: Annotated[NotificationTrigger, Depends(get_notifier)],
    clock: Annotated[Clock, Depends(get_clock)],
) -> LifecycleStateMachine:
    return LifecycleStateMachine(store, notifier, clock)


def get_match_engine(
    store: Annotated[Store, Depends(get_store)],
    clock: Annotated[Clock, Depends(get_clock)],
    notifier: Annotated[NotificationTrigger, Depends(get_notifier)],
    alert_log: Annotated[UrgencyAlertLog, Depends(get_alert_log)],
) -> MatchEngine:
    return MatchEngine(store, clock, notifier, alert_log)
