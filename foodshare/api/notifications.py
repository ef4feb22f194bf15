"""Notification routes: list mine, mark read."""
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from foodshare.database import get_db
from foodshare.deps import get_current_actor
from foodshare.models.actor import Actor
from foodshare.models.notification import Notification
from foodshare.schemas.notification import NotificationResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=list[NotificationResponse])
async def list_my_notifications(
    unread_only: bool = False,
    limit: int = 50,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    """Newest first."""
    q = select(Notification).where(Notification.actor_id == current_actor.id)
    if unread_only:
        q = q.where(Notification.is_read.is_(False))
    q = q.order_by(Notification.created_at.desc(), Notification.id.desc()).limit(max(1, min(limit, 200)))
    result = await db.execute(q)
    return result.scalars().all()


@router.post("/{notification_id}/read", response_model=NotificationResponse)
async def mark_read(
    notification_id: int,
    db: AsyncSession = Depends(get_db),
    current_actor: Actor = Depends(get_current_actor),
):
    result = await db.execute(select(Notification).where(Notification.id == notification_id))
    notification = result.scalar_one_or_none()
    if not notification or notification.actor_id != current_actor.id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Notification not found")
    notification.is_read = True
    await db.flush()
    await db.refresh(notification)
    return notification
