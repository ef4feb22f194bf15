"""Remembers which urgency tier was last alerted per donation (Redis, TTL)."""
from typing import Any, Protocol

from foodshare.config import settings
from foodshare.services import transaction


class UrgencyAlertLog(Protocol):
    async def claim(self, donation_id: int, tier: int) -> bool:
        """True exactly once per (donation, tier); later calls return False."""
        ...

    async def release(self, donation_id: int, tier: int) -> None:
        """Give a claim back when its alert was never delivered."""
        ...


def _key(donation_id: int, tier: int) -> str:
    return f"donation:{donation_id}:urgency_tier:{tier}"


class RedisAlertLog:
    """
    When built with the request's session, a claim is released again if that
    transaction rolls back, so the alert row and the claim live or die together.
    """

    def __init__(self, redis: Any, ttl_seconds: int | None = None, db: Any = None) -> None:
        self.redis = redis
        self.ttl_seconds = ttl_seconds or settings.URGENCY_ALERT_TTL_SECONDS
        self.db = db

    async def claim(self, donation_id: int, tier: int) -> bool:
        # SET NX: only the first caller for this tier gets a truthy reply
        ok = await self.redis.set(_key(donation_id, tier), "1", nx=True, ex=self.ttl_seconds)
        if ok and self.db is not None:
            transaction.after_rollback(self.db, lambda: self.release(donation_id, tier))
        return bool(ok)

    async def release(self, donation_id: int, tier: int) -> None:
        await self.redis.delete(_key(donation_id, tier))
