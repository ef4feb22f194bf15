"""Live "refetch" pings to connected clients over /ws/updates. Kept separate to avoid circular imports."""
import asyncio
import json
import logging
from collections import defaultdict

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class UpdatesConnectionManager:
    """Actor id -> open sockets. A ping only tells the client which list to reload."""

    def __init__(self) -> None:
        self._sockets: defaultdict[int, set[WebSocket]] = defaultdict(set)

    def connect(self, actor_id: int, websocket: WebSocket) -> None:
        self._sockets[actor_id].add(websocket)

    def disconnect(self, actor_id: int, websocket: WebSocket) -> None:
        sockets = self._sockets.get(actor_id)
        if sockets is None:
            return
        sockets.discard(websocket)
        if not sockets:
            del self._sockets[actor_id]

    def is_connected(self, actor_id: int) -> bool:
        return bool(self._sockets.get(actor_id))

    async def ping(self, actor_id: int, message: dict) -> None:
        sockets = list(self._sockets.get(actor_id, ()))
        if not sockets:
            return
        text = json.dumps(message)
        for ws in sockets:
            try:
                await ws.send_text(text)
            except Exception:
                # Client went away without a close frame
                logger.debug("Dropping dead socket for actor %s", actor_id)
                self.disconnect(actor_id, ws)

    async def ping_many(self, actor_ids: list[int], message: dict) -> None:
        await asyncio.gather(*[self.ping(aid, message) for aid in set(actor_ids)])


updates_manager = UpdatesConnectionManager()
