"""WebSocket: real-time "refetch" pings for donations and notifications."""
from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from foodshare.auth.jwt import actor_id_from_token
from foodshare.services.ws_updates import updates_manager

router = APIRouter(tags=["ws"])


@router.websocket("/ws/updates")
async def updates_ws(websocket: WebSocket):
    """Connect with ?token=JWT. Server pushes { type: 'notifications', event: ... } when something changes."""
    await websocket.accept()
    token = websocket.query_params.get("token")
    if not token:
        await websocket.close(code=4000)
        return
    actor_id = actor_id_from_token(token)
    if actor_id is None:
        await websocket.close(code=4001)
        return
    updates_manager.connect(actor_id, websocket)
    try:
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        pass
    finally:
        updates_manager.disconnect(actor_id, websocket)
