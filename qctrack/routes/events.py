from typing import Optional

from fastapi import APIRouter, HTTPException, WebSocket, WebSocketDisconnect

from ..auth.security import user_id_from_token
from ..config import settings
from ..services.event_hub import hub

router = APIRouter(tags=["events"])


@router.websocket("/ws/events")
async def ws_events(websocket: WebSocket, token: Optional[str] = None, user_id: Optional[str] = None):
    """Change feed: every store event is pushed as {"event": "<source>.<name>", "data": ...}."""
    if token:
        try:
            user_id = user_id_from_token(token)
        except HTTPException:
            await websocket.close(code=4401)
            return
    elif settings.auth_required or not user_id:
        await websocket.close(code=4401)
        return

    await websocket.accept()
    await hub.connect(user_id, websocket)
    await hub.send_to_user(user_id, "connected", {"user_id": user_id})

    try:
        while True:
            data = await websocket.receive_text()
            if data and data.strip().lower() in {"ping", "keepalive"}:
                await websocket.send_text("pong")
    except WebSocketDisconnect:
        pass
    finally:
        await hub.disconnect(user_id, websocket)
