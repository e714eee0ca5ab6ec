"""WebSocket endpoint for per-user realtime events."""

import json
import logging
import uuid as uuid_mod

from fastapi import APIRouter, WebSocket, WebSocketDisconnect, status

from solvestay.infra.database import async_session
from solvestay.domain.models import Profile
from solvestay.services.auth_service import decode_token
from solvestay.services.realtime import manager, user_group

logger = logging.getLogger(__name__)
router = APIRouter(tags=["websocket"])


async def _authenticate(token: str | None) -> Profile | None:
    payload = decode_token(token) if token else None
    if not payload or "sub" not in payload:
        return None
    async with async_session() as session:
        profile = await session.get(Profile, payload["sub"])
    if not profile or not profile.is_active:
        return None
    return profile


@router.websocket("/ws")
async def user_events(websocket: WebSocket):
    """Push messages, notifications and chat updates to the token's user.

    Supported incoming messages:
        "ping" or {"type": "ping"}  ->  server replies {"type": "pong"}
    """
    profile = await _authenticate(websocket.query_params.get("token"))
    if not profile:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    client_id = f"user_{profile.id}_{uuid_mod.uuid4().hex[:8]}"
    await manager.connect(websocket, client_id, group=user_group(profile.id))
    logger.info("Realtime client connected: %s", client_id)

    try:
        while True:
            raw = await websocket.receive_text()
            if raw == "ping":
                await manager.send_json(client_id, {"type": "pong"})
                continue
            try:
                msg = json.loads(raw)
            except json.JSONDecodeError:
                continue
            if isinstance(msg, dict) and msg.get("type") == "ping":
                await manager.send_json(client_id, {"type": "pong"})
    except WebSocketDisconnect:
        manager.disconnect(client_id)
        logger.info("Realtime client disconnected: %s", client_id)
    except Exception as e:
        logger.error("WebSocket error for %s: %s", client_id, e)
        manager.disconnect(client_id)
