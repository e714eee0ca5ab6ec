"""In-process realtime fan-out over WebSocket connections.

Each authenticated socket joins the group ``user:<id>``; services push
events to a user by broadcasting to that group.
"""

import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import WebSocket

logger = logging.getLogger(__name__)

REALTIME_EVENT_TYPES = {"message", "notification", "chat_update"}


def user_group(user_id: str) -> str:
    return f"user:{user_id}"


class ConnectionManager:
    """Manages WebSocket connections with group support.

    A user with several tabs open has several client ids in the same group.
    """

    def __init__(self):
        # client_id -> WebSocket (for direct messaging)
        self.active_connections: dict[str, WebSocket] = {}
        # group_name -> set of client_ids
        self.groups: dict[str, set[str]] = {}

    async def connect(self, websocket: WebSocket, client_id: str, group: Optional[str] = None):
        """Accept a WebSocket and optionally add it to a group."""
        await websocket.accept()
        self.active_connections[client_id] = websocket
        if group:
            self.add_to_group(client_id, group)

    def add_to_group(self, client_id: str, group: str):
        self.groups.setdefault(group, set()).add(client_id)

    def disconnect(self, client_id: str):
        """Remove a client from all groups and drop its connection."""
        self.active_connections.pop(client_id, None)
        for group in list(self.groups):
            self.groups[group].discard(client_id)
            if not self.groups[group]:
                del self.groups[group]

    async def send_json(self, client_id: str, data: dict):
        ws = self.active_connections.get(client_id)
        if ws:
            try:
                await ws.send_json(data)
            except Exception:
                logger.warning("Failed to send to client %s, removing", client_id)
                self.disconnect(client_id)

    async def broadcast_to_group(self, group: str, data: dict):
        """Broadcast a JSON message to every client in a group."""
        client_ids = list(self.groups.get(group, set()))
        disconnected: list[str] = []
        for cid in client_ids:
            ws = self.active_connections.get(cid)
            if ws:
                try:
                    await ws.send_json(data)
                except Exception:
                    logger.warning("Broadcast failed for %s, removing", cid)
                    disconnected.append(cid)
        for cid in disconnected:
            self.disconnect(cid)


manager = ConnectionManager()


async def push_to_user(user_id: str, event_type: str, data: dict):
    """Push an event to every open socket of ``user_id``.

    Safe to call from any route handler; a user with no open socket is a no-op.
    """
    if event_type not in REALTIME_EVENT_TYPES:
        logger.warning("Unknown realtime event type: %s", event_type)
    message = {
        "type": event_type,
        "data": data,
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }
    await manager.broadcast_to_group(user_group(user_id), message)
