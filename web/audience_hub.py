"""Audience WebSocket connections grouped by debate."""

import logging
from typing import Any

from fastapi import WebSocket

logger = logging.getLogger(__name__)


class AudienceHub:
    """Fan-out of debate events to the audience feeds of each debate."""

    def __init__(self):
        self.connections: dict[int, list[WebSocket]] = {}

    async def broadcast(self, debate_id: int, message: dict[str, Any]) -> None:
        """Broadcast message to all connected clients for a debate."""
        if debate_id not in self.connections:
            return

        dead_connections = []
        for websocket in list(self.connections[debate_id]):
            try:
                await websocket.send_json(message)
            except Exception as e:
                logger.debug(f"WebSocket send failed: {e}")
                dead_connections.append(websocket)

        # Connections list may be gone if the debate closed meanwhile
        for conn in dead_connections:
            self.remove_connection(debate_id, conn)

    def add_connection(self, debate_id: int, websocket: WebSocket) -> None:
        """Add WebSocket connection for a debate."""
        self.connections.setdefault(debate_id, []).append(websocket)

    def remove_connection(self, debate_id: int, websocket: WebSocket) -> None:
        """Remove WebSocket connection."""
        if debate_id in self.connections and websocket in self.connections[debate_id]:
            self.connections[debate_id].remove(websocket)

    async def close_debate(self, debate_id: int) -> None:
        """Disconnect and forget every audience connection of a debate."""
        for websocket in self.connections.pop(debate_id, []):
            try:
                await websocket.close()
            except Exception as e:
                logger.debug(f"WebSocket close failed: {e}")
