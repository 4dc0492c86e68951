"""Read-only WebSocket feed of an open debate for its audience."""

import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from starlette.status import WS_1008_POLICY_VIOLATION

from web.services import ModerationServices

logger = logging.getLogger(__name__)

ws_router = APIRouter()

DEBATE_NOT_FOUND = "Debate not found"


@ws_router.websocket("/ws/debate/{debate_id}")
async def audience_endpoint(websocket: WebSocket, debate_id: int):
    """WebSocket endpoint for real-time debate updates."""
    services: ModerationServices = websocket.app.state.services

    debate = services.store.debates.lookup(debate_id)
    if debate is None or not debate.is_open:
        await websocket.close(code=WS_1008_POLICY_VIOLATION, reason=DEBATE_NOT_FOUND)
        return

    await websocket.accept()

    # The debate may have been closed while the handshake completed
    if services.store.debates.lookup(debate_id) is not debate or not debate.is_open:
        logger.debug(f"Debate {debate_id} closed during audience handshake")
        await websocket.close(code=WS_1008_POLICY_VIOLATION, reason=DEBATE_NOT_FOUND)
        return

    services.hub.add_connection(debate_id, websocket)

    try:
        await websocket.send_json(
            {
                "type": "connected",
                "debateId": debate_id,
                "title": debate.title,
                "description": debate.description,
                "questions": debate.get_formatted_questions(),
            }
        )

        # Keep connection alive
        while True:
            await websocket.receive_text()
    except WebSocketDisconnect:
        services.hub.remove_connection(debate_id, websocket)
