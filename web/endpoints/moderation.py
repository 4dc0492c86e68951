"""Privileged WebSocket endpoint for moderators."""

import asyncio
import logging
import uuid
from typing import Any

from fastapi import APIRouter, WebSocket, WebSocketDisconnect
from pydantic import ValidationError
from starlette.status import WS_1008_POLICY_VIOLATION

from web.auth_utils import AuthenticationError, log_security_event
from web.event_frames import AckResponse, EventFrame
from web.event_router import Reply
from web.services import ModerationServices

logger = logging.getLogger(__name__)

ws_router = APIRouter()


def get_services(websocket: WebSocket) -> ModerationServices:
    return websocket.app.state.services


def make_reply(websocket: WebSocket, ack: int | None) -> Reply | None:
    """Reply callback for a frame, or None when the client wants no reply."""
    if ack is None:
        return None

    async def reply(data: Any) -> None:
        try:
            await websocket.send_text(AckResponse(ack=ack, data=data).model_dump_json())
        except Exception as e:
            logger.debug(f"Reply {ack} not delivered: {e}")

    return reply


@ws_router.websocket("/ws/admin")
async def moderation_endpoint(websocket: WebSocket):
    """Authenticate a moderator, then route its events until it disconnects."""
    services = get_services(websocket)

    try:
        identity = await services.gate.authenticate(websocket)
    except AuthenticationError as e:
        client = websocket.client.host if websocket.client else None
        log_security_event("connection_rejected", {"reason": e.detail}, client)
        await websocket.close(code=WS_1008_POLICY_VIOLATION, reason=e.detail)
        return

    await websocket.accept()
    connection_id = uuid.uuid4().hex
    ctx = services.router.attach(identity, websocket, connection_id)

    # Handlers run concurrently; frames are dispatched in arrival order
    pending: set[asyncio.Task[bool]] = set()
    try:
        while True:
            message = await websocket.receive()
            if message["type"] == "websocket.disconnect":
                raise WebSocketDisconnect(message.get("code", 1000), message.get("reason"))

            raw = message.get("text")
            if raw is None:
                logger.debug(f"Non-text frame from {identity.username}")
                continue

            try:
                frame = EventFrame.model_validate_json(raw)
            except ValidationError:
                logger.debug(f"Malformed frame from {identity.username}")
                continue

            task = asyncio.create_task(
                services.router.dispatch(
                    ctx, frame.event, frame.payload, make_reply(websocket, frame.ack)
                )
            )
            pending.add(task)
            task.add_done_callback(pending.discard)
    except WebSocketDisconnect:
        logger.debug(f"Socket {connection_id} of {identity.username} disconnected")
    finally:
        # In-flight commands still complete; their replies are dropped
        if pending:
            await asyncio.gather(*list(pending), return_exceptions=True)
