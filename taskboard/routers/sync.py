"""Real-time board sync over a websocket."""

from __future__ import annotations

import json
import logging

from fastapi import APIRouter, WebSocket, WebSocketDisconnect

from taskboard.models.messages import Envelope
from taskboard.services.broadcast import BroadcastHub, Session

logger = logging.getLogger(__name__)

router = APIRouter(tags=["sync"])


class WebSocketChannel:
    """:class:`~taskboard.services.broadcast.Channel` backed by a FastAPI websocket."""

    def __init__(self, websocket: WebSocket) -> None:
        self.websocket = websocket

    async def send(self, message: Envelope) -> None:
        await self.websocket.send_json(message.model_dump(mode="json"))


@router.websocket("/ws")
async def sync_endpoint(websocket: WebSocket) -> None:
    """Send ``sync`` on connect, then feed every inbound frame to the hub."""
    hub: BroadcastHub = websocket.app.state.hub
    await websocket.accept()
    session = Session(WebSocketChannel(websocket))
    await hub.connect(session)

    try:
        while True:
            frame = await websocket.receive()
            if frame["type"] == "websocket.disconnect":
                break
            text = frame.get("text")
            if text is None:
                logger.debug("Dropping binary frame from %r", session)
                continue
            try:
                message = json.loads(text)
            except ValueError:
                logger.debug("Dropping non-JSON frame from %r", session)
                continue
            await hub.receive(session, message)
    except WebSocketDisconnect:
        pass
    finally:
        hub.disconnect(session)
