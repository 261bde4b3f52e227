"""Client transport: websocket sync channel and translate API client.

Handles connecting, listening, automatic reconnection and sending
updates. While the socket is down the connection reports the
"reconnecting" status; it goes back to "connected" once the socket is up
again and the server's fresh ``sync`` has arrived.
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Callable
from typing import Any

import httpx
import websockets
from websockets.exceptions import WebSocketException

from taskboard.client.reconciler import ClientReconciler
from taskboard.models.messages import Envelope, MessageType

logger = logging.getLogger(__name__)

StatusCallback = Callable[[bool], None]


class BoardConnection:
    """Websocket session bound to a :class:`ClientReconciler`."""

    def __init__(
        self,
        url: str,
        reconciler: ClientReconciler,
        *,
        on_status: StatusCallback | None = None,
        reconnect_delay: float = 2.0,
    ) -> None:
        self.url = url
        self.reconciler = reconciler
        self.connected = False
        self._on_status = on_status or (lambda connected: None)
        self._reconnect_delay = reconnect_delay
        self._ws: Any = None
        self._closing = False
        self._pending_sends: set[asyncio.Task[None]] = set()

    def send(self, message: Envelope) -> None:
        """Queue *message* on the socket; dropped with a warning while offline."""
        if not (self._ws and self.connected):
            logger.warning("Cannot send %s: not connected", message.type.value)
            return
        task = asyncio.get_running_loop().create_task(self._ws.send(message.model_dump_json()))
        self._pending_sends.add(task)
        task.add_done_callback(self._pending_sends.discard)

    async def run(self) -> None:
        """Connect and listen until :meth:`close`, reconnecting on failure."""
        self._closing = False
        while not self._closing:
            try:
                async with websockets.connect(self.url) as ws:
                    self._ws = ws
                    logger.info("Connected to %s", self.url)
                    await self._listen(ws)
            except (OSError, asyncio.TimeoutError, WebSocketException) as e:
                logger.warning("Connection to %s lost: %s", self.url, e)
            finally:
                self._ws = None
                self._set_status(False)

            if not self._closing:
                logger.info("Reconnecting in %.1fs", self._reconnect_delay)
                await asyncio.sleep(self._reconnect_delay)

    async def close(self) -> None:
        self._closing = True
        if self._pending_sends:
            await asyncio.gather(*self._pending_sends, return_exceptions=True)
        if self._ws is not None:
            await self._ws.close()

    async def _listen(self, ws: Any) -> None:
        async for frame in ws:
            try:
                envelope = Envelope.model_validate(json.loads(frame))
            except ValueError:
                logger.debug("Ignoring malformed frame")
                continue
            if envelope.type is MessageType.SYNC:
                self._set_status(True)
                self.reconciler.on_sync(envelope.payload)

    def _set_status(self, connected: bool) -> None:
        if connected != self.connected:
            self.connected = connected
            self._on_status(connected)


class TranslationClient:
    """Calls ``POST /api/translate`` on the board server."""

    def __init__(self, base_url: str, *, client: httpx.AsyncClient | None = None) -> None:
        self.base_url = base_url.rstrip("/")
        self._client = client

    async def __call__(self, payload: dict[str, Any]) -> dict[str, Any]:
        client = self._client or httpx.AsyncClient(base_url=self.base_url)
        try:
            response = await client.post(f"{self.base_url}/api/translate", json=payload)
            response.raise_for_status()
            return response.json()
        finally:
            if self._client is None:
                await client.aclose()
