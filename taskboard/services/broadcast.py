"""Broadcast hub: keeps every connected session on the canonical board.

Sessions talk to the hub through :class:`Channel`, so the hub does not
know about websockets. Inbound updates are handled one at a time in
arrival order: ``apply`` and the fan-out of the resulting ``sync`` finish
before the next update is looked at. The last full snapshot to arrive
wins; concurrent edits are never merged.
"""

from __future__ import annotations

import asyncio
import logging
import uuid
from typing import Any, Protocol

from pydantic import ValidationError

from taskboard.models.messages import Envelope, MessageType
from taskboard.services.state_store import StateStore

logger = logging.getLogger(__name__)


class Channel(Protocol):
    """Outbound half of a session's message stream."""

    async def send(self, message: Envelope) -> None: ...


class Session:
    """One connected client."""

    def __init__(self, channel: Channel, session_id: str | None = None) -> None:
        self.id = session_id or uuid.uuid4().hex[:8]
        self.channel = channel

    def __repr__(self) -> str:
        return f"Session({self.id})"


class BroadcastHub:
    def __init__(self, store: StateStore) -> None:
        self.store = store
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    @property
    def sessions(self) -> list[Session]:
        return list(self._sessions.values())

    async def connect(self, session: Session) -> None:
        """Register *session* and send it the current board."""
        async with self._lock:
            self._sessions[session.id] = session
            logger.info("%r connected (%d total)", session, len(self._sessions))
            await self._send(session, Envelope.sync(self.store.current().wire()))

    def disconnect(self, session: Session) -> None:
        if self._sessions.pop(session.id, None) is not None:
            logger.info("%r disconnected (%d total)", session, len(self._sessions))

    async def receive(self, session: Session, message: Any) -> None:
        """Handle one inbound frame from *session*.

        Anything that is not a well-formed ``update`` is dropped silently.
        """
        try:
            envelope = Envelope.model_validate(message)
        except ValidationError:
            logger.debug("Dropping malformed message from %r", session)
            return
        if envelope.type is not MessageType.UPDATE:
            logger.debug("Dropping %s message from %r", envelope.type.value, session)
            return

        async with self._lock:
            board = self.store.apply(envelope.payload)
            if board is None:
                return
            await self.broadcast(Envelope.sync(board.wire()))

    async def broadcast(self, message: Envelope) -> None:
        """Send *message* to every session. Callers hold the hub lock."""
        for session in self.sessions:
            await self._send(session, message)

    async def _send(self, session: Session, message: Envelope) -> None:
        try:
            await session.channel.send(message)
        except Exception:
            logger.warning("Send to %r failed, detaching", session, exc_info=True)
            self.disconnect(session)
