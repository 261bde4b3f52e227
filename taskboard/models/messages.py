"""Real-time channel messages."""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel


class MessageType(str, Enum):
    SYNC = "sync"  # server → client, canonical board
    UPDATE = "update"  # client → server, candidate board


class Envelope(BaseModel):
    """One websocket frame: ``{"type": ..., "payload": ...}``."""

    type: MessageType
    payload: Any = None

    @classmethod
    def sync(cls, board_wire: dict) -> Envelope:
        return cls(type=MessageType.SYNC, payload=board_wire)

    @classmethod
    def update(cls, board_wire: dict) -> Envelope:
        return cls(type=MessageType.UPDATE, payload=board_wire)
