"""Authoritative board state.

The store owns the one canonical :class:`Board`. Published boards are
never mutated; :meth:`StateStore.apply` swaps in a new instance, so a
reader always sees either the old or the new board in full.
"""

from __future__ import annotations

import logging
from datetime import timedelta
from typing import Any

from taskboard.models.board import Board
from taskboard.services.normalizer import (
    Rejected,
    normalize,
    parse_timestamp,
    utc_timestamp,
)
from taskboard.services.persistence import BoardStorage, PersistenceScheduler

logger = logging.getLogger(__name__)


class StateStore:
    def __init__(self, board: Board, scheduler: PersistenceScheduler) -> None:
        self._board = board
        self._scheduler = scheduler

    @classmethod
    def open(cls, storage: BoardStorage, scheduler: PersistenceScheduler | None = None) -> StateStore:
        """Load the stored board, or the seeded default when it is missing or corrupt."""
        board = storage.load_or_default()
        logger.info("Board loaded: %d section(s)", len(board.sections))
        return cls(board, scheduler or PersistenceScheduler(storage))

    def current(self) -> Board:
        return self._board

    def apply(self, raw: Any) -> Board | None:
        """Normalise *raw* and make it the authoritative board.

        Returns the new board, or ``None`` when *raw* was rejected (state
        is left untouched and nothing must be broadcast).
        """
        result = normalize(raw, now=self._next_timestamp())
        if isinstance(result, Rejected):
            logger.debug("Update rejected: %s", result.reason)
            return None

        self._board = result.board
        self._scheduler.schedule(self._board)
        return self._board

    async def close(self) -> None:
        """Flush the pending write; call on shutdown."""
        await self._scheduler.flush()

    def _next_timestamp(self) -> str:
        # updatedAt must strictly increase even when the clock has not
        # moved past the previous snapshot.
        now = utc_timestamp()
        previous = parse_timestamp(self._board.updated_at)
        current = parse_timestamp(now)
        if previous is not None and current is not None and current <= previous:
            return utc_timestamp(previous + timedelta(milliseconds=1))
        return now
