"""Board persistence: one JSON document, written behind the store.

:class:`BoardStorage` reads and writes the document. :class:`PersistenceScheduler`
coalesces bursts of updates into a single write once the board has been
quiet for the debounce window. A process crash inside that window loses
the last unwritten board; that is accepted.
"""

from __future__ import annotations

import asyncio
import json
import logging
import os
import tempfile
from pathlib import Path

from taskboard.errors import StorageCorrupt, StorageWriteFailed
from taskboard.models.board import Board
from taskboard.scheduling import Debouncer
from taskboard.services.normalizer import Accepted, default_board, normalize

logger = logging.getLogger(__name__)


class BoardStorage:
    """JSON file holding the canonical board."""

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    def ensure(self) -> None:
        """Create the parent directory and seed the document if missing."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        if not self.path.exists():
            logger.info("No board at %s, writing seeded default", self.path)
            self.save(default_board())

    def load(self) -> Board:
        """Read and normalise the stored board.

        Raises :class:`StorageCorrupt` when the document is unreadable.
        """
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            raise StorageCorrupt(f"Cannot read {self.path}: {e}") from e

        result = normalize(data)
        if not isinstance(result, Accepted):
            raise StorageCorrupt(f"{self.path} does not hold a board: {result.reason}")
        return result.board

    def load_or_default(self) -> Board:
        try:
            self.ensure()
            return self.load()
        except (StorageCorrupt, StorageWriteFailed) as e:
            logger.warning("%s; falling back to the default board", e)
            return default_board()

    def save(self, board: Board) -> None:
        """Overwrite the document with *board*.

        The board is written to a sibling temp file and renamed into place.
        """
        payload = json.dumps(board.wire(), ensure_ascii=False, indent=2)
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{self.path.name}.", dir=self.path.parent)
            try:
                with os.fdopen(fd, "w", encoding="utf-8") as fh:
                    fh.write(payload)
                os.replace(tmp_name, self.path)
            except BaseException:
                Path(tmp_name).unlink(missing_ok=True)
                raise
        except OSError as e:
            raise StorageWriteFailed(f"Cannot write {self.path}: {e}") from e


class PersistenceScheduler:
    """Debounced write-behind of the latest board.

    At most one write is pending; a newer :meth:`schedule` call replaces
    the board that will be written and restarts the quiet period.
    """

    def __init__(self, storage: BoardStorage, delay: float = 0.15) -> None:
        self.storage = storage
        self._latest: Board | None = None
        self._debouncer = Debouncer(delay, self._start_write)
        self._writes: set[asyncio.Task[None]] = set()
        # Writes land in schedule order.
        self._write_lock = asyncio.Lock()

    @property
    def pending(self) -> bool:
        return self._debouncer.pending

    def schedule(self, board: Board) -> None:
        self._latest = board
        self._debouncer.trigger()

    async def flush(self) -> None:
        """Write the pending board now and wait for in-flight writes."""
        if self._debouncer.pending:
            self._debouncer.cancel()
            self._start_write()
        if self._writes:
            await asyncio.gather(*self._writes)

    def _start_write(self) -> None:
        board, self._latest = self._latest, None
        if board is None:
            return
        task = asyncio.get_running_loop().create_task(self._write(board))
        self._writes.add(task)
        task.add_done_callback(self._writes.discard)

    async def _write(self, board: Board) -> None:
        async with self._write_lock:
            try:
                await asyncio.to_thread(self.storage.save, board)
            except StorageWriteFailed as e:
                logger.error("Failed to save board: %s", e)
            else:
                logger.debug("Board saved (%s)", board.updated_at)
