"""Cancellable delayed calls on the running asyncio loop.

Usage:
    from taskboard.scheduling import Debouncer, schedule

    cancel = schedule(0.5, refresh)
    cancel()

    saver = Debouncer(0.15, write_board)
    saver.trigger()  # cancels any pending call, then reschedules
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable

logger = logging.getLogger(__name__)

Cancel = Callable[[], None]


def schedule(
    delay: float, fn: Callable[[], None], *, loop: asyncio.AbstractEventLoop | None = None
) -> Cancel:
    """Run *fn* after *delay* seconds; return a function that cancels it.

    Cancelling after *fn* has run is a no-op.
    """
    loop = loop or asyncio.get_running_loop()
    handle = loop.call_later(delay, fn)
    return handle.cancel


class Debouncer:
    """Trailing-edge debounce: *callback* runs once *delay* seconds after
    the last :meth:`trigger`.
    """

    def __init__(self, delay: float, callback: Callable[[], None]) -> None:
        self.delay = delay
        self._callback = callback
        self._cancel: Cancel | None = None

    @property
    def pending(self) -> bool:
        return self._cancel is not None

    def trigger(self) -> None:
        self.cancel()
        self._cancel = schedule(self.delay, self._fire)

    def cancel(self) -> None:
        if self._cancel is not None:
            self._cancel()
            self._cancel = None

    def _fire(self) -> None:
        self._cancel = None
        try:
            self._callback()
        except Exception:
            logger.exception("Debounced callback failed")
