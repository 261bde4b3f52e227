"""Translation overlay for one session.

Translations are requested in the background after the board has been
quiet for a short debounce, and cached by section / task id. Each request
carries a :class:`GenerationToken`; when the board changes again or the
overlay is switched off, the live generation moves on and any answer
still in flight is dropped on arrival. The network call itself is never
cancelled, only its result.

States::

    IDLE ──content change──▶ SCHEDULED ──debounce──▶ IN_FLIGHT
      ▲                                                 │
      └──────────── APPLIED / FAILED ◀──────────────────┘
"""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Awaitable, Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

from taskboard.models.board import Board, Section, Task
from taskboard.scheduling import Debouncer

logger = logging.getLogger(__name__)

TRANSLATION_DEBOUNCE_SECONDS = 0.32

Fetch = Callable[[dict[str, Any]], Awaitable[dict[str, Any]]]


class OverlayState(str, Enum):
    IDLE = "idle"
    SCHEDULED = "scheduled"
    IN_FLIGHT = "in_flight"
    APPLIED = "applied"
    FAILED = "failed"


class GenerationCounter:
    """Monotonic source of :class:`GenerationToken` values."""

    def __init__(self) -> None:
        self.value = 0

    def issue(self) -> GenerationToken:
        self.value += 1
        return GenerationToken(self.value, self)

    def bump(self) -> None:
        """Invalidate every token issued so far."""
        self.value += 1


@dataclass(frozen=True)
class GenerationToken:
    generation: int
    counter: GenerationCounter

    @property
    def live(self) -> bool:
        return self.generation == self.counter.value


def source_signature(board: Board) -> str:
    """Signature over the translatable text only (ids, titles, task texts)."""
    return json.dumps(
        [
            [section.id, section.title, [[task.id, task.text] for task in section.tasks]]
            for section in board.sections
        ],
        ensure_ascii=False,
        separators=(",", ":"),
    )


class TranslationCache:
    """Debounced, superseding translation overlay.

    Args:
        fetch: Posts a translation request and returns the JSON response;
            raises on failure.
        board: Returns the session's current board.
        on_change: Called after new translations were applied, and when
            the in-flight indicator changes.
        on_notice: Called with a short user-facing message on failure.
    """

    def __init__(
        self,
        fetch: Fetch,
        board: Callable[[], Board],
        *,
        target_language: str = "Polish",
        debounce: float = TRANSLATION_DEBOUNCE_SECONDS,
        on_change: Callable[[], None] | None = None,
        on_notice: Callable[[str], None] | None = None,
    ) -> None:
        self._fetch = fetch
        self._board = board
        self.target_language = target_language
        self._on_change = on_change or (lambda: None)
        self._on_notice = on_notice or (lambda message: None)

        self.enabled = False
        self.state = OverlayState.IDLE
        self.last_outcome: OverlayState | None = None
        self._generations = GenerationCounter()
        self._debouncer = Debouncer(debounce, self._start_request)
        self._applied_signature = ""
        self._section_titles: dict[str, str] = {}
        self._task_texts: dict[str, str] = {}
        self._requests: set[asyncio.Task[None]] = set()

    @property
    def generation(self) -> int:
        return self._generations.value

    @property
    def in_flight(self) -> bool:
        return self.state is OverlayState.IN_FLIGHT

    # ── Overlay switch ──────────────────────────────────────────────────

    def enable(self) -> None:
        self.enabled = True
        self.content_changed()

    def disable(self) -> None:
        self.enabled = False
        self._debouncer.cancel()
        self._generations.bump()
        self.state = OverlayState.IDLE
        self._on_change()

    def clear(self) -> None:
        """Forget every cached translation."""
        self._section_titles = {}
        self._task_texts = {}
        self._applied_signature = ""

    # ── Scheduling ──────────────────────────────────────────────────────

    def content_changed(self) -> None:
        """(Re)start the debounce; no-op while the overlay is off.

        Any request still in flight was made for older content and is
        superseded here.
        """
        if not self.enabled:
            return
        self._generations.bump()
        self._debouncer.trigger()
        self.state = OverlayState.SCHEDULED

    def _start_request(self) -> None:
        task = asyncio.get_running_loop().create_task(self.refresh())
        self._requests.add(task)
        task.add_done_callback(self._requests.discard)

    async def refresh(self) -> None:
        """Request translations for the current board unless already cached."""
        if not self.enabled:
            return

        board = self._board()
        signature = source_signature(board)
        if signature == self._applied_signature:
            self.state = OverlayState.IDLE
            return

        token = self._generations.issue()
        self.state = OverlayState.IN_FLIGHT
        self._on_change()
        await self._request(board, signature, token)

    async def _request(self, board: Board, signature: str, token: GenerationToken) -> None:
        try:
            response = await self._fetch(self._payload(board))
        except Exception as e:
            if token.live:
                logger.warning("Translation failed: %s", e)
                self.last_outcome = OverlayState.FAILED
                self._on_notice("Translation unavailable")
                self._finish()
            else:
                logger.debug("Ignoring failure of superseded generation %d", token.generation)
            return

        if not token.live:
            logger.debug("Discarding stale translation (generation %d)", token.generation)
            return

        self._store(response)
        self._applied_signature = signature
        self.last_outcome = OverlayState.APPLIED
        self._finish()

    def _finish(self) -> None:
        self.state = OverlayState.SCHEDULED if self._debouncer.pending else OverlayState.IDLE
        self._on_change()

    def _payload(self, board: Board) -> dict[str, Any]:
        return {
            "targetLanguage": self.target_language,
            "sections": [
                {
                    "id": section.id,
                    "title": section.title,
                    "tasks": [{"id": task.id, "text": task.text} for task in section.tasks],
                }
                for section in board.sections
            ],
        }

    def _store(self, response: Any) -> None:
        titles: dict[str, str] = {}
        texts: dict[str, str] = {}
        sections = response.get("sections") if isinstance(response, dict) else None
        for section in sections if isinstance(sections, list) else []:
            if not isinstance(section, dict) or not isinstance(section.get("id"), str):
                continue
            title = section.get("title")
            if isinstance(title, str) and title.strip():
                titles[section["id"]] = title.strip()
            tasks = section.get("tasks")
            for task in tasks if isinstance(tasks, list) else []:
                if not isinstance(task, dict) or not isinstance(task.get("id"), str):
                    continue
                text = task.get("text")
                if isinstance(text, str) and text.strip():
                    texts[f"{section['id']}:{task['id']}"] = text.strip()
        self._section_titles = titles
        self._task_texts = texts

    # ── Display ─────────────────────────────────────────────────────────

    def section_title(self, section: Section) -> str:
        if not self.enabled:
            return section.title
        return self._section_titles.get(section.id) or section.title

    def task_text(self, section_id: str, task: Task) -> str:
        if not self.enabled:
            return task.text
        return self._task_texts.get(f"{section_id}:{task.id}") or task.text
