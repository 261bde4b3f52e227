"""Per-session board mirror.

The reconciler keeps a local copy of the canonical board. Local edits
change the copy at once and ship the whole board to the server as an
``update``; whatever the server sends back as ``sync`` replaces the copy.
There is no merge and no rollback.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from taskboard.models.board import BOARD_TITLE, UNTITLED, Board, Section, Task
from taskboard.models.messages import Envelope
from taskboard.services.normalizer import (
    Rejected,
    content_signature,
    new_id,
    normalize,
    utc_timestamp,
)

logger = logging.getLogger(__name__)

SendUpdate = Callable[[Envelope], None]
Render = Callable[[Board], None]
Listener = Callable[[], None]


def _move(items: list[Any], from_index: int, to_index: int) -> list[Any]:
    copy = list(items)
    item = copy.pop(from_index)
    copy.insert(max(0, min(to_index, len(copy))), item)
    return copy


class ClientReconciler:
    """Local mirror of the board for one session.

    Args:
        send: Called with each outgoing ``update`` envelope.
        render: Called with the mirror whenever its content changed.
    """

    def __init__(self, send: SendUpdate, render: Render | None = None) -> None:
        self._send = send
        self._render = render or (lambda board: None)
        self._listeners: list[Listener] = []
        self.board = Board(title=BOARD_TITLE, sections=[], updated_at="")

    def add_listener(self, listener: Listener) -> None:
        """Register a callback run after every content change (local or remote)."""
        self._listeners.append(listener)

    @property
    def signature(self) -> str:
        return content_signature(self.board)

    # ── Inbound ─────────────────────────────────────────────────────────

    def on_sync(self, payload: Any) -> bool:
        """Adopt a ``sync`` payload. Returns True when the view was re-rendered."""
        if not isinstance(payload, Mapping):
            logger.warning("Ignoring sync payload of type %s", type(payload).__name__)
            return False

        updated_at = str(payload.get("updatedAt") or utc_timestamp())
        result = normalize(payload, now=updated_at)
        if isinstance(result, Rejected):
            return False
        incoming = result.board

        if content_signature(incoming) == self.signature:
            self.board.updated_at = incoming.updated_at
            return False

        self.board = incoming
        self._render(self.board)
        self._notify()
        return True

    # ── Local edits ─────────────────────────────────────────────────────

    def add_section(self, title: str = "New section") -> str:
        section_id = new_id("section")
        self.board.sections.append(Section(id=section_id, title=title, tasks=[]))
        self._commit()
        return section_id

    def remove_section(self, section_id: str) -> None:
        remaining = [s for s in self.board.sections if s.id != section_id]
        if len(remaining) == len(self.board.sections):
            return
        self.board.sections = remaining
        self._commit()

    def move_section(self, from_index: int, to_index: int) -> None:
        if from_index == to_index or not 0 <= from_index < len(self.board.sections):
            return
        self.board.sections = _move(self.board.sections, from_index, to_index)
        self._commit()

    def rename_section(self, section_id: str, title: str) -> None:
        section = self.board.find_section(section_id)
        if section is None:
            return
        section.title = title.strip() or UNTITLED
        self._commit()

    def add_task(self, section_id: str, text: str = "New task") -> str | None:
        section = self.board.find_section(section_id)
        if section is None:
            return None
        task_id = new_id("task")
        section.tasks.append(Task(id=task_id, text=text, done=False, starred=False))
        self._commit()
        return task_id

    def remove_task(self, section_id: str, task_id: str) -> None:
        section = self.board.find_section(section_id)
        if section is None or self.board.find_task(section_id, task_id) is None:
            return
        section.tasks = [t for t in section.tasks if t.id != task_id]
        self._commit()

    def edit_task_text(self, section_id: str, task_id: str, text: str) -> None:
        """Set a task's text; blank text removes the task."""
        task = self.board.find_task(section_id, task_id)
        if task is None:
            return
        text = text.strip()
        if not text:
            self.remove_task(section_id, task_id)
            return
        if task.text != text:
            task.text = text
            self._commit()

    def set_done(self, section_id: str, task_id: str, done: bool | None = None) -> None:
        """Set ``done``; toggles when *done* is None."""
        task = self.board.find_task(section_id, task_id)
        if task is None:
            return
        task.done = (not task.done) if done is None else done
        self._commit()

    def toggle_starred(self, section_id: str, task_id: str) -> None:
        task = self.board.find_task(section_id, task_id)
        if task is None:
            return
        task.starred = not task.starred
        self._commit()

    def move_task(self, task_id: str, from_section_id: str, to_section_id: str, index: int | None = None) -> None:
        """Move a task within a section or across sections."""
        source = self.board.find_section(from_section_id)
        target = self.board.find_section(to_section_id)
        if source is None or target is None:
            return
        position = next((i for i, t in enumerate(source.tasks) if t.id == task_id), None)
        if position is None:
            return

        task = source.tasks.pop(position)
        index = len(target.tasks) if index is None else max(0, min(index, len(target.tasks)))
        target.tasks.insert(index, task)
        self._commit()

    # ── Internals ───────────────────────────────────────────────────────

    def _commit(self) -> None:
        self.board.updated_at = utc_timestamp()
        self._send(Envelope.update(self.board.wire()))
        self._render(self.board)
        self._notify()

    def _notify(self) -> None:
        for listener in self._listeners:
            listener()
