"""Board normaliser: turn arbitrary client input into a canonical board.

Every mutation received on the sync channel goes through :func:`normalize`
before it may replace the authoritative board. The function never raises
on bad input: it returns :class:`Accepted` with a well-formed board or
:class:`Rejected` with a reason.

The text helpers here are shared with the translation sanitiser so both
paths apply exactly the same limits.
"""

from __future__ import annotations

import json
import re
import uuid
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Union

from taskboard.models.board import (
    BOARD_TITLE,
    MAX_SECTION_TITLE,
    MAX_SECTIONS,
    MAX_TASK_TEXT,
    MAX_TASKS_PER_SECTION,
    UNTITLED,
    Board,
    Section,
    Task,
)

_WHITESPACE = re.compile(r"\s+")


@dataclass(frozen=True, slots=True)
class Accepted:
    board: Board


@dataclass(frozen=True, slots=True)
class Rejected:
    reason: str


NormalizeResult = Union[Accepted, Rejected]


def utc_timestamp(moment: datetime | None = None) -> str:
    """ISO-8601 UTC timestamp with millisecond precision and ``Z`` suffix."""
    moment = moment or datetime.now(timezone.utc)
    return moment.astimezone(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def parse_timestamp(value: str) -> datetime | None:
    try:
        return datetime.fromisoformat(value.replace("Z", "+00:00"))
    except (AttributeError, ValueError):
        return None


def new_id(prefix: str) -> str:
    return f"{prefix}-{uuid.uuid4()}"


def normalize_text(value: Any, max_length: int) -> str:
    """Collapse whitespace runs, trim and clamp to *max_length*.

    Non-string values count as empty, except non-zero numbers which are
    stringified.
    """
    if isinstance(value, bool) or not value:
        return ""
    if isinstance(value, (int, float)):
        value = str(value)
    elif not isinstance(value, str):
        return ""
    text = _WHITESPACE.sub(" ", value).strip()
    # Trim again: the slice may end on the collapsed space.
    return text[:max_length].strip()


def _valid_id(value: Any) -> bool:
    return isinstance(value, str) and bool(value)


def _claim_id(value: Any, prefix: str, seen: set[str]) -> str:
    ident = value if _valid_id(value) and value not in seen else new_id(prefix)
    seen.add(ident)
    return ident


def _as_list(value: Any, limit: int) -> list[Any]:
    return list(value[:limit]) if isinstance(value, list) else []


def normalize(raw: Any, *, now: str | None = None) -> NormalizeResult:
    """Normalise *raw* into a canonical :class:`Board`.

    ``title`` is always the fixed board name and ``updatedAt`` is *now*
    (current time when omitted); neither is taken from the input.
    """
    if not isinstance(raw, Mapping):
        return Rejected(f"expected an object, got {type(raw).__name__}")

    sections: list[Section] = []
    section_ids: set[str] = set()

    for raw_section in _as_list(raw.get("sections"), MAX_SECTIONS):
        if not isinstance(raw_section, Mapping):
            continue

        tasks: list[Task] = []
        task_ids: set[str] = set()
        for raw_task in _as_list(raw_section.get("tasks"), MAX_TASKS_PER_SECTION):
            if not isinstance(raw_task, Mapping):
                continue
            text = normalize_text(raw_task.get("text"), MAX_TASK_TEXT)
            if not text:
                continue
            tasks.append(
                Task(
                    id=_claim_id(raw_task.get("id"), "task", task_ids),
                    text=text,
                    done=bool(raw_task.get("done")),
                    starred=bool(raw_task.get("starred")),
                )
            )

        sections.append(
            Section(
                id=_claim_id(raw_section.get("id"), "section", section_ids),
                title=normalize_text(raw_section.get("title"), MAX_SECTION_TITLE) or UNTITLED,
                tasks=tasks,
            )
        )

    return Accepted(Board(title=BOARD_TITLE, sections=sections, updated_at=now or utc_timestamp()))


def content_signature(board: Board) -> str:
    """Signature over ``title`` and ``sections``; ``updatedAt`` is excluded."""
    data = board.model_dump(include={"title", "sections"})
    return json.dumps(data, ensure_ascii=False, separators=(",", ":"))


def default_board() -> Board:
    """Seed board written on first run or when storage is unreadable."""
    texts = [
        "Legge flis i gangen",
        "Fuge flis",
        "Silikonere",
        "Fikse flis i entré",
        "Pusse ferdig vegg",
        "Male vegger",
    ]
    return Board(
        title=BOARD_TITLE,
        sections=[
            Section(
                id=new_id("section"),
                title="Entré",
                tasks=[Task(id=new_id("task"), text=text) for text in texts],
            )
        ],
        updated_at=utc_timestamp(),
    )
