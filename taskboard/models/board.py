"""Board models: the canonical snapshot shared by every session.

Field names follow the wire format (``updatedAt`` is camelCase on the
wire, ``updated_at`` in Python).
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

BOARD_TITLE = "Kirkeåsveien 6b"

MAX_SECTIONS = 100
MAX_TASKS_PER_SECTION = 500
MAX_SECTION_TITLE = 80
MAX_TASK_TEXT = 220
MAX_LANGUAGE_NAME = 24

UNTITLED = "Untitled"


class Task(BaseModel):
    id: str
    text: str
    done: bool = False
    starred: bool = False


class Section(BaseModel):
    id: str
    title: str = UNTITLED
    tasks: list[Task] = Field(default_factory=list)


class Board(BaseModel):
    """Full board snapshot as stored, broadcast and mirrored."""

    model_config = ConfigDict(populate_by_name=True)

    title: str = BOARD_TITLE
    sections: list[Section] = Field(default_factory=list)
    updated_at: str = Field(default="", alias="updatedAt")

    def wire(self) -> dict:
        """Return the JSON-ready dict used on the wire and on disk."""
        return self.model_dump(by_alias=True)

    def find_section(self, section_id: str) -> Section | None:
        return next((s for s in self.sections if s.id == section_id), None)

    def find_task(self, section_id: str, task_id: str) -> Task | None:
        section = self.find_section(section_id)
        if section is None:
            return None
        return next((t for t in section.tasks if t.id == task_id), None)
