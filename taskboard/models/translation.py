"""Translation request / response models.

Only client-visible text travels to the language model; ``done`` and
``starred`` never leave the server.
"""

from __future__ import annotations

from pydantic import BaseModel, Field


class TranslationTask(BaseModel):
    id: str
    text: str


class TranslationSection(BaseModel):
    id: str
    title: str
    tasks: list[TranslationTask] = Field(default_factory=list)


class TranslationRequest(BaseModel):
    """Sanitised translation input."""

    target_language: str
    sections: list[TranslationSection] = Field(default_factory=list)

    def model_input(self) -> dict:
        """The part of the request shown to the model."""
        return {"sections": [s.model_dump() for s in self.sections]}


class TranslatedSnapshot(BaseModel):
    """Translated text mapped back onto the request's ids."""

    sections: list[TranslationSection] = Field(default_factory=list)
